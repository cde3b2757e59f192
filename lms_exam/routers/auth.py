"""Cookie-session login used by the examination and grading endpoints."""

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlmodel import Session, select

from lms_exam.auth_utils import verify_password
from lms_exam.database import get_session
from lms_exam.deps import require_login
from lms_exam.models import User

router = APIRouter()


class LoginIn(BaseModel):
    email: str
    password: str


def _user_out(user: User) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email, "role": user.role}


@router.post("/login")
def login(
    request: Request,
    payload: LoginIn = Body(...),
    session: Session = Depends(get_session),
):
    user = session.exec(select(User).where(User.email == payload.email.strip().lower())).first()
    if not user or not user.is_active or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    request.session["user_id"] = user.id
    request.session["role"] = user.role
    return _user_out(user)


@router.post("/logout")
def logout(request: Request):
    request.session.clear()
    return {"status": "logged_out"}


@router.get("/me")
def me(current_user: User = Depends(require_login)):
    return _user_out(current_user)
