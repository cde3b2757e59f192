"""Request dependencies: the logged-in user and role gates for the routers."""

from typing import Iterable, Optional

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from lms_exam.database import get_session
from lms_exam.models import User
from lms_exam.services.access import GRADER_ROLES


def get_current_user(
    request: Request, session: Session = Depends(get_session)
) -> Optional[User]:
    """User stored in the session cookie, or None for anonymous requests."""
    user_id = request.session.get("user_id")
    if not user_id:
        return None

    user = session.get(User, user_id)
    if user is None or not user.is_active:
        # Deactivated or deleted since login
        request.session.clear()
        return None
    return user


def require_login(current_user: Optional[User] = Depends(get_current_user)) -> User:
    if current_user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return current_user


def require_role(roles: Iterable[str]):
    """Dependency factory admitting only users whose role is in `roles`."""
    allowed = frozenset(roles)

    def checker(current_user: User = Depends(require_login)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(status_code=403, detail="Forbidden")
        return current_user

    return checker


require_student = require_role(["student"])
require_grader = require_role(GRADER_ROLES)
