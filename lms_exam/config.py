"""Application settings loaded from the environment (prefix ``LMS_``)."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="LMS_", env_file=".env", extra="ignore")

    app_name: str = "College LMS Examination Service"

    # Database
    database_url: str = "sqlite:///./lms_exam.db"
    sql_echo: bool = False

    # Security
    secret_key: str = Field(default="change-me-in-production")
    bcrypt_rounds: int = 12

    # Grading defaults applied when an examination leaves them unset
    default_total_points: int = 100
    default_passing_percentage: float = 50.0

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
