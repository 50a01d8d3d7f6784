"""
Application settings

Settings are read from the environment once at startup and handed to
``create_app``; nothing else in the project reads environment variables.
"""
import logging
import os
from typing import List

import structlog
from pydantic import BaseModel, Field


class Settings(BaseModel):
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "bookstore"
    secret_key: str = "secret-key-change-me"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(60, gt=0)
    bcrypt_rounds: int = Field(10, ge=4, le=31)
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL", "mongodb://localhost:27017"),
            database_name=os.getenv("DATABASE_NAME", "bookstore"),
            secret_key=os.getenv("SECRET_KEY", "secret-key-change-me"),
            algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60)),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", 10)),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


def configure_logging(level: str = "INFO"):
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"]),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
        cache_logger_on_first_use=True,
    )
