from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional

from dotenv import load_dotenv


DEFAULT_CORS_ORIGINS = (
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "https://tzurglobalreact.web.app",
)


def _flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    app_env: str
    port: int
    log_level: str

    database_url: str
    database_name: str

    # Mail transport
    smtp_host: Optional[str]
    smtp_port: int
    smtp_user: Optional[str]
    smtp_pass: Optional[str]
    smtp_secure: bool
    smtp_timeout_seconds: float
    from_email: str
    from_name: str
    admin_email: Optional[str]

    company_name: str
    newsletter_notify_admin: bool

    # Resume uploads
    upload_backend: str  # local | gridfs
    upload_dir: str
    max_upload_bytes: int

    cors_origins: tuple = DEFAULT_CORS_ORIGINS

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host)


def load_settings(environ: Mapping[str, str]) -> Settings:
    """Build settings from an environment mapping without touching ``.env``."""
    smtp_user = environ.get("SMTP_USER")
    origins = environ.get("CORS_ORIGINS")
    upload_backend = environ.get("UPLOAD_BACKEND", "local").lower()
    if upload_backend not in ("local", "gridfs"):
        raise RuntimeError(f"UPLOAD_BACKEND must be 'local' or 'gridfs', got {upload_backend!r}")
    return Settings(
        app_env=environ.get("APP_ENV", "development"),
        port=int(environ.get("PORT", "3001")),
        log_level=environ.get("LOG_LEVEL", "INFO"),
        database_url=environ.get("DATABASE_URL", "mongodb://localhost:27017"),
        database_name=environ.get("DATABASE_NAME", "website"),
        smtp_host=environ.get("SMTP_HOST") or None,
        smtp_port=int(environ.get("SMTP_PORT", "587")),
        smtp_user=smtp_user,
        smtp_pass=environ.get("SMTP_PASS"),
        smtp_secure=_flag(environ.get("SMTP_SECURE")),
        smtp_timeout_seconds=float(environ.get("SMTP_TIMEOUT", "15")),
        from_email=environ.get("FROM_EMAIL") or smtp_user or "no-reply@localhost",
        from_name=environ.get("FROM_NAME", "Tzur Global"),
        admin_email=environ.get("ADMIN_EMAIL") or environ.get("TO_EMAIL") or None,
        company_name=environ.get("COMPANY_NAME", "Tzur Global"),
        newsletter_notify_admin=_flag(environ.get("NEWSLETTER_NOTIFY_ADMIN")),
        upload_backend=upload_backend,
        upload_dir=environ.get("UPLOAD_DIR", os.path.join("uploads", "resumes")),
        max_upload_bytes=int(environ.get("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024))),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()) if origins else DEFAULT_CORS_ORIGINS,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    return load_settings(os.environ)
