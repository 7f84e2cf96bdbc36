"""
RxGate settings.

Every value comes from the process environment, optionally seeded from a
`.env` file at the repository root. Secrets have no defaults; `validate()`
is called by the app factory before anything touches the database.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

_REPO_ROOT = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=_REPO_ROOT / ".env")


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    return int(raw) if raw else default


def _env_set(name: str, default: str) -> frozenset:
    raw = os.environ.get(name) or default
    return frozenset(part.strip().lower().lstrip(".") for part in raw.split(",") if part.strip())


class Config:
    # Secrets (required)
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")
    FLASK_SECRET_KEY: str = os.environ.get("FLASK_SECRET_KEY", "")
    JWT_SECRET: str = os.environ.get("JWT_SECRET", "")

    # Runtime
    APP_ENV: str = os.environ.get("APP_ENV", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")
    HOST: str = os.environ.get("HOST", "127.0.0.1")
    PORT: int = _env_int("PORT", 5000)

    # Customer sessions
    JWT_ALGORITHM = "HS256"
    JWT_TTL_HOURS: int = _env_int("JWT_TTL_HOURS", 12)

    # Prescription documents
    UPLOAD_FOLDER: str = os.environ.get("UPLOAD_FOLDER", "uploads")
    DOCUMENT_BASE_URL: str = os.environ.get("DOCUMENT_BASE_URL", "/api/documents")
    MAX_CONTENT_LENGTH: int = _env_int("MAX_CONTENT_LENGTH", 16 * 1024 * 1024)
    ALLOWED_EXTENSIONS = _env_set("ALLOWED_EXTENSIONS", "png,jpg,jpeg,gif,bmp,tiff,webp")

    # Tesseract
    TESSERACT_CMD: str = os.environ.get("TESSERACT_CMD", "")
    OCR_LANGUAGE: str = os.environ.get("OCR_LANGUAGE", "eng")

    RATE_LIMIT_DEFAULT: str = os.environ.get("RATE_LIMIT_DEFAULT", "60/minute")

    REQUIRED = ("DATABASE_URL", "FLASK_SECRET_KEY", "JWT_SECRET")

    @classmethod
    def validate(cls) -> None:
        missing = [name for name in cls.REQUIRED if not getattr(cls, name)]
        if missing:
            raise EnvironmentError(
                f"RxGate cannot start, unset: {', '.join(missing)}. "
                "Copy .env.example to .env and fill it in."
            )
        if cls.JWT_TTL_HOURS < 1:
            raise EnvironmentError("JWT_TTL_HOURS must be at least 1.")
