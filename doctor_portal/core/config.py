# doctor_portal/core/config.py
from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Service account JSON used by firebase_admin
    FIREBASE_CREDENTIALS: str = "doctor_portal/core/firebase_key.json"

    # Cloudinary unsigned uploads (prescription images)
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_UPLOAD_PRESET: str = ""
    CLOUDINARY_TIMEOUT: int = 30

    # Secure patient access
    ACCESS_SESSION_TTL: int = 600
    OTP_MAX_ATTEMPTS: int = 5

    PORTAL_DEBUG_MODE: bool = True

    # If you want to read from a .env file, keep this:
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
