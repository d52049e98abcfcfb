import os
from typing import List

from dotenv import load_dotenv
from pydantic_settings import BaseSettings

load_dotenv()


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Firebase
    FIREBASE_PROJECT_ID: str = os.getenv("FIREBASE_PROJECT_ID", "")
    FIREBASE_DATABASE_ID: str = os.getenv("FIREBASE_DATABASE_ID", "(default)")
    GOOGLE_APPLICATION_CREDENTIALS: str = os.getenv("GOOGLE_APPLICATION_CREDENTIALS", "")

    # "firestore" or "memory"
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "firestore")

    # Session
    SESSION_COOKIE_NAME: str = "pawcare_session"

    # CORS
    CORS_ORIGINS: List[str] = ["*"]  # In production, specify exact origins

    # Emergency booking window
    CLINIC_TIMEZONE: str = os.getenv("CLINIC_TIMEZONE", "America/New_York")
    EMERGENCY_WINDOW_DAYS: int = 7
    EMERGENCY_FIRST_HOUR: int = 8
    EMERGENCY_LAST_HOUR: int = 20
    EMERGENCY_SLOT_MINUTES: int = 30

    # Reject bookings for a slot another live appointment already holds
    ENFORCE_SLOT_OCCUPANCY: bool = False

    @property
    def IS_PRODUCTION(self) -> bool:
        """Check if running in production"""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


# Singleton instance
settings = Settings()
