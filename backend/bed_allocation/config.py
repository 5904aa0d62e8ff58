"""
Centralized application settings.
Every tunable value of the allocation service lives here.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Main system settings."""

    # ============================================
    # APPLICATION
    # ============================================
    APP_TITLE: str = "Hospital Bed Allocation Service"
    APP_DESCRIPTION: str = "Bed recommendation, request approval and admission/discharge/transfer"
    APP_VERSION: str = "1.0.0"
    APP_ENV: str = "development"
    DEBUG: bool = False

    # ============================================
    # DATABASE
    # ============================================
    DATABASE_URL: str = "sqlite:///./bed_allocation.db"

    # ============================================
    # CORS
    # ============================================
    CORS_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOW_METHODS: List[str] = ["*"]
    CORS_ALLOW_HEADERS: List[str] = ["*"]

    # ============================================
    # CLEANING
    # ============================================
    CLEANING_DURATION_MINUTES: int = 30
    CLEANING_SWEEP_INTERVAL: int = 60  # seconds
    AUTO_CLEANING_ENABLED: bool = True

    # ============================================
    # ALLOCATION
    # ============================================
    OVERFLOW_WARD_NAMES: List[str] = ["Emergency", "ER"]
    RECOMMENDATION_LIMIT: int = 3
    PATIENT_CODE_LENGTH: int = 5
    PATIENT_CODE_MAX_ATTEMPTS: int = 5

    # ============================================
    # ALERTS
    # ============================================
    ALERT_DEDUP_MINUTES: int = 60

    # ============================================
    # ROLES
    # ============================================
    APPROVER_ROLES: List[str] = ["hospital_admin"]
    CANCEL_ROLES: List[str] = ["hospital_admin", "icu_manager", "er_staff"]

    # ============================================
    # STARTUP
    # ============================================
    SEED_ON_STARTUP: bool = False

    # ============================================
    # LOGGING
    # ============================================
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()
