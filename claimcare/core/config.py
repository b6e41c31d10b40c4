# claimcare/core/config.py
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List, Optional


class Settings(BaseSettings):
    # ===================================
    # APPLICATION SETTINGS
    # ===================================
    APP_NAME: str = "ClaimCare - Claim Decisioning Engine"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # ===================================
    # API SETTINGS
    # ===================================
    API_PREFIX: str = "/api/v1"
    ALLOWED_ORIGINS: List[str] = ["*"]

    # ===================================
    # STORAGE
    # ===================================
    DATA_DIR: str = "data"
    PERSIST_TO_DISK: bool = False  # In-memory only unless enabled

    # ===================================
    # FRAUD SIGNALS
    # ===================================
    FRAUD_BLACKLIST_NIKS: List[str] = []
    SIGNAL_PROVIDER_SEED: Optional[int] = None  # None -> non-deterministic mocks

    # ===================================
    # DECISIONING LIMITS (IDR)
    # ===================================
    REINSURANCE_RETENTION_LIMIT: float = 1_000_000_000
    AUTO_APPROVE_MAX_AMOUNT: float = 50_000_000

    # ===================================
    # PYDANTIC CONFIG
    # ===================================
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "allow"  # Allow extra fields from .env


# ===================================
# SINGLETON PATTERN
# ===================================
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
