"""
Brokerage API Configuration
Loads settings from .env file using Pydantic v2 with BaseSettings
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # ==================== Project Info ====================
    PROJECT_NAME: str = "Brokerage API"
    PROJECT_DESCRIPTION: str = "Property listings, aggregator proxy and lead management back office"
    VERSION: str = "1.0.0"

    # ==================== Database ====================
    DATABASE_URL: str = "sqlite:///brokerage_local.db"

    # ==================== Security & Authentication ====================
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080  # 7 days

    # ==================== CORS & Frontend ====================
    FRONTEND_URL: str = "http://localhost:3000"
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
    ]

    # ==================== Server Configuration ====================
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # ==================== Alnair Aggregator ====================
    ALNAIR_API_BASE: str = "https://api.alnair.ae"
    ALNAIR_AUTH_TOKEN: str = ""
    ALNAIR_CACHE_SECONDS: int = 300
    UPSTREAM_TIMEOUT_SECONDS: float = 20.0
    CURL_BINARY: str = "curl"
    CURL_MAX_TIME: int = 15
    DEFAULT_USER_AGENT: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
    )

    # ==================== Listing Caches ====================
    LISTING_CACHE_SECONDS: int = 300
    # Developers whose projects lead the "newly launched" listing
    PRIORITY_DEVELOPER_IDS: List[str] = [
        "98ccae3b-02eb-46c0-b311-2e480f7ad3bc",
        "7b36ecea-e621-45f5-8fc8-009340772fdb",
    ]

    # ==================== Features ====================
    DEBUG: bool = False
    TESTING: bool = False
    LOG_LEVEL: str = "INFO"

    # ==================== Pagination ====================
    DEFAULT_PAGE_SIZE: int = 10
    PUBLIC_PAGE_SIZE: int = 12
    MAX_PAGE_SIZE: int = 100

    # ==================== Configuration Loading ====================
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="allow",  # Allow extra environment variables
        validate_default=True,
    )

    # ==================== Properties ====================
    @property
    def aggregator_configured(self) -> bool:
        """Check if the aggregator token is present"""
        return bool(self.ALNAIR_AUTH_TOKEN)


# ==================== Settings Singleton ====================
@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Create default settings instance
settings = get_settings()


# ==================== Helper Functions ====================
def get_cors_origins() -> List[str]:
    """Get CORS allowed origins"""
    return settings.ALLOWED_ORIGINS


def is_production() -> bool:
    """Check if running in production"""
    return not settings.DEBUG and settings.FRONTEND_URL.startswith("https")


def is_development() -> bool:
    """Check if running in development"""
    return settings.DEBUG or "localhost" in settings.FRONTEND_URL


def is_testing() -> bool:
    """Check if running in testing mode"""
    return settings.TESTING
