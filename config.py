"""
Application configuration

Values come from the environment; a local .env file is loaded first so
development setups don't need exported variables.
"""
import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

TRUTHY = {"1", "true", "yes", "on"}


def env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in TRUTHY


class Settings(BaseModel):
    database_url: str = Field("mongodb://localhost:27017", description="MongoDB connection string")
    database_name: str = Field("garmentsDB", description="Database holding the marketplace collections")
    database_timeout_ms: int = Field(5000, ge=1, description="Upper bound for a single store call")
    use_transactions: bool = Field(True, description="Wrap order placement in a multi-document transaction")
    jwt_secret: str = Field("dev-secret-change-me", description="Key used to verify identity tokens")
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = None
    stripe_secret: Optional[str] = None
    stripe_currency: str = "usd"
    site_domain: str = "http://localhost:5173"
    log_level: str = "INFO"
    port: int = 8000

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", "mongodb://localhost:27017"),
            database_name=os.getenv("DATABASE_NAME", "garmentsDB"),
            database_timeout_ms=int(os.getenv("DATABASE_TIMEOUT_MS", 5000)),
            use_transactions=env_flag("MONGO_TRANSACTIONS", True),
            jwt_secret=os.getenv("JWT_SECRET", "dev-secret-change-me"),
            jwt_algorithm=os.getenv("JWT_ALG", "HS256"),
            jwt_audience=os.getenv("JWT_AUDIENCE") or None,
            stripe_secret=os.getenv("STRIPE_SECRET") or None,
            stripe_currency=os.getenv("STRIPE_CURRENCY", "usd"),
            site_domain=os.getenv("SITE_DOMAIN", "http://localhost:5173").rstrip("/"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=int(os.getenv("PORT", 8000)),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
