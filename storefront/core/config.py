from functools import lru_cache
from typing import Literal, Optional
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "Storefront"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"

    # Upstream shop API
    SHOP_API_URL: str = "http://localhost:4000/api"
    shop_api_timeout_s: float = 15.0           # seconds

    # Redis (durable identity storage + catalog cache, optional)
    REDIS_URL: Optional[str] = None
    catalog_cache_ttl: int = 5 * 60            # 5 minutes

    # Checkout
    SHIPPING_FLAT_RATE: int = 50               # applied whenever subtotal > 0

    # API
    api_prefix: str = "/api"

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
