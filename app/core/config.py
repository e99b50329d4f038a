# app/core/config.py
"""Application configuration using Pydantic."""
from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    database_url: str
    redis_url: str = ''
    jwt_secret_key: str

    jwt_algorithm: str = 'HS256'
    jwt_exp_minutes: int = 60 * 12
    default_user_password: str = 'ChangeMe123!'

    app_version: str = '1.0.0'
    environment: str = 'development'
    log_level: str = 'info'
    allowed_origins: List[str] = ['*']

    cache_ttl_seconds: int = 60
    db_echo: bool = False

    model_config = {
        'env_file': '.env',
        'extra': 'ignore'
    }

    @property
    def cache_enabled(self) -> bool:
        return bool(self.redis_url)

settings = Settings()
