from typing import List, Union
from pydantic_settings import BaseSettings
from pydantic import field_validator


class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+psycopg://postgres:root@db/postgres"
    DB_ECHO: bool = False
    CORS_ORIGINS: Union[str, List[str]] = ["http://localhost", "http://localhost:3000", "*"]
    LOG_LEVEL: str = "INFO"

    # Object storage
    STORAGE_BACKEND: str = "local"  # "local" or "supabase"
    STORAGE_BUCKET: str = "presupuestos-archivos"
    STORAGE_DIR: str = "data/storage"
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    STORAGE_TIMEOUT_SECONDS: float = 30.0

    # Uploads
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @field_validator("STORAGE_BACKEND")
    @classmethod
    def validate_storage_backend(cls, v):
        v = v.lower()
        if v not in ("local", "supabase"):
            raise ValueError("STORAGE_BACKEND must be 'local' or 'supabase'")
        return v

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()
