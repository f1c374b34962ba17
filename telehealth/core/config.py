from datetime import time
from typing import List, Union
from pydantic import AnyHttpUrl, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    PROJECT_NAME: str = "Telehealth API"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = False

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Database
    DATABASE_URL: str = "sqlite:///./telehealth.db"
    DATABASE_POOL_SIZE: int = 5
    DATABASE_MAX_OVERFLOW: int = 10

    @model_validator(mode='after')
    def normalize_db_connection(self) -> 'Settings':
        # Managed Postgres hosts hand out postgres:// URLs
        if self.DATABASE_URL.startswith("postgres://"):
            self.DATABASE_URL = self.DATABASE_URL.replace("postgres://", "postgresql://", 1)
        return self

    # JWT
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Scheduling
    SLOT_GRANULARITY_MINUTES: int = 30
    MAX_APPOINTMENT_MINUTES: int = 240
    DEFAULT_WORKING_DAYS: List[int] = [0, 1, 2, 3, 4]
    DEFAULT_WORKDAY_START: time = time(9, 0)
    DEFAULT_WORKDAY_END: time = time(17, 0)
    CANCELLATION_CUTOFF_HOURS: int = 2

    @field_validator("DEFAULT_WORKING_DAYS")
    @classmethod
    def validate_working_days(cls, v: List[int]) -> List[int]:
        if any(day < 0 or day > 6 for day in v):
            raise ValueError("Working days must be between 0 (Monday) and 6 (Sunday)")
        return sorted(set(v))

    # Dashboard
    COMPLETION_RATE_WINDOW_DAYS: int = 7

    # Reports
    REPORTS_DIR: str = "uploads/reports"

    model_config = SettingsConfigDict(case_sensitive=True, env_file=".env", extra='ignore')

settings = Settings()
