from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pydantic import field_validator

class Settings(BaseSettings):
    # Database settings
    POSTGRES_USER: str = 'invoicing_user'
    POSTGRES_PASSWORD: str = 'invoicing_pass'
    POSTGRES_DB: str = 'invoicing_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None

    # Hosted auth provider (tokens are issued externally, we only verify them)
    AUTH_JWT_SECRET: str = 'your-auth-provider-jwt-secret-change-in-production'
    AUTH_JWT_ALGORITHM: str = 'HS256'
    AUTH_JWT_AUDIENCE: Optional[str] = 'authenticated'

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Invoicing defaults
    INVOICE_NUMBER_PADDING: int = 3
    DEFAULT_CURRENCY: str = 'PKR'
    DEFAULT_LOCALE: str = 'en-PK'
    DEFAULT_TIMEZONE: str = 'Asia/Karachi'
    DEFAULT_NUMBERING_PREFIX: str = 'INV-'

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

settings = Settings()
