import os
from typing import List, Optional
from pydantic_settings import BaseSettings
from dotenv import load_dotenv

# Explicitly load .env file before defining Settings
env_path = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))), ".env")
load_dotenv(env_path)

class Settings(BaseSettings):
    PROJECT_NAME: str = "CloudImega"
    API_V1_STR: str = "/api/v1"
    LOG_LEVEL: str = "INFO"

    # Database
    SQLALCHEMY_DATABASE_URI: str = "sqlite:///" + os.path.join(os.getcwd(), "cloudimega.db")

    # Security
    SECRET_KEY: str = "cloudimega-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    BCRYPT_ROUNDS: int = 10

    # Share links
    SHARE_TOKEN_BYTES: int = 16
    SHARE_TOKEN_MAX_ATTEMPTS: int = 5
    SHARE_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    # Public base URL used to build share links; falls back to the request URL.
    BASE_URL: Optional[str] = None

    # Storage
    STORAGE_PATH: str = os.path.join(os.getcwd(), "storage")

    # Comma separated string in env, parsed to list.
    BACKEND_CORS_ORIGINS_STR: str = "*"

    @property
    def BACKEND_CORS_ORIGINS(self) -> List[str]:
        # Handle potential quote wrapping from env file parsing
        raw_str = self.BACKEND_CORS_ORIGINS_STR.strip('"\'')
        return [o.strip() for o in raw_str.split(",") if o.strip()]

    class Config:
        case_sensitive = True

settings = Settings()
