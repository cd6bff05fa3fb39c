from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "e-scooter.blog"
    DATABASE_URL: str = "sqlite:///./blogcms.db"
    LOG_LEVEL: str = "INFO"

    # Session cookie for the admin dashboard
    SECRET_KEY: str = Field("supersecretkey_change_me_in_production", validation_alias="SESSION_SECRET")
    SESSION_MAX_AGE: int = 24 * 60 * 60  # 24 hours
    SESSION_HTTPS_ONLY: bool = False
    ADMIN_PATH: str = "admin"

    # Public site
    SITE_URL: str = "https://e-scooter.blog"
    PUBLIC_PAGE_SIZE: int = 6
    ADMIN_PAGE_SIZE: int = 6
    RELATED_LIMIT: int = 3
    QUERY_TIMEOUT_SECONDS: int = 5

    # Image uploads: "local" writes under UPLOAD_DIR, "s3" puts objects in S3_BUCKET
    STORAGE_BACKEND: str = "local"
    UPLOAD_DIR: str = "./public/uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # AWS S3
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "ap-south-1"
    S3_BUCKET: str = "escooter-blog-media"

    CORS_ORIGINS: List[str] = ["*"]

    @property
    def S3_BASE_URL(self) -> str:
        return f"https://{self.S3_BUCKET}.s3.{self.AWS_REGION}.amazonaws.com"


settings = Settings()
