from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        extra="ignore",
    )

    app_name: str = "vidtube"
    environment: str = Field(default="local", validation_alias=AliasChoices("ENVIRONMENT", "VIDTUBE_ENVIRONMENT"))
    database_url: str = Field(
        default="postgresql+asyncpg://postgres:postgres@db:5432/vidtube",
        validation_alias=AliasChoices("DATABASE_URL", "VIDTUBE_DATABASE_URL"),
    )
    api_prefix: str = Field(default="/api/v1", validation_alias=AliasChoices("API_PREFIX", "VIDTUBE_API_PREFIX"))
    cors_origin: str = Field(default="*", validation_alias=AliasChoices("CORS_ORIGIN", "VIDTUBE_CORS_ORIGIN"))
    db_pool_size: int = Field(default=5, validation_alias=AliasChoices("DB_POOL_SIZE", "VIDTUBE_DB_POOL_SIZE"))
    access_token_secret: str = Field(
        default="change-me-access", validation_alias=AliasChoices("ACCESS_TOKEN_SECRET", "VIDTUBE_ACCESS_TOKEN_SECRET")
    )
    access_token_expire_minutes: int = Field(
        default=60 * 24, validation_alias=AliasChoices("ACCESS_TOKEN_EXPIRY", "VIDTUBE_ACCESS_TOKEN_EXPIRY")
    )
    refresh_token_secret: str = Field(
        default="change-me-refresh", validation_alias=AliasChoices("REFRESH_TOKEN_SECRET", "VIDTUBE_REFRESH_TOKEN_SECRET")
    )
    refresh_token_expire_minutes: int = Field(
        default=60 * 24 * 10, validation_alias=AliasChoices("REFRESH_TOKEN_EXPIRY", "VIDTUBE_REFRESH_TOKEN_EXPIRY")
    )
    cookie_secure: bool = Field(default=True, validation_alias=AliasChoices("COOKIE_SECURE", "VIDTUBE_COOKIE_SECURE"))
    upload_temp_dir: str = Field(default="./public/temp", validation_alias=AliasChoices("UPLOAD_TEMP_DIR", "VIDTUBE_UPLOAD_TEMP_DIR"))
    cloudinary_cloud_name: str | None = Field(
        default=None, validation_alias=AliasChoices("CLOUDINARY_CLOUD_NAME", "VIDTUBE_CLOUDINARY_CLOUD_NAME")
    )
    cloudinary_api_key: str | None = Field(
        default=None, validation_alias=AliasChoices("CLOUDINARY_API_KEY", "VIDTUBE_CLOUDINARY_API_KEY")
    )
    cloudinary_api_secret: str | None = Field(
        default=None, validation_alias=AliasChoices("CLOUDINARY_API_SECRET", "VIDTUBE_CLOUDINARY_API_SECRET")
    )
    media_upload_timeout_sec: float = Field(
        default=300.0, validation_alias=AliasChoices("MEDIA_UPLOAD_TIMEOUT_SEC", "VIDTUBE_MEDIA_UPLOAD_TIMEOUT_SEC")
    )

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origin.split(",") if origin.strip()]

    @property
    def async_database_url(self) -> str:
        if self.database_url.startswith("postgresql+"):
            return self.database_url
        if self.database_url.startswith("postgresql://"):
            return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return self.database_url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
