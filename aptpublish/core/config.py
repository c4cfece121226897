from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Publishing configuration loaded from environment variables."""

    app_name: str = "aptpublish"

    minio_endpoint: str = "localhost:9000"
    minio_access_key: str = "aptly"
    minio_secret_key: str = "aptly_secret"
    minio_secure: bool = False
    minio_region: str | None = None

    # Published repository location
    publish_bucket: str = "aptly"
    publish_prefix: str = ""

    # Local content-addressed package pool
    pool_root: str = "~/.aptly/pool"

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="APTPUB_",
        extra="ignore",
    )

    @property
    def normalized_prefix(self) -> str:
        """Return the publish prefix without surrounding slashes."""

        return self.publish_prefix.strip("/")

    @property
    def minio_buckets(self) -> list[str]:
        """Return the list of buckets publishing requires."""

        return [self.publish_bucket]


@lru_cache
def get_settings() -> Settings:
    """Cache settings to avoid re-parsing environment files."""
    return Settings()
