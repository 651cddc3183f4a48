from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration.

    Every field can be overridden with a ``PAGEWRIGHT_``-prefixed environment
    variable, e.g. ``PAGEWRIGHT_MINIO_BUCKET=sites``.
    """

    model_config = SettingsConfigDict(env_prefix="PAGEWRIGHT_", env_file=".env", extra="ignore")

    # Artifact layout / public URLs
    sites_prefix: str = Field(default="pagewright-sites", description="Object prefix for published sites")
    public_base_url: str = Field(
        default="http://localhost:9000", description="Public base URL of the object store"
    )

    # Blob storage
    blob_backend: Literal["memory", "minio"] = "memory"
    minio_endpoint: str = "localhost:9000"
    minio_access_key: Optional[str] = None
    minio_secret_key: Optional[str] = None
    minio_secure: bool = False
    minio_bucket: str = "pagewright"

    # Pages, navigation and projects
    content_api_url: Optional[str] = Field(
        default=None, description="Base URL of the content service; empty in-memory stores when unset"
    )
    content_api_timeout: float = 10.0

    # Asset resolution
    assets_api_url: Optional[str] = Field(
        default=None, description="Base URL of the asset service; in-memory assets when unset"
    )
    assets_api_timeout: float = 10.0

    # API
    publish_rate_limit: str = "10/minute"
    default_tenant: str = "default"


@lru_cache
def get_settings() -> Settings:
    return Settings()
