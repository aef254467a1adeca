"""Application settings.

Read once from the environment (and an optional ``.env`` file) with the
``STOREFRONT_`` prefix. The presence of a bucket name and an access key
switches the whole process to object storage; otherwise collections live
under ``data_dir`` on the local filesystem.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):

    # --- Local storage --------------------------------------------------------
    data_dir: Path = Path("data")

    # --- Object storage -------------------------------------------------------
    blob_bucket: Optional[str] = None
    blob_endpoint_url: Optional[str] = None
    blob_region: Optional[str] = None
    blob_access_key_id: Optional[str] = None
    blob_secret_access_key: Optional[str] = None
    blob_prefix: str = "db/"
    blob_conditional_writes: bool = True

    # --- Store behaviour ------------------------------------------------------
    cache_ttl_seconds: float = Field(default=1.0, ge=0)
    storage_timeout_seconds: float = Field(default=10.0, gt=0)
    write_attempts: int = Field(default=3, ge=1)

    # --- Logging --------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_prefix="STOREFRONT_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def use_object_storage(self) -> bool:
        """True when remote credentials are configured."""
        return bool(self.blob_bucket and self.blob_access_key_id)
