"""Client settings for precognition."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from precognition.runtime_config import RuntimeConfig


class Settings(BaseSettings):
    """Environment-backed defaults for a `PrecognitionClient`."""

    model_config = SettingsConfigDict(
        env_prefix="PRECOGNITION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    base_url: str = Field(
        default="",
        description="Default base URL for relative request URLs.",
    )
    timeout_s: float = Field(default=10.0, gt=0)
    auto_validate_parent_keys: bool = False
    follow_redirects: bool = True

    @classmethod
    def from_runtime(cls, runtime: RuntimeConfig) -> "Settings":
        """Construct settings from a loaded runtime config."""
        return cls(
            base_url=runtime.base_url,
            timeout_s=runtime.timeout_s,
            auto_validate_parent_keys=runtime.auto_validate_parent_keys,
            follow_redirects=runtime.follow_redirects,
        )
