import os
from typing import List, Self

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class PickerSettings(BaseModel):
    base_url: str = Field(
        default_factory=lambda: os.getenv("PICKER_API_BASE_URL", "https://photospicker.googleapis.com/v1").strip().rstrip("/")
    )
    timeout_seconds: float = float(os.getenv("PICKER_API_TIMEOUT_SECONDS", "30"))
    default_page_size: int = int(os.getenv("PICKER_DEFAULT_PAGE_SIZE", "25"))
    default_photo_size: str = os.getenv("PICKER_DEFAULT_PHOTO_SIZE", "w2048-h2048")
    # "=dv" asks Google Photos for the downloadable video bytes
    video_suffix: str = "dv"

    @model_validator(mode="after")
    def _validate(self) -> Self:
        if not self.base_url:
            raise ValueError("PICKER_API_BASE_URL must not be empty.")
        if self.default_page_size < 1:
            raise ValueError("PICKER_DEFAULT_PAGE_SIZE must be a positive integer.")
        return self


class CorsSettings(BaseModel):
    allow_origins: List[str] = Field(
        default_factory=lambda: [
            origin.strip()
            for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
            if origin.strip()
        ]
    )


class ClientSettings(BaseModel):
    """Settings for the picker client that drives the proxy endpoints."""

    proxy_base_url: str = Field(
        default_factory=lambda: os.getenv("PICKER_PROXY_URL", "http://localhost:4291/api/v1/picker").strip().rstrip("/")
    )
    credential_path: str = Field(
        default_factory=lambda: os.getenv(
            "PICKER_CREDENTIAL_PATH",
            os.path.join(os.path.expanduser("~"), ".photo_picker", "credentials.json"),
        )
    )
    default_poll_interval_ms: int = int(os.getenv("PICKER_DEFAULT_POLL_INTERVAL_MS", "5000"))
    max_list_retries: int = int(os.getenv("PICKER_MAX_LIST_RETRIES", "5"))
    list_retry_delay_ms: int = int(os.getenv("PICKER_LIST_RETRY_DELAY_MS", "2000"))
    request_timeout_seconds: float = float(os.getenv("PICKER_CLIENT_TIMEOUT_SECONDS", "60"))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")
    api_v1_prefix: str = "/api/v1"
    service_name: str = os.getenv("SERVICE_NAME", "photo-picker-proxy")
    picker: PickerSettings = PickerSettings()
    cors: CorsSettings = CorsSettings()
    client: ClientSettings = ClientSettings()


settings = Settings()
