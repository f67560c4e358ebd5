"""Boot configuration loaded from the environment using Pydantic Settings"""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Remote data service (both values required, otherwise local mode)
    data_service_url: str = ""
    data_service_key: str = ""

    # Local persistence
    local_database_url: str = "sqlite:///./fiscops.db"
    default_center_id: str = "OWENDO"

    # Service
    service_name: str = "fiscops"
    log_level: str = "INFO"

    # Sync
    local_save_delay_seconds: float = 0.6
    remote_save_delay_seconds: float = 0.8

    # HTTP Client (None = no timeout)
    http_timeout_seconds: Optional[float] = None

    @property
    def storage_mode(self) -> str:
        """'remote' when the data service is fully configured, else 'local'"""
        if self.data_service_url and self.data_service_key:
            return "remote"
        return "local"

    @property
    def save_delay_seconds(self) -> float:
        if self.storage_mode == "remote":
            return self.remote_save_delay_seconds
        return self.local_save_delay_seconds


settings = Settings()
