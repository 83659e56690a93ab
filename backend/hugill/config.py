"""
Configuration settings for the Hugill cluster watcher.
"""
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    APP_NAME: str = Field(default="hugill", description="Application name")
    APP_ENV: str = Field(default="dev", description="Environment: dev|staging|prod")

    # HTTP Configuration
    HTTP_PORT: int = Field(default=8002, description="Service port")

    # Kubernetes Configuration
    K8S_NAMESPACE: Optional[str] = Field(default=None, description="Namespace to watch (client default if unset)")
    K8S_CONTEXT: Optional[str] = Field(default=None, description="Kubernetes context")
    K8S_IN_CLUSTER: bool = Field(default=False, description="Running in cluster")

    # Watcher Configuration
    POLL_INTERVAL_MSEC: int = Field(default=5000, ge=1, description="Delay between pod listings")

    # Persistence
    SETTINGS_PATH: str = Field(default="~/.hugill/settings.json", description="JSON settings store")

    # Editor
    EDITOR_EXECUTABLE: str = Field(default="code", description="Editor used for remote sessions")

    LOG_LEVEL: str = Field(default="info", description="Log level: info|debug|warning")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()
