"""
Docker pool configuration
"""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

class Settings(BaseSettings):
    """Docker pool settings"""

    # Application
    app_name: str = "Docker Pool Service"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8003
    workers: int = 1

    # Security
    api_key: str = "docker-pool-api-key-change-in-production"
    require_api_key: bool = True  # local test runs can turn the check off

    # Docker
    docker_timeout: int = 60

    # Pool
    pool_size: int = 2
    pool_basename: str = "docker_pool"
    pool_image: Optional[str] = None
    pool_container_port: Optional[int] = None
    pool_path: Optional[str] = None

    # Readiness
    ready_attempts: int = 30
    ready_interval: float = 0.1  # seconds
    ready_request_timeout: float = 1.0  # seconds

    # Monitoring
    enable_metrics: bool = True

    model_config = SettingsConfigDict(
        env_prefix="DOCKER_POOL_",
        env_file=".env",
        case_sensitive=False,
    )

@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
