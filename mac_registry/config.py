"""Configuration management for the MAC registry updater"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""
    
    # Storage Configuration
    base_dir: str = Field(default=".", description="Directory holding data/ (macs.json, mac-ages.csv, ieee/)")
    
    # Download Configuration
    max_retries: int = Field(default=30, description="Retries after the first attempt for each registry")
    retry_delay_seconds: float = Field(default=5.0, description="Fixed delay between attempts")
    request_timeout_seconds: float = Field(default=300.0, description="Timeout for a single HTTP request")
    source_timeout_seconds: float = Field(default=3600.0, description="Overall deadline for fetching one registry")
    size_slack_bytes: int = Field(default=512, description="Allowed shrink of a registry versus the stored snapshot")
    user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/144.0.0.0 Safari/537.36"
        ),
        description="User-Agent header sent to the IEEE registry host",
    )
    
    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")
    
    class Config:
        env_prefix = "MAC_REGISTRY_"
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
