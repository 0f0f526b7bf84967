import logging
import sys
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Backend location (the webview proxies /api to the backend process)
    api_base_url: str = "http://127.0.0.1:8000/api"

    # Timeout settings (seconds). Reads are unbounded: a chat body has no length limit
    # and deadlines are enforced by the caller through cancellation.
    connect_timeout: float = 10.0
    health_timeout: float = 5.0

    # Logging
    log_level: str = "INFO"

    # Reference backend: pause between streamed chunk records
    chunk_delay_ms: int = 0

    model_config = SettingsConfigDict(
        env_prefix="WORKFLOW_CHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()


def setup_logging(level: Optional[str] = None):
    """Configure application logging."""
    level_name = (level or settings.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
