"""Configuration and environment handling for formsync."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


class HTTPConfig:
    """Transport settings shared by all integrations."""

    def __init__(self):
        self.connect_timeout: float = float(os.getenv("FORMSYNC_HTTP_CONNECT_TIMEOUT", "10"))
        self.read_timeout: float = float(os.getenv("FORMSYNC_HTTP_READ_TIMEOUT", "30"))
        # Transport retries are off by default; 401 healing happens one layer up
        self.max_retries: int = int(os.getenv("FORMSYNC_HTTP_MAX_RETRIES", "0"))
        # Unset means no client-side rate limit
        requests_per_second = os.getenv("FORMSYNC_HTTP_REQUESTS_PER_SECOND")
        self.requests_per_second: Optional[float] = (
            float(requests_per_second) if requests_per_second else None
        )


class DripConfig:
    """Drip OAuth application and stored token."""

    def __init__(self):
        self.client_id: str = os.getenv("FORMSYNC_DRIP_CLIENT_ID", "")
        self.client_secret: str = os.getenv("FORMSYNC_DRIP_CLIENT_SECRET", "")
        self.access_token: str = os.getenv("FORMSYNC_DRIP_ACCESS_TOKEN", "")
        self.refresh_token: Optional[str] = os.getenv("FORMSYNC_DRIP_REFRESH_TOKEN") or None


class Config:
    """Central configuration object."""

    def __init__(self):
        # Load .env file if it exists
        env_path = Path(__file__).parent.parent.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path)

        self.project_root = Path(__file__).parent.parent.parent

        # Logging
        self.log_level: str = os.getenv("FORMSYNC_LOG_LEVEL", "INFO")

        self.http = HTTPConfig()
        self.drip = DripConfig()


# Global config instance
config = Config()
