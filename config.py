"""
Configuration management for the WhatsApp echo relay.

Loads environment variables from .env file and provides typed access to configuration.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


DEFAULT_API_BASE_URL = "https://graph.facebook.com/v22.0"


class Config:
    """Application-level configuration."""

    # Server
    PORT = int(os.getenv("PORT", "8000"))
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


@dataclass(frozen=True)
class WhatsAppCredentials:
    """
    WhatsApp Cloud API credentials.

    Read-only, built from the environment for each request.
    Secrets are excluded from repr so they never end up in logs.
    """

    phone_number_id: str
    access_token: str = field(repr=False)
    app_secret: str = field(repr=False)
    verify_token: str = field(repr=False)
    api_base_url: str = DEFAULT_API_BASE_URL

    @classmethod
    def from_env(cls) -> "WhatsAppCredentials":
        """Load credentials from environment variables."""
        return cls(
            phone_number_id=os.getenv("WA_PHONE_NUMBER_ID", ""),
            access_token=os.getenv("WA_SYSTEM_ACCESS_TOKEN", ""),
            app_secret=os.getenv("WA_APP_SECRET", ""),
            verify_token=os.getenv("WA_WEBHOOK_TOKEN", ""),
            api_base_url=os.getenv("WA_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
        )

    def missing(self) -> List[str]:
        """Return the environment variable names of unset credentials."""
        required = {
            "WA_PHONE_NUMBER_ID": self.phone_number_id,
            "WA_SYSTEM_ACCESS_TOKEN": self.access_token,
            "WA_APP_SECRET": self.app_secret,
            "WA_WEBHOOK_TOKEN": self.verify_token,
        }
        return [name for name, value in required.items() if not value]


if __name__ == "__main__":
    # Test configuration loading
    credentials = WhatsAppCredentials.from_env()
    missing = credentials.missing()
    print("Configuration loaded:")
    print(f"  Environment: {Config.ENVIRONMENT}")
    print(f"  Port: {Config.PORT}")
    print(f"  API base URL: {credentials.api_base_url}")
    print(f"  Phone number ID: {credentials.phone_number_id or '✗ Missing'}")
    print(f"\n  Validation: {'✓ PASSED' if not missing else '✗ FAILED: ' + ', '.join(missing)}")
