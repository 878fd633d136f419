"""
Purpose: Environment configuration for the dispatch core.
What it does:
Reads deployment knobs from the environment (optionally a .env file).

Example .env:
ASSISTANT_BASE_URL=https://assistant.example.com
ASSISTANT_API_KEY=...
SUPER_ADMIN_EMAIL=support@celstin.com
PHONE_REGION=NG

Rule: No domain logic here. Business parameters (pricing, commission) live in
policy objects and the settings/global document.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class Config:
    assistant_base_url: Optional[str] = None
    assistant_api_key: Optional[str] = None
    assistant_timeout: int = 10

    super_admin_email: str = "support@celstin.com"
    phone_region: str = "NG"

    guest_id_path: str = ".guest_id.json"
    log_level: str = "INFO"

    # compare-and-swap retries for commission settlement
    settlement_max_attempts: int = 3

    def validate(self) -> None:
        if self.assistant_timeout <= 0:
            raise ValueError("ASSISTANT_TIMEOUT must be > 0")
        if self.settlement_max_attempts < 1:
            raise ValueError("SETTLEMENT_MAX_ATTEMPTS must be >= 1")
        if len(self.phone_region) != 2:
            raise ValueError("PHONE_REGION must be a two-letter region code")


def load_config() -> Config:
    """
    Build a Config from the current environment.
    """
    config = Config(
        assistant_base_url=os.getenv("ASSISTANT_BASE_URL") or None,
        assistant_api_key=os.getenv("ASSISTANT_API_KEY") or None,
        assistant_timeout=int(os.getenv("ASSISTANT_TIMEOUT", 10)),
        super_admin_email=os.getenv("SUPER_ADMIN_EMAIL", "support@celstin.com").lower(),
        phone_region=os.getenv("PHONE_REGION", "NG").upper(),
        guest_id_path=os.getenv("GUEST_ID_PATH", ".guest_id.json"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        settlement_max_attempts=int(os.getenv("SETTLEMENT_MAX_ATTEMPTS", 3)),
    )
    config.validate()
    return config
