"""Secret lookup for API credentials.

Priority order:
1. Environment variables (os.environ)
2. .env.secrets file in the working directory (cached)
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import dotenv_values

SECRETS_FILE = ".env.secrets"

API_KEY_VAR = "BROWSERBASE_API_KEY"
PROJECT_ID_VAR = "BROWSERBASE_PROJECT_ID"


@lru_cache(maxsize=1)
def _load_secrets(secrets_path: Path | None = None) -> dict[str, str | None]:
    path = secrets_path or Path(SECRETS_FILE)
    if path.exists():
        return dotenv_values(path)
    return {}


def fetch_secret(
    key: str,
    default: str | None = None,
    secrets_path: Path | None = None,
) -> str | None:
    """Fetch a secret from the environment or .env.secrets.

    Environment variables win so tests can monkeypatch them.

    Example:
        >>> fetch_secret("BROWSERBASE_API_KEY")
        'bb_live_...'
    """
    value = os.environ.get(key)
    if value is not None:
        return value

    secrets = _load_secrets(secrets_path)
    if secrets.get(key) is not None:
        return secrets[key]

    return default


def clear_secret_cache() -> None:
    """Clear the secrets cache after .env.secrets changes."""
    _load_secrets.cache_clear()
