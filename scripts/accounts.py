"""
Supabase Keep-Alive - Account Discovery
=======================================
Reads the indexed account slots from the environment.

Each slot i (1..20) is made of three variables:
    SUPABASE_{i}_NAME   optional display name
    SUPABASE_{i}_URL    project URL
    SUPABASE_{i}_KEY    API key

A slot is only used when both URL and KEY are set and not blank.
"""

import os
import sys
from dataclasses import dataclass

# Local imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from config.settings import (
    MAX_ACCOUNT_SLOTS, ACCOUNT_ENV_PREFIX, LEGACY_ACCOUNT_ENV_PREFIX
)


@dataclass(frozen=True)
class Account:
    id: int
    name: str
    url: str
    key: str

    def __repr__(self) -> str:
        # Keep the key out of logs and tracebacks
        return f"Account(id={self.id}, name={self.name!r}, url={self.url!r})"


def _read_slot_value(environ, index: int, field: str):
    value = environ.get(f"{ACCOUNT_ENV_PREFIX}_{index}_{field}")
    if value is None:
        value = environ.get(f"{LEGACY_ACCOUNT_ENV_PREFIX}_{index}_{field}")
    return value


def get_accounts(environ=None) -> list[Account]:
    """
    Returns the configured accounts, in slot order.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        list[Account]: One entry per active slot, possibly empty
    """
    if environ is None:
        environ = os.environ

    accounts = []

    for i in range(1, MAX_ACCOUNT_SLOTS + 1):
        name = _read_slot_value(environ, i, "NAME")
        url = _read_slot_value(environ, i, "URL")
        key = _read_slot_value(environ, i, "KEY")

        if not url or not key or not url.strip() or not key.strip():
            continue

        accounts.append(Account(
            id=i,
            name=name.strip() if name and name.strip() else f"Account {i}",
            url=url.strip(),
            key=key.strip(),
        ))

    return accounts


def mask_url(url: str) -> str:
    """Short project label for display: https://abc.supabase.co -> abc"""
    return url.replace("https://", "").replace("http://", "").replace(".supabase.co", "").rstrip("/")
