"""
Supabase Keep-Alive - Utilities
===============================
Helpers shared by every entry point.
"""

import os
import sys
import requests
from datetime import datetime, timezone
from postgrest import SyncPostgrestClient

# Adds the project root to the path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import settings


# ============================================================
# Database Client
# ============================================================

def get_db_client(url: str, key: str) -> SyncPostgrestClient:
    """
    Creates a PostgREST client for one Supabase project.

    Args:
        url: Project URL (https://<ref>.supabase.co)
        key: API key (anon or service role)

    Returns:
        SyncPostgrestClient: Client bound to the project's REST endpoint

    Raises:
        ValueError: If the URL or the key is missing
    """
    if not url or not key:
        raise ValueError("Project URL or API key missing")

    return SyncPostgrestClient(
        base_url=f"{url.rstrip('/')}/rest/v1",
        headers={
            "apikey": key,
            "Authorization": f"Bearer {key}"
        }
    )


# ============================================================
# Discord Notifications
# ============================================================

def send_discord_notification(title: str, description: str,
                              color: int = 5763719, success: bool = True):
    """
    Sends a Discord notification.

    Args:
        title: Message title
        description: Description
        color: Embed color (green by default)
        success: True=green, False=red
    """
    webhook_url = settings.DISCORD_WEBHOOK_URL
    if not webhook_url:
        return

    if not success:
        color = 15548997  # Red

    payload = {
        "embeds": [{
            "title": title,
            "description": description[:2000],  # Discord limit
            "color": color,
            "timestamp": utc_now().isoformat(),
            "footer": {"text": "Supabase Keep-Alive"}
        }]
    }

    try:
        response = requests.post(webhook_url, json=payload, timeout=10)
        response.raise_for_status()
    except requests.exceptions.RequestException as e:
        # Log but don't fail the main process
        print(f"   ⚠️ Discord notification failed: {str(e)[:100]}")


# ============================================================
# Date Helpers
# ============================================================

def utc_now() -> datetime:
    """Returns the current time, timezone-aware (UTC)."""
    return datetime.now(timezone.utc)


def now_iso() -> str:
    """Returns the current UTC time in ISO-8601 format."""
    return utc_now().isoformat()


def epoch_ms() -> int:
    """Returns the current time in milliseconds since the epoch."""
    return int(utc_now().timestamp() * 1000)


# ============================================================
# Print Helpers
# ============================================================

def print_header(title: str):
    """Prints a formatted header."""
    print()
    print("=" * 70)
    print(f"  {title}")
    print("=" * 70)


def print_step(step: int, title: str):
    """Prints a step title."""
    print()
    print(f"📌 Step {step}: {title}")
    print("-" * 60)


def print_success(message: str):
    """Prints a success message."""
    print(f"✅ {message}")


def print_error(message: str):
    """Prints an error message."""
    print(f"❌ {message}")


def print_warning(message: str):
    """Prints a warning."""
    print(f"⚠️  {message}")


def print_progress(current: int, total: int, prefix: str = ""):
    """Prints progress."""
    pct = current * 100 // total if total > 0 else 0
    print(f"   ⏳ {prefix}{current}/{total} ({pct}%)")
