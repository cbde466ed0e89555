"""
Supabase Keep-Alive - Dashboard
===============================
Interactive terminal dashboard: lists the configured accounts, pings them
one by one when asked and shows each account's status as it goes.

The time of the last run is kept in a small local JSON file
(KEEPALIVE_LAST_RUN_FILE, .keepalive_state.json by default).

Usage:
    python scripts/dashboard.py          # press Enter to run
    python scripts/dashboard.py --run    # run immediately
"""

import os
import sys
import json
import argparse
from datetime import datetime, timezone

# Local imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from scripts.accounts import get_accounts, mask_url
from scripts.runner import run_keepalive
from scripts.utils import (
    utc_now, print_header, print_progress, print_success, print_error, print_warning
)
from config import settings

STATUS_IDLE = "idle"
STATUS_RUNNING = "running"
STATUS_SUCCESS = "success"
STATUS_ERROR = "error"

STATUS_ICONS = {
    STATUS_IDLE: "○",
    STATUS_RUNNING: "◌",
    STATUS_SUCCESS: "✓",
    STATUS_ERROR: "✗",
}


# =============================================================================
# LAST RUN STORE
# =============================================================================

class LastRunStore:
    """Single-slot key/value file. No expiry, last write wins."""

    def __init__(self, path: str = None, key: str = None):
        self.path = path or settings.LAST_RUN_FILE
        self.key = key or settings.LAST_RUN_KEY

    def _read_all(self) -> dict:
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    def load(self):
        """Returns the stored datetime, or None if never run."""
        value = self._read_all().get(self.key)
        if not value:
            return None
        try:
            when = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return when if when.tzinfo else when.replace(tzinfo=timezone.utc)

    def save(self, when: datetime):
        data = self._read_all()
        data[self.key] = when.isoformat()
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)


def format_last_run(last_run, now: datetime = None) -> str:
    """Human-readable age of the last run."""
    if not last_run:
        return "Never"

    now = now or utc_now()
    seconds = (now - last_run).total_seconds()
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)

    if hours > 24:
        return last_run.astimezone().strftime("%Y-%m-%d %H:%M:%S")
    if hours > 0:
        return f"{hours}h {minutes}m ago"
    if minutes > 0:
        return f"{minutes}m ago"
    return "Just now"


# =============================================================================
# DASHBOARD
# =============================================================================

class Dashboard:
    def __init__(self, accounts, mode=None, store: LastRunStore = None,
                 pause: float = None, client_factory=None):
        self.accounts = list(accounts)
        self.mode = mode or settings.RECORD_MODE
        self.store = store or LastRunStore()
        self.pause = settings.PAUSE_BETWEEN_ACCOUNTS if pause is None else pause
        self.client_factory = client_factory
        self.states = {a.id: {"status": STATUS_IDLE, "message": None} for a in self.accounts}
        self.completed = 0
        self.is_running = False
        self.last_run = self.store.load()

    def set_status(self, account_id: int, status: str, message: str = None):
        self.states[account_id] = {"status": status, "message": message}

    def counts(self) -> dict:
        statuses = [s["status"] for s in self.states.values()]
        return {
            "accounts": len(self.accounts),
            "success": statuses.count(STATUS_SUCCESS),
            "failed": statuses.count(STATUS_ERROR),
        }

    def render(self):
        counts = self.counts()
        stats = f"Accounts: {counts['accounts']}"
        if counts["success"]:
            stats += f" | Success: {counts['success']}"
        if counts["failed"]:
            stats += f" | Failed: {counts['failed']}"
        stats += f" | Last run: {format_last_run(self.last_run)}"
        print(stats)
        print("-" * 60)

        for index, account in enumerate(self.accounts, 1):
            state = self.states[account.id]
            line = f"  #{index:<3} {STATUS_ICONS[state['status']]}  {account.name:<30} {mask_url(account.url)}"
            if state["status"] == STATUS_ERROR and state["message"]:
                line += f"  ! {state['message']}"
            print(line)

    def _on_start(self, account):
        self.set_status(account.id, STATUS_RUNNING)
        print(f"   {STATUS_ICONS[STATUS_RUNNING]} {account.name}...")

    def _on_result(self, account, outcome):
        status = STATUS_SUCCESS if outcome.succeeded else STATUS_ERROR
        self.set_status(account.id, status, outcome.message)
        self.completed += 1

        if outcome.succeeded:
            print_success(f"{account.name}: {outcome.message}")
        else:
            print_error(f"{account.name}: {outcome.message}")
        print_progress(self.completed, len(self.accounts))

    def run(self):
        """Pings every account. Returns the Summary, or None if nothing to do."""
        if not self.accounts or self.is_running:
            return None

        self.is_running = True
        self.completed = 0
        for account in self.accounts:
            self.set_status(account.id, STATUS_RUNNING)

        try:
            summary = run_keepalive(
                self.accounts,
                mode=self.mode,
                source=settings.SOURCE_DASHBOARD,
                client_factory=self.client_factory,
                on_start=self._on_start,
                on_result=self._on_result,
                pause=self.pause,
            )
        finally:
            self.last_run = utc_now()
            self.store.save(self.last_run)
            self.is_running = False

        return summary


def print_empty_state():
    print_header("⚡ Supabase Keep-Alive")
    print()
    print_warning("No Accounts Configured")
    print("Add your Supabase credentials to the .env file:")
    print()
    print(settings.ENV_EXAMPLE)
    print()
    print("Each project also needs the keep-alive table (SQL editor):")
    print()
    print(settings.SETUP_SQL)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Interactive keep-alive dashboard")
    parser.add_argument("--run", action="store_true", help="Start the run immediately")
    args = parser.parse_args(argv)

    settings.validate_config()

    accounts = get_accounts()
    if not accounts:
        print_empty_state()
        return 1

    dashboard = Dashboard(accounts)

    print_header("⚡ Supabase Keep-Alive")
    print("Keep your free-tier projects active")
    print()
    dashboard.render()

    if not args.run:
        try:
            input("\n🚀 Press Enter to ping all accounts (Ctrl+C to quit) ")
        except (KeyboardInterrupt, EOFError):
            print()
            return 0

    print()
    summary = dashboard.run()

    print()
    dashboard.render()
    return 0 if summary.failed == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
