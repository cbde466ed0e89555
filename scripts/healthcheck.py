"""
Supabase Keep-Alive - Health Check
==================================
Read-only verification that every configured project is ready for the
keep-alive. Nothing is written.

Checks, per account:
1. The _keepalive_ping table is reachable with the configured key
2. Age of the newest ping row (rows left by paired mode)

Usage:
    python scripts/healthcheck.py
    python scripts/healthcheck.py --verbose
"""

import sys
import os
import argparse
from datetime import datetime

# Local imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from scripts import utils
from scripts.accounts import get_accounts, mask_url
from scripts.utils import (
    print_header, print_step, print_success, print_error, print_warning,
    send_discord_notification
)
from config.settings import KEEPALIVE_TABLE, SETUP_SQL


# =============================================================================
# HEALTH CHECKS
# =============================================================================

def check_table(client) -> tuple[bool, str, dict]:
    """Check that the keep-alive table is reachable."""
    try:
        response = client.from_(KEEPALIVE_TABLE) \
            .select("id, timestamp") \
            .order("timestamp", desc=True) \
            .limit(1) \
            .execute()
    except Exception as e:
        reason = getattr(e, "message", None) or str(e)
        return False, f"Table check failed: {reason}", {}

    if not response.data:
        return True, "Table OK (no ping rows yet)", {"latest_ping": None}

    latest = response.data[0]["timestamp"]
    details = {"latest_ping": latest}

    try:
        age = utils.utc_now() - datetime.fromisoformat(latest.replace("Z", "+00:00"))
        details["age_minutes"] = int(age.total_seconds() // 60)
        return True, f"Table OK (latest ping {details['age_minutes']} min ago)", details
    except (TypeError, ValueError):
        return True, f"Table OK (latest ping {latest})", details


def check_account(account, client_factory=None) -> tuple[bool, str, dict]:
    """Connect to one account and check its table."""
    factory = client_factory or utils.get_db_client
    try:
        client = factory(account.url, account.key)
    except Exception as e:
        return False, f"Connection failed: {e}", {}

    with client:
        return check_table(client)


# =============================================================================
# MAIN
# =============================================================================

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Health check for Supabase Keep-Alive")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show detailed output")
    parser.add_argument("--notify", action="store_true", help="Send Discord notification on failure")
    args = parser.parse_args(argv)

    print_header("Supabase Keep-Alive - Health Check")
    print(f"Date: {utils.now_iso()}")

    print_step(1, "Accounts")
    accounts = get_accounts()
    if not accounts:
        print_error("No Supabase accounts configured in .env file")
        return 1
    print_success(f"{len(accounts)} account(s) configured")

    print_step(2, "Running Checks")
    results = []
    for account in accounts:
        ok, message, details = check_account(account)
        results.append({"name": account.name, "ok": ok, "message": message})

        label = f"{account.name} ({mask_url(account.url)})"
        if ok:
            print_success(f"{label}: {message}")
        else:
            print_error(f"{label}: {message}")

        if args.verbose and details:
            for k, v in details.items():
                print(f"      {k}: {v}")

    # Summary
    print()
    print("=" * 60)
    failures = [r for r in results if not r["ok"]]

    if not failures:
        print_success(f"All {len(results)} accounts passed!")
        return 0

    print_error(f"{len(failures)}/{len(results)} accounts failed")
    print_warning("If the table is missing, run this in the project's SQL editor:")
    print()
    print(SETUP_SQL)

    if args.notify:
        failure_msgs = "\n".join(f"- {r['name']}: {r['message']}" for r in failures)
        send_discord_notification(
            "Keep-Alive Health Check - FAILED",
            f"{len(failures)} account(s) failed:\n{failure_msgs}",
            success=False
        )
    return 1


if __name__ == "__main__":
    sys.exit(main())
