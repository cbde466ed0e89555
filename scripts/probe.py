"""
Supabase Keep-Alive - Account Probe
===================================
Runs the keep-alive sequence against one project's _keepalive_ping table:

    1. Insert   (1 row in single mode, 2 rows in paired mode)
    2. Read     the inserted rows back by id
    3. Update   their metadata
    4. Delete   every row (single) or only the first one (paired)
    5. Purge    rows older than one hour

The first failing step stops the sequence. Rows inserted by a failed probe
are deleted again (best effort). The purge always runs.
"""

import os
import sys
import uuid
import random
import string
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

# Local imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from scripts import utils
from scripts.accounts import Account
from config.settings import (
    KEEPALIVE_TABLE, KEEPALIVE_VERSION, PING_TYPE, FILLER_COUNT, PURGE_AFTER
)


class RecordMode(Enum):
    SINGLE = "single"
    PAIRED = "paired"

    @property
    def count(self) -> int:
        """Rows inserted per probe."""
        return 1 if self is RecordMode.SINGLE else 2

    @property
    def kept(self) -> int:
        """Rows left in the table after a successful probe."""
        return 0 if self is RecordMode.SINGLE else 1

    @classmethod
    def parse(cls, value) -> "RecordMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown record mode '{value}' (expected 'single' or 'paired')") from None


@dataclass(frozen=True)
class Outcome:
    account_id: int
    account_name: str
    succeeded: bool
    message: str

    def to_dict(self) -> dict:
        return {
            "success": self.succeeded,
            "accountId": self.account_id,
            "accountName": self.account_name,
            "message": self.message,
        }


class ProbeStepError(Exception):
    """A step of the sequence failed. str() gives 'Step: reason'."""

    def __init__(self, step: str, reason: str):
        self.step = step
        self.reason = reason
        super().__init__(f"{step}: {reason}")


def _error_reason(error: Exception) -> str:
    # postgrest APIError carries the service message in .message
    message = getattr(error, "message", None)
    return str(message) if message else (str(error) or error.__class__.__name__)


def _run_step(step: str, call):
    try:
        return call()
    except Exception as e:
        raise ProbeStepError(step, _error_reason(e)) from e


def _expect_rows(step: str, response, expected: int) -> list:
    rows = response.data or []
    if len(rows) != expected:
        raise ProbeStepError(step, f"Expected {expected} records, got {len(rows)}")
    return rows


def _plural(n: int, word: str) -> str:
    return f"{n} {word}" if n == 1 else f"{n} {word}s"


# ============================================================
# Ping Records
# ============================================================

def _filler(length: int = 11) -> str:
    return "".join(random.choices(string.ascii_lowercase + string.digits, k=length))


def build_ping_record(source: str) -> dict:
    """
    Builds one row for the keep-alive table.

    Args:
        source: Tag of the entry point writing the row

    Returns:
        dict: {ping_id, timestamp, ping_type, metadata}
    """
    return {
        "ping_id": str(uuid.uuid4()),
        "timestamp": utils.now_iso(),
        "ping_type": PING_TYPE,
        "metadata": {
            "source": source,
            "version": KEEPALIVE_VERSION,
            "randomData": [_filler() for _ in range(FILLER_COUNT)],
            "timestamp": utils.epoch_ms(),
        },
    }


# ============================================================
# Purge
# ============================================================

def purge_old_pings(client, now: datetime = None) -> int:
    """
    Deletes keep-alive rows older than PURGE_AFTER.

    Returns:
        int: Number of rows removed
    """
    cutoff = (now or utils.utc_now()) - PURGE_AFTER
    response = client.from_(KEEPALIVE_TABLE) \
        .delete() \
        .lt("timestamp", cutoff.isoformat()) \
        .execute()
    return len(response.data or [])


def _cleanup(client, inserted_ids: list, unresolved_ping_ids: list = None):
    """Best-effort removal of the rows a failed probe inserted."""
    try:
        if inserted_ids:
            client.from_(KEEPALIVE_TABLE).delete().in_("id", inserted_ids).execute()
        # Rows the insert response did not identify are matched on ping_id
        if unresolved_ping_ids:
            client.from_(KEEPALIVE_TABLE).delete().in_("ping_id", unresolved_ping_ids).execute()
    except Exception:
        # The failing step is what gets reported
        pass


# ============================================================
# Probe
# ============================================================

def _track_inserted(records: list, rows: list, inserted_ids: list, unresolved_ping_ids: list):
    returned = {}
    for row in rows:
        if isinstance(row, dict) and row.get("id") is not None:
            returned[row.get("ping_id")] = row["id"]

    for record in records:
        if record["ping_id"] in returned:
            inserted_ids.append(returned[record["ping_id"]])
        else:
            unresolved_ping_ids.append(record["ping_id"])


def _run_sequence(client, mode: RecordMode, source: str,
                  inserted_ids: list, unresolved_ping_ids: list) -> str:
    records = [build_ping_record(source) for _ in range(mode.count)]

    response = _run_step("Insert", lambda: client.from_(KEEPALIVE_TABLE)
                         .insert(records)
                         .execute())
    # Track before checking the count so a short response is still cleaned up
    _track_inserted(records, response.data or [], inserted_ids, unresolved_ping_ids)
    _expect_rows("Insert", response, mode.count)
    if unresolved_ping_ids:
        raise ProbeStepError("Insert", f"{len(unresolved_ping_ids)} inserted record(s) returned without an id")

    response = _run_step("Read", lambda: client.from_(KEEPALIVE_TABLE)
                         .select("*")
                         .in_("id", inserted_ids)
                         .execute())
    _expect_rows("Read", response, mode.count)

    _run_step("Update", lambda: client.from_(KEEPALIVE_TABLE)
              .update({"metadata": {"updated": True, "timestamp": utils.epoch_ms()}})
              .in_("id", inserted_ids)
              .execute())

    # Paired mode keeps the last row visible
    to_delete = inserted_ids[:mode.count - mode.kept]
    _run_step("Delete", lambda: client.from_(KEEPALIVE_TABLE)
              .delete()
              .in_("id", to_delete)
              .execute())

    return (f"{_plural(mode.count, 'insert')}, {_plural(len(to_delete), 'delete')} completed"
            f" - {_plural(mode.kept, 'record')} {'remains' if mode.kept == 1 else 'remain'}")


def probe_account(account: Account, mode=RecordMode.SINGLE, source: str = "supabase-keepalive",
                  client_factory=None) -> Outcome:
    """
    Runs the keep-alive sequence against one account.

    Args:
        account: Account to probe
        mode: RecordMode (or its name)
        source: Tag written into the ping metadata
        client_factory: Callable (url, key) -> client, defaults to get_db_client

    Returns:
        Outcome: success flag and a message naming the failed step, if any
    """
    mode = RecordMode.parse(mode)
    factory = client_factory or utils.get_db_client

    def outcome(succeeded: bool, message: str) -> Outcome:
        return Outcome(account.id, account.name, succeeded, message)

    try:
        client = factory(account.url, account.key)
    except Exception as e:
        return outcome(False, str(ProbeStepError("Connect", _error_reason(e))))

    with client:
        inserted_ids = []
        unresolved_ping_ids = []
        try:
            message = _run_sequence(client, mode, source, inserted_ids, unresolved_ping_ids)
            result = outcome(True, message)
        except ProbeStepError as e:
            _cleanup(client, inserted_ids, unresolved_ping_ids)
            result = outcome(False, str(e))
        except Exception as e:
            _cleanup(client, inserted_ids, unresolved_ping_ids)
            result = outcome(False, f"Unknown error: {_error_reason(e)}")

        # Purge runs after failed sequences as well
        try:
            purge_old_pings(client)
        except Exception:
            pass

    return result
