"""
Supabase Keep-Alive - Configuration
===================================
Centralizes all project configuration.

Accounts themselves are not listed here: they live in indexed environment
slots (SUPABASE_1_URL, SUPABASE_1_KEY, ...) and are discovered at run time
by scripts/accounts.py.
"""

import os
from datetime import timedelta
from dotenv import load_dotenv

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# Load environment variables from the .env next to the scripts
load_dotenv(os.path.join(PROJECT_ROOT, ".env"))

# ============================================================
# Account Slots
# ============================================================

# Hard upper bound on indexed slots (SUPABASE_1_* .. SUPABASE_20_*)
MAX_ACCOUNT_SLOTS = 20

ACCOUNT_ENV_PREFIX = "SUPABASE"

# Spelling used by the Vite dashboard .env files, accepted as a fallback
LEGACY_ACCOUNT_ENV_PREFIX = "VITE_SUPABASE"

# ============================================================
# Keep-Alive Table
# ============================================================

KEEPALIVE_TABLE = "_keepalive_ping"
KEEPALIVE_VERSION = "1.0.0"
PING_TYPE = "keepalive"

# Number of random filler strings written into each ping payload
FILLER_COUNT = 50

# Rows older than this are purged on every probe
PURGE_AFTER = timedelta(hours=1)

# "single" (insert 1, delete 1) or "paired" (insert 2, delete 1, keep 1 visible)
RECORD_MODE = os.getenv("KEEPALIVE_RECORD_MODE", "paired").strip().lower()

# ============================================================
# Adapters
# ============================================================

# Checked by the cron handler: Authorization must be "Bearer <CRON_SECRET>"
CRON_SECRET = os.getenv("CRON_SECRET")

# Checked by the sync handler (workflow tools), independent of CRON_SECRET
API_SECRET_KEY = os.getenv("API_SECRET_KEY")

DISCORD_WEBHOOK_URL = os.getenv("DISCORD_WEBHOOK_URL")

# Interactive dashboard
PAUSE_BETWEEN_ACCOUNTS = 0.3  # seconds
LAST_RUN_FILE = os.getenv(
    "KEEPALIVE_LAST_RUN_FILE",
    os.path.join(PROJECT_ROOT, ".keepalive_state.json")
)
LAST_RUN_KEY = "keepalive_last_run"

# Source tags written into ping metadata, one per entry point
SOURCE_CLI = "supabase-keepalive-cron"
SOURCE_CRON = "supabase-keepalive-vercel"
SOURCE_SYNC = "supabase-keepalive-n8n"
SOURCE_DASHBOARD = "supabase-keepalive"

# ============================================================
# Setup SQL
# ============================================================

# Must be run once in each project's SQL editor
SETUP_SQL = """CREATE TABLE IF NOT EXISTS _keepalive_ping (
  id UUID DEFAULT gen_random_uuid() PRIMARY KEY,
  ping_id TEXT NOT NULL,
  timestamp TIMESTAMPTZ DEFAULT NOW(),
  ping_type TEXT DEFAULT 'keepalive',
  metadata JSONB
);

ALTER TABLE _keepalive_ping ENABLE ROW LEVEL SECURITY;

CREATE POLICY "anon_all" ON _keepalive_ping
  FOR ALL TO anon USING (true) WITH CHECK (true);"""

ENV_EXAMPLE = """SUPABASE_1_NAME=My Project
SUPABASE_1_URL=https://xxx.supabase.co
SUPABASE_1_KEY=your-anon-key

SUPABASE_2_NAME=Another Project
SUPABASE_2_URL=https://yyy.supabase.co
SUPABASE_2_KEY=another-key"""

# ============================================================
# Validation
# ============================================================

def validate_config(record_mode=None):
    """
    Verifies that the configuration values are usable.

    Args:
        record_mode: Mode the run will use, when it overrides RECORD_MODE
    """
    errors = []

    mode = RECORD_MODE if record_mode is None else record_mode
    if mode not in ("single", "paired"):
        errors.append(f"record mode must be 'single' or 'paired', got '{mode}'")
    if PAUSE_BETWEEN_ACCOUNTS < 0:
        errors.append("PAUSE_BETWEEN_ACCOUNTS must be >= 0")

    if errors:
        raise ValueError(f"Invalid configuration: {', '.join(errors)}")

    return True
