"""
Supabase Keep-Alive - HTTP Handlers
===================================
Serverless entry points (AWS Lambda / API Gateway event shape).

    cron_handler   scheduled invocation; optional CRON_SECRET check
    sync_handler   external workflow tools (n8n, ...); CORS + optional API_SECRET_KEY

Both return {"statusCode", "headers", "body"} with a JSON body.
"""

import os
import sys
import json

# Local imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from scripts.accounts import get_accounts
from scripts.runner import run_keepalive, NoAccountsConfigured
from scripts.utils import now_iso
from config import settings

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def _response(status_code: int, body=None, headers: dict = None) -> dict:
    response_headers = dict(headers or {})
    if body is not None:
        response_headers["Content-Type"] = "application/json"
    return {
        "statusCode": status_code,
        "headers": response_headers,
        "body": json.dumps(body) if body is not None else "",
    }


def _get_header(event: dict, name: str):
    headers = (event or {}).get("headers") or {}
    for key, value in headers.items():
        if key.lower() == name.lower():
            return value
    return None


def _get_method(event: dict) -> str:
    event = event or {}
    method = event.get("httpMethod")
    if not method:
        # API Gateway HTTP API (payload v2)
        method = event.get("requestContext", {}).get("http", {}).get("method", "")
    return method.upper()


def _run(source: str, extra: dict = None, headers: dict = None) -> dict:
    try:
        settings.validate_config()
    except ValueError as e:
        return _response(500, {"error": "Invalid configuration", "message": str(e)}, headers)

    accounts = get_accounts()

    try:
        summary = run_keepalive(accounts, mode=settings.RECORD_MODE, source=source)
    except NoAccountsConfigured:
        return _response(500, {
            "error": "No Supabase accounts configured",
            "message": "Please add SUPABASE_* environment variables to the function configuration",
        }, headers)

    body = {"success": True}
    body.update(extra or {})
    body["timestamp"] = now_iso()
    body.update(summary.to_dict())
    return _response(200, body, headers)


def cron_handler(event, context=None) -> dict:
    """Scheduled run. Any method; Authorization must match CRON_SECRET when it is set."""
    cron_secret = settings.CRON_SECRET
    if cron_secret and _get_header(event, "Authorization") != f"Bearer {cron_secret}":
        return _response(401, {"error": "Unauthorized"})

    return _run(settings.SOURCE_CRON)


def sync_handler(event, context=None) -> dict:
    """Run triggered by a workflow tool, with CORS."""
    if _get_method(event) == "OPTIONS":
        return _response(200, headers=CORS_HEADERS)

    api_key = settings.API_SECRET_KEY
    if api_key:
        provided = (_get_header(event, "Authorization") or "").replace("Bearer ", "", 1)
        if provided != api_key:
            return _response(401, {
                "error": "Unauthorized",
                "message": "Invalid or missing API key",
            }, CORS_HEADERS)

    return _run(settings.SOURCE_SYNC, extra={"message": "Sync executed"}, headers=CORS_HEADERS)


# Default Lambda entry point
lambda_handler = cron_handler
