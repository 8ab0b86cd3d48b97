from __future__ import annotations

"""Read or change usage statistics through the admin endpoint.

Usage:
  python scripts/admin_usage.py --base-url https://lovebridge.example.com
  python scripts/admin_usage.py --reset
  python scripts/admin_usage.py --max-translations 1000 --max-speech 100

Auto-loads `.env` (searching upwards) so ADMIN_SECRET and PUBLIC_BASE_URL
can live there.
"""

import argparse
import os
import sys

import httpx
from dotenv import find_dotenv, load_dotenv


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="LoveBridge admin usage tool")
    p.add_argument("--base-url", type=str, default=None, help="Service base URL (default: $PUBLIC_BASE_URL)")
    p.add_argument("--reset", action="store_true", help="Reset usage counters")
    p.add_argument("--max-translations", type=int, default=None, help="New daily translation ceiling")
    p.add_argument("--max-speech", type=int, default=None, help="New daily speech ceiling")
    return p


def build_request(args: argparse.Namespace) -> tuple[str, dict | None]:
    """Return (method, json body) for the requested admin action."""

    if args.reset:
        return "POST", {"action": "reset"}
    if args.max_translations or args.max_speech:
        body: dict = {"action": "updateLimits"}
        if args.max_translations:
            body["maxTranslations"] = args.max_translations
        if args.max_speech:
            body["maxSpeechRequests"] = args.max_speech
        return "POST", body
    return "GET", None


def main() -> None:
    load_dotenv(find_dotenv(), override=False)
    args = build_parser().parse_args()

    base = args.base_url or os.environ.get("PUBLIC_BASE_URL", "http://localhost:8080")
    secret = os.environ.get("ADMIN_SECRET")
    if not secret:
        print("Please set ADMIN_SECRET", file=sys.stderr)
        sys.exit(1)

    method, body = build_request(args)
    url = f"{base.rstrip('/')}/api/admin"
    resp = httpx.request(method, url, json=body, headers={"Authorization": f"Bearer {secret}"})
    print(resp.status_code, resp.text)


if __name__ == "__main__":
    main()
