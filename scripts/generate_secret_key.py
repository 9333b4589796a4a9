#!/usr/bin/env python3
"""
Write token settings for the training API into a .env file.

Existing JWT_SECRET_KEY / TOKEN_EXPIRY_HOURS lines are replaced, anything
else in the file (DB_URI, API_PORT, ...) is kept as is.
"""

import argparse
import secrets
from pathlib import Path
from typing import Dict, List, Optional

TOKEN_KEYS = ("JWT_SECRET_KEY", "TOKEN_EXPIRY_HOURS")


def token_settings(expiry_hours: int) -> Dict[str, str]:
    return {
        "JWT_SECRET_KEY": secrets.token_urlsafe(48),
        "TOKEN_EXPIRY_HOURS": str(expiry_hours),
    }


def merge_env(lines: List[str], settings: Dict[str, str]) -> List[str]:
    kept = [line for line in lines if line.split("=", 1)[0].strip() not in settings]
    return kept + [f"{key}={value}" for key, value in settings.items()]


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Generate access-token settings")
    parser.add_argument("--env-file", type=Path, default=None,
                        help="update this .env file instead of printing")
    parser.add_argument("--hours", type=int, default=168, help="token lifetime in hours")
    args = parser.parse_args(argv)

    if args.hours <= 0:
        parser.error("--hours must be positive")

    settings = token_settings(args.hours)
    if args.env_file is None:
        for key, value in settings.items():
            print(f"{key}={value}")
        return

    lines = args.env_file.read_text().splitlines() if args.env_file.exists() else []
    args.env_file.write_text("\n".join(merge_env(lines, settings)) + "\n")
    print(f"[keys] Wrote {', '.join(TOKEN_KEYS)} to {args.env_file}")


if __name__ == "__main__":
    main()
