"""Operational checks for the Hubstaff integration.

Commands::

    # Validate settings (organization id, bootstrap refresh token).
    python -m scripts.check_hubstaff config

    # Show the persisted token's expiry without printing the token itself.
    python -m scripts.check_hubstaff token

    # Obtain a valid access token, refreshing it when necessary.
    python -m scripts.check_hubstaff refresh
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from typing import Callable

from pydantic import ValidationError

from trackboard.core.config import AppSettings

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_TOKEN_ERROR = 4
EXIT_RUNTIME_ERROR = 5


def _check_config(settings: AppSettings) -> int:
    problems = []
    if not settings.hubstaff.org_id:
        problems.append("HUBSTAFF_ORG_ID is not set.")
    if not settings.hubstaff.refresh_token:
        problems.append(
            "HUBSTAFF_REFRESH_TOKEN is not set; a persisted token is required to run."
        )
    for problem in problems:
        print(problem, file=sys.stderr)
    if not settings.hubstaff.org_id:
        return EXIT_VALIDATION_ERROR
    print(f"Hubstaff organization {settings.hubstaff.org_id} configured.")
    return EXIT_OK


def _describe_token(store, now_ms: float | None = None) -> int:
    record = store.load()
    if record is None:
        print("No Hubstaff token has been persisted yet.", file=sys.stderr)
        return EXIT_TOKEN_ERROR
    now_ms = time.time() * 1000 if now_ms is None else now_ms
    minutes = int((record.expires_at - now_ms) // 60_000)
    if minutes <= 0:
        print(f"Stored access token expired {-minutes} minute(s) ago.")
    else:
        print(f"Stored access token valid for another {minutes} minute(s).")
    return EXIT_OK


async def _refresh(token_service) -> int:
    token = await token_service.get_valid_access_token()
    if not token:
        print("Could not obtain a Hubstaff access token.", file=sys.stderr)
        return EXIT_TOKEN_ERROR
    print("Hubstaff access token is valid.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Check Hubstaff integration health.")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("config", help="Validate Hubstaff settings.")
    subparsers.add_parser("token", help="Report the persisted token's expiry.")
    subparsers.add_parser("refresh", help="Ensure a valid access token is available.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        settings = AppSettings()
    except ValidationError as exc:
        print(
            "Settings validation failed. Missing or invalid values detected:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR

    from trackboard.dependencies import get_hubstaff_token_service, get_token_store

    handlers: dict[str, Callable[[], int]] = {
        "config": lambda: _check_config(settings),
        "token": lambda: _describe_token(get_token_store()),
        "refresh": lambda: asyncio.run(_refresh(get_hubstaff_token_service())),
    }
    try:
        return handlers[args.command]()
    except Exception as exc:  # pylint: disable=broad-except
        print(f"Unexpected error: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
