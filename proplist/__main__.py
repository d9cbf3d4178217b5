"""Proplist command-line entry-point.

Usage:
    python -m proplist init-db
    python -m proplist add-profile USER_ID [--org ORG_ID] [--kyc verified]
    python -m proplist list [--status published] [--q casa] [--page 2]
    python -m proplist show PROPERTY_ID
    python -m proplist readiness PROPERTY_ID
    python -m proplist publish PROPERTY_ID
    python -m proplist pause PROPERTY_ID
    python -m proplist public-list [--city Monterrey]

Commands that act as a user resolve the caller from ``CURRENT_USER_ID``.
Results are printed as JSON on stdout; failures are printed as the error
code and message on stderr with exit status 1.

The module calls ``configure_logging()`` first so that every subsequent
import already has a working logger.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from typing import Any

from pydantic import BaseModel, ValidationError

from proplist.core import ConfigError, configure_logging
from proplist.core.result import Err, Result
from proplist.core.settings import Settings


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proplist",
        description="Property listing management backed by a local SQLite database.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        metavar="LEVEL",
        help="Override LOG_LEVEL env var (DEBUG|INFO|WARNING|ERROR).",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        metavar="FORMAT",
        help="Override LOG_FORMAT env var (text|json).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the database schema and media directory.")

    profile = sub.add_parser("add-profile", help="Insert or update a caller profile.")
    profile.add_argument("user_id")
    profile.add_argument("--org", dest="org_id", default=None)
    profile.add_argument("--kyc", default="pending", choices=("pending", "verified", "rejected"))
    profile.add_argument("--name", dest="full_name", default=None)
    profile.add_argument("--email", default=None)

    listing = sub.add_parser("list", help="List the caller's properties.")
    listing.add_argument("--status", default=None)
    listing.add_argument("--q", default=None)
    listing.add_argument("--sort", dest="sort_by", default=None)
    listing.add_argument("--page", type=int, default=None)
    listing.add_argument("--page-size", type=int, default=None)

    for name, help_text in (
        ("show", "Print one property."),
        ("readiness", "Print the publish-readiness report of a property."),
        ("publish", "Publish a property."),
        ("pause", "Move a published property back to draft."),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("property_id")

    public = sub.add_parser("public-list", help="List published properties as the public sees them.")
    public.add_argument("--q", default=None)
    public.add_argument("--city", default=None)
    public.add_argument("--state", default=None)
    public.add_argument("--sort", default=None)
    public.add_argument("--page", type=int, default=None)
    return parser


def _drop_none(**values: Any) -> dict[str, Any]:
    return {k: v for k, v in values.items() if v is not None}


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    return value


def _emit(result: Result[Any]) -> int:
    if isinstance(result, Err):
        error = result.error
        print(f"{error.code}: {error}", file=sys.stderr)  # noqa: T201
        return 1
    print(json.dumps(_to_jsonable(result.value), indent=2, default=str))  # noqa: T201
    return 0


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    # Lazy import keeps `--help` fast and free of database side effects.
    from proplist.application.container import open_container  # noqa: PLC0415
    from proplist.application.dto import AuthProfile  # noqa: PLC0415
    from proplist.storage.sqlite_auth import save_profile  # noqa: PLC0415

    async with open_container(settings) as app:
        if args.command == "init-db":
            print(f"Database ready at {settings.database_path_resolved}")  # noqa: T201
            return 0
        if args.command == "add-profile":
            profile = AuthProfile(
                user_id=args.user_id,
                org_id=args.org_id,
                kyc_status=args.kyc,
                full_name=args.full_name,
                email=args.email,
            )
            await save_profile(app.conn, profile)
            print(json.dumps(profile.model_dump(mode="json"), indent=2))  # noqa: T201
            return 0
        if args.command == "list":
            return _emit(
                await app.list_properties.execute(
                    _drop_none(
                        status=args.status,
                        q=args.q,
                        sort_by=args.sort_by,
                        page=args.page,
                        page_size=min(
                            args.page_size or settings.default_page_size, settings.max_page_size
                        ),
                    )
                )
            )
        if args.command == "public-list":
            return _emit(
                await app.list_published_properties.execute(
                    _drop_none(
                        q=args.q, city=args.city, state=args.state, sort=args.sort, page=args.page
                    )
                )
            )

        target = {"id": args.property_id}
        if args.command == "show":
            return _emit(await app.get_property.execute(target))
        if args.command == "readiness":
            return _emit(await app.get_property_readiness.execute(target))
        if args.command == "publish":
            return _emit(await app.publish_property.execute(target))
        if args.command == "pause":
            return _emit(await app.pause_property.execute(target))
    raise AssertionError(f"unhandled command {args.command!r}")


def main() -> None:
    """CLI entry-point registered in ``pyproject.toml``."""
    args = _build_parser().parse_args()

    # Configure logging BEFORE any other proplist imports so that every module
    # obtains a correctly-configured logger on first import.
    try:
        configure_logging(level=args.log_level, fmt=args.log_format)
    except ValueError as exc:
        print(f"proplist: configuration error: {exc}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    logger = logging.getLogger(__name__)

    try:
        settings = Settings()
    except ValidationError as exc:
        logger.critical("Configuration error: %s", exc)
        sys.exit(1)

    try:
        sys.exit(asyncio.run(_run(args, settings)))
    except ConfigError as exc:
        logger.critical("Configuration error: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting.")
        sys.exit(130)


if __name__ == "__main__":
    main()
