"""
Dry-run the configured mappers against a set of claims.

Loads a realm/user snapshot, runs every mapper configured for the identity
provider as if the user had just logged in, and prints the resulting user
state as YAML. Nothing outside the in-memory snapshot is touched.

Run via: python -m claimsync.cli.dry_run --claims claims.json --state state.yaml

Mapper configuration comes from the usual settings sources
(CLAIMSYNC_CONFIG_PATH, CLAIMSYNC_* environment variables).
"""

import argparse
import json
import sys
from pathlib import Path

import yaml

from claimsync.config import MapperConfigError, settings
from claimsync.logging_config import configure_logging, get_logger
from claimsync.mappers import init_mappers, sync_user
from claimsync.store.memory import DictClaimSource, dump_user, load_snapshot
from claimsync.store.protocol import StoreError

logger = get_logger("claimsync.dry_run")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="claimsync-dry-run",
        description="Run configured mappers against claims without touching a real store.",
    )
    parser.add_argument("--claims", required=True, help="JSON (or YAML) file with the claims")
    parser.add_argument("--state", help="YAML file with the realm/user snapshot")
    parser.add_argument("--idp", help="Identity provider alias (default: first configured)")
    parser.add_argument(
        "--new-user",
        action="store_true",
        help="Treat the login as a first import (runs import-only mappers too)",
    )
    return parser


def _load_file(path: str) -> dict:
    text = Path(path).read_text()
    if path.endswith(".json"):
        return json.loads(text)
    return yaml.safe_load(text) or {}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)

    try:
        claims = _load_file(args.claims)
        snapshot = _load_file(args.state) if args.state else {}
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Cannot read input", error=str(e))
        return 1

    if not isinstance(claims, dict):
        logger.error("Claims file must contain an object", path=args.claims)
        return 1

    idp = args.idp or next((m.identity_provider_alias for m in settings.mappers), "")
    if not idp:
        logger.error("No identity provider given and no mappers configured")
        return 1

    try:
        init_mappers()
        realm, user = load_snapshot(snapshot)
        ran = sync_user(realm, user, DictClaimSource(claims), idp, is_new_user=args.new_user)
    except (MapperConfigError, StoreError) as e:
        logger.error("Dry run failed", error=str(e))
        return 1

    logger.info("Dry run complete", idp=idp, mappers=ran)
    yaml.safe_dump({"user": dump_user(user)}, sys.stdout, sort_keys=False)
    return 0


if __name__ == "__main__":
    sys.exit(main())
