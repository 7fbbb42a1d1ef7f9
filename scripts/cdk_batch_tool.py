from __future__ import annotations

import argparse
import asyncio
import csv
from datetime import datetime, timezone
from pathlib import Path

from governor.core.config import get_settings
from governor.core.logging import configure_logging
from governor.economy.cdk.issuer import MAX_BATCH_SIZE, CdkIssuer
from governor.economy.cdk.types import PACKAGE_TYPES, IssuedBatch


def _parse_expiry(value: str | None) -> datetime | None:
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Issue a batch of redeemable codes")
    parser.add_argument("--package-type", choices=PACKAGE_TYPES, required=True)
    parser.add_argument("--package-id", type=int, required=True)
    parser.add_argument("--count", type=int, required=True)
    parser.add_argument("--expires-at", help="ISO datetime, UTC when no offset is given")
    parser.add_argument("--created-by", required=True)
    parser.add_argument("--output-csv", type=Path, default=Path("reports/cdk_batch_output.csv"))
    return parser.parse_args()


def _validate_args(args: argparse.Namespace) -> None:
    if not 1 <= args.count <= MAX_BATCH_SIZE:
        raise ValueError(f"--count must be in range 1..{MAX_BATCH_SIZE}")
    expires_at = _parse_expiry(args.expires_at)
    if expires_at is not None and expires_at <= datetime.now(timezone.utc):
        raise ValueError("--expires-at must be in the future")


def _write_output(path: Path, batch: IssuedBatch) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as file:
        writer = csv.writer(file)
        writer.writerow(["code", "cdk_id", "package_type", "package_id"])
        for code, cdk_id in zip(batch.codes, batch.ids, strict=True):
            writer.writerow([code, str(cdk_id), batch.package_type, batch.package_id])


async def _run() -> int:
    args = _parse_args()
    _validate_args(args)
    configure_logging(get_settings().log_level)

    batch = await CdkIssuer().issue(
        package_type=args.package_type,
        package_id=args.package_id,
        count=args.count,
        expires_at=_parse_expiry(args.expires_at),
        created_by=args.created_by,
    )
    _write_output(args.output_csv, batch)
    print(f"issued={len(batch.codes)} output={args.output_csv}")  # noqa: T201
    return 0


def main() -> int:
    return asyncio.run(_run())


if __name__ == "__main__":
    raise SystemExit(main())
