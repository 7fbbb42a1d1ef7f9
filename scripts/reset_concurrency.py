from __future__ import annotations

import argparse
import asyncio

import structlog

from governor.core.config import get_settings
from governor.core.logging import configure_logging
from governor.db.session import dispose_engine
from governor.generation.admission.service import AdmissionController
from governor.generation.admission.types import AdmissionConfig

logger = structlog.get_logger("scripts.reset_concurrency")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Zero every per-origin generation counter before the app starts serving"
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="reset even when RESET_CONCURRENCY_ON_STARTUP is not set",
    )
    return parser.parse_args()


async def _run(*, force: bool) -> int:
    settings = get_settings()
    configure_logging(settings.log_level)

    if not (force or settings.reset_concurrency_on_startup):
        logger.info("concurrency_reset_skipped", reason="disabled")
        return 0

    try:
        reset = await AdmissionController(AdmissionConfig.from_settings(settings)).reset_all()
    finally:
        await dispose_engine()
    print(f"reset_slots={reset}")  # noqa: T201
    return 0


def main() -> int:
    args = _parse_args()
    return asyncio.run(_run(force=args.force))


if __name__ == "__main__":
    raise SystemExit(main())
