from __future__ import annotations

import hashlib
import re
import secrets
from datetime import datetime, timezone

CDK_FORMAT_PATTERN = re.compile(r"^[A-F0-9]{4}(-[A-F0-9]{4}){3}$")
CDK_GROUP_SIZE = 4
CDK_GROUPS = 4


def normalize_cdk(raw_code: str) -> str:
    return raw_code.strip().upper()


def validate_cdk_format(code: str) -> bool:
    return CDK_FORMAT_PATTERN.fullmatch(code) is not None


def generate_cdk_code(*, now_utc: datetime | None = None) -> str:
    now_utc = now_utc or datetime.now(timezone.utc)
    minute_stamp = int(now_utc.timestamp()) // 60

    digest = hashlib.sha256()
    digest.update(secrets.token_bytes(32))
    digest.update(str(minute_stamp).encode("ascii"))
    digest.update(secrets.token_bytes(16))

    raw = digest.hexdigest().upper()[: CDK_GROUP_SIZE * CDK_GROUPS]
    return "-".join(
        raw[offset : offset + CDK_GROUP_SIZE]
        for offset in range(0, len(raw), CDK_GROUP_SIZE)
    )
