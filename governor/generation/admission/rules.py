from __future__ import annotations

from governor.generation.admission.types import AdmissionConfig, Caller


def compute_limit(config: AdmissionConfig, caller: Caller) -> int | None:
    """Concurrency ceiling for an origin, driven by the caller making this request.

    None means unbounded. Premium users share the authenticated limit.
    """
    if caller.is_admin:
        return None
    if caller.user_id:
        return config.max_concurrent_generations
    return config.anonymous_limit
