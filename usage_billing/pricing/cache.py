"""Process-local memo of rating results.

Rating is a pure function of the charge definition and the aggregate, so a
fee computed once can be reused for the same key. Charge ids are only unique
within a plan, so the key carries the plan code and the parsed properties
next to the id and version.
"""

from typing import Dict, Optional

_fee_cache: Dict[str, object] = {}

# Bump when the cache key schema changes.
CACHE_KEY_VERSION = "v2"


def build_cache_key(charge, aggregate) -> str:
    return "|".join(
        [
            CACHE_KEY_VERSION,
            str(charge.plan_code),
            str(charge.id),
            str(charge.version),
            str(charge.currency),
            repr(charge.properties),
            aggregate.fingerprint(),
        ]
    )


def get_cached_fee(key: str) -> Optional[object]:
    return _fee_cache.get(key)


def set_cached_fee(key: str, fee: object) -> None:
    _fee_cache[key] = fee


def clear_rating_cache() -> None:
    _fee_cache.clear()


def cache_size() -> int:
    return len(_fee_cache)
