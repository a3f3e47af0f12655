# fastapi_datagrid/validators.py

import math
import re
from typing import Any, Iterable, Mapping

LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
# largest OFFSET a 64-bit SQL integer holds
MAX_OFFSET = 2**63 - 1
LIKE_WILDCARDS = re.compile(r"[%_]")


def parse_int(raw: Any) -> int | None:
    """Parse the leading integer of ``raw`` the way browsers' parseInt does.

    ``"12abc"`` gives 12, ``"2.9"`` gives 2 and ``"abc"`` gives None.
    """
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if math.isfinite(raw) else None
    match = LEADING_INT.match(str(raw))
    if not match:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        # past the interpreter's digit limit for str -> int
        return None


def _text(raw: Any) -> str:
    if raw is None:
        return ""
    return str(raw).strip()


def validate_page(raw: Any, default: int, per_page: int = 1) -> int:
    page = parse_int(raw)
    if page is None or page < 1 or (page - 1) * per_page > MAX_OFFSET:
        return default
    return page


def validate_per_page(raw: Any, default: int, minimum: int, maximum: int) -> int:
    per_page = parse_int(raw)
    if per_page is None:
        per_page = default
    return max(minimum, min(per_page, maximum))


def validate_search(raw: Any, default: str) -> str:
    search = _text(raw) or default
    return LIKE_WILDCARDS.sub(" ", search)


def validate_filters(raw: Any, default: Mapping[str, Any]) -> dict[str, str]:
    # keys outside the filterables are kept; the applicator only reads configured ones
    source = raw if isinstance(raw, Mapping) else default
    return {str(key): _text(value) for key, value in source.items()}


def validate_sorts(raw: Any, default: str) -> str:
    return _text(raw) or default


def parse_sorts(sorts: str, sortables: Iterable[str]) -> list[tuple[str, bool]]:
    """Split a sort spec like ``"-age,name"`` into ``(name, descending)`` pairs.

    Tokens naming something outside ``sortables`` are dropped.
    """
    allowed = set(sortables)
    pairs = []
    for token in sorts.split(","):
        token = token.strip()
        descending = token.startswith("-")
        name = token[1:] if descending else token
        if name and name in allowed:
            pairs.append((name, descending))
    return pairs
