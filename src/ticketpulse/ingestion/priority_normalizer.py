from __future__ import annotations

import re
from typing import Any, Optional, Tuple

from ..standards.schemas import PRIORITY_CODES


PRIORITY_TOKEN_RX = re.compile(r"P[1-4]")

# Checked in order by substring containment on the upper-cased value
PRIORITY_WORDS: Tuple[Tuple[str, str], ...] = (
    ("CRITICAL", "P1"),
    ("HIGH", "P2"),
    ("MEDIUM", "P3"),
    ("LOW", "P4"),
    ("URGENT", "P1"),
    ("NORMAL", "P3"),
)


def validate_priority(raw: Any) -> Optional[str]:
    """Map a free-text priority label to P1..P4, or None when unrecognized.

    >>> validate_priority("P1 Critical")
    'P1'
    >>> validate_priority("High")
    'P2'
    """

    if raw is None:
        return None
    normalized = str(raw).strip().upper()
    if not normalized:
        return None
    if normalized in PRIORITY_CODES:
        return normalized
    match = PRIORITY_TOKEN_RX.search(normalized)
    if match:
        return match.group(0)
    for word, code in PRIORITY_WORDS:
        if word in normalized:
            return code
    return None
