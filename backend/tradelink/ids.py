"""Document identifiers: 32-char lowercase hex (uuid4)."""

from __future__ import annotations

import re
import uuid

_ID_RE = re.compile(r"^[0-9a-f]{32}$")


def new_id() -> str:
    return uuid.uuid4().hex


def is_valid_id(value) -> bool:
    return isinstance(value, str) and bool(_ID_RE.match(value))
