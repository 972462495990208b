from __future__ import annotations

import hashlib
import secrets
import string


KEY_FIELDS = ["type", "category", "amount", "date", "description", "card"]

_ID_CHARS = string.ascii_letters + string.digits


def row_key(row: dict, fields: list[str] | None = None, length: int = 12) -> str:
    """Stable id for a sheet row, so the same row gets the same id on every read."""
    use_fields = fields or KEY_FIELDS
    parts = [str(row.get(k, "")) for k in use_fields]
    raw = "|".join(parts)
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:length]


def generate_id(length: int = 8) -> str:
    return "".join(secrets.choice(_ID_CHARS) for _ in range(length))
