from __future__ import annotations

from pathlib import Path
from typing import Any
import json

from gagyebu.utils.logging import log_error

TRANSACTIONS_KEY = "budget_transactions"
ADMIN_CONFIG_KEY = "budget_admin_config"
UI_STATE_KEY = "budget-store"


class CorruptStoreError(ValueError):
    pass


class LocalStore:
    """JSON-file key/value store used when no spreadsheet is reachable (developer mode).

    Reads of an unreadable file fall back to empty values; writes refuse to
    touch it so the other keys are not lost.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return data

    def _read_all(self) -> dict[str, Any]:
        try:
            return self._load()
        except (OSError, ValueError) as exc:
            log_error(f"local store read failed ({self.path})", exc)
            return {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        try:
            data = self._load()
        except ValueError as exc:
            raise CorruptStoreError(f"refusing to overwrite unreadable store {self.path}: {exc}") from exc
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp.replace(self.path)
