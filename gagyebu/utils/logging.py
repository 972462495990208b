from __future__ import annotations

from datetime import datetime
from pathlib import Path
import os
import sys


def log(message: str, level: str = "INFO") -> None:
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    line = f"[{ts}] {message}" if level == "INFO" else f"[{ts}] {level}: {message}"
    stream = sys.stderr if level == "ERROR" else sys.stdout
    print(line, file=stream)

    log_path = Path(os.environ.get("APP_LOG_PATH", "./data/logs/gagyebu.log"))
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        with log_path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
    except OSError:
        # best-effort logging
        pass


def log_error(message: str, exc: BaseException | None = None) -> None:
    if exc is not None:
        message = f"{message}: {exc}"
    log(message, level="ERROR")
