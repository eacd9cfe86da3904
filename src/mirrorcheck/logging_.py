import json
import logging
import uuid
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional


class JsonFormatter(logging.Formatter):
    def __init__(self, run_id: str, include_run_id: bool = True) -> None:
        super().__init__()
        self._run_id = run_id
        self._include_run_id = include_run_id

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _format_ts(record.created),
            "level": record.levelname,
            "component": record.name,
        }
        if self._include_run_id:
            payload["run_id"] = self._run_id

        message = record.getMessage()
        parsed = _parse_json(message)
        if parsed is not None:
            event = parsed.get("event")
            if event:
                payload["event"] = event
            payload["meta"] = parsed
        else:
            payload["event"] = getattr(record, "event", None) or message
            meta = getattr(record, "meta", None)
            if meta is not None:
                payload["meta"] = meta

        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)

        return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    *,
    log_dir: Optional[Path] = None,
    log_file: str = "mirrorcheck.log",
    max_mb: int = 20,
    backup_count: int = 5,
    use_json: bool = False,
    to_console: bool = True,
    run_id: Optional[str] = None,
) -> str:
    run_id = run_id or uuid.uuid4().hex
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(root.handlers):
        root.removeHandler(handler)

    if use_json:
        formatter: logging.Formatter = JsonFormatter(run_id)
    else:
        formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    if log_dir:
        log_dir.mkdir(parents=True, exist_ok=True)
        max_bytes = max(1, int(max_mb)) * 1024 * 1024
        file_handler = RotatingFileHandler(
            log_dir / log_file, maxBytes=max_bytes, backupCount=max(1, int(backup_count))
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    if to_console or not log_dir:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return run_id


def _parse_json(message: str) -> Optional[Dict[str, Any]]:
    if not message:
        return None
    try:
        parsed = json.loads(message)
    except (TypeError, ValueError):
        return None
    if isinstance(parsed, dict):
        return parsed
    return None


def _format_ts(epoch_seconds: float) -> str:
    return (
        datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)
        .astimezone()
        .strftime("%Y-%m-%d %H:%M:%S")
    )
