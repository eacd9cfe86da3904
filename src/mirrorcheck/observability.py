from __future__ import annotations

import json
import logging
import time
from collections import Counter
from typing import Any, Dict, Optional


class ScanProgress:
    """Counters for a running scan, logged at most once per interval.

    Only the aggregator thread records into it, so no lock is taken.
    """

    def __init__(self, log_interval_sec: int = 30) -> None:
        self._counters: Counter[str] = Counter()
        self._started = time.monotonic()
        self._last_log = self._started
        self._log_interval_sec = max(1, int(log_interval_sec))

    def inc(self, name: str, count: int = 1) -> None:
        if not name:
            return
        self._counters[name] += count

    def record_checked(self, is_dir: bool) -> None:
        self.inc("checked.dirs_total" if is_dir else "checked.files_total")

    def record_lost(self, is_dir: bool) -> None:
        self.inc("lost.dirs_total" if is_dir else "lost.files_total")

    def record_mismatch(self) -> None:
        self.inc("checksum.mismatch_total")

    def snapshot(self) -> Dict[str, Any]:
        elapsed = max(0.001, time.monotonic() - self._started)
        checked = self._counters["checked.dirs_total"] + self._counters["checked.files_total"]
        return {
            "counters": dict(self._counters),
            "elapsed_sec": round(elapsed, 1),
            "rate_per_sec": round(checked / elapsed, 1),
        }

    def maybe_log(self, logger: logging.Logger, now: Optional[float] = None) -> bool:
        now = time.monotonic() if now is None else now
        if now - self._last_log < self._log_interval_sec:
            return False
        self._last_log = now
        payload = self.snapshot()
        payload["event"] = "scan_progress"
        logger.info(json.dumps(payload, separators=(",", ":")))
        return True
