from __future__ import annotations

import json
import logging
import sys
import time
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from mirrorcheck.observability import ScanProgress


def test_progress_logs_once_per_interval(caplog: pytest.LogCaptureFixture) -> None:
    progress = ScanProgress(log_interval_sec=10)
    progress.record_checked(is_dir=False)
    progress.record_checked(is_dir=True)
    progress.record_lost(is_dir=False)
    logger = logging.getLogger("mirrorcheck.test")

    with caplog.at_level(logging.INFO, logger="mirrorcheck.test"):
        assert progress.maybe_log(logger) is False
        later = time.monotonic() + 11
        assert progress.maybe_log(logger, now=later) is True
        assert progress.maybe_log(logger, now=later + 1) is False

    payload = json.loads(caplog.records[-1].getMessage())
    assert payload["event"] == "scan_progress"
    assert payload["counters"]["checked.files_total"] == 1
    assert payload["counters"]["checked.dirs_total"] == 1
    assert payload["counters"]["lost.files_total"] == 1
