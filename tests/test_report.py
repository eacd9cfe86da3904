from __future__ import annotations

import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from mirrorcheck.errors import WalkError
from mirrorcheck.models import RepositoryState
from mirrorcheck.report import STATUS_COMPLETE, STATUS_FAILED, build_report, write_report


def _state() -> RepositoryState:
    state = RepositoryState("ga", "/repo", "http://mirror.test")
    state.lost_dirs.append("x/")
    state.lost_files.append("b/c.jar")
    state.checked_files = 2
    state.checked_dirs = 1
    return state


def test_complete_report() -> None:
    report = build_report(_state())
    assert report["status"] == STATUS_COMPLETE
    assert report["error"] is None
    assert report["lost_dirs"] == ["x/"]
    assert report["lost_files"] == ["b/c.jar"]
    assert report["counts"] == {
        "checked_files": 2,
        "checked_dirs": 1,
        "lost_files": 1,
        "lost_dirs": 1,
        "mismatched_files": 0,
    }


def test_failed_report_is_labelled(tmp_path: Path) -> None:
    path = write_report(_state(), tmp_path / "nested" / "report.json", WalkError("boom"))
    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["status"] == STATUS_FAILED
    assert payload["error"] == "boom"
    assert payload["repository"] == "ga"
    assert payload["lost_files"] == ["b/c.jar"]
