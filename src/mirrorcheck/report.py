from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .models import RepositoryState

STATUS_COMPLETE = "complete"
STATUS_FAILED = "failed"


def build_report(state: RepositoryState, error: Optional[BaseException] = None) -> Dict[str, Any]:
    return {
        "repository": state.repository_name,
        "local_root": state.local_base_path,
        "remote_root": state.remote_base_path,
        "status": STATUS_FAILED if error is not None else STATUS_COMPLETE,
        "error": str(error) if error is not None else None,
        "counts": {
            "checked_files": state.checked_files,
            "checked_dirs": state.checked_dirs,
            "lost_files": len(state.lost_files),
            "lost_dirs": len(state.lost_dirs),
            "mismatched_files": len(state.mismatched_files),
        },
        "lost_dirs": list(state.lost_dirs),
        "lost_files": list(state.lost_files),
        "mismatched_files": list(state.mismatched_files),
        "generated_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
    }


def write_report(
    state: RepositoryState,
    path: str | Path,
    error: Optional[BaseException] = None,
) -> Path:
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = build_report(state, error)
    output_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return output_path
