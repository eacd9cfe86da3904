from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

DIR_ACCEPTABLE_CODES = frozenset({200, 301, 302})
FILE_ACCEPTABLE_CODE = 200


@dataclass(frozen=True)
class LocalArtifact:
    path: str
    md5: str = ""
    sha1: str = ""
    is_dir: bool = False
    size: int = 0


@dataclass
class VerificationResult:
    path: str
    url: str
    is_dir: bool
    status_code: int = 0
    status_text: str = ""
    transport_error: Optional[BaseException] = None
    check_error: Optional[BaseException] = None
    checksum_mismatches: Tuple[str, ...] = ()


@dataclass
class RepositoryState:
    repository_name: str
    local_base_path: str
    remote_base_path: str
    lost_dirs: List[str] = field(default_factory=list)
    lost_files: List[str] = field(default_factory=list)
    mismatched_files: List[str] = field(default_factory=list)
    checked_files: int = 0
    checked_dirs: int = 0

    @property
    def has_lost(self) -> bool:
        return bool(self.lost_dirs or self.lost_files or self.mismatched_files)
