from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from mirrorcheck.utils.hashing import CHUNK_SIZE, digest_bytes, digest_file


def test_known_vectors() -> None:
    assert digest_bytes(b"") == (
        "d41d8cd98f00b204e9800998ecf8427e",
        "da39a3ee5e6b4b0d3255bfef95601890afd80709",
    )
    assert digest_bytes(b"abc") == (
        "900150983cd24fb0d6963f7d28e17f72",
        "a9993e364706816aba3e25717850c26c9cd0d89d",
    )


def test_file_digest_matches_whole_content_across_chunks(tmp_path: Path) -> None:
    data = bytes(range(256)) * (CHUNK_SIZE // 256 * 2 + 3)
    path = tmp_path / "big.bin"
    path.write_bytes(data)
    assert digest_file(path) == digest_bytes(data)
    assert digest_file(path) == digest_file(str(path))
