from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Tuple

CHUNK_SIZE = 1024 * 1024


def digest_bytes(data: bytes) -> Tuple[str, str]:
    return hashlib.md5(data).hexdigest(), hashlib.sha1(data).hexdigest()


def digest_file(path: str | Path) -> Tuple[str, str]:
    """Return (md5, sha1) hex digests of a file, read in chunks."""
    md5 = hashlib.md5()
    sha1 = hashlib.sha1()
    with Path(path).open("rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            md5.update(chunk)
            sha1.update(chunk)
    return md5.hexdigest(), sha1.hexdigest()
