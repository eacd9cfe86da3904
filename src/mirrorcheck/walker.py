from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Iterator, Optional
from urllib.parse import quote

from .channel import Channel
from .errors import ScanCancelled, ScanError, WalkError
from .models import LocalArtifact
from .utils.hashing import digest_file

logger = logging.getLogger(__name__)

JAR_SUFFIX = ".jar"


def iter_artifacts(root: str | Path, jars_only: bool = False) -> Iterator[LocalArtifact]:
    """Yield one artifact per file and directory below ``root``.

    Paths are relative to ``root`` and slash-separated; directory paths end
    with ``/``. The root itself is not yielded. Any filesystem failure is
    raised as :class:`WalkError`.
    """
    root_path = Path(root)
    if not root_path.is_dir():
        raise WalkError(f"local repository is not a directory: {root_path}", str(root_path))
    yield from _walk(root_path, "", jars_only)


def _walk(directory: Path, prefix: str, jars_only: bool) -> Iterator[LocalArtifact]:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as exc:
        raise WalkError(f"cannot list {directory}: {exc}", str(directory)) from exc

    for entry in entries:
        rel = prefix + _url_name(entry.name)
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
            linked_dir = not is_dir and entry.is_symlink() and entry.is_dir()
        except OSError as exc:
            raise WalkError(f"cannot stat {entry.path}: {exc}", entry.path) from exc
        if linked_dir:
            # listed but not descended, so link cycles cannot recurse
            if not jars_only:
                yield LocalArtifact(path=rel + "/", is_dir=True)
            continue
        if is_dir:
            if not jars_only:
                yield LocalArtifact(path=rel + "/", is_dir=True)
            yield from _walk(Path(entry.path), rel + "/", jars_only)
            continue
        if jars_only and not entry.name.endswith(JAR_SUFFIX):
            continue
        try:
            size = entry.stat().st_size
            md5, sha1 = digest_file(entry.path)
        except OSError as exc:
            raise WalkError(f"cannot read {entry.path}: {exc}", entry.path) from exc
        yield LocalArtifact(path=rel, md5=md5, sha1=sha1, is_dir=False, size=size)


def _url_name(name: str) -> str:
    """Percent-encode names that are not valid UTF-8; others pass through."""
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return quote(os.fsencode(name))
    return name


class TreeWalker:
    """Feeds artifacts from a local tree into a channel on its own thread."""

    def __init__(
        self,
        root: str | Path,
        artifacts: Channel[LocalArtifact],
        cancel: threading.Event,
        jars_only: bool = False,
    ) -> None:
        self._root = Path(root)
        self._artifacts = artifacts
        self._cancel = cancel
        self._jars_only = jars_only
        self._thread = threading.Thread(target=self._run, name="mirrorcheck-walker", daemon=True)
        self.error: Optional[ScanError] = None
        self.emitted = 0

    def start(self) -> None:
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread.ident is not None:
            self._thread.join(timeout=timeout)

    def _run(self) -> None:
        try:
            for artifact in iter_artifacts(self._root, jars_only=self._jars_only):
                if not self._artifacts.put(artifact, self._cancel):
                    self.error = ScanCancelled("scan cancelled during local walk")
                    return
                self.emitted += 1
        except WalkError as exc:
            logger.error("local walk failed: %s", exc)
            self.error = exc
        finally:
            self._artifacts.close(self._cancel)
            logger.debug("local walk finished emitted=%s", self.emitted)
