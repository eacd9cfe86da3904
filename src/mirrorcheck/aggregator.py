from __future__ import annotations

import logging
import threading
from typing import Optional

from .channel import Channel
from .errors import CheckError, ScanCancelled, TransportError
from .models import (
    DIR_ACCEPTABLE_CODES,
    FILE_ACCEPTABLE_CODE,
    RepositoryState,
    VerificationResult,
)
from .observability import ScanProgress

logger = logging.getLogger(__name__)
artifact_logger = logging.getLogger("mirrorcheck.artifacts")


def is_acceptable(result: VerificationResult) -> bool:
    if result.is_dir:
        return result.status_code in DIR_ACCEPTABLE_CODES
    return result.status_code == FILE_ACCEPTABLE_CODE


class ResultAggregator:
    """Single owner of a RepositoryState; classifies results as they arrive."""

    def __init__(
        self,
        state: RepositoryState,
        verbose: bool = False,
        progress: Optional[ScanProgress] = None,
    ) -> None:
        self.state = state
        self._verbose = verbose
        self._progress = progress

    def consume(self, results: Channel[VerificationResult], cancel: threading.Event) -> None:
        for result in results.drain(cancel):
            if result.check_error is not None:
                raise CheckError(result.path, result.check_error) from result.check_error
            if result.transport_error is not None:
                raise TransportError(result.url, result.transport_error) from result.transport_error
            self.classify(result)
            if self._progress is not None:
                self._progress.maybe_log(logger)
        if cancel.is_set():
            raise ScanCancelled("scan cancelled before all results were classified")

    def classify(self, result: VerificationResult) -> bool:
        """Record one result; return True when the artifact is acceptable."""
        state = self.state
        if result.is_dir:
            state.checked_dirs += 1
        else:
            state.checked_files += 1
        if self._progress is not None:
            self._progress.record_checked(result.is_dir)

        acceptable = is_acceptable(result)
        if acceptable:
            message = f"artifact: {result.path} status: {result.status_text}"
        elif result.is_dir:
            state.lost_dirs.append(result.path)
            message = (
                f"Dir {result.path} is lost. Code: {result.status_code} "
                f"vs {sorted(DIR_ACCEPTABLE_CODES)}"
            )
        else:
            state.lost_files.append(result.path)
            message = (
                f"File {result.path} is lost. Code: {result.status_code} "
                f"vs {FILE_ACCEPTABLE_CODE}"
            )
        if not acceptable and self._progress is not None:
            self._progress.record_lost(result.is_dir)

        if result.checksum_mismatches:
            state.mismatched_files.append(result.path)
            message = (
                f"File {result.path} checksum mismatch: "
                f"{', '.join(result.checksum_mismatches)}"
            )
            if self._progress is not None:
                self._progress.record_mismatch()

        if self._verbose:
            artifact_logger.info(message)
        return acceptable and not result.checksum_mismatches
