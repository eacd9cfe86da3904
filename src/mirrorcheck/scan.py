from __future__ import annotations

import logging
import threading
from typing import Optional

import httpx

from .aggregator import ResultAggregator
from .channel import Channel
from .config import Config
from .models import LocalArtifact, RepositoryState, VerificationResult
from .observability import ScanProgress
from .verifier import VerifierPool, build_client
from .walker import TreeWalker

logger = logging.getLogger(__name__)


class Scanner:
    """Runs one walk-and-verify pass over a local repository.

    ``state`` is readable after ``run`` returns or raises; on failure it holds
    whatever was classified before the scan stopped.
    """

    def __init__(self, config: Config, client: Optional[httpx.Client] = None) -> None:
        if config.maven_repository is None:
            raise ValueError("maven_repository is required")
        self.config = config
        self.state = RepositoryState(
            repository_name=config.repository_name,
            local_base_path=str(config.maven_repository),
            remote_base_path=config.remote_root,
        )
        self._client = client
        self._owns_client = client is None
        self._cancel = threading.Event()
        self._started = False

    def cancel(self) -> None:
        self._cancel.set()

    def run(self) -> RepositoryState:
        if self._started:
            raise RuntimeError("scanner can only run once")
        self._started = True
        config = self.config
        client = self._client or build_client(config.http)

        artifacts: Channel[LocalArtifact] = Channel(config.queue_size, config.poll_interval)
        results: Channel[VerificationResult] = Channel(config.queue_size, config.poll_interval)
        walker = TreeWalker(
            config.maven_repository, artifacts, self._cancel, jars_only=config.jars_only
        )
        pool = VerifierPool(
            client,
            config.remote_root,
            config.repository_name,
            artifacts,
            results,
            self._cancel,
            workers=config.threads,
            method=config.http.method,
            verify_md5=config.checksums.md5,
            verify_sha1=config.checksums.sha1,
        )
        aggregator = ResultAggregator(
            self.state,
            verbose=config.verbose,
            progress=ScanProgress(config.observability.log_interval_sec),
        )

        logger.info(
            "scan started local=%s remote=%s/%s workers=%s method=%s",
            config.maven_repository,
            config.remote_root.rstrip("/"),
            config.repository_name,
            pool.size,
            config.http.method,
        )
        try:
            walker.start()
            pool.start()
            aggregator.consume(results, self._cancel)
            walker.join()
            if walker.error is not None:
                raise walker.error
        finally:
            self._cancel.set()
            walker.join()
            pool.join()
            if self._owns_client:
                client.close()
        return self.state


def run_scan(config: Config, client: Optional[httpx.Client] = None) -> RepositoryState:
    return Scanner(config, client=client).run()
