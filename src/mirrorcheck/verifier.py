from __future__ import annotations

import logging
import threading
from typing import List, Optional, Tuple

import httpx

from .channel import Channel
from .config import HttpConfig
from .models import LocalArtifact, VerificationResult

logger = logging.getLogger(__name__)

SIDECAR_ALGORITHMS = ("md5", "sha1")
SIDECAR_SKIP_SUFFIXES = (".md5", ".sha1", ".sha256", ".sha512", ".asc")
TRANSPORT_ERRORS = (httpx.HTTPError, httpx.InvalidURL)
SMALL_BODY_LIMIT = 64 * 1024


def build_url(remote_base: str, repository_name: str, relative_path: str) -> str:
    return remote_base.rstrip("/") + "/" + repository_name + "/" + relative_path


def build_client(http_config: HttpConfig) -> httpx.Client:
    limits = httpx.Limits(
        max_connections=None,
        max_keepalive_connections=max(1, int(http_config.max_keepalive_connections)),
        keepalive_expiry=float(http_config.keepalive_expiry_seconds),
    )
    return httpx.Client(
        limits=limits,
        timeout=httpx.Timeout(http_config.timeout_seconds),
        follow_redirects=False,
        headers={
            "Accept-Encoding": "identity",
            "User-Agent": http_config.user_agent,
        },
    )


class VerifierPool:
    """Fixed set of worker threads checking artifacts against the remote mirror.

    Every consumed artifact yields exactly one result unless the cancel event
    fires first. The results channel is closed once all workers have exited.
    """

    def __init__(
        self,
        client: httpx.Client,
        remote_base: str,
        repository_name: str,
        artifacts: Channel[LocalArtifact],
        results: Channel[VerificationResult],
        cancel: threading.Event,
        workers: int = 20,
        method: str = "HEAD",
        verify_md5: bool = False,
        verify_sha1: bool = False,
    ) -> None:
        self._client = client
        self._remote_base = remote_base
        self._repository_name = repository_name
        self._artifacts = artifacts
        self._results = results
        self._cancel = cancel
        self._method = method.upper()
        self._sidecars = tuple(
            algo
            for algo, enabled in zip(SIDECAR_ALGORITHMS, (verify_md5, verify_sha1))
            if enabled
        )
        self._workers: List[threading.Thread] = [
            threading.Thread(
                target=self._work, name=f"mirrorcheck-verifier-{idx}", daemon=True
            )
            for idx in range(max(1, int(workers)))
        ]
        self._closer = threading.Thread(
            target=self._close_when_done, name="mirrorcheck-closer", daemon=True
        )

    @property
    def size(self) -> int:
        return len(self._workers)

    def start(self) -> None:
        for worker in self._workers:
            worker.start()
        self._closer.start()

    def join(self, timeout: Optional[float] = None) -> None:
        for thread in [*self._workers, self._closer]:
            if thread.ident is not None:
                thread.join(timeout=timeout)

    def _close_when_done(self) -> None:
        for worker in self._workers:
            worker.join()
        self._results.close(self._cancel)

    def _work(self) -> None:
        for artifact in self._artifacts.drain(self._cancel):
            try:
                result = self.check(artifact)
            except Exception as exc:
                logger.exception("failed to check artifact path=%s", artifact.path)
                result = VerificationResult(
                    path=artifact.path,
                    url=build_url(self._remote_base, self._repository_name, artifact.path),
                    is_dir=artifact.is_dir,
                    check_error=exc,
                )
            if not self._results.put(result, self._cancel):
                return

    def check(self, artifact: LocalArtifact) -> VerificationResult:
        url = build_url(self._remote_base, self._repository_name, artifact.path)
        result = VerificationResult(path=artifact.path, url=url, is_dir=artifact.is_dir)
        try:
            status_code, status_text = self._fetch_status(url)
        except TRANSPORT_ERRORS as exc:
            logger.debug("request failed url=%s error=%s", url, exc)
            result.transport_error = exc
            return result
        result.status_code = status_code
        result.status_text = status_text
        if artifact.is_dir or status_code != 200 or not self._sidecars:
            return result
        if artifact.path.endswith(SIDECAR_SKIP_SUFFIXES):
            return result
        try:
            result.checksum_mismatches = self._compare_sidecars(url, artifact)
        except TRANSPORT_ERRORS as exc:
            logger.debug("checksum request failed url=%s error=%s", url, exc)
            result.transport_error = exc
        return result

    def _fetch_status(self, url: str) -> Tuple[int, str]:
        with self._client.stream(self._method, url) as response:
            # an unread body makes httpx drop the connection instead of pooling it
            if self._method == "GET" and is_small_body(response):
                response.read()
            return response.status_code, _status_text(response)

    def _compare_sidecars(self, url: str, artifact: LocalArtifact) -> Tuple[str, ...]:
        mismatches = []
        for algo in self._sidecars:
            sidecar_url = f"{url}.{algo}"
            response = self._client.get(sidecar_url)
            if response.status_code != 200:
                logger.debug(
                    "checksum unavailable url=%s status=%s", sidecar_url, response.status_code
                )
                continue
            remote = _first_token(response.text)
            local = getattr(artifact, algo)
            if remote.lower() != local.lower():
                logger.debug(
                    "checksum mismatch path=%s algo=%s local=%s remote=%s",
                    artifact.path,
                    algo,
                    local,
                    remote,
                )
                mismatches.append(algo)
        return tuple(mismatches)


def is_small_body(response: httpx.Response) -> bool:
    length = response.headers.get("Content-Length")
    if length is None or not length.isdigit():
        return False
    return int(length) <= SMALL_BODY_LIMIT


def _status_text(response: httpx.Response) -> str:
    return f"{response.status_code} {response.reason_phrase}".strip()


def _first_token(body: str) -> str:
    parts = body.split()
    if not parts:
        return ""
    return parts[0]
