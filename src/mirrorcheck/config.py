from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_REMOTE_ROOT = "https://maven.repository.redhat.com"
DEFAULT_REPOSITORY_NAME = "ga"
VALID_METHODS = {"HEAD", "GET"}


@dataclass
class HttpConfig:
    method: str = "HEAD"
    max_keepalive_connections: int = 10
    keepalive_expiry_seconds: float = 30.0
    timeout_seconds: Optional[float] = 30.0
    user_agent: str = "mirrorcheck/0.1"


@dataclass
class ChecksumConfig:
    md5: bool = False
    sha1: bool = False


@dataclass
class ReportConfig:
    enabled: bool = False
    path: Path = Path("missing-artifacts.json")


@dataclass
class ObservabilityConfig:
    log_interval_sec: int = 30


@dataclass
class LoggingConfig:
    dir: Optional[Path] = None
    file_name: str = "mirrorcheck.log"
    max_mb: int = 20
    backup_count: int = 5
    json: bool = False
    to_console: bool = True


@dataclass
class Config:
    maven_repository: Optional[Path] = None
    repository_name: str = DEFAULT_REPOSITORY_NAME
    remote_root: str = DEFAULT_REMOTE_ROOT
    jars_only: bool = False
    verbose: bool = False
    threads: int = 20
    queue_size: int = 64
    poll_interval_ms: int = 100
    log_level: str = "INFO"
    http: HttpConfig = field(default_factory=HttpConfig)
    checksums: ChecksumConfig = field(default_factory=ChecksumConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    observability: ObservabilityConfig = field(default_factory=ObservabilityConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def poll_interval(self) -> float:
        return max(1, int(self.poll_interval_ms)) / 1000.0


def load_config(path: str | Path) -> Config:
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"config file not found: {config_path}")

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError("config root must be a mapping")
    return config_from_dict(raw)


def config_from_dict(raw: Dict[str, Any]) -> Config:
    maven_repository = raw.get("maven_repository")

    http_raw = _as_dict(raw.get("http"))
    method = str(http_raw.get("method", "HEAD")).upper()
    if method not in VALID_METHODS:
        raise ValueError(f"http.method must be one of {sorted(VALID_METHODS)}: {method}")
    timeout_value = http_raw.get("timeout_seconds", 30.0)
    http = HttpConfig(
        method=method,
        max_keepalive_connections=int(http_raw.get("max_keepalive_connections", 10)),
        keepalive_expiry_seconds=float(http_raw.get("keepalive_expiry_seconds", 30.0)),
        timeout_seconds=float(timeout_value) if timeout_value is not None else None,
        user_agent=str(http_raw.get("user_agent", "mirrorcheck/0.1")),
    )

    checksums_raw = _as_dict(raw.get("checksums"))
    checksums = ChecksumConfig(
        md5=bool(checksums_raw.get("md5", False)),
        sha1=bool(checksums_raw.get("sha1", False)),
    )

    report_raw = _as_dict(raw.get("report"))
    report = ReportConfig(
        enabled=bool(report_raw.get("enabled", False)),
        path=Path(report_raw.get("path", "missing-artifacts.json")),
    )

    observability_raw = _as_dict(raw.get("observability"))
    observability = ObservabilityConfig(
        log_interval_sec=int(observability_raw.get("log_interval_sec", 30)),
    )

    logging_raw = _as_dict(raw.get("logging"))
    log_dir = logging_raw.get("dir")
    logging_config = LoggingConfig(
        dir=Path(log_dir) if log_dir else None,
        file_name=str(logging_raw.get("file_name", "mirrorcheck.log")),
        max_mb=int(logging_raw.get("max_mb", 20)),
        backup_count=int(logging_raw.get("backup_count", 5)),
        json=bool(logging_raw.get("json", False)),
        to_console=bool(logging_raw.get("to_console", True)),
    )

    return Config(
        maven_repository=Path(maven_repository) if maven_repository else None,
        repository_name=str(raw.get("repository_name", DEFAULT_REPOSITORY_NAME)),
        remote_root=str(raw.get("remote_root", DEFAULT_REMOTE_ROOT)),
        jars_only=bool(raw.get("jars_only", False)),
        verbose=bool(raw.get("verbose", False)),
        threads=max(1, int(raw.get("threads", 20))),
        queue_size=max(1, int(raw.get("queue_size", 64))),
        poll_interval_ms=int(raw.get("poll_interval_ms", 100)),
        log_level=str(raw.get("log_level", "INFO")),
        http=http,
        checksums=checksums,
        report=report,
        observability=observability,
        logging=logging_config,
    )


def _as_dict(value: Any) -> Dict[str, Any]:
    if isinstance(value, dict):
        return value
    return {}
