from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import List, Optional

from .config import Config, load_config
from .errors import ScanError
from .logging_ import setup_logging
from .report import write_report
from .scan import Scanner

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_LOST = 1
EXIT_SCAN_FAILED = 2
EXIT_USAGE = 3
EXIT_REPORT_FAILED = 4


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mirrorcheck",
        description="Check that every artifact of a local repository exists on a remote mirror",
    )
    parser.add_argument("--config", default=None, help="optional YAML config file")
    parser.add_argument(
        "--maven-repository",
        default=None,
        help="path to directory containing the exploded maven-repository. Required",
    )
    parser.add_argument(
        "--repository-name",
        default=None,
        help="repository name or release group to test (default: ga)",
    )
    parser.add_argument("--nexus-root", default=None, help="remote repository base URL")
    parser.add_argument(
        "--jars-only", action="store_true", default=None, help="check .jar files only"
    )
    parser.add_argument(
        "--get",
        action="store_true",
        default=None,
        help="request with GET instead of HEAD, for servers that mishandle HEAD",
    )
    parser.add_argument("--md5", action="store_true", default=None, help="verify .md5 sidecars")
    parser.add_argument("--sha1", action="store_true", default=None, help="verify .sha1 sidecars")
    parser.add_argument(
        "--verbose", action="store_true", default=None, help="log the result for each file/folder"
    )
    parser.add_argument(
        "--json", action="store_true", default=None, help="dump missing artifacts to a .json file"
    )
    parser.add_argument("--json-path", default=None, help="report path used with --json")
    parser.add_argument("--threads", type=int, default=None, help="number of parallel workers")
    parser.add_argument("--log-level", default=None, help="logging level (default: INFO)")
    return parser


def resolve_config(args: argparse.Namespace) -> Config:
    config = load_config(args.config) if args.config else Config()
    if args.maven_repository is not None:
        config.maven_repository = Path(args.maven_repository)
    if args.repository_name is not None:
        config.repository_name = args.repository_name
    if args.nexus_root is not None:
        config.remote_root = args.nexus_root
    if args.jars_only:
        config.jars_only = True
    if args.get:
        config.http.method = "GET"
    if args.md5:
        config.checksums.md5 = True
    if args.sha1:
        config.checksums.sha1 = True
    if args.verbose:
        config.verbose = True
    if args.json:
        config.report.enabled = True
    if args.json_path is not None:
        config.report.path = Path(args.json_path)
    if args.threads is not None:
        config.threads = max(1, args.threads)
    if args.log_level is not None:
        config.log_level = args.log_level
    return config


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = resolve_config(args)
    except (OSError, ValueError) as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    if config.maven_repository is None:
        print("Required arg is missed: --maven-repository", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return EXIT_USAGE

    setup_logging(
        config.log_level,
        log_dir=config.logging.dir,
        log_file=config.logging.file_name,
        max_mb=config.logging.max_mb,
        backup_count=config.logging.backup_count,
        use_json=config.logging.json,
        to_console=config.logging.to_console,
    )

    scanner = Scanner(config)
    error: Optional[ScanError] = None

    def _handle_signal(signum, frame):
        logger.info("shutdown requested")
        scanner.cancel()

    previous = {sig: signal.signal(sig, _handle_signal) for sig in (signal.SIGINT, signal.SIGTERM)}
    try:
        scanner.run()
    except ScanError as exc:
        error = exc
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)

    state = scanner.state
    report_failed = False
    if config.report.enabled:
        try:
            report_path = write_report(state, config.report.path, error)
        except OSError as exc:
            logger.error("report write failed path=%s: %s", config.report.path, exc)
            report_failed = True
        else:
            logger.info("report saved path=%s", report_path)

    if error is not None:
        logger.error(
            "scan failed: %s (partial: lost_dirs=%s lost_files=%s)",
            error,
            len(state.lost_dirs),
            len(state.lost_files),
        )
        return EXIT_SCAN_FAILED

    logger.info(
        "scan complete repo=%s checked_files=%s checked_dirs=%s "
        "lost_dirs=%s lost_files=%s mismatched_files=%s",
        state.repository_name,
        state.checked_files,
        state.checked_dirs,
        len(state.lost_dirs),
        len(state.lost_files),
        len(state.mismatched_files),
    )
    for path in state.lost_dirs:
        logger.warning("lost dir: %s", path)
    for path in state.lost_files:
        logger.warning("lost file: %s", path)
    for path in state.mismatched_files:
        logger.warning("checksum mismatch: %s", path)
    if report_failed:
        return EXIT_REPORT_FAILED
    return EXIT_LOST if state.has_lost else EXIT_OK


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
