from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import httpx
import pytest
import respx

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from mirrorcheck.main import (
    EXIT_LOST,
    EXIT_OK,
    EXIT_REPORT_FAILED,
    EXIT_SCAN_FAILED,
    EXIT_USAGE,
    main,
)

REMOTE = "http://mirror.test"


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _tree(root: Path) -> Path:
    repo = root / "repo"
    (repo / "org").mkdir(parents=True)
    (repo / "org" / "x-1.0.jar").write_bytes(b"x")
    return repo


def _args(repo: Path, *extra: str) -> list[str]:
    return ["--maven-repository", str(repo), "--nexus-root", REMOTE, "--threads", "3", *extra]


def test_missing_repository_is_usage_error(capsys: pytest.CaptureFixture) -> None:
    assert main([]) == EXIT_USAGE
    assert "--maven-repository" in capsys.readouterr().err


def test_missing_config_file_is_usage_error(tmp_path: Path) -> None:
    assert main(["--config", str(tmp_path / "absent.yaml")]) == EXIT_USAGE


def test_clean_scan_exits_ok(tmp_path: Path) -> None:
    repo = _tree(tmp_path)
    with respx.mock(assert_all_called=False) as router:
        router.head(f"{REMOTE}/ga/org/").respond(200)
        router.head(f"{REMOTE}/ga/org/x-1.0.jar").respond(200)
        assert main(_args(repo)) == EXIT_OK


def test_lost_artifacts_exit_and_report(tmp_path: Path) -> None:
    repo = _tree(tmp_path)
    report = tmp_path / "missing.json"
    with respx.mock(assert_all_called=False) as router:
        router.head(f"{REMOTE}/earlyaccess/org/").respond(302)
        router.head(f"{REMOTE}/earlyaccess/org/x-1.0.jar").respond(404)
        code = main(
            _args(
                repo,
                "--repository-name",
                "earlyaccess",
                "--verbose",
                "--json",
                "--json-path",
                str(report),
            )
        )
    assert code == EXIT_LOST
    payload = json.loads(report.read_text(encoding="utf-8"))
    assert payload["status"] == "complete"
    assert payload["lost_files"] == ["org/x-1.0.jar"]
    assert payload["lost_dirs"] == []


def test_transport_failure_exit_and_failed_report(tmp_path: Path) -> None:
    repo = _tree(tmp_path)
    report = tmp_path / "missing.json"
    with respx.mock(assert_all_called=False) as router:
        router.head(f"{REMOTE}/ga/org/").mock(side_effect=httpx.ConnectError)
        router.head(f"{REMOTE}/ga/org/x-1.0.jar").mock(side_effect=httpx.ConnectError)
        code = main(_args(repo, "--json", "--json-path", str(report)))
    assert code == EXIT_SCAN_FAILED
    payload = json.loads(report.read_text(encoding="utf-8"))
    assert payload["status"] == "failed"
    assert payload["error"]
    assert payload["lost_files"] == []


def test_get_flag_and_config_file(tmp_path: Path) -> None:
    repo = _tree(tmp_path)
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        f"maven_repository: {repo}\nremote_root: {REMOTE}\njars_only: true\n",
        encoding="utf-8",
    )
    with respx.mock(assert_all_called=False) as router:
        route = router.get(f"{REMOTE}/ga/org/x-1.0.jar").respond(200)
        assert main(["--config", str(config_path), "--get"]) == EXIT_OK
    assert route.call_count == 1


def test_unwritable_report_has_its_own_exit_code(tmp_path: Path) -> None:
    repo = _tree(tmp_path)
    report = tmp_path / "taken"
    report.mkdir()
    with respx.mock(assert_all_called=False) as router:
        router.head(f"{REMOTE}/ga/org/").respond(200)
        router.head(f"{REMOTE}/ga/org/x-1.0.jar").respond(404)
        code = main(_args(repo, "--json", "--json-path", str(report)))
    assert code == EXIT_REPORT_FAILED


def test_scan_failure_wins_over_report_failure(tmp_path: Path) -> None:
    repo = _tree(tmp_path)
    report = tmp_path / "taken"
    report.mkdir()
    with respx.mock(assert_all_called=False) as router:
        router.head(f"{REMOTE}/ga/org/").mock(side_effect=httpx.ConnectError)
        router.head(f"{REMOTE}/ga/org/x-1.0.jar").mock(side_effect=httpx.ConnectError)
        code = main(_args(repo, "--json", "--json-path", str(report)))
    assert code == EXIT_SCAN_FAILED
