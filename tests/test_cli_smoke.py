import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

pytest.importorskip("typer")

PYTHONPATH = str(Path(__file__).resolve().parents[1] / "src")


def _run(*args, dsn):
    env = {**os.environ, "FG_DB_DSN": dsn, "PYTHONPATH": PYTHONPATH}
    return subprocess.run(
        [sys.executable, "-m", "form_graph.cli.main", *args],
        capture_output=True,
        text=True,
        env=env,
    )


def test_cli_smoke(tmp_path) -> None:
    dsn = f"sqlite:///{tmp_path / 'cli.sqlite'}"
    seeded = _run("seed-demo", "--days", "10", dsn=dsn)
    assert seeded.returncode == 0, seeded.stderr
    assert "inserted" in seeded.stdout

    forms = _run("forms", dsn=dsn)
    assert forms.returncode == 0
    assert "Contact Form" in forms.stdout

    table = _run("report", "--form", "1", "--form", "2", "--range", "7", dsn=dsn)
    assert table.returncode == 0, table.stderr
    assert "total:" in table.stdout
    assert "conversion:" in table.stdout

    raw = _run("report", "-f", "1", "--grouping", "weekly", "--range", "30", "--json", dsn=dsn)
    assert raw.returncode == 0, raw.stderr
    payload = json.loads(raw.stdout)
    assert payload["grouping"] == "weekly"
    assert payload["datasets"][0]["label"] == "Contact Form"


def test_cli_reports_invalid_request(tmp_path) -> None:
    dsn = f"sqlite:///{tmp_path / 'cli.sqlite'}"
    result = _run("report", "-f", "1", dsn=dsn)
    assert result.returncode == 1
    assert "Invalid date range" in result.stdout
