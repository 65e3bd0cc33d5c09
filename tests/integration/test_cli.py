from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from placementcracker.api.auth import decode_access_token
from placementcracker.cli.app import app

runner = CliRunner()


def _invoke(*args: str) -> dict:
    result = runner.invoke(app, list(args))
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_user_create_issues_token_and_default_credits() -> None:
    created = _invoke("user", "create", "--email", "Cli.User@Example.com")

    assert created["email"] == "cli.user@example.com"
    assert decode_access_token(created["token"]) == created["id"]

    granted = _invoke("credits", "grant", "--email", "cli.user@example.com", "--feature", "answer", "--amount", "3")
    assert granted["answer_credits"] == 8
    assert granted["cover_letter_credits"] == 5


def test_duplicate_user_is_rejected() -> None:
    _invoke("user", "create", "--email", "dup@example.com")
    result = runner.invoke(app, ["user", "create", "--email", "dup@example.com"])
    assert result.exit_code != 0


def test_jobs_import_then_list(tmp_path: Path) -> None:
    feed = tmp_path / "jobs.json"
    feed.write_text(
        json.dumps(
            [
                {"company": "Acme", "title": "Data Intern", "category": "Data", "deadline": "2026-12-01"},
                {"company": "Acme", "title": "Audit Intern", "category": "Finance"},
                {"company": "Beta", "title": "Ops Intern", "location": "Leeds"},
            ]
        ),
        encoding="utf-8",
    )

    imported = _invoke("jobs", "import", "--file", str(feed))
    assert [item["company"] for item in imported["imported"]] == ["Acme", "Acme", "Beta"]

    listed = _invoke("jobs", "list", "--company", "Acme", "--category", "Data")
    assert listed["total"] == 1
    assert listed["items"][0]["title"] == "Data Intern"
    assert listed["items"][0]["deadline"] == "2026-12-01"
