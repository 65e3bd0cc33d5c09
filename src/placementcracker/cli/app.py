from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Optional

import typer
import uvicorn

from placementcracker.api.app import create_app
from placementcracker.api.auth import create_access_token
from placementcracker.config import get_settings
from placementcracker.core.job_browser import filter_jobs, paginate
from placementcracker.db.init import init_database
from placementcracker.db.repositories import Repository
from placementcracker.db.session import SessionLocal
from placementcracker.logging_config import configure_logging
from placementcracker.types import JobFilter

app = typer.Typer(help="PlacementCracker CLI")
user_app = typer.Typer(help="Manage accounts and access tokens")
credits_app = typer.Typer(help="Manage generation credits")
jobs_app = typer.Typer(help="Job board commands")

app.add_typer(user_app, name="user")
app.add_typer(credits_app, name="credits")
app.add_typer(jobs_app, name="jobs")

_INITIALIZED = False


def ensure_initialized() -> None:
    global _INITIALIZED
    if _INITIALIZED:
        return
    init_database()
    _INITIALIZED = True


@app.command("init")
def init_cmd() -> None:
    """Initialize the data directory and database tables."""
    configure_logging()
    result = init_database()
    typer.echo(json.dumps({"ok": True, **result}, indent=2))


@app.command("serve")
def serve_cmd(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port"),
) -> None:
    """Run the HTTP API."""
    configure_logging()
    settings = get_settings()
    uvicorn.run(create_app(), host=host or settings.app_host, port=port or settings.app_port)


@user_app.command("create")
def user_create(email: str = typer.Option(..., "--email")) -> None:
    configure_logging()
    ensure_initialized()
    settings = get_settings()
    with SessionLocal() as db:
        repo = Repository(db)
        if repo.get_user_by_email(email):
            raise typer.BadParameter(f"user {email} already exists")
        user = repo.create_user(email)
        repo.create_usage_counter(
            user.id,
            cover_letter_credits=settings.default_cover_letter_credits,
            answer_credits=settings.default_answer_credits,
        )
        typer.echo(
            json.dumps(
                {"id": user.id, "email": user.email, "token": create_access_token(user.id)},
                indent=2,
            )
        )


@user_app.command("token")
def user_token(email: str = typer.Option(..., "--email")) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        user = Repository(db).get_user_by_email(email)
        if user is None:
            raise typer.BadParameter(f"user {email} not found")
        typer.echo(json.dumps({"id": user.id, "token": create_access_token(user.id)}, indent=2))


@credits_app.command("grant")
def credits_grant(
    email: str = typer.Option(..., "--email"),
    feature: str = typer.Option(..., "--feature", help="cover_letter or answer"),
    amount: int = typer.Option(1, "--amount"),
) -> None:
    configure_logging()
    ensure_initialized()
    if feature not in {"cover_letter", "answer"}:
        raise typer.BadParameter("feature must be cover_letter or answer")

    with SessionLocal() as db:
        repo = Repository(db)
        user = repo.get_user_by_email(email)
        if user is None:
            raise typer.BadParameter(f"user {email} not found")
        if repo.get_usage_counter(user.id) is None:
            repo.create_usage_counter(user.id)
        counter = repo.grant_credits(user.id, feature, amount)
        typer.echo(
            json.dumps(
                {
                    "user_id": user.id,
                    "cover_letter_credits": counter.cover_letter_credits,
                    "answer_credits": counter.answer_credits,
                },
                indent=2,
            )
        )


@jobs_app.command("import")
def jobs_import(file: Path = typer.Option(..., "--file", exists=True, readable=True)) -> None:
    """Load job postings from a JSON list of objects with a ``company`` name."""
    configure_logging()
    ensure_initialized()
    payload = json.loads(file.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = [payload]

    imported = []
    with SessionLocal() as db:
        repo = Repository(db)
        for item in payload:
            company = repo.get_or_create_company(item["company"])
            deadline = item.get("deadline")
            job = repo.create_job(
                company_id=company.id,
                title=item["title"],
                description=item.get("description", ""),
                location=item.get("location", ""),
                category=item.get("category", ""),
                job_type=item.get("job_type", ""),
                salary=item.get("salary", ""),
                url=item.get("url", ""),
                deadline=date.fromisoformat(deadline) if deadline else None,
            )
            imported.append({"id": job.id, "title": job.title, "company": company.name})
    typer.echo(json.dumps({"imported": imported}, indent=2))


@jobs_app.command("list")
def jobs_list(
    search: str = typer.Option("", "--search"),
    company: Optional[str] = typer.Option(None, "--company"),
    category: list[str] = typer.Option([], "--category"),
    location: list[str] = typer.Option([], "--location"),
    page: int = typer.Option(1, "--page", min=1),
) -> None:
    configure_logging()
    ensure_initialized()
    with SessionLocal() as db:
        jobs = Repository(db).list_job_listings()
    job_filter = JobFilter(search=search, company=company, categories=category, locations=location)
    result = paginate(filter_jobs(jobs, job_filter), page=page, page_size=get_settings().job_page_size)
    typer.echo(result.model_dump_json(indent=2))


if __name__ == "__main__":
    app()
