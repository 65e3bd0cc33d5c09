from __future__ import annotations

import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from types import SimpleNamespace

_TEST_DIR = Path(tempfile.mkdtemp(prefix="placementcracker-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'test.db'}"
os.environ["DATA_DIR"] = str(_TEST_DIR)
os.environ["APP_ENV"] = "test"
os.environ["OPENAI_API_KEY"] = ""
os.environ["TOKEN_COUNTER"] = "chars"
os.environ["COVER_LETTER_LIMIT_POLICY"] = "counting"
os.environ["ANSWER_LIMIT_POLICY"] = "counting"
os.environ["SECRET_KEY"] = "test-secret"

import pytest  # noqa: E402

from placementcracker.config import Settings  # noqa: E402
from placementcracker.db import models  # noqa: E402,F401
from placementcracker.db.base import Base  # noqa: E402
from placementcracker.db.repositories import Repository  # noqa: E402
from placementcracker.db.session import SessionLocal, engine  # noqa: E402
from placementcracker.llm.client import GenerationClient  # noqa: E402
from placementcracker.types import ListItem, ModelResponse, SkillsFacts  # noqa: E402


@pytest.fixture(autouse=True)
def reset_db() -> None:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    with SessionLocal() as session:
        yield session


class FakeProvider:
    """Stands in for LLMProvider; records every prompt it is asked to complete."""

    def __init__(self, reply: str | Callable[[str], str] = "Generated text", *, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []

    def complete_text(self, *, model: str, prompt: str, instructions: str) -> ModelResponse:
        self.calls.append({"model": model, "prompt": prompt, "instructions": instructions})
        if self.error is not None:
            raise self.error
        content = self.reply(prompt) if callable(self.reply) else self.reply
        return ModelResponse(content=content, raw={"api_path": "fake"})


def make_client(provider: FakeProvider, settings: Settings | None = None) -> GenerationClient:
    return GenerationClient(settings or Settings(), provider=provider)


def seed_world(db, *, email: str = "student@example.com", job_count: int = 3) -> SimpleNamespace:
    repo = Repository(db)
    user = repo.create_user(email)
    repo.create_usage_counter(user.id, cover_letter_credits=2, answer_credits=2)
    repo.upsert_profile(
        user.id,
        {
            "full_name": "Ada Lovelace",
            "university": "University of London",
            "year_of_study": "2",
            "degree": "BSc Mathematics",
        },
    )
    repo.upsert_skills_profile(
        user.id,
        SkillsFacts(
            technical_skills="Python, SQL",
            soft_skills="Communication",
            extra_curriculars=[ListItem(title="Chess Club", description="Captain")],
            personal_projects=[ListItem(title="Analytical Engine", description="Notes and programs")],
        ),
    )
    company = repo.get_or_create_company("Babbage & Co")
    jobs = [
        repo.create_job(
            company_id=company.id,
            title=f"Analyst Intern {index}",
            description="Model things.",
            location="London, UK",
            category="Finance, Technology",
        )
        for index in range(1, job_count + 1)
    ]
    return SimpleNamespace(user=user, company=company, jobs=jobs)


@pytest.fixture
def provider_factory() -> type[FakeProvider]:
    return FakeProvider


@pytest.fixture
def client_for() -> Callable[..., GenerationClient]:
    return make_client


@pytest.fixture
def world(db) -> SimpleNamespace:
    return seed_world(db)


@pytest.fixture
def seed(db) -> Callable[..., SimpleNamespace]:
    return lambda **kwargs: seed_world(db, **kwargs)
