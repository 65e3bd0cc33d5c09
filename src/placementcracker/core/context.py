"""Prompt assembly for the cover-letter and question-answer features.

Everything here is a pure function of its arguments: no clock, no randomness,
no database access. User text is interpolated with ``str.format`` so braces in
user content are never interpreted.
"""

from __future__ import annotations

from collections.abc import Sequence

from placementcracker.llm.prompts import (
    ANSWER_ADJUSTMENT_CLAUSE,
    ANSWER_GUIDANCE,
    ANSWER_PROMPT,
    ANSWER_WORD_LIMIT_CLAUSE,
    COVER_LETTER_PROMPT,
    NONE_PROVIDED,
)
from placementcracker.types import JobFacts, ListItem, ProfileFacts, SkillsFacts


def format_list_item(item: ListItem) -> str:
    return f"• {item.title} - {item.description}"


def format_list_block(items: Sequence[ListItem]) -> str:
    if not items:
        return NONE_PROVIDED
    return "\n".join(format_list_item(item) for item in items)


def build_cover_letter_prompt(profile: ProfileFacts, skills: SkillsFacts, job: JobFacts) -> str:
    return COVER_LETTER_PROMPT.format(
        full_name=profile.full_name,
        university=profile.university,
        year_of_study=profile.year_of_study,
        degree=profile.degree,
        technical_skills=skills.technical_skills,
        soft_skills=skills.soft_skills,
        extra_curriculars=format_list_block(skills.extra_curriculars),
        personal_projects=format_list_block(skills.personal_projects),
        job_title=job.title,
        category=job.category,
        description=job.description,
        company_name=job.company_name,
    )


def build_answer_prompt(
    skills: SkillsFacts,
    job: JobFacts,
    question: str,
    *,
    comment: str | None = None,
    word_limit: int | None = None,
) -> str:
    sections = [
        ANSWER_PROMPT.format(
            company_name=job.company_name,
            job_title=job.title,
            description=job.description,
            technical_skills=skills.technical_skills,
            soft_skills=skills.soft_skills,
            extra_curriculars=format_list_block(skills.extra_curriculars),
            personal_projects=format_list_block(skills.personal_projects),
            question=question.strip(),
        )
    ]
    if comment and comment.strip():
        sections.append(ANSWER_ADJUSTMENT_CLAUSE.format(comment=comment.strip()))
    if word_limit:
        sections.append(ANSWER_WORD_LIMIT_CLAUSE.format(word_limit=word_limit))
    sections.append(ANSWER_GUIDANCE)
    return "\n\n".join(sections)
