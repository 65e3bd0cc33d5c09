from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from placementcracker.types import JobFacets, JobFilter, JobListing, JobPage

PAGE_SIZE = 20


def split_values(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()] if raw else []


def matches(job: JobListing, job_filter: JobFilter) -> bool:
    search = job_filter.search.strip().lower()
    if search and search not in job.title.lower() and search not in job.company_name.lower():
        return False

    if job_filter.company and job_filter.company != "all" and job.company_name != job_filter.company:
        return False

    if job_filter.categories:
        categories = split_values(job.category)
        if not any(category in job_filter.categories for category in categories):
            return False

    if job_filter.locations:
        locations = [location.lower() for location in split_values(job.location)]
        if not any(selected.lower() in locations for selected in job_filter.locations):
            return False

    return True


def filter_jobs(jobs: Iterable[JobListing], job_filter: JobFilter) -> list[JobListing]:
    return [job for job in jobs if matches(job, job_filter)]


def paginate(jobs: Sequence[JobListing], page: int = 1, page_size: int = PAGE_SIZE) -> JobPage:
    page = max(page, 1)
    start = (page - 1) * page_size
    return JobPage(
        items=list(jobs[start : start + page_size]),
        page=page,
        page_size=page_size,
        total=len(jobs),
        total_pages=math.ceil(len(jobs) / page_size),
    )


def facet_options(jobs: Iterable[JobListing]) -> JobFacets:
    companies: set[str] = set()
    categories: set[str] = set()
    locations: set[str] = set()
    for job in jobs:
        companies.add(job.company_name)
        categories.update(split_values(job.category))
        locations.update(split_values(job.location))
    return JobFacets(
        companies=sorted(companies),
        categories=sorted(categories),
        locations=sorted(locations),
    )
