from placementcracker.core.job_browser import facet_options, filter_jobs, paginate
from placementcracker.types import JobFilter, JobListing


def _jobs() -> list[JobListing]:
    return [
        JobListing(id=1, title="Data Analyst", company_name="Acme", category="Finance, Data", location="London, UK"),
        JobListing(id=2, title="Software Intern", company_name="Acme", category="Technology", location="Leeds"),
        JobListing(id=3, title="Audit Trainee", company_name="Beta", category="Finance", location="london"),
        JobListing(id=4, title="Quant Intern", company_name="Gamma", category="", location=""),
    ]


def test_no_active_filters_returns_everything() -> None:
    assert [job.id for job in filter_jobs(_jobs(), JobFilter())] == [1, 2, 3, 4]


def test_search_matches_title_or_company_case_insensitive() -> None:
    assert [job.id for job in filter_jobs(_jobs(), JobFilter(search="INTERN"))] == [2, 4]
    assert [job.id for job in filter_jobs(_jobs(), JobFilter(search="beta"))] == [3]


def test_company_filter_is_exact_and_all_disables_it() -> None:
    assert [job.id for job in filter_jobs(_jobs(), JobFilter(company="Acme"))] == [1, 2]
    assert len(filter_jobs(_jobs(), JobFilter(company="all"))) == 4
    assert filter_jobs(_jobs(), JobFilter(company="acme")) == []


def test_category_filter_matches_any_split_value() -> None:
    result = filter_jobs(_jobs(), JobFilter(categories=["Data", "Technology"]))
    assert [job.id for job in result] == [1, 2]


def test_location_filter_is_case_insensitive() -> None:
    result = filter_jobs(_jobs(), JobFilter(locations=["LONDON"]))
    assert [job.id for job in result] == [1, 3]


def test_company_and_category_compose_as_intersection() -> None:
    jobs = _jobs()
    by_company = {job.id for job in filter_jobs(jobs, JobFilter(company="Acme"))}
    by_category = {job.id for job in filter_jobs(jobs, JobFilter(categories=["Finance"]))}
    combined = {job.id for job in filter_jobs(jobs, JobFilter(company="Acme", categories=["Finance"]))}

    assert combined == by_company & by_category
    assert combined <= by_company
    assert combined <= by_category


def test_paginate_uses_fixed_page_size() -> None:
    jobs = [JobListing(id=index, title=f"Job {index}", company_name="Acme") for index in range(45)]

    first = paginate(jobs, page=1)
    last = paginate(jobs, page=3)
    beyond = paginate(jobs, page=4)

    assert len(first.items) == 20
    assert first.total_pages == 3
    assert [job.id for job in last.items] == list(range(40, 45))
    assert beyond.items == []
    assert paginate([], page=1).total_pages == 0


def test_facet_options_are_sorted_and_unique() -> None:
    facets = facet_options(_jobs())
    assert facets.companies == ["Acme", "Beta", "Gamma"]
    assert facets.categories == ["Data", "Finance", "Technology"]
    assert facets.locations == ["Leeds", "London", "UK", "london"]
