from __future__ import annotations

import enum

from job_search.models import JobType, ListingType, SearchQuery

QueryParams = list[tuple[str, str]]

JOB_TYPE_PARAMS: tuple[tuple[JobType, str], ...] = (
    (JobType.PERMANENT, "permanent"),
    (JobType.CONTRACT, "contract"),
    (JobType.TEMP, "temp"),
    (JobType.PART_TIME, "partTime"),
    (JobType.FULL_TIME, "fullTime"),
    (JobType.GRADUATE, "graduate"),
)
LISTING_TYPE_PARAMS: tuple[tuple[ListingType, str], ...] = (
    (ListingType.POSTED_BY_DIRECT_EMPLOYER, "postedByDirectEmployer"),
    (ListingType.POSTED_BY_RECRUITMENT_AGENCY, "postedByRecruitmentAgency"),
)


def format_number(value: float) -> str:
    return f"{value:.0f}"


def _append_text(params: QueryParams, name: str, value: str | None) -> None:
    if value:
        params.append((name, value))


def _append_number(params: QueryParams, name: str, value: float | None) -> None:
    if value is not None:
        params.append((name, format_number(value)))


def _append_flags(
    params: QueryParams, flags: enum.Flag, table: tuple[tuple[enum.Flag, str], ...]
) -> None:
    for flag, name in table:
        if flag in flags:
            params.append((name, "true"))


def to_query_params(query: SearchQuery) -> QueryParams:
    """Serialize a query into the ordered parameter list the search endpoint expects.

    The order of the pairs is part of the wire contract; unset fields produce
    no pair at all.
    """
    params: QueryParams = []
    _append_text(params, "employerId", query.employer_id)
    _append_text(params, "employerProfileId", query.employer_profile_id)
    _append_text(params, "keywords", query.keywords)
    _append_text(params, "locationName", query.location_name)
    _append_number(params, "distanceFromLocation", query.distance_from_location)
    _append_flags(params, query.job_types, JOB_TYPE_PARAMS)
    _append_number(params, "minimumSalary", query.minimum_salary)
    _append_number(params, "maximumSalary", query.maximum_salary)
    _append_flags(params, query.listing_types, LISTING_TYPE_PARAMS)
    _append_number(params, "resultsToTake", query.results_to_take)
    _append_number(params, "resultsToSkip", query.results_to_skip)
    return params
