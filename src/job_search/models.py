from __future__ import annotations

import datetime as dt
import enum
from dataclasses import dataclass, field, replace

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_PAGE_SIZE = 25
LISTING_DATE_FORMAT = "%d/%m/%Y"


class JobType(enum.Flag):
    NONE = 0
    PERMANENT = enum.auto()
    CONTRACT = enum.auto()
    TEMP = enum.auto()
    PART_TIME = enum.auto()
    FULL_TIME = enum.auto()
    GRADUATE = enum.auto()


class ListingType(enum.Flag):
    NONE = 0
    POSTED_BY_RECRUITMENT_AGENCY = enum.auto()
    POSTED_BY_DIRECT_EMPLOYER = enum.auto()


@dataclass(frozen=True)
class SearchQuery:
    """Filter and paging parameters for one search request.

    ``None`` (or an empty string) means the parameter is left out of the
    request so the server applies its own default.
    """

    employer_id: str | None = None
    employer_profile_id: str | None = None
    keywords: str | None = None
    location_name: str | None = None
    distance_from_location: int | None = None
    job_types: JobType = field(default=JobType.NONE)
    minimum_salary: float | None = None
    maximum_salary: float | None = None
    listing_types: ListingType = field(default=ListingType.NONE)
    results_to_take: int | None = None
    results_to_skip: int | None = None

    @property
    def page_size(self) -> int:
        return self.results_to_take or DEFAULT_PAGE_SIZE

    def with_keywords(self, keywords: str) -> SearchQuery:
        return replace(self, keywords=keywords)

    def with_page(self, page: int) -> SearchQuery:
        size = self.page_size
        return replace(self, results_to_take=size, results_to_skip=page * size)


class Listing(BaseModel):
    """A job listing as returned by the search endpoint.

    Two listings are the same listing when their ``job_id`` matches, whatever
    the other fields say.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    job_id: int
    employer_id: int
    employer_name: str
    employer_profile_id: int | None = None
    employer_profile_name: str | None = None
    job_title: str
    location_name: str
    minimum_salary: float | None = None
    maximum_salary: float | None = None
    currency: str | None = None
    expiration_date: dt.date
    date: dt.date
    job_description: str
    applications: int
    job_url: str

    @field_validator("expiration_date", "date", mode="before")
    @classmethod
    def _parse_listing_date(cls, value: object) -> object:
        if isinstance(value, str):
            return dt.datetime.strptime(value, LISTING_DATE_FORMAT).date()
        return value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Listing):
            return NotImplemented
        return self.job_id == other.job_id

    def __hash__(self) -> int:
        return hash(self.job_id)


class SearchResponse(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    results: list[Listing]
    total_results: int


@dataclass(frozen=True)
class SearchResult:
    query: SearchQuery
    response: SearchResponse
