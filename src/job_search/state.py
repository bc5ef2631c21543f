from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass
from typing import Union

from job_search.models import Listing, SearchResult
from job_search.sections import Section, Sections, partition_listings


class ListingData:
    """One page of results, sectioned with bookmarked listings first.

    Compared by identity: two independently built instances are different
    even when they hold the same listings.
    """

    def __init__(self, page_size: int, current_page: int, listings_total: int, data: Sections):
        self.page_size = page_size
        self.current_page = current_page
        self.listings_total = listings_total
        self.data = data

    @classmethod
    def from_result(cls, result: SearchResult, bookmarked_ids: Collection[int]) -> ListingData:
        page_size = result.query.page_size
        skip = result.query.results_to_skip or 0
        return cls(
            page_size=page_size,
            current_page=skip // page_size,
            listings_total=result.response.total_results,
            data=partition_listings(result.response.results, bookmarked_ids),
        )

    def section(self, section: Section) -> list[Listing]:
        return self.data.get(section, [])

    @property
    def bookmarked(self) -> list[Listing]:
        return self.section(Section.BOOKMARKED)

    @property
    def other(self) -> list[Listing]:
        return self.section(Section.OTHER)

    def __repr__(self) -> str:
        return (
            f"ListingData(page={self.current_page}, page_size={self.page_size}, "
            f"total={self.listings_total}, bookmarked={len(self.bookmarked)}, other={len(self.other)})"
        )


@dataclass(frozen=True, eq=False)
class Idle:
    pass


@dataclass(frozen=True, eq=False)
class Loading:
    pass


@dataclass(frozen=True, eq=False)
class Error:
    cause: BaseException


@dataclass(frozen=True, eq=False)
class Loaded:
    listing_data: ListingData


SearchState = Union[Idle, Loading, Error, Loaded]

IDLE = Idle()
LOADING = Loading()


def states_equal(lhs: SearchState, rhs: SearchState) -> bool:
    """Whether ``rhs`` repeats ``lhs`` for the purpose of dropping duplicates.

    Same variant means equal, except ``Loaded`` which compares its listing
    data by identity so a fresh page is always delivered.
    """
    if isinstance(lhs, Loaded) and isinstance(rhs, Loaded):
        return lhs.listing_data is rhs.listing_data
    return type(lhs) is type(rhs)
