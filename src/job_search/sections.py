from __future__ import annotations

import enum
from collections.abc import Collection, Sequence

from job_search.models import Listing


class Section(enum.IntEnum):
    BOOKMARKED = 0
    OTHER = 1


Sections = dict[Section, list[Listing]]


def partition_listings(listings: Sequence[Listing], bookmarked_ids: Collection[int]) -> Sections:
    """Split listings into bookmarked and other sections, keeping the input order.

    Each bookmarked listing is taken out of ``other`` once; neither argument
    is mutated.
    """
    if not bookmarked_ids:
        return {Section.BOOKMARKED: [], Section.OTHER: list(listings)}

    wanted = set(bookmarked_ids)
    bookmarked: list[Listing] = []
    other: list[Listing] = []
    for listing in listings:
        if listing.job_id in wanted:
            bookmarked.append(listing)
        else:
            other.append(listing)
    return {Section.BOOKMARKED: bookmarked, Section.OTHER: other}
