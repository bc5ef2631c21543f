import datetime as dt

from job_search.models import Listing, SearchQuery, SearchResponse, SearchResult
from job_search.sections import Section, partition_listings
from job_search.state import (
    IDLE,
    LOADING,
    Error,
    Idle,
    ListingData,
    Loaded,
    states_equal,
)


def _listing(job_id: int) -> Listing:
    return Listing(
        job_id=job_id,
        employer_id=1,
        employer_name="Acme Ltd",
        job_title=f"Job {job_id}",
        location_name="London",
        expiration_date=dt.date(2021, 9, 24),
        date=dt.date(2021, 8, 13),
        job_description="",
        applications=0,
        job_url=f"https://example.com/{job_id}",
    )


def _ids(listings: list[Listing]) -> list[int]:
    return [listing.job_id for listing in listings]


def test_no_bookmarks_keeps_every_listing_in_other() -> None:
    listings = [_listing(3), _listing(1), _listing(2)]

    sections = partition_listings(listings, set())

    assert sections[Section.BOOKMARKED] == []
    assert _ids(sections[Section.OTHER]) == [3, 1, 2]


def test_bookmarked_listings_move_to_first_section_in_order() -> None:
    listings = [_listing(5), _listing(4), _listing(3), _listing(2), _listing(1)]

    sections = partition_listings(listings, {1, 4})

    assert list(sections) == [Section.BOOKMARKED, Section.OTHER]
    assert _ids(sections[Section.BOOKMARKED]) == [4, 1]
    assert _ids(sections[Section.OTHER]) == [5, 3, 2]


def test_duplicate_bookmark_ids_remove_listing_once() -> None:
    listings = [_listing(1), _listing(2)]

    sections = partition_listings(listings, [2, 2, 2])

    assert _ids(sections[Section.BOOKMARKED]) == [2]
    assert _ids(sections[Section.OTHER]) == [1]


def test_bookmarks_missing_from_page_are_ignored() -> None:
    sections = partition_listings([_listing(1)], {99})

    assert sections[Section.BOOKMARKED] == []
    assert _ids(sections[Section.OTHER]) == [1]


def test_partition_does_not_mutate_inputs() -> None:
    listings = [_listing(1), _listing(2)]
    bookmarked = {2}

    partition_listings(listings, bookmarked)

    assert _ids(listings) == [1, 2]
    assert bookmarked == {2}


def test_listing_data_uses_page_size_of_its_query() -> None:
    query = SearchQuery(keywords="python", results_to_take=10, results_to_skip=30)
    response = SearchResponse(results=[_listing(1), _listing(2)], total_results=57)

    data = ListingData.from_result(SearchResult(query, response), {2})

    assert data.page_size == 10
    assert data.current_page == 3
    assert data.listings_total == 57
    assert _ids(data.bookmarked) == [2]
    assert _ids(data.other) == [1]


def test_listing_data_defaults_to_first_page() -> None:
    response = SearchResponse(results=[], total_results=0)

    data = ListingData.from_result(SearchResult(SearchQuery(), response), set())

    assert data.page_size == 25
    assert data.current_page == 0


def test_states_of_same_variant_are_equal_except_loaded() -> None:
    response = SearchResponse(results=[_listing(1)], total_results=1)
    result = SearchResult(SearchQuery(), response)
    first = ListingData.from_result(result, set())
    second = ListingData.from_result(result, set())

    assert states_equal(IDLE, Idle())
    assert states_equal(LOADING, LOADING)
    assert states_equal(Error(RuntimeError("a")), Error(ValueError("b")))
    assert states_equal(Loaded(first), Loaded(first))
    assert not states_equal(Loaded(first), Loaded(second))
    assert not states_equal(IDLE, LOADING)
    assert not states_equal(IDLE, Loaded(first))
