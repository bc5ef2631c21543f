from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import threading

from job_search.client import JobSearchRepository, SearchClient
from job_search.config import (
    RUN_REQUIRED_ENVS,
    Settings,
    assert_required_envs,
    load_settings,
    mask_secret,
    missing_envs,
)
from job_search.models import SearchQuery
from job_search.orchestrator import EventStream, PageTrigger, SearchOrchestrator
from job_search.sections import Section
from job_search.state import Error, Idle, ListingData, Loaded, Loading, SearchState
from job_search.storage import BookmarkStore

MORE_COMMAND = "+"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="job-search")
    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Run a single keyword search")
    search_parser.add_argument("keywords")
    search_parser.add_argument("--page", type=int, default=0)
    search_parser.add_argument("--location", default=None)

    subparsers.add_parser(
        "watch",
        help=f"Search as you type: one keyword per line, '{MORE_COMMAND}' loads the next page",
    )
    subparsers.add_parser("healthcheck", help="Validate config and local runtime readiness")

    bookmark_parser = subparsers.add_parser("bookmark", help="Manage bookmarked listings")
    bookmark_sub = bookmark_parser.add_subparsers(dest="bookmark_command", required=True)
    for name in ("add", "remove"):
        sub = bookmark_sub.add_parser(name)
        sub.add_argument("job_id", type=int)
    bookmark_sub.add_parser("list")

    return parser


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def format_listing_data(data: ListingData) -> str:
    lines = [
        f"page {data.current_page + 1} | {data.page_size} per page | {data.listings_total} total"
    ]
    titles = {Section.BOOKMARKED: "Bookmarked", Section.OTHER: "Results"}
    for section in Section:
        listings = data.section(section)
        if not listings:
            continue
        lines.append(titles[section])
        for listing in listings:
            lines.append(
                f"- [{listing.job_id}] {listing.job_title} ({listing.employer_name}, "
                f"{listing.location_name})"
            )
    return "\n".join(lines)


def format_state(state: SearchState) -> str:
    if isinstance(state, Idle):
        return "type some keywords to search"
    if isinstance(state, Loading):
        return "searching..."
    if isinstance(state, Error):
        return f"search failed: {state.cause}"
    if isinstance(state, Loaded):
        return format_listing_data(state.listing_data)
    raise TypeError(f"unknown search state: {state!r}")


async def _run_search(settings: Settings, query: SearchQuery) -> str:
    with BookmarkStore(settings.bookmark_db_path) as store:
        bookmarked = store.ids()
    async with SearchClient.from_settings(settings) as client:
        result = await JobSearchRepository(client).perform_search(query)
    return format_listing_data(ListingData.from_result(result, bookmarked))


def _cmd_search(args: argparse.Namespace) -> int:
    settings = load_settings()
    assert_required_envs(RUN_REQUIRED_ENVS)
    _configure_logging(settings)

    query = SearchQuery(
        keywords=args.keywords,
        location_name=args.location,
        results_to_take=settings.page_size,
    ).with_page(args.page)
    try:
        print(asyncio.run(_run_search(settings, query)))
    except Exception as exc:
        print(f"search failed: {exc}")
        return 1
    return 0


def handle_input_line(line: str, keywords: EventStream[str], pages: PageTrigger) -> None:
    text = line.rstrip("\n")
    if text.strip() == MORE_COMMAND:
        pages.more()
    else:
        keywords.send(text)


def _close_inputs(keywords: EventStream[str], pages: PageTrigger) -> None:
    keywords.close()
    pages.close()


def _start_stdin_reader(
    loop: asyncio.AbstractEventLoop, keywords: EventStream[str], pages: PageTrigger
) -> threading.Thread:
    # Daemon thread: a blocked readline must not keep the process alive on Ctrl-C.
    def read() -> None:
        try:
            for line in sys.stdin:
                loop.call_soon_threadsafe(handle_input_line, line, keywords, pages)
            loop.call_soon_threadsafe(_close_inputs, keywords, pages)
        except RuntimeError:
            # loop already closed
            return

    thread = threading.Thread(target=read, name="stdin-reader", daemon=True)
    thread.start()
    return thread


async def _watch(settings: Settings) -> None:
    keywords: EventStream[str] = EventStream()
    pages = PageTrigger()
    with BookmarkStore(settings.bookmark_db_path) as store:
        async with SearchClient.from_settings(settings) as client:
            orchestrator = SearchOrchestrator(
                client,
                base_query=SearchQuery(results_to_take=settings.page_size),
                bookmarks=store.ids,
                debounce_seconds=settings.debounce_seconds,
            )
            _start_stdin_reader(asyncio.get_running_loop(), keywords, pages)
            try:
                async for state in orchestrator.process(keywords, pages):
                    print(format_state(state), flush=True)
            finally:
                orchestrator.cancel()


def _cmd_watch() -> int:
    settings = load_settings()
    assert_required_envs(RUN_REQUIRED_ENVS)
    _configure_logging(settings)
    try:
        asyncio.run(_watch(settings))
    except KeyboardInterrupt:
        pass
    return 0


def _cmd_bookmark(args: argparse.Namespace) -> int:
    settings = load_settings()
    with BookmarkStore(settings.bookmark_db_path) as store:
        if args.bookmark_command == "add":
            added = store.add(args.job_id)
            print(f"bookmarked {args.job_id}" if added else f"{args.job_id} already bookmarked")
        elif args.bookmark_command == "remove":
            removed = store.remove(args.job_id)
            print(f"removed {args.job_id}" if removed else f"{args.job_id} was not bookmarked")
        else:
            for job_id in sorted(store.ids()):
                print(job_id)
    return 0


def _cmd_healthcheck() -> int:
    settings = load_settings()
    missing = missing_envs(RUN_REQUIRED_ENVS)
    if missing:
        print("missing required env vars:", ", ".join(missing))
        return 1

    try:
        with BookmarkStore(settings.bookmark_db_path) as store:
            bookmark_count = store.count()
    except Exception as exc:
        print(f"bookmark db check failed: {exc}")
        return 1

    print(f"api: {settings.base_url} (key {mask_secret(settings.api_key)})")
    print(f"bookmarks: {bookmark_count} in {settings.bookmark_db_path}")
    print("healthcheck passed")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "search":
            return _cmd_search(args)
        if args.command == "watch":
            return _cmd_watch()
        if args.command == "bookmark":
            return _cmd_bookmark(args)
        if args.command == "healthcheck":
            return _cmd_healthcheck()
    except ValueError as exc:
        print(exc)
        return 1

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
