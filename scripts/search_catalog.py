#!/usr/bin/env python3
"""Interactive catalog search against a running catalog API."""

import asyncio
import sys

from catalog_search.clients import CatalogApiError, CatalogClient
from catalog_search.config import get_settings
from catalog_search.logging_config import setup_logging
from catalog_search.services import ResultsChanged, SearchSession
from catalog_search.services.commands import ClearFilters, GoToPage, RefineFacet, SetQuery

HELP = """Commands:
  <text>                   search for text
  :page N                  go to page N
  :facet TYPE VALUE        narrow to a facet value (sources, schemas, tags)
  :clear                   clear all filters
  :quit                    exit"""


def print_results(event: ResultsChanged, session: SearchSession):
    """Print the current results page.

    Args:
        event: Results notification
        session: Session the event belongs to
    """
    print(f"\n{'='*80}")
    if event.failed:
        print(f"{event.notice} ({event.error.title}: {event.error.message})")
        return

    page = event.page
    print(
        f"{page.metrics.total_results} results | "
        f"page {session.current_page} of {session.total_pages}"
    )
    print(f"{'='*80}")
    for table in page.results:
        print(f"  {table.full_name or table.name:40} quality={table.quality_label}")

    for facet, counts in page.metrics.facet_counts.items():
        values = ", ".join(f"{value} ({count})" for value, count in list(counts.items())[:5])
        print(f"  [{facet}] {values}")


async def interactive_mode(session: SearchSession):
    """Read commands from stdin and feed them to the session.

    Args:
        session: Search session
    """
    print(HELP)
    loop = asyncio.get_running_loop()

    while True:
        try:
            line = (await loop.run_in_executor(None, input, "\nsearch> ")).strip()
        except (EOFError, KeyboardInterrupt):
            break

        if line in (":quit", ":q"):
            break

        try:
            if line.startswith(":page "):
                if session.handle(GoToPage(int(line.split()[1]))) is None:
                    print(f"No such page (1..{session.total_pages})")
            elif line.startswith(":facet "):
                _, facet_type, value = line.split(maxsplit=2)
                session.handle(RefineFacet(facet_type, value))
            elif line == ":clear":
                session.handle(ClearFilters())
            else:
                session.handle(SetQuery(line))
        except ValueError as e:
            print(f"Error: {e}")
            continue

        await session.wait_idle()
        if session.suggestions:
            print("Suggestions: " + ", ".join(s.value for s in session.suggestions))

    print("Goodbye!")


async def main():
    """Main function to run the search script."""
    if len(sys.argv) > 1 and sys.argv[1] == "--help":
        print("Usage: python search_catalog.py")
        print()
        print(HELP)
        sys.exit(0)

    setup_logging()
    settings = get_settings()

    async with CatalogClient(base_url=settings.api_base_url) as client:
        try:
            await client.health_check()
        except CatalogApiError as e:
            print(f"Error: Cannot reach catalog API at {settings.api_base_url} ({e.message})")
            print("Start the stub API with:")
            print("  uvicorn catalog_search.stub_api:app --reload")
            sys.exit(1)

        async with SearchSession(client=client, settings=settings) as session:
            session.on_results_changed(lambda event: print_results(event, session))
            await interactive_mode(session)


if __name__ == "__main__":
    asyncio.run(main())
