"""Read-only lookups against external metadata sources.

AniList, Jikan, Google Books and Nautiljon are proxied by the backend;
the free-text web search goes straight to the third-party provider and is
only registered when a client is configured.
"""

from typing import Any

from animekun_chat.application.tools import schemas
from animekun_chat.application.tools.registry import ToolContext, ToolRegistry
from animekun_chat.domain.entities import ToolResult


def _count(result: Any, *keys: str) -> int:
    if isinstance(result, list):
        return len(result)
    if isinstance(result, dict):
        for key in keys:
            if isinstance(result.get(key), list):
                return len(result[key])
    return 0


def register_external_tools(registry: ToolRegistry, *, web_search: bool = False) -> None:

    @registry.tool(
        "searchAniList",
        (
            "Search the AniList database for anime information.\n\n"
            "Use this when:\n"
            "- Admin wants to add a new anime from external source\n"
            "- Need accurate metadata (episodes, year, studio, etc.)\n"
            "- Want to verify anime information\n\n"
            "This returns detailed anime data including title, episodes, year, studios, synopsis, etc."
        ),
        schemas.SearchAniListParams,
    )
    async def search_anilist(params: schemas.SearchAniListParams, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request(
            "GET", "/api/animes/anilist/search", params=params.model_dump(mode="json")
        )
        return ToolResult.ok(result, f"Found {_count(result, 'animes', 'results')} anime(s) on AniList")

    @registry.tool(
        "searchAniListSeason",
        (
            "List the anime of one AniList season and compare them with the database: "
            "each entry says whether it is already in the database. Use this to find "
            "which seasonal anime are still missing."
        ),
        schemas.SearchAniListSeasonParams,
    )
    async def search_anilist_season(
        params: schemas.SearchAniListSeasonParams, ctx: ToolContext
    ) -> ToolResult:
        result = await ctx.backend.request(
            "GET", f"/api/animes/anilist/season/{params.year}/{params.season}"
        )
        total = _count(result, "comparisons", "animes")
        return ToolResult.ok(result, f"AniList season {params.season} {params.year}: {total} anime(s)")

    @registry.tool(
        "searchJikan",
        "Search MyAnimeList (through the Jikan API) for anime or manga metadata. Second source after AniList.",
        schemas.SearchJikanParams,
    )
    async def search_jikan(params: schemas.SearchJikanParams, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request(
            "GET", "/api/animes/jikan/search", params=params.model_dump(mode="json")
        )
        return ToolResult.ok(result, f"Found {_count(result, 'data', 'results')} result(s) on Jikan")

    @registry.tool(
        "searchGoogleBooks",
        (
            "Search Google Books for manga volume metadata (title, authors, publisher, "
            "release date, page count). Search by ISBN when you have one."
        ),
        schemas.SearchGoogleBooksParams,
    )
    async def search_google_books(
        params: schemas.SearchGoogleBooksParams, ctx: ToolContext
    ) -> ToolResult:
        result = await ctx.backend.request(
            "GET",
            "/api/mangas/googlebooks/search",
            params=params.model_dump(mode="json", exclude_none=True),
        )
        return ToolResult.ok(result, f"Found {_count(result, 'items', 'books')} book(s) on Google Books")

    @registry.tool(
        "searchNautiljon",
        "Look up a title on Nautiljon, the reference for French editions (French publisher, volumes in France).",
        schemas.SearchNautiljonParams,
    )
    async def search_nautiljon(params: schemas.SearchNautiljonParams, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request(
            "GET", "/api/mangas/nautiljon/search", params=params.model_dump(mode="json")
        )
        return ToolResult.ok(result, f"Found {_count(result, 'results', 'items')} result(s) on Nautiljon")

    if not web_search:
        return

    @registry.tool(
        "webSearch",
        (
            "Free web search. Last resort to complete missing information "
            "(official site, air date, staff) when the other sources have nothing."
        ),
        schemas.WebSearchParams,
    )
    async def search_web(params: schemas.WebSearchParams, ctx: ToolContext) -> ToolResult:
        if ctx.web_search is None:
            return ToolResult.fail("Web search is not configured")
        result = await ctx.web_search.search(params.query, max_results=params.maxResults)
        return ToolResult.ok(result, f"Found {_count(result, 'results')} web result(s)")
