"""Season tools: reads, duplicate-guarded creation and anime membership."""

import logging
from typing import Any

from animekun_chat.application.tools import schemas
from animekun_chat.application.tools.registry import ToolContext, ToolRegistry
from animekun_chat.application.tools.resources import count_items, extract_id
from animekun_chat.domain.entities import ToolResult
from animekun_chat.domain.exceptions import DuplicateEntityError

logger = logging.getLogger(__name__)

SEASON_NAMES = {1: "hiver", 2: "printemps", 3: "été", 4: "automne"}
_SEASON_ID_FIELDS = ("id_saison", "idSaison", "id")


def _season_rows(payload: Any) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        payload = payload.get("data", payload.get("items", []))
    return [row for row in payload or [] if isinstance(row, dict)]


def _label(annee: int, saison: int) -> str:
    return f"{SEASON_NAMES.get(saison, saison)} {annee}"


async def find_season(ctx: ToolContext, annee: int, saison: int) -> dict[str, Any] | None:
    """Return the existing season for ``annee`` + ``saison``, if any."""
    rows = _season_rows(await ctx.backend.request("GET", "/api/seasons"))
    for row in rows:
        try:
            if int(row.get("annee")) == annee and int(row.get("saison")) == saison:
                return row
        except (TypeError, ValueError):
            continue
    return None


def register_season_tools(registry: ToolRegistry) -> None:

    @registry.tool(
        "listSeasons",
        "List all seasons (year + season number + visibility status) known to the database.",
        schemas.EmptyParams,
    )
    async def list_seasons(params: schemas.EmptyParams, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request("GET", "/api/seasons")
        return ToolResult.ok(result, f"Found {count_items(result)} season(s)")

    @registry.tool(
        "getCurrentSeason",
        "Get the season currently marked as the ongoing one on the site.",
        schemas.EmptyParams,
    )
    async def get_current_season(params: schemas.EmptyParams, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request("GET", "/api/seasons/current")
        return ToolResult.ok(result, "Current season loaded")

    @registry.tool(
        "getLastCreatedSeason",
        "Get the most recently created season. Useful to know which season to create next.",
        schemas.EmptyParams,
    )
    async def get_last_created_season(params: schemas.EmptyParams, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request("GET", "/api/seasons/last-created")
        return ToolResult.ok(result, "Last created season loaded")

    @registry.tool(
        "createSeason",
        (
            "Create a new season. Refuses to create a season that already exists "
            "(same annee + saison) and returns the existing season ID instead.\n"
            "Season numbers: 1=hiver, 2=printemps, 3=été, 4=automne."
        ),
        schemas.CreateSeasonParams,
    )
    async def create_season(params: schemas.CreateSeasonParams, ctx: ToolContext) -> ToolResult:
        # TODO: the lookup and the POST are not atomic; two concurrent creations can both pass.
        existing = await find_season(ctx, params.annee, params.saison)
        if existing is not None:
            raise DuplicateEntityError(
                "Season",
                "annee+saison",
                _label(params.annee, params.saison),
                extract_id(existing, _SEASON_ID_FIELDS),
            )
        result = await ctx.backend.request(
            "POST", "/api/admin/seasons", body=params.model_dump(mode="json")
        )
        new_id = extract_id(result, _SEASON_ID_FIELDS)
        logger.info("Created season %s id=%s", _label(params.annee, params.saison), new_id)
        return ToolResult.ok(
            result, f"Season {_label(params.annee, params.saison)} created with ID {new_id}"
        )

    @registry.tool(
        "updateSeasonStatus",
        "Show or hide a season on the site: statut 1=visible, 0=hidden.",
        schemas.UpdateSeasonStatusParams,
    )
    async def update_season_status(
        params: schemas.UpdateSeasonStatusParams, ctx: ToolContext
    ) -> ToolResult:
        result = await ctx.backend.request(
            "PATCH", f"/api/admin/seasons/{params.id}", body={"statut": params.statut}
        )
        state = "visible" if params.statut == 1 else "hidden"
        return ToolResult.ok(result, f"Season ID {params.id} is now {state}")

    @registry.tool(
        "addAnimeToSeason",
        "Attach an anime to a season. Get both IDs first (listSeasons, listAnimes).",
        schemas.SeasonAnimeParams,
    )
    async def add_anime_to_season(params: schemas.SeasonAnimeParams, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request(
            "POST",
            f"/api/admin/seasons/{params.seasonId}/animes",
            body={"animeId": params.animeId},
        )
        return ToolResult.ok(result, f"Anime ID {params.animeId} added to season ID {params.seasonId}")

    @registry.tool(
        "removeAnimeFromSeason",
        "Detach an anime from a season.",
        schemas.SeasonAnimeParams,
    )
    async def remove_anime_from_season(
        params: schemas.SeasonAnimeParams, ctx: ToolContext
    ) -> ToolResult:
        result = await ctx.backend.request(
            "DELETE", f"/api/admin/seasons/{params.seasonId}/animes/{params.animeId}"
        )
        return ToolResult.ok(
            result, f"Anime ID {params.animeId} removed from season ID {params.seasonId}"
        )

    @registry.tool(
        "deleteSeason",
        "Permanently delete a season. Only call after the admin explicitly confirmed the deletion.",
        schemas.EntityIdParams,
    )
    async def delete_season(params: schemas.EntityIdParams, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request("DELETE", f"/api/admin/seasons/{params.id}")
        return ToolResult.ok(result, f"Season ID {params.id} deleted")
