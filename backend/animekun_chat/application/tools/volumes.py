"""Manga volume tools, including the create-manga-then-import-volume composite."""

import logging

import httpx

from animekun_chat.application.tools import schemas
from animekun_chat.application.tools.registry import ToolContext, ToolRegistry
from animekun_chat.application.tools.resources import MANGA, count_items, extract_id
from animekun_chat.domain.entities import ToolResult
from animekun_chat.domain.exceptions import BackendAPIError

logger = logging.getLogger(__name__)


def register_volume_tools(registry: ToolRegistry) -> None:

    @registry.tool(
        "listMangaVolumes",
        "List the volumes already recorded for a manga.",
        schemas.ListVolumesParams,
    )
    async def list_manga_volumes(params: schemas.ListVolumesParams, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request("GET", f"{MANGA.item_path(params.mangaId)}/volumes")
        return ToolResult.ok(result, f"Found {count_items(result)} volume(s) for manga ID {params.mangaId}")

    @registry.tool(
        "createMangaVolume",
        "Add one volume to an existing manga. Check listMangaVolumes first to avoid duplicates.",
        schemas.CreateVolumeParams,
    )
    async def create_manga_volume(params: schemas.CreateVolumeParams, ctx: ToolContext) -> ToolResult:
        body = params.model_dump(mode="json", exclude_none=True, exclude={"mangaId"})
        result = await ctx.backend.request(
            "POST", f"{MANGA.item_path(params.mangaId)}/volumes", body=body
        )
        return ToolResult.ok(result, f"Volume {params.numero} added to manga ID {params.mangaId}")

    @registry.tool(
        "createMangaWithVolume",
        (
            "Create a new manga and, when an ISBN is given, import its first volume "
            "from that ISBN in the same operation. The manga is kept even if the "
            "volume import fails; the result then carries volumeError.\n\n"
            "Same confirmation rules as createManga: present the data first."
        ),
        schemas.CreateMangaWithVolumeParams,
    )
    async def create_manga_with_volume(
        params: schemas.CreateMangaWithVolumeParams, ctx: ToolContext
    ) -> ToolResult:
        manga_body = params.model_dump(
            mode="json", exclude_none=True, exclude={"volumeIsbn", "volumeNumero"}
        )
        manga = await ctx.backend.request("POST", MANGA.path, body=manga_body)
        manga_id = extract_id(manga, MANGA.id_fields)
        data = {"manga": manga, "mangaId": manga_id, "volume": None}

        if not params.volumeIsbn:
            data["volumeSkipped"] = "no ISBN provided"
            return ToolResult.ok(
                data, f"Manga created with ID {manga_id}; no volume imported (no ISBN provided)"
            )
        if manga_id is None:
            data["volumeSkipped"] = "backend did not return the new manga ID"
            return ToolResult.ok(data, "Manga created; volume import skipped (unknown manga ID)")

        try:
            volume = await ctx.backend.request(
                "POST",
                f"{MANGA.item_path(manga_id)}/volumes/import-isbn",
                body={"isbn": params.volumeIsbn, "numero": params.volumeNumero},
            )
        except (BackendAPIError, httpx.HTTPError) as exc:
            reason = str(exc) or type(exc).__name__
            logger.warning("Volume import failed for manga id=%s: %s", manga_id, reason)
            data["volumeError"] = reason
            return ToolResult.ok(
                data,
                f"Manga created with ID {manga_id}, but importing volume "
                f"{params.volumeNumero} (ISBN {params.volumeIsbn}) failed: {reason}",
            )

        data["volume"] = volume
        return ToolResult.ok(
            data,
            f"Manga created with ID {manga_id} and volume {params.volumeNumero} imported "
            f"from ISBN {params.volumeIsbn}",
        )
