"""CRUD tools generated from a ``ResourceSpec``.

Anime, manga and business records share the same admin REST shape
(``/api/admin/<res>[/{id}[/status]]``), so their list / get / create /
update / updateStatus / delete tools are built by one factory instead of
being written out three times.
"""

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from animekun_chat.application.tools import schemas
from animekun_chat.application.tools.registry import ToolContext, ToolDefinition, ToolRegistry
from animekun_chat.domain.entities import ToolResult

logger = logging.getLogger(__name__)

_STATUS_TEXT = {0: "blocked", 1: "published", 2: "set to pending"}


@dataclass(frozen=True)
class ResourceSpec:
    """Describes one admin resource and the input models of its tools."""

    key: str
    singular: str
    plural: str
    path: str
    id_fields: tuple[str, ...]
    list_model: type[BaseModel]
    create_model: type[BaseModel]
    update_model: type[BaseModel]
    list_hint: str = ""
    create_hint: str = ""
    supports_staff: bool = False

    @property
    def label(self) -> str:
        return self.key

    def item_path(self, entity_id: int) -> str:
        return f"{self.path}/{entity_id}"


ANIME = ResourceSpec(
    key="anime",
    singular="Anime",
    plural="Animes",
    path="/api/admin/animes",
    id_fields=("idAnime", "id"),
    list_model=schemas.AnimeListParams,
    create_model=schemas.CreateAnimeParams,
    update_model=schemas.UpdateAnimeParams,
    list_hint="- Filter by year (annee) or completion status (ficheComplete)\n",
    create_hint=(
        "IMPORTANT: Before calling this tool, you MUST:\n"
        "1. Use searchAniList to fetch accurate data from AniList\n"
        "2. Present the data to the admin for confirmation\n"
        "3. Only create after admin confirms\n\n"
        "Required fields: titre, niceUrl, annee, nbEp, synopsis"
    ),
    supports_staff=True,
)

MANGA = ResourceSpec(
    key="manga",
    singular="Manga",
    plural="Mangas",
    path="/api/admin/mangas",
    id_fields=("idManga", "id"),
    list_model=schemas.MangaListParams,
    create_model=schemas.CreateMangaParams,
    update_model=schemas.UpdateMangaParams,
    list_hint="- Filter by year (annee) or completion status (ficheComplete)\n",
    create_hint=(
        "IMPORTANT: Before calling this tool, you MUST:\n"
        "1. Use searchGoogleBooks or searchNautiljon to fetch accurate data\n"
        "2. Present the data to the admin for confirmation\n"
        "3. Only create after admin confirms\n\n"
        "Required fields: titre, niceUrl, annee, synopsis. "
        "Use createMangaWithVolume instead when the admin also gives an ISBN."
    ),
    supports_staff=True,
)

BUSINESS = ResourceSpec(
    key="business",
    singular="Business",
    plural="Businesses",
    path="/api/admin/business",
    id_fields=("idBusiness", "id"),
    list_model=schemas.BusinessListParams,
    create_model=schemas.CreateBusinessParams,
    update_model=schemas.UpdateBusinessParams,
    list_hint="- Filter by type (Studio, Éditeur, Auteur, ...)\n",
    create_hint=(
        "Businesses are studios, publishers and people (authors, directors).\n"
        "Search with listBusinesses first to avoid duplicates, and confirm "
        "with the admin before creating.\n\n"
        "Required fields: denomination, niceUrl, type"
    ),
)

RESOURCES: dict[str, ResourceSpec] = {spec.key: spec for spec in (ANIME, MANGA, BUSINESS)}


def extract_id(data: Any, id_fields: tuple[str, ...]) -> Any:
    """Return the first id field present in a backend payload."""
    if isinstance(data, dict):
        for field_name in id_fields:
            if data.get(field_name) is not None:
                return data[field_name]
    return None


def count_items(data: Any) -> int:
    """Count records in a backend list payload (paginated or bare list)."""
    if isinstance(data, list):
        return len(data)
    if isinstance(data, dict):
        if isinstance(data.get("total"), int):
            return data["total"]
        for key in ("items", "data"):
            if isinstance(data.get(key), list):
                return len(data[key])
    return 0


def _payload(params: BaseModel, *, exclude: set[str] | None = None) -> dict[str, Any]:
    return params.model_dump(mode="json", exclude_none=True, exclude=exclude)


def register_resource_tools(registry: ToolRegistry, spec: ResourceSpec) -> None:
    """Register the six CRUD tools (plus addStaff when enabled) for ``spec``."""

    async def list_records(params: BaseModel, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request("GET", spec.path, params=_payload(params))
        return ToolResult.ok(result, f"Found {count_items(result)} {spec.label}(s)")

    async def get_record(params: schemas.EntityIdParams, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request("GET", spec.item_path(params.id))
        return ToolResult.ok(result, f"{spec.singular} ID {params.id} loaded")

    async def create_record(params: BaseModel, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request("POST", spec.path, body=_payload(params))
        new_id = extract_id(result, spec.id_fields)
        logger.info("Created %s id=%s", spec.label, new_id)
        return ToolResult.ok(result, f"{spec.singular} created successfully with ID {new_id}")

    async def update_record(params: BaseModel, ctx: ToolContext) -> ToolResult:
        entity_id = params.id
        fields = _payload(params, exclude={"id"})
        if not fields:
            return ToolResult.fail(
                f"No fields to update for {spec.label} ID {entity_id}: provide at least one field"
            )
        result = await ctx.backend.request("PUT", spec.item_path(entity_id), body=fields)
        return ToolResult.ok(
            result,
            f"{spec.singular} ID {entity_id} updated ({', '.join(sorted(fields))})",
        )

    async def update_status(params: schemas.StatusUpdateParams, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request(
            "PUT", f"{spec.item_path(params.id)}/status", body={"statut": params.statut}
        )
        return ToolResult.ok(
            result, f"{spec.singular} ID {params.id} has been {_STATUS_TEXT[params.statut]}"
        )

    async def delete_record(params: schemas.EntityIdParams, ctx: ToolContext) -> ToolResult:
        result = await ctx.backend.request("DELETE", spec.item_path(params.id))
        return ToolResult.ok(result, f"{spec.singular} ID {params.id} deleted")

    registry.register(ToolDefinition(
        f"list{spec.plural}",
        (
            f"Search and list {spec.label} records from the database. Use this to:\n"
            f"- Find a specific {spec.label} by name (use search parameter)\n"
            f"- List {spec.label} records pending moderation (statut=2) or blocked (statut=0)\n"
            f"{spec.list_hint}\n"
            f"Always use this tool first when the admin mentions a specific {spec.label} to get its ID."
        ),
        spec.list_model,
        list_records,
    ))
    registry.register(ToolDefinition(
        f"get{spec.singular}",
        f"Get the full record of one {spec.label} by ID.",
        schemas.EntityIdParams,
        get_record,
    ))
    registry.register(ToolDefinition(
        f"create{spec.singular}",
        f"Create a new {spec.label} entry in the database.\n\n{spec.create_hint}",
        spec.create_model,
        create_record,
    ))
    registry.register(ToolDefinition(
        f"update{spec.singular}",
        (
            f"Update an existing {spec.label}. Only the fields you pass are modified; "
            f"pass at least one field besides id. Get the ID with list{spec.plural} first."
        ),
        spec.update_model,
        update_record,
    ))
    registry.register(ToolDefinition(
        f"update{spec.singular}Status",
        (
            f"Update the moderation status of a {spec.label}.\n\n"
            "Status codes:\n0 = Blocked\n1 = Published\n2 = Pending\n\n"
            f"You must first use list{spec.plural} to get the ID."
        ),
        schemas.StatusUpdateParams,
        update_status,
    ))
    registry.register(ToolDefinition(
        f"delete{spec.singular}",
        f"Permanently delete a {spec.label}. Only call after the admin explicitly confirmed the deletion.",
        schemas.EntityIdParams,
        delete_record,
    ))

    if spec.supports_staff:
        async def add_staff(params: schemas.AddStaffParams, ctx: ToolContext) -> ToolResult:
            result = await ctx.backend.request(
                "POST",
                f"{spec.item_path(params.id)}/businesses",
                body={"idBusiness": params.businessId, "type": params.role},
            )
            return ToolResult.ok(
                result,
                f"Business ID {params.businessId} linked to {spec.label} ID {params.id} as {params.role}",
            )

        registry.register(ToolDefinition(
            f"addStaffTo{spec.singular}",
            (
                f"Link a business (studio, author, publisher, ...) to a {spec.label} with a role. "
                "Find the business ID with listBusinesses first; create it with createBusiness "
                "only if it does not exist."
            ),
            schemas.AddStaffParams,
            add_staff,
        ))
