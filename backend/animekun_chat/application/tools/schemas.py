"""Input schemas for the tool catalog.

Shared field patterns (ids, years, moderation status, completion flag,
pagination) are declared once as ``Annotated`` aliases and base models,
then combined into one input model per tool. The JSON schema of each model
is what the LLM sees, so every field carries a ``description``.
"""

import re
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator, model_validator

# ── Field combinators ────────────────────────────────────────────────

EntityId = Annotated[int, Field(ge=1)]
Year = Annotated[int, Field(ge=1900, le=2100)]
ModerationStatus = Annotated[
    int, Field(ge=0, le=2, description="Status: 0=blocked, 1=published, 2=pending")
]
CompletionFlag = Annotated[
    int, Field(ge=0, le=1, description="Completion status: 0=incomplete, 1=complete")
]
VisibilityStatus = Annotated[int, Field(ge=0, le=1, description="Status: 0=hidden, 1=visible")]
SeasonNumber = Annotated[
    int, Field(ge=1, le=4, description="Season number: 1=hiver, 2=printemps, 3=été, 4=automne")
]
SortOrder = Literal["asc", "desc"]
ResourceType = Literal["anime", "manga", "business"]

_ISBN_RE = re.compile(r"^(97[89])?\d{9}[\dX]$")


def _normalize_isbn(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = re.sub(r"[\s-]", "", value).upper()
    if not _ISBN_RE.match(cleaned):
        raise ValueError("ISBN must have 10 or 13 digits")
    return cleaned


class ToolInput(BaseModel):
    """Base model for every tool input. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")


class EmptyParams(ToolInput):
    """For tools that take no argument."""


class EntityIdParams(ToolInput):
    id: EntityId = Field(..., description="ID of the record")


class StatusUpdateParams(ToolInput):
    id: EntityId = Field(..., description="ID of the record to update")
    statut: ModerationStatus = Field(..., description="New status: 0=blocked, 1=published, 2=pending")


class PaginationParams(ToolInput):
    page: int = Field(1, ge=1, description="Page number for pagination")
    limit: int = Field(20, ge=1, le=100, description="Number of results per page")


class SearchableListParams(PaginationParams):
    search: str | None = Field(None, description="Search query on the title / name")
    statut: ModerationStatus | None = Field(
        None, description="Filter by status: 0=blocked, 1=published, 2=pending"
    )
    sortOrder: SortOrder | None = Field(None, description="Sort direction")


# ── Anime ────────────────────────────────────────────────────────────


class AnimeListParams(SearchableListParams):
    annee: Year | None = Field(None, description="Filter by year")
    ficheComplete: CompletionFlag | None = Field(
        None, description="Filter by completion status: 0=incomplete, 1=complete"
    )
    sortBy: Literal["dateAjout", "titre", "annee"] | None = Field(None, description="Sort field")


class CreateAnimeParams(ToolInput):
    titre: str = Field(..., min_length=1, description="Main title of the anime")
    niceUrl: str = Field(..., min_length=1, description="URL-friendly slug for the anime")
    titreOrig: str | None = Field(None, description="Original title (usually in Japanese)")
    titreFr: str | None = Field(None, description="French title")
    titresAlternatifs: str | None = Field(None, description="Alternative titles, newline separated")
    annee: Year = Field(..., description="Release year")
    nbEp: int = Field(..., ge=0, description="Number of episodes")
    synopsis: str = Field(..., min_length=10, description="Synopsis/description of the anime")
    studio: str | None = Field(None, description="Animation studio")
    realisateur: str | None = Field(None, description="Director name")
    image: HttpUrl | None = Field(None, description="Cover image URL")
    statut: ModerationStatus = Field(0, description="Status: 0=blocked, 1=published, 2=pending")
    format: str | None = Field(None, description="Format: Série TV, Film, OAV, etc.")
    licence: int | None = Field(None, description="Licensor ID")
    ficheComplete: CompletionFlag = Field(0, description="Completion status: 0=incomplete, 1=complete")
    dateDiffusion: str | None = Field(None, description="Air date in YYYY-MM-DD format")
    officialSite: HttpUrl | None = Field(None, description="Official website URL")


class UpdateAnimeParams(ToolInput):
    id: EntityId = Field(..., description="Anime ID to update")
    annee: Year | None = Field(None, description="Release year")
    titreOrig: str | None = Field(None, description="Original title (usually Japanese)")
    nbEp: int | None = Field(None, ge=0, description="Number of episodes")
    synopsis: str | None = Field(None, description="Synopsis/description")
    statut: ModerationStatus | None = Field(None, description="Status: 0=blocked, 1=published, 2=pending")
    format: str | None = Field(None, description="Format: Série TV, Film, OAV, Spécial, etc.")
    titreFr: str | None = Field(None, description="French title")
    titresAlternatifs: str | None = Field(None, description="Alternative titles, newline separated")
    editeur: str | None = Field(None, description="Publisher/Editor")
    nbEpduree: str | None = Field(None, description='Episode count with duration (e.g. "12", "24+")')
    officialSite: str | None = Field(None, description="Official website URL")
    commentaire: str | None = Field(None, description="Comments about the anime entry")
    ficheComplete: CompletionFlag | None = Field(
        None, description="Completion status: 0=incomplete, 1=complete"
    )
    dateDiffusion: str | None = Field(
        None,
        description="Air date in YYYY-MM-DD format (convert from DD/MM/YYYY if the user provides that format)",
        pattern=r"^\d{4}-\d{2}-\d{2}$",
    )


# ── Manga ────────────────────────────────────────────────────────────


class MangaListParams(SearchableListParams):
    annee: Year | None = Field(None, description="Filter by year of first publication")
    ficheComplete: CompletionFlag | None = Field(
        None, description="Filter by completion status: 0=incomplete, 1=complete"
    )
    sortBy: Literal["dateAjout", "titre", "annee"] | None = Field(None, description="Sort field")


class CreateMangaParams(ToolInput):
    titre: str = Field(..., min_length=1, description="Main title of the manga")
    niceUrl: str = Field(..., min_length=1, description="URL-friendly slug for the manga")
    titreOrig: str | None = Field(None, description="Original title (usually in Japanese)")
    titreFr: str | None = Field(None, description="French title")
    titresAlternatifs: str | None = Field(None, description="Alternative titles, newline separated")
    annee: Year = Field(..., description="Year of first publication")
    auteur: str | None = Field(None, description="Author(s)")
    editeur: str | None = Field(None, description="French publisher")
    nbVolumes: str | None = Field(None, description='Number of volumes (e.g. "12", "En cours")')
    synopsis: str = Field(..., min_length=10, description="Synopsis/description of the manga")
    origine: str | None = Field(None, description="Country of origin")
    image: HttpUrl | None = Field(None, description="Cover image URL")
    statut: ModerationStatus = Field(0, description="Status: 0=blocked, 1=published, 2=pending")
    ficheComplete: CompletionFlag = Field(0, description="Completion status: 0=incomplete, 1=complete")


class UpdateMangaParams(ToolInput):
    id: EntityId = Field(..., description="Manga ID to update")
    titre: str | None = Field(None, min_length=1, description="Main title")
    titreOrig: str | None = Field(None, description="Original title")
    titreFr: str | None = Field(None, description="French title")
    titresAlternatifs: str | None = Field(None, description="Alternative titles, newline separated")
    annee: Year | None = Field(None, description="Year of first publication")
    auteur: str | None = Field(None, description="Author(s)")
    editeur: str | None = Field(None, description="French publisher")
    nbVolumes: str | None = Field(None, description="Number of volumes")
    synopsis: str | None = Field(None, description="Synopsis/description")
    origine: str | None = Field(None, description="Country of origin")
    statut: ModerationStatus | None = Field(None, description="Status: 0=blocked, 1=published, 2=pending")
    commentaire: str | None = Field(None, description="Comments about the manga entry")
    ficheComplete: CompletionFlag | None = Field(
        None, description="Completion status: 0=incomplete, 1=complete"
    )


# ── Business (studios, publishers, staff) ────────────────────────────


class BusinessListParams(SearchableListParams):
    type: str | None = Field(None, description="Filter by type: Studio, Éditeur, Auteur, Réalisateur, ...")
    sortBy: Literal["dateAjout", "denomination"] | None = Field(None, description="Sort field")


class CreateBusinessParams(ToolInput):
    denomination: str = Field(..., min_length=1, description="Name of the company or person")
    niceUrl: str = Field(..., min_length=1, description="URL-friendly slug")
    type: str = Field(..., min_length=1, description="Studio, Éditeur, Auteur, Réalisateur, ...")
    autresDenominations: str | None = Field(None, description="Other names, newline separated")
    origine: str | None = Field(None, description="Country of origin")
    date: str | None = Field(None, description="Founding date or birth date (YYYY or YYYY-MM-DD)")
    siteOfficiel: HttpUrl | None = Field(None, description="Official website URL")
    notes: str | None = Field(None, description="Biography / presentation")
    statut: ModerationStatus = Field(0, description="Status: 0=blocked, 1=published, 2=pending")


class UpdateBusinessParams(ToolInput):
    id: EntityId = Field(..., description="Business ID to update")
    denomination: str | None = Field(None, min_length=1, description="Name of the company or person")
    type: str | None = Field(None, description="Studio, Éditeur, Auteur, Réalisateur, ...")
    autresDenominations: str | None = Field(None, description="Other names, newline separated")
    origine: str | None = Field(None, description="Country of origin")
    date: str | None = Field(None, description="Founding date or birth date")
    siteOfficiel: str | None = Field(None, description="Official website URL")
    notes: str | None = Field(None, description="Biography / presentation")
    statut: ModerationStatus | None = Field(None, description="Status: 0=blocked, 1=published, 2=pending")


class AddStaffParams(ToolInput):
    id: EntityId = Field(..., description="ID of the anime or manga")
    businessId: EntityId = Field(..., description="ID of the business (studio, author, ...) to link")
    role: str = Field(..., min_length=1, description="Role, e.g. Studio d'animation, Auteur, Éditeur")


# ── Seasons ──────────────────────────────────────────────────────────


class CreateSeasonParams(ToolInput):
    annee: int = Field(..., ge=2000, le=2100, description="Year for the season")
    saison: SeasonNumber = Field(..., description="Season number: 1=hiver, 2=printemps, 3=été, 4=automne")
    statut: VisibilityStatus = Field(1, description="Status: 0=hidden, 1=visible")


class UpdateSeasonStatusParams(ToolInput):
    id: EntityId = Field(..., description="Season ID to update")
    statut: VisibilityStatus = Field(..., description="New status: 0=hidden, 1=visible")


class SeasonAnimeParams(ToolInput):
    seasonId: EntityId = Field(..., description="Season ID")
    animeId: EntityId = Field(..., description="Anime ID")


# ── Volumes ──────────────────────────────────────────────────────────


class ListVolumesParams(ToolInput):
    mangaId: EntityId = Field(..., description="Manga ID whose volumes to list")


class CreateVolumeParams(ToolInput):
    mangaId: EntityId = Field(..., description="Manga ID the volume belongs to")
    numero: int = Field(..., ge=0, description="Volume number")
    titre: str | None = Field(None, description="Volume title, if any")
    isbn: str | None = Field(None, description="ISBN-10 or ISBN-13")
    dateSortie: str | None = Field(None, pattern=r"^\d{4}-\d{2}-\d{2}$", description="Release date YYYY-MM-DD")
    nbPages: int | None = Field(None, ge=1, description="Number of pages")

    @field_validator("isbn")
    @classmethod
    def _check_isbn(cls, value: str | None) -> str | None:
        return _normalize_isbn(value)


class CreateMangaWithVolumeParams(CreateMangaParams):
    volumeIsbn: str | None = Field(
        None, description="ISBN of the first volume to import right after creating the manga"
    )
    volumeNumero: int = Field(1, ge=0, description="Number of the volume to import")

    @field_validator("volumeIsbn")
    @classmethod
    def _check_volume_isbn(cls, value: str | None) -> str | None:
        return _normalize_isbn(value)


# ── Images ───────────────────────────────────────────────────────────


class ImageSourceParams(ToolInput):
    imageUrl: HttpUrl | None = Field(None, description="URL of the image to download and upload")
    imageBase64: str | None = Field(None, description="Inline base64 image payload")
    filename: str | None = Field(None, description="Filename for an inline base64 image")
    mimeType: str | None = Field(None, description="MIME type for an inline base64 image, e.g. image/jpeg")
    useAttachedImage: bool = Field(
        False, description="Use the image the admin attached to the current message"
    )

    @model_validator(mode="after")
    def _exactly_one_source(self):
        sources = [self.imageUrl is not None, self.imageBase64 is not None, self.useAttachedImage]
        if sum(sources) != 1:
            raise ValueError("provide exactly one of imageUrl, imageBase64 or useAttachedImage=true")
        return self


class UploadCoverImageParams(ImageSourceParams):
    entityType: ResourceType = Field("anime", description="Kind of record: anime, manga or business")
    entityId: EntityId = Field(..., description="ID of the record to set the cover image for")


class SetCoverImageParams(ToolInput):
    entityType: ResourceType = Field("anime", description="Kind of record: anime, manga or business")
    entityId: EntityId = Field(..., description="ID of the record")
    filename: str = Field(..., min_length=1, description="Filename returned by a previous upload")


class UploadScreenshotParams(ImageSourceParams):
    animeId: EntityId = Field(..., description="Anime ID to add the screenshot for")


# ── External search ──────────────────────────────────────────────────


class SearchAniListParams(ToolInput):
    q: str = Field(..., min_length=1, description="Search query for anime title")
    limit: int = Field(10, ge=1, le=50, description="Maximum number of results")


class SearchAniListSeasonParams(ToolInput):
    year: int = Field(..., ge=1940, le=2100, description="Season year")
    season: Literal["winter", "spring", "summer", "fall"] = Field(
        ..., description="AniList season: winter=hiver, spring=printemps, summer=été, fall=automne"
    )


class SearchJikanParams(ToolInput):
    q: str = Field(..., min_length=1, description="Search query (MyAnimeList via Jikan)")
    type: Literal["anime", "manga"] = Field("anime", description="Kind of work to search")
    limit: int = Field(10, ge=1, le=25, description="Maximum number of results")


class SearchGoogleBooksParams(ToolInput):
    q: str | None = Field(None, min_length=1, description="Free-text query (title, author)")
    isbn: str | None = Field(None, description="ISBN-10 or ISBN-13")

    @field_validator("isbn")
    @classmethod
    def _check_isbn(cls, value: str | None) -> str | None:
        return _normalize_isbn(value)

    @model_validator(mode="after")
    def _query_or_isbn(self):
        if not self.q and not self.isbn:
            raise ValueError("provide q or isbn")
        return self


class SearchNautiljonParams(ToolInput):
    q: str = Field(..., min_length=1, description="Title to look up on Nautiljon")
    type: Literal["anime", "manga"] = Field("manga", description="Kind of work to search")


class WebSearchParams(ToolInput):
    query: str = Field(..., min_length=2, description="Web search query")
    maxResults: int = Field(5, ge=1, le=10, description="Maximum number of results")
