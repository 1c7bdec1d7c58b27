"""Unit tests for the tool catalog and ToolRegistry execution."""

import base64
from typing import Any

import httpx
import pytest

from animekun_chat.application.interfaces import BackendClient, WebSearchClient
from animekun_chat.application.schemas import ImageAttachment
from animekun_chat.application.tools import ToolContext, build_tool_registry
from animekun_chat.domain.exceptions import BackendAPIError


# ── Helpers ──


class FakeBackendClient(BackendClient):
    """In-memory admin backend.

    ``routes`` maps ``(method, endpoint)`` to a canned response (or an
    exception to raise). Unrouted POSTs to a collection store a record,
    and unrouted GETs read it back.
    """

    def __init__(self, routes: dict[tuple[str, str], Any] | None = None):
        self.routes = dict(routes or {})
        self.calls: list[tuple[str, str, dict | None, dict | None]] = []
        self.uploads: list[dict[str, Any]] = []
        self.records: dict[str, dict[int, dict]] = {}
        self._next_id = 100

    async def request(self, method, endpoint, *, params=None, body=None):
        self.calls.append((method, endpoint, params, body))
        if (method, endpoint) in self.routes:
            value = self.routes[(method, endpoint)]
            if isinstance(value, Exception):
                raise value
            return value

        collection, _, tail = endpoint.rpartition("/")
        if method == "POST":
            record = {"id": self._next_id, **(body or {})}
            self.records.setdefault(endpoint, {})[self._next_id] = record
            self._next_id += 1
            return record
        if method == "GET" and tail.isdigit():
            record = self.records.get(collection, {}).get(int(tail))
            if record is None:
                raise BackendAPIError(404, "Not Found", method, endpoint)
            return record
        if method == "GET":
            items = list(self.records.get(endpoint, {}).values())
            return {"items": items, "total": len(items)}
        return {}

    async def upload_file(self, endpoint, *, filename, content, content_type, fields=None):
        self.uploads.append({
            "endpoint": endpoint,
            "filename": filename,
            "content": content,
            "content_type": content_type,
            "fields": fields,
        })
        return {"id": 9, "filename": f"stored-{filename}", "url": f"/media/stored-{filename}"}


class FakeWebSearch(WebSearchClient):
    def __init__(self):
        self.queries: list[tuple[str, int]] = []

    async def search(self, query, *, max_results=5):
        self.queries.append((query, max_results))
        return {"answer": None, "results": [{"title": "Frieren", "url": "https://x", "content": "..."}]}


def _registry(backend=None, web_search=None, attachment=None):
    backend = backend or FakeBackendClient()
    context = ToolContext(backend=backend, web_search=web_search, attachment=attachment)
    return build_tool_registry(context), backend


_NEW_ANIME = {
    "titre": "Sousou no Frieren",
    "niceUrl": "sousou-no-frieren",
    "annee": 2023,
    "nbEp": 28,
    "synopsis": "Après la défaite du roi démon, l'elfe Frieren voyage.",
}

_NEW_MANGA = {
    "titre": "Dandadan",
    "niceUrl": "dandadan",
    "annee": 2021,
    "synopsis": "Momo et Okarun enquêtent sur le paranormal.",
}


def _has_title_key(schema: Any) -> bool:
    if isinstance(schema, dict):
        if isinstance(schema.get("title"), str):
            return True
        return any(_has_title_key(v) for v in schema.values())
    if isinstance(schema, list):
        return any(_has_title_key(v) for v in schema)
    return False


# ── Catalog ──


def test_catalog_contains_crud_tools_for_each_resource():
    registry, _ = _registry()

    for singular, plural in (("Anime", "Animes"), ("Manga", "Mangas"), ("Business", "Businesses")):
        for name in (
            f"list{plural}", f"get{singular}", f"create{singular}",
            f"update{singular}", f"update{singular}Status", f"delete{singular}",
        ):
            assert name in registry
    assert "addStaffToAnime" in registry
    assert "addStaffToManga" in registry
    assert "addStaffToBusiness" not in registry
    for name in ("createSeason", "createMangaWithVolume", "uploadCoverImage", "searchAniList"):
        assert name in registry


def test_web_search_only_registered_with_a_client():
    without, _ = _registry()
    with_search, _ = _registry(web_search=FakeWebSearch())

    assert "webSearch" not in without
    assert "webSearch" in with_search
    assert len(with_search) == len(without) + 1


def test_openai_definitions_are_function_schemas_without_titles():
    registry, _ = _registry()

    definitions = registry.openai_definitions()

    assert len(definitions) == len(registry)
    for definition in definitions:
        assert definition["type"] == "function"
        assert definition["function"]["description"]
        assert definition["function"]["parameters"]["type"] == "object"
        assert not _has_title_key(definition["function"]["parameters"])
    season = next(d for d in definitions if d["function"]["name"] == "createSeason")
    assert set(season["function"]["parameters"]["required"]) == {"annee", "saison"}


# ── Execution ──


@pytest.mark.asyncio
async def test_unknown_tool_is_a_failed_result():
    registry, backend = _registry()

    result = await registry.execute("dropDatabase", {})

    assert result.success is False
    assert "not registered" in result.error
    assert backend.calls == []


@pytest.mark.asyncio
async def test_invalid_arguments_are_rejected_before_any_backend_call():
    registry, backend = _registry()

    missing = await registry.execute("createAnime", {"titre": "Frieren"})
    extra = await registry.execute("getAnime", {"id": 1, "force": True})
    out_of_range = await registry.execute("updateAnimeStatus", {"id": 1, "statut": 7})

    for result in (missing, extra, out_of_range):
        assert result.success is False
        assert result.error.startswith("Invalid arguments for tool")
    assert "synopsis" in missing.error
    assert backend.calls == []


@pytest.mark.asyncio
async def test_list_is_idempotent_and_sends_filters_as_query():
    registry, backend = _registry()
    await registry.execute("createAnime", _NEW_ANIME)

    first = await registry.execute("listAnimes", {"search": "Frieren"})
    second = await registry.execute("listAnimes", {"search": "Frieren"})

    assert first.to_dict() == second.to_dict()
    assert first.message == "Found 1 anime(s)"
    method, endpoint, params, body = backend.calls[-1]
    assert (method, endpoint) == ("GET", "/api/admin/animes")
    assert params == {"page": 1, "limit": 20, "search": "Frieren"}
    assert body is None


@pytest.mark.asyncio
async def test_create_then_get_returns_the_created_record():
    registry, _ = _registry()

    created = await registry.execute("createAnime", _NEW_ANIME)
    fetched = await registry.execute("getAnime", {"id": created.data["id"]})

    assert created.success is True
    assert created.message == "Anime created successfully with ID 100"
    assert fetched.success is True
    assert fetched.data["titre"] == "Sousou no Frieren"
    assert fetched.data["statut"] == 0


@pytest.mark.asyncio
async def test_backend_error_becomes_failed_result():
    registry, _ = _registry()

    result = await registry.execute("getAnime", {"id": 404})

    assert result.success is False
    assert result.error == "API Error: 404 - Not Found"


@pytest.mark.asyncio
async def test_backend_timeout_becomes_failed_result():
    backend = FakeBackendClient({("GET", "/api/seasons"): httpx.ReadTimeout("slow")})
    registry, _ = _registry(backend)

    result = await registry.execute("listSeasons", {})

    assert result.success is False
    assert result.error == "Request timed out: ReadTimeout"


@pytest.mark.asyncio
async def test_update_without_fields_is_rejected():
    registry, backend = _registry()

    result = await registry.execute("updateManga", {"id": 12})

    assert result.success is False
    assert "No fields to update for manga ID 12" in result.error
    assert backend.calls == []


@pytest.mark.asyncio
async def test_update_sends_only_given_fields():
    registry, backend = _registry()

    result = await registry.execute("updateAnime", {"id": 5, "nbEp": 24, "titreFr": "Frieren"})

    assert result.success is True
    assert backend.calls == [("PUT", "/api/admin/animes/5", None, {"nbEp": 24, "titreFr": "Frieren"})]
    assert result.message == "Anime ID 5 updated (nbEp, titreFr)"


@pytest.mark.asyncio
async def test_update_status_uses_the_status_endpoint():
    registry, backend = _registry()

    result = await registry.execute("updateBusinessStatus", {"id": 3, "statut": 0})

    assert backend.calls == [("PUT", "/api/admin/business/3/status", None, {"statut": 0})]
    assert result.message == "Business ID 3 has been blocked"


@pytest.mark.asyncio
async def test_add_staff_links_a_business_with_a_role():
    registry, backend = _registry()

    result = await registry.execute(
        "addStaffToAnime", {"id": 5, "businessId": 8, "role": "Studio d'animation"}
    )

    assert result.success is True
    assert backend.calls == [(
        "POST", "/api/admin/animes/5/businesses", None,
        {"idBusiness": 8, "type": "Studio d'animation"},
    )]


# ── Seasons ──


@pytest.mark.asyncio
async def test_create_season_refuses_duplicates_and_returns_existing_id():
    backend = FakeBackendClient({
        ("GET", "/api/seasons"): [{"id_saison": 12, "annee": 2025, "saison": 1, "statut": 1}],
    })
    registry, _ = _registry(backend)

    result = await registry.execute("createSeason", {"annee": 2025, "saison": 1})

    assert result.success is False
    assert result.data == {"existingId": 12}
    assert "hiver 2025" in result.error
    assert [c[0] for c in backend.calls] == ["GET"]


@pytest.mark.asyncio
async def test_create_season_posts_when_absent():
    backend = FakeBackendClient({
        ("GET", "/api/seasons"): {"data": [{"id_saison": 12, "annee": 2025, "saison": 1}]},
        ("POST", "/api/admin/seasons"): {"id_saison": 13, "annee": 2025, "saison": 2, "statut": 1},
    })
    registry, _ = _registry(backend)

    result = await registry.execute("createSeason", {"annee": 2025, "saison": 2})

    assert result.success is True
    assert result.message == "Season printemps 2025 created with ID 13"
    assert backend.calls[-1] == (
        "POST", "/api/admin/seasons", None, {"annee": 2025, "saison": 2, "statut": 1}
    )


@pytest.mark.asyncio
async def test_season_membership_endpoints():
    registry, backend = _registry()

    await registry.execute("addAnimeToSeason", {"seasonId": 4, "animeId": 172})
    await registry.execute("removeAnimeFromSeason", {"seasonId": 4, "animeId": 172})

    assert backend.calls == [
        ("POST", "/api/admin/seasons/4/animes", None, {"animeId": 172}),
        ("DELETE", "/api/admin/seasons/4/animes/172", None, None),
    ]


class SeasonBackend(FakeBackendClient):
    """Serves ``GET /api/seasons`` from the seasons created through the admin route."""

    async def request(self, method, endpoint, *, params=None, body=None):
        if (method, endpoint) == ("GET", "/api/seasons"):
            self.calls.append((method, endpoint, params, body))
            return list(self.records.get("/api/admin/seasons", {}).values())
        return await super().request(method, endpoint, params=params, body=body)


@pytest.mark.asyncio
async def test_create_season_twice_rejects_the_second_call():
    registry, backend = _registry(SeasonBackend())

    first = await registry.execute("createSeason", {"annee": 2026, "saison": 3})
    second = await registry.execute("createSeason", {"annee": 2026, "saison": 3})

    assert first.success is True
    assert second.success is False
    assert second.error == "Season with annee+saison='été 2026' already exists (ID 100)"
    assert second.data == {"existingId": 100}
    assert len(backend.records["/api/admin/seasons"]) == 1


# ── Manga volumes ──


@pytest.mark.asyncio
async def test_create_manga_with_volume_without_isbn_skips_volume():
    registry, backend = _registry()

    result = await registry.execute("createMangaWithVolume", _NEW_MANGA)

    assert result.success is True
    assert result.data["mangaId"] == 100
    assert result.data["volume"] is None
    assert result.data["volumeSkipped"] == "no ISBN provided"
    assert len(backend.calls) == 1


@pytest.mark.asyncio
async def test_create_manga_with_volume_imports_from_isbn():
    backend = FakeBackendClient({
        ("POST", "/api/admin/mangas/100/volumes/import-isbn"): {"idVolume": 1, "numero": 1},
    })
    registry, _ = _registry(backend)

    result = await registry.execute(
        "createMangaWithVolume", {**_NEW_MANGA, "volumeIsbn": "978-2-8203-4225-1"}
    )

    assert result.success is True
    assert result.data["volume"] == {"idVolume": 1, "numero": 1}
    manga_body = backend.calls[0][3]
    assert "volumeIsbn" not in manga_body
    assert backend.calls[1][3] == {"isbn": "9782820342251", "numero": 1}


@pytest.mark.asyncio
async def test_create_manga_with_volume_keeps_manga_when_import_fails():
    backend = FakeBackendClient({
        ("POST", "/api/admin/mangas/100/volumes/import-isbn"): BackendAPIError(
            404, "ISBN not found", "POST", "/api/admin/mangas/100/volumes/import-isbn"
        ),
    })
    registry, _ = _registry(backend)

    result = await registry.execute(
        "createMangaWithVolume", {**_NEW_MANGA, "volumeIsbn": "9782820342251"}
    )

    assert result.success is True
    assert result.data["mangaId"] == 100
    assert result.data["volumeError"] == "API Error: 404 - ISBN not found"
    assert "failed" in result.message


@pytest.mark.asyncio
async def test_create_manga_with_volume_keeps_manga_when_import_times_out():
    backend = FakeBackendClient({
        ("POST", "/api/admin/mangas/100/volumes/import-isbn"): httpx.ReadTimeout("slow"),
    })
    registry, _ = _registry(backend)

    result = await registry.execute(
        "createMangaWithVolume", {**_NEW_MANGA, "volumeIsbn": "9782820342251"}
    )

    assert result.success is True
    assert result.data["mangaId"] == 100
    assert result.data["manga"]["titre"] == "Dandadan"
    assert result.data["volume"] is None
    assert result.data["volumeError"] == "slow"
    assert len(backend.records["/api/admin/mangas"]) == 1


@pytest.mark.asyncio
async def test_invalid_isbn_is_a_validation_error():
    registry, backend = _registry()

    result = await registry.execute("createMangaVolume", {"mangaId": 3, "numero": 1, "isbn": "12-34"})

    assert result.success is False
    assert "ISBN" in result.error
    assert backend.calls == []


# ── Media ──


@pytest.mark.asyncio
async def test_cover_upload_from_url_then_attach():
    backend = FakeBackendClient({
        ("POST", "/api/media/upload-from-url"): {"filename": "frieren.jpg", "url": "/media/frieren.jpg"},
    })
    registry, _ = _registry(backend)

    result = await registry.execute(
        "uploadCoverImage", {"entityId": 5, "imageUrl": "https://cdn.example.com/frieren.jpg"}
    )

    assert result.success is True
    assert result.data["attached"] is True
    assert backend.calls[0][3] == {
        "imageUrl": "https://cdn.example.com/frieren.jpg",
        "type": "anime",
        "relatedId": 5,
        "saveAsScreenshot": False,
    }
    assert backend.calls[1] == ("PUT", "/api/admin/animes/5", None, {"image": "frieren.jpg"})


@pytest.mark.asyncio
async def test_cover_upload_reports_partial_success_with_filename():
    backend = FakeBackendClient({
        ("POST", "/api/media/upload-from-url"): {"filename": "frieren.jpg", "url": "/media/frieren.jpg"},
        ("PUT", "/api/admin/mangas/7"): BackendAPIError(500, "boom", "PUT", "/api/admin/mangas/7"),
    })
    registry, _ = _registry(backend)

    result = await registry.execute(
        "uploadCoverImage",
        {"entityType": "manga", "entityId": 7, "imageUrl": "https://cdn.example.com/frieren.jpg"},
    )

    assert result.success is False
    assert result.data == {
        "filename": "frieren.jpg",
        "url": "/media/frieren.jpg",
        "uploaded": True,
        "attached": False,
    }
    assert "setCoverImage" in result.message


@pytest.mark.asyncio
async def test_cover_upload_uses_the_attached_image():
    attachment = ImageAttachment(
        base64="data:image/png;base64," + base64.b64encode(b"\x89PNG-bytes").decode(),
        name="cover.png",
        type="image/png",
    )
    registry, backend = _registry(attachment=attachment)

    result = await registry.execute("uploadCoverImage", {"entityId": 5, "useAttachedImage": True})

    assert result.success is True
    assert result.data["filename"] == "stored-cover.png"
    upload = backend.uploads[0]
    assert upload["endpoint"] == "/api/media/upload"
    assert upload["content"] == b"\x89PNG-bytes"
    assert upload["content_type"] == "image/png"
    assert upload["fields"] == {"type": "anime", "relatedId": "5", "saveAsScreenshot": "false"}


@pytest.mark.asyncio
async def test_attached_image_required_when_requested():
    registry, backend = _registry()

    result = await registry.execute("uploadScreenshot", {"animeId": 5, "useAttachedImage": True})

    assert result.success is False
    assert result.error == "No image is attached to the current message"
    assert backend.uploads == []


@pytest.mark.asyncio
async def test_image_tools_need_exactly_one_source():
    registry, backend = _registry()

    none = await registry.execute("uploadScreenshot", {"animeId": 5})
    two = await registry.execute(
        "uploadScreenshot",
        {"animeId": 5, "imageUrl": "https://cdn.example.com/a.jpg", "useAttachedImage": True},
    )

    assert none.success is False
    assert two.success is False
    assert "exactly one" in two.error
    assert backend.calls == []


@pytest.mark.asyncio
async def test_screenshot_from_inline_base64():
    registry, backend = _registry()

    result = await registry.execute(
        "uploadScreenshot",
        {"animeId": 5, "imageBase64": base64.b64encode(b"jpeg").decode(), "filename": "ep1.jpg"},
    )

    assert result.success is True
    assert result.data == {
        "screenshotId": 9,
        "animeId": 5,
        "filename": "stored-ep1.jpg",
        "url": "/media/stored-ep1.jpg",
    }
    assert backend.uploads[0]["fields"]["saveAsScreenshot"] == "true"


# ── Simple routes ──


@pytest.mark.parametrize(
    "tool,args,expected",
    [
        ("getCurrentSeason", {}, ("GET", "/api/seasons/current", None, None)),
        ("getLastCreatedSeason", {}, ("GET", "/api/seasons/last-created", None, None)),
        ("updateSeasonStatus", {"id": 4, "statut": 0},
         ("PATCH", "/api/admin/seasons/4", None, {"statut": 0})),
        ("deleteSeason", {"id": 4}, ("DELETE", "/api/admin/seasons/4", None, None)),
        ("listMangaVolumes", {"mangaId": 8}, ("GET", "/api/admin/mangas/8/volumes", None, None)),
        ("searchAniListSeason", {"year": 2025, "season": "fall"},
         ("GET", "/api/animes/anilist/season/2025/fall", None, None)),
        ("searchJikan", {"q": "Frieren"},
         ("GET", "/api/animes/jikan/search", {"q": "Frieren", "type": "anime", "limit": 10}, None)),
        ("searchGoogleBooks", {"q": "Dandadan"},
         ("GET", "/api/mangas/googlebooks/search", {"q": "Dandadan"}, None)),
        ("searchNautiljon", {"q": "Dandadan"},
         ("GET", "/api/mangas/nautiljon/search", {"q": "Dandadan", "type": "manga"}, None)),
    ],
)
@pytest.mark.asyncio
async def test_simple_tools_call_their_backend_route(tool, args, expected):
    registry, backend = _registry()

    result = await registry.execute(tool, args)

    assert result.success is True
    assert backend.calls == [expected]


@pytest.mark.asyncio
async def test_google_books_needs_a_query_or_isbn():
    registry, backend = _registry()

    result = await registry.execute("searchGoogleBooks", {})

    assert result.success is False
    assert "provide q or isbn" in result.error
    assert backend.calls == []


# ── External sources ──


@pytest.mark.asyncio
async def test_anilist_search_goes_through_the_backend():
    backend = FakeBackendClient({
        ("GET", "/api/animes/anilist/search"): {"animes": [{"id": 154587}]},
    })
    registry, _ = _registry(backend)

    result = await registry.execute("searchAniList", {"q": "Frieren"})

    assert result.message == "Found 1 anime(s) on AniList"
    assert backend.calls == [("GET", "/api/animes/anilist/search", {"q": "Frieren", "limit": 10}, None)]


@pytest.mark.asyncio
async def test_web_search_uses_the_search_client():
    web_search = FakeWebSearch()
    registry, backend = _registry(web_search=web_search)

    result = await registry.execute("webSearch", {"query": "Frieren saison 2", "maxResults": 3})

    assert result.success is True
    assert result.message == "Found 1 web result(s)"
    assert web_search.queries == [("Frieren saison 2", 3)]
    assert backend.calls == []
