"""Unit tests for the raw tool JSON safety net."""

import json

from animekun_chat.application.services import ensure_user_friendly_response, process_stream_chunk
from animekun_chat.application.services.response_formatter import format_error, format_success


def test_anime_list_is_rendered_in_french():
    payload = {
        "success": True,
        "data": {
            "items": [
                {"idAnime": 172, "titre": "Naruto", "annee": 2002, "nbEp": 220,
                 "format": "Série TV", "statut": 1},
            ],
            "total": 1,
        },
    }

    text = ensure_user_friendly_response(json.dumps(payload))

    assert text == (
        "J'ai trouvé **1 anime(s)** :\n"
        "\n"
        "1. **Naruto** (2002)\n"
        "   📺 Type : Série TV • 220 épisodes\n"
        "   📊 Statut : ✅ Affichée\n"
        "   🆔 ID : 172\n"
    )


def test_anime_list_prefers_french_title_and_truncates():
    items = [
        {"idAnime": i, "titre": f"Title {i}", "titreFr": f"Titre {i}", "annee": 2020, "statut": 2}
        for i in range(1, 13)
    ]
    payload = {"success": True, "data": {"items": items, "total": 12}}

    text = ensure_user_friendly_response(json.dumps(payload))

    assert "1. **Titre 1** (2020)" in text
    assert "   📺 Type : N/A" in text
    assert "🟡 En attente" in text
    assert "Titre 11" not in text
    assert "_Affichage des 10 premiers résultats sur 12._" in text


def test_season_list():
    payload = {
        "success": True,
        "data": [{"id_saison": 3, "annee": 2025, "saison": 1, "statut": 1}],
    }

    text = ensure_user_friendly_response(json.dumps(payload))

    assert text.startswith("Voici les **1 saison(s)** disponibles :")
    assert "1. ❄️ **Hiver 2025**" in text
    assert "🆔 ID : 3 • ✅ Visible" in text


def test_anilist_season_comparison():
    payload = {
        "success": True,
        "season": "fall",
        "year": 2024,
        "comparisons": [
            {"existsInDb": True, "anilistData": {"title": {"romaji": "Dandadan"}}, "dbData": {"idAnime": 9}},
            {"existsInDb": False, "anilistData": {"title": {"english": "Re:Zero"}, "format": "TV", "episodes": 16}},
        ],
    }

    text = ensure_user_friendly_response(json.dumps(payload))

    assert text.startswith("📺 **Automne 2024** - 2 anime(s) trouvés sur AniList")
    assert "1. Dandadan (ID: 9)" in text
    assert "1. Re:Zero [TV] - 16 ép." in text


def test_success_and_error_envelopes():
    success = ensure_user_friendly_response(
        json.dumps({"success": True, "message": "Anime ID 5 deleted", "data": {"id": 5}})
    )
    failure = ensure_user_friendly_response(json.dumps({"success": False, "error": "API Error: 404"}))

    assert success == format_success("Anime ID 5 deleted", {"id": 5})
    assert success.startswith("✅ Anime ID 5 deleted")
    assert failure == format_error("API Error: 404")


def test_unknown_shape_gets_generic_message():
    text = ensure_user_friendly_response(json.dumps({"success": True, "data": 42}))
    assert text.startswith("✅ Opération réussie.")


def test_plain_text_is_untouched():
    text = "Voici les informations sur **Naruto**."
    assert ensure_user_friendly_response(text) == text


def test_invalid_json_is_returned_unchanged():
    text = '{"success": true, "data": {'  # truncated
    assert ensure_user_friendly_response(text + "}") == text + "}"
    assert ensure_user_friendly_response(text) == text


def test_process_stream_chunk_only_touches_tool_envelopes():
    assert process_stream_chunk("Bonjour") == "Bonjour"
    assert process_stream_chunk('{"success": false, "data": null, "error": "x"}').startswith("❌")
