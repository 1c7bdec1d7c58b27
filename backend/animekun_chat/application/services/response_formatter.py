"""Last-resort renderer turning raw tool JSON into French text.

The system prompt asks the model to always phrase tool results itself; when
it does not and answers with the raw ``{"success": ...}`` envelope, these
renderers produce a readable answer instead. Nothing here ever raises: on
any unexpected shape the original text is returned untouched.
"""

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_RAW_TOOL_JSON = re.compile(r'^\s*\{[\s\S]*"success"[\s\S]*\}')

ANIME_STATUS_LABELS = {0: "❌ Bloquée", 1: "✅ Affichée", 2: "🟡 En attente"}
SEASON_ICONS = {1: "❄️", 2: "🌸", 3: "☀️", 4: "🍂"}
SEASON_LABELS = {1: "Hiver", 2: "Printemps", 3: "Été", 4: "Automne"}
ANILIST_SEASON_LABELS = {"winter": "Hiver", "spring": "Printemps", "summer": "Été", "fall": "Automne"}

_ANIME_LIST_LIMIT = 10
_ANILIST_LIMIT = 5
_SEASONAL_GROUP_LIMIT = 10


def format_anime_list(payload: dict[str, Any]) -> str:
    data = payload.get("data")
    if not payload.get("success") or not data:
        return "❌ Aucun résultat trouvé."

    items = data.get("items", []) if isinstance(data, dict) else data
    if not items:
        return "Aucun anime trouvé dans la base de données."
    total = (data.get("total") if isinstance(data, dict) else None) or len(items)

    lines = [f"J'ai trouvé **{total} anime(s)** :", ""]
    for index, anime in enumerate(items[:_ANIME_LIST_LIMIT], start=1):
        title = anime.get("titreFr") or anime.get("titre")
        status = ANIME_STATUS_LABELS.get(anime.get("statut"), "❓ Inconnu")
        kind = f"   📺 Type : {anime.get('format') or 'N/A'}"
        episodes = anime.get("nbEp")
        if episodes:
            kind += f" • {episodes} épisode{'s' if episodes > 1 else ''}"
        lines += [
            f"{index}. **{title}** ({anime.get('annee')})",
            kind,
            f"   📊 Statut : {status}",
            f"   🆔 ID : {anime.get('idAnime')}",
            "",
        ]

    if total > _ANIME_LIST_LIMIT:
        lines += [
            "",
            f"_Affichage des {_ANIME_LIST_LIMIT} premiers résultats sur {total}._",
            "_Affinez votre recherche pour voir plus de résultats._",
        ]
    return "\n".join(lines)


def format_season_list(payload: dict[str, Any]) -> str:
    seasons = payload.get("data")
    if not payload.get("success") or not seasons:
        return "Aucune saison trouvée dans la base de données."

    lines = [f"Voici les **{len(seasons)} saison(s)** disponibles :", ""]
    for index, season in enumerate(seasons, start=1):
        number = season.get("saison")
        icon = SEASON_ICONS.get(number, "📅")
        name = SEASON_LABELS.get(number, "Saison")
        status = "✅ Visible" if season.get("statut") == 1 else "🔒 Cachée"
        lines += [
            f"{index}. {icon} **{name} {season.get('annee')}**",
            f"   🆔 ID : {season.get('id_saison')} • {status}",
            "",
        ]
    return "\n".join(lines)


def format_anilist_results(payload: dict[str, Any]) -> str:
    data = payload.get("data") or {}
    animes = data.get("animes") if isinstance(data, dict) else None
    if not payload.get("success") or not animes:
        return "Aucun résultat trouvé sur AniList pour cette recherche."

    lines = [f"J'ai trouvé **{len(animes)} anime(s)** sur AniList :", ""]
    for index, anime in enumerate(animes[:_ANILIST_LIMIT], start=1):
        heading = f"{index}. **{anime.get('title') or anime.get('titre')}**"
        original = anime.get("titleOriginal") or anime.get("titreOrig")
        if original:
            heading += f" ({original})"
        lines.append(heading)
        year = anime.get("year") or anime.get("annee")
        if year:
            lines.append(f"   📅 Année : {year}")
        episodes = anime.get("episodes") or anime.get("nbEpisodes")
        if episodes:
            lines.append(f"   📺 Épisodes : {episodes}")
        studio = anime.get("studio") or anime.get("studios")
        if studio:
            lines.append(f"   🎬 Studio : {studio}")
        lines.append("")

    if len(animes) > _ANILIST_LIMIT:
        lines += ["", f"_Affichage des {_ANILIST_LIMIT} premiers résultats sur {len(animes)}._"]
    return "\n".join(lines)


def _anilist_title(anilist_data: dict[str, Any]) -> str:
    title = anilist_data.get("title") or {}
    if isinstance(title, str):
        return title
    return title.get("romaji") or title.get("english") or "?"


def format_anilist_season(payload: dict[str, Any]) -> str:
    comparisons = payload.get("comparisons") or []
    if not comparisons:
        return "Aucun anime trouvé sur AniList pour cette saison."

    season = payload.get("season")
    season_name = ANILIST_SEASON_LABELS.get(season, season)
    total = payload.get("total") or len(comparisons)
    in_db = [item for item in comparisons if item.get("existsInDb")]
    missing = [item for item in comparisons if not item.get("existsInDb")]

    lines = [f"📺 **{season_name} {payload.get('year')}** - {total} anime(s) trouvés sur AniList", ""]

    if in_db:
        lines.append(f"✅ **Déjà dans la base ({len(in_db)}):**")
        for index, item in enumerate(in_db[:_SEASONAL_GROUP_LIMIT], start=1):
            line = f"{index}. {_anilist_title(item.get('anilistData') or {})}"
            if item.get("dbData"):
                line += f" (ID: {item['dbData'].get('idAnime')})"
            lines.append(line)
        lines.append("")

    if missing:
        lines.append(f"➕ **Pas encore dans la base ({len(missing)}):**")
        for index, item in enumerate(missing[:_SEASONAL_GROUP_LIMIT], start=1):
            anilist_data = item.get("anilistData") or {}
            line = f"{index}. {_anilist_title(anilist_data)}"
            if anilist_data.get("format"):
                line += f" [{anilist_data['format']}]"
            if anilist_data.get("episodes"):
                line += f" - {anilist_data['episodes']} ép."
            lines.append(line)

    if len(comparisons) > 2 * _SEASONAL_GROUP_LIMIT:
        lines += [
            "",
            f"_Affichage des {2 * _SEASONAL_GROUP_LIMIT} premiers résultats sur {len(comparisons)}._",
        ]
    return "\n".join(lines)


def format_success(message: str, details: Any = None) -> str:
    lines = [f"✅ {message}"]
    if isinstance(details, dict):
        lines += [f"   • {key} : {value}" for key, value in details.items()]
    elif isinstance(details, list):
        lines += [f"   • {index} : {value}" for index, value in enumerate(details)]
    return "\n".join(lines) + "\n"


def format_error(error: str) -> str:
    return f"❌ Une erreur s'est produite\n   Détails : {error}"


def _render(payload: dict[str, Any]) -> str:
    data = payload.get("data")
    if isinstance(data, dict) and isinstance(data.get("items"), list):
        return format_anime_list(payload)
    if isinstance(data, list) and data and isinstance(data[0], dict) and data[0].get("saison"):
        return format_season_list(payload)
    if isinstance(payload.get("comparisons"), list) and payload.get("season") and payload.get("year"):
        return format_anilist_season(payload)
    if isinstance(data, dict) and data.get("animes"):
        return format_anilist_results(payload)
    if payload.get("success") and payload.get("message"):
        return format_success(payload["message"], data)
    if not payload.get("success") and payload.get("error"):
        return format_error(payload["error"])
    return (
        "✅ Opération réussie.\n\n"
        "_Note : Données reçues mais format non reconnu pour un affichage optimal._"
    )


def ensure_user_friendly_response(text: str) -> str:
    """Render ``text`` as French prose if it is a raw tool-result envelope."""
    if not _RAW_TOOL_JSON.match(text):
        return text
    try:
        payload = json.loads(text)
    except ValueError:
        return text
    if not isinstance(payload, dict):
        return text
    try:
        return _render(payload)
    except (AttributeError, KeyError, TypeError) as exc:
        logger.debug("Could not render tool JSON (%s); returning it unchanged", exc)
        return text


def process_stream_chunk(chunk: str) -> str:
    """Format a streamed chunk only if it looks like a complete tool result."""
    if '"success"' in chunk and '"data"' in chunk:
        return ensure_user_friendly_response(chunk)
    return chunk
