"""Assembly of the full tool catalog for one request."""

from animekun_chat.application.tools.external import register_external_tools
from animekun_chat.application.tools.media import register_media_tools
from animekun_chat.application.tools.registry import ToolContext, ToolRegistry
from animekun_chat.application.tools.resources import RESOURCES, register_resource_tools
from animekun_chat.application.tools.seasons import register_season_tools
from animekun_chat.application.tools.volumes import register_volume_tools


def build_tool_registry(context: ToolContext) -> ToolRegistry:
    """Build the registry bound to ``context``.

    ``webSearch`` is only present when ``context.web_search`` is set.
    """
    registry = ToolRegistry(context)
    for spec in RESOURCES.values():
        register_resource_tools(registry, spec)
    register_season_tools(registry)
    register_volume_tools(registry)
    register_external_tools(registry, web_search=context.web_search is not None)
    register_media_tools(registry)
    return registry
