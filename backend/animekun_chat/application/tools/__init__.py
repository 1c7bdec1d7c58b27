from .catalog import build_tool_registry
from .registry import ToolContext, ToolDefinition, ToolRegistry
from .resources import ANIME, BUSINESS, MANGA, RESOURCES, ResourceSpec, register_resource_tools

__all__ = [
    "build_tool_registry",
    "ToolContext",
    "ToolDefinition",
    "ToolRegistry",
    "ANIME",
    "BUSINESS",
    "MANGA",
    "RESOURCES",
    "ResourceSpec",
    "register_resource_tools",
]
