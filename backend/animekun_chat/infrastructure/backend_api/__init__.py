"""Admin backend infrastructure package."""

from .nest_api_client import NestApiClient

__all__ = ["NestApiClient"]
