"""HTTP endpoints for Heliox latency analytics."""

from .latency_api import LatencyAnalyticsAPI

__all__ = ["LatencyAnalyticsAPI"]
