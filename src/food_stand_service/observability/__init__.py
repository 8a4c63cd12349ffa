"""Logging, tracing and metrics for the food stand service."""

from food_stand_service.observability.config import configure_logging, setup_observability
from food_stand_service.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
