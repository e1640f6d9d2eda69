"""OpenTelemetry instrumentation and logging setup for the catalog core."""

from catalog_admin.observability.config import configure_logging, setup_observability
from catalog_admin.observability.decorators import traced

__all__ = ["setup_observability", "configure_logging", "traced"]
