"""Custom metrics for the catalog core."""

from opentelemetry import metrics

meter = metrics.get_meter("catalog-admin")

catalog_write_success_counter = meter.create_counter(
    name="catalog_write_success_total",
    description="Total number of successful catalog writes by entity type and operation",
    unit="1",
)

catalog_write_failure_counter = meter.create_counter(
    name="catalog_write_failure_total",
    description="Total number of failed catalog writes by entity type, operation and error",
    unit="1",
)

validation_rejection_counter = meter.create_counter(
    name="catalog_validation_rejection_total",
    description="Total number of form submissions rejected by local validation",
    unit="1",
)

upload_size_histogram = meter.create_histogram(
    name="catalog_image_upload_bytes",
    description="Size of committed image uploads by bucket",
    unit="By",
)

store_latency_histogram = meter.create_histogram(
    name="catalog_store_request_duration_seconds",
    description="Duration of remote catalog store requests",
    unit="s",
)


def record_write_success(entity_type: str, operation: str) -> None:
    """Record a successful create, update or delete."""
    catalog_write_success_counter.add(1, {"entity_type": entity_type, "operation": operation})


def record_write_failure(entity_type: str, operation: str, error_type: str) -> None:
    """Record a failed write.

    Args:
        entity_type: Table name of the entity
        operation: "create", "update" or "delete"
        error_type: Class name of the error raised
    """
    catalog_write_failure_counter.add(
        1, {"entity_type": entity_type, "operation": operation, "error_type": error_type}
    )


def record_validation_rejection(entity_type: str) -> None:
    validation_rejection_counter.add(1, {"entity_type": entity_type})


def record_upload(bucket: str, size_bytes: int) -> None:
    upload_size_histogram.record(size_bytes, {"bucket": bucket})


def record_store_latency(table: str, method: str, duration_seconds: float) -> None:
    """Record the duration of a remote catalog store request."""
    store_latency_histogram.record(duration_seconds, {"table": table, "method": method})
