"""Tracing decorator for catalog operations."""

import functools
import inspect
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace

from catalog_admin.observability.config import SERVICE_NAME

F = TypeVar("F", bound=Callable[..., Any])


def _entity_type(args: tuple[Any, ...]) -> str | None:
    """Entity type of the repository or form a method is bound to, if any."""
    if not args:
        return None
    entity_type = getattr(args[0], "entity_type", None)
    return getattr(entity_type, "value", None)


def traced(span_name: str | None = None, service_name: str = SERVICE_NAME) -> Callable[[F], F]:
    """Run the decorated function inside an OpenTelemetry span.

    Methods of objects exposing ``entity_type`` (repositories, form
    controllers) tag the span with ``catalog.entity_type``. A raised exception
    is recorded on the span and re-raised unchanged.

    Args:
        span_name: Span name, the function name when omitted
        service_name: Instrumentation scope of the tracer

    Example:
        @traced("catalog.create")
        async def create(self, draft: Draft) -> CatalogEntity:
            ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__qualname__

        def _open(span: trace.Span, args: tuple[Any, ...]) -> None:
            span.set_attribute("code.function", func.__qualname__)
            entity_type = _entity_type(args)
            if entity_type is not None:
                span.set_attribute("catalog.entity_type", entity_type)

        def _record_failure(span: trace.Span, e: Exception) -> None:
            span.set_attribute("success", False)
            span.set_attribute("error.type", type(e).__name__)
            span.record_exception(e)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                with trace.get_tracer(service_name).start_as_current_span(name) as span:
                    _open(span, args)
                    try:
                        result = await func(*args, **kwargs)
                    except Exception as e:
                        _record_failure(span, e)
                        raise
                    span.set_attribute("success", True)
                    return result

            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            with trace.get_tracer(service_name).start_as_current_span(name) as span:
                _open(span, args)
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                span.set_attribute("success", True)
                return result

        return sync_wrapper  # type: ignore

    return decorator
