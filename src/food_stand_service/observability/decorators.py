"""OpenTelemetry tracing decorators."""

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Span

F = TypeVar("F", bound=Callable[..., Any])


def _record_failure(span: Span, error: Exception) -> None:
    span.set_attribute("success", False)
    span.set_attribute("error.type", type(error).__name__)
    span.set_attribute("error.message", str(error))
    span.record_exception(error)


def _record_outcome(span: Span, result: Any) -> None:
    # Service results report failures as values rather than exceptions
    success = getattr(result, "success", True)
    span.set_attribute("success", bool(success))
    error = getattr(result, "error", None)
    if error is not None:
        span.set_attribute("error.reason", getattr(error, "value", str(error)))


def traced(span_name: str | None = None, service_name: str = "food-stand-svc") -> Callable[[F], F]:
    """Wrap a function in an OpenTelemetry span.

    Exceptions are recorded on the span and re-raised. When the function
    returns an object with ``success``/``error`` attributes (a ServiceResult),
    those are copied onto the span as well. Only coroutine functions can be
    wrapped.

    Args:
        span_name: Name for the span (defaults to the function name)
        service_name: Tracer name and ``service.name`` span attribute

    Returns:
        Decorated function with tracing

    Example:
        @traced("place_menu_order")
        async def place_menu_order(self, request): ...
    """

    def decorator(func: F) -> F:
        name = span_name or func.__name__
        tracer = trace.get_tracer(service_name)

        def _start(span: Span) -> None:
            span.set_attribute("service.name", service_name)
            if span_name:
                span.set_attribute("function.name", func.__name__)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            with tracer.start_as_current_span(name) as span:
                _start(span)
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _record_failure(span, e)
                    raise
                _record_outcome(span, result)
                return result

        return wrapper  # type: ignore

    return decorator
