"""Tracing helpers for JewelForge.

Spans are created through the OpenTelemetry API. Without an SDK/exporter
configured by the deployment the API hands back non-recording spans, so
instrumented code paths behave the same in tests and local runs.

PII guidance:
- NEVER put raw user messages, assistant text, or system prompts in span
  attributes
- Use correlation IDs and project IDs to link traces
- Prefer StructuredLogger (core/error_handler.py), which redacts sensitive keys
"""

from __future__ import annotations

from opentelemetry import trace


# Span name used around a single streamed design-chat turn
DESIGN_CHAT_STREAM_SPAN = "design_chat.stream"


def get_tracer(name: str) -> trace.Tracer:
    """Get an OpenTelemetry tracer for custom instrumentation.

    Args:
        name: The name of the tracer, typically __name__ of the calling module.

    Example:
        tracer = get_tracer(__name__)

        with tracer.start_as_current_span(DESIGN_CHAT_STREAM_SPAN) as span:
            span.set_attribute("project.id", project_id)

    WARNING: Never add user content or PII to span attributes!
    """
    return trace.get_tracer(name)
