"""User-facing wording for failures that end a chat turn."""

import logging


logger = logging.getLogger(__name__)


def user_friendly_error_message(exc: BaseException) -> str:
    """Convert technical exceptions to messages safe to show the user.

    Raw provider errors can contain request details, so only these canned
    messages ever reach the client.
    """
    exc_str = f"{type(exc).__name__} {exc}".lower()

    # Gemini API overload / service unavailable
    if "503" in exc_str or "overloaded" in exc_str or "unavailable" in exc_str:
        return (
            "The AI service is currently experiencing high demand. "
            "Please wait a moment and try again."
        )

    # Rate limiting
    if "429" in exc_str or "rate limit" in exc_str or "quota" in exc_str:
        return (
            "You've sent too many requests. Please wait a minute before trying again."
        )

    if "timeout" in exc_str or "timed out" in exc_str:
        return "The request took too long to complete. Please try again later."

    if "api key" in exc_str or "no valid llm provider" in exc_str:
        return "The AI service is not configured. Please contact support."

    if "connection" in exc_str or "network" in exc_str:
        return (
            "There was a network issue connecting to the AI service. "
            "Please check your connection and try again."
        )

    logger.error("Unhandled chat error: %s", exc)
    return "Something went wrong. Please try again."
