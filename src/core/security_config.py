"""Security configuration constants for the JewelForge API.

This module centralizes security-related configuration including:
- Sensitive keys that should be sanitized from logs
- Error handling security settings
"""

# Keys whose values are redacted from structured logs. Matching is by
# case-insensitive substring, so keep entries specific enough not to hide
# counters such as ``message_length``.
SENSITIVE_KEYS: set[str] = {
    # Credentials
    "password",
    "secret",
    "token_value",
    "access_token",
    "refresh_token",
    "authorization",
    "api_key",
    "x-api-key",
    "cookie",
    "set-cookie",
    "connection_string",
    "database_url",
    # Design conversation content (may carry personal details)
    "raw_text",
    "transcript",
    "system_prompt",
    "user_message",
    "assistant_message",
    "engraving",
    "email",
    "phone",
}

# Production-only error response fields
# In production, error responses should only contain these fields to
# prevent information leakage
PRODUCTION_ERROR_FIELDS: set[str] = {
    "correlation_id",
    "type",
}

# Development error response fields (additional fields allowed in development)
DEVELOPMENT_ERROR_FIELDS: set[str] = PRODUCTION_ERROR_FIELDS | {
    "details",
    "traceback",
    "exception_type",
    "validation_errors",
}


def get_allowed_error_fields(environment: str) -> set[str]:
    """Get allowed error response fields based on environment."""
    if environment == "production":
        return PRODUCTION_ERROR_FIELDS.copy()
    return DEVELOPMENT_ERROR_FIELDS.copy()


def is_sensitive_key(key: str) -> bool:
    """Check if a key should be considered sensitive and redacted."""
    key_lower = key.lower()
    return any(sensitive in key_lower for sensitive in SENSITIVE_KEYS)
