"""Caller input parsing: deployment properties and required fields."""

import json

from .exceptions import ValidationError


def parse_properties(json_text: str | None) -> dict[str, str]:
    """
    Parse deployer/app properties given as a flat JSON object of strings.

    Blank or absent input means "no properties". Anything else that is not a
    JSON object of string values raises ValidationError, so malformed
    properties never reach the control plane.
    """
    if json_text is None or not json_text.strip():
        return {}

    try:
        parsed = json.loads(json_text)
    except ValueError as e:
        raise ValidationError(f"Failed to parse deployer properties JSON: {e}") from e

    if not isinstance(parsed, dict):
        raise ValidationError(
            f"Deployer properties must be a JSON object, got {type(parsed).__name__}"
        )

    bad_keys = [key for key, value in parsed.items() if not isinstance(value, str)]
    if bad_keys:
        raise ValidationError(
            f"Deployer property values must be strings: {', '.join(sorted(bad_keys))}"
        )
    return parsed


def require_text(value: str | None, field: str) -> str:
    """Stripped ``value``; blank or missing raises ValidationError."""
    if value is None or not value.strip():
        raise ValidationError(f"{field} must not be empty")
    return value.strip()
