"""Error taxonomy shared by the client and the controller."""


class OriginPointError(Exception):
    """Base class for every error the controller turns into a notice."""


class ValidationError(OriginPointError):
    """An empty query or evidence text was submitted."""


class UpstreamError(OriginPointError):
    """The generative backend failed or returned nothing usable."""


class SchemaParseError(OriginPointError):
    """Structured output did not match the declared shape."""


class ControllerStateError(OriginPointError):
    """An operation was issued in a phase that does not allow it."""


def require_text(value: str, what: str = "query") -> str:
    """Return ``value`` stripped, or raise ValidationError if it is blank."""
    if value is None or not value.strip():
        raise ValidationError(f"{what} must not be empty")
    return value.strip()
