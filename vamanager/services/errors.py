class VAManagerError(Exception):
    """Base class for errors a service raises before touching the database."""

class RecordNotFoundError(VAManagerError):
    pass

class DuplicateRecordError(VAManagerError):
    pass

class InvalidFieldError(VAManagerError):
    pass

def require_text(value: str | None, field: str) -> str:
    """Strip a required text field, rejecting blanks."""
    cleaned = (value or "").strip()
    if not cleaned:
        raise InvalidFieldError(f"{field} is required")
    return cleaned
