class NotFoundError(ValueError):
    """Requested record does not exist (or belongs to another user)."""


class ConflictError(ValueError):
    """Request clashes with stored state, e.g. a second active session."""


class InvalidInputError(ValueError):
    """Input is missing or out of range."""


def require_non_negative(**values):
    """Reject negative counters/durations before any computation."""
    for name, value in values.items():
        if value is None:
            raise InvalidInputError(f"{name} is required")
        if value < 0:
            raise InvalidInputError(f"{name} must be >= 0 (got {value})")


def require_rating(name: str, value, allow_none: bool = False):
    """Ratings (difficulty, comprehension, quality) are integers in 1..5."""
    if value is None:
        if allow_none:
            return
        raise InvalidInputError(f"{name} is required")
    if not 1 <= value <= 5:
        raise InvalidInputError(f"{name} must be between 1 and 5 (got {value})")
