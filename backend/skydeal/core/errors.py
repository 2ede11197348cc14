"""Error taxonomy for the deal engine."""


class SkyDealError(Exception):
    """Base class for errors raised by the deal engine."""


class NotFoundError(SkyDealError):
    """A flight, deal, notification or user does not exist."""

    def __init__(self, kind: str, ident) -> None:
        super().__init__(f"{kind} not found: {ident}")
        self.kind = kind
        self.ident = ident


class ValidationError(SkyDealError):
    """Malformed input. Surfaced to HTTP callers as a 4xx, never retried."""


class PreferenceValidationError(ValidationError):
    """A stored or submitted UserPreference holds a value outside its enum."""


class TransientDependencyError(SkyDealError):
    """The mail transport or the history store is unavailable."""


class InvariantViolation(SkyDealError):
    """A uniqueness guarantee was observed to be broken."""
