class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class IdentityNotFound(DomainError):
    """Raised when an identity id does not reference a registered identity."""

    def __init__(self, identity_id: str):
        super().__init__(f"Identity {identity_id!r} is not registered")
        self.identity_id = identity_id


class DuplicateIdentity(DomainError):
    """Raised when registering an identity id that already exists."""


class CorruptRecord(DomainError):
    """Raised when a stored punch record violates its invariants.

    Never repaired automatically; surfaced to an operator.
    """

    def __init__(self, message: str, *, identity_id: str, day: str):
        super().__init__(message)
        self.identity_id = identity_id
        self.day = day


class StoreUnavailable(DomainError):
    """Transient storage failure. The whole punch call is safe to retry."""


class ResolverFailure(DomainError):
    """The external face matching/indexing service failed."""

    def __init__(self, message: str, *, retryable: bool = True):
        super().__init__(message)
        self.retryable = retryable
