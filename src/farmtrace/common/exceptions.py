"""FarmTrace exception hierarchy."""


class FarmTraceError(Exception):
    """Base exception for all FarmTrace errors."""

    def __init__(self, message: str = "", code: str = "FARMTRACE_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class StageValidationError(FarmTraceError, ValueError):
    """Raised when a required stage field is missing or blank.

    Subclasses ValueError so request schemas report it as a 422.
    """

    def __init__(self, message: str = "Invalid stage"):
        super().__init__(message, code="VALIDATION_ERROR")


class ProductNotFoundError(FarmTraceError):
    """Raised when a product referenced by id cannot be found."""

    def __init__(self, message: str = "Product not found"):
        super().__init__(message, code="NOT_FOUND")


class PersistenceError(FarmTraceError):
    """Raised when the store rejects a read or write.

    ``integrity`` is True for constraint violations (unknown product or
    actor, duplicate batch code) as opposed to connectivity failures.
    """

    def __init__(self, message: str = "Store rejected the operation", integrity: bool = False):
        self.integrity = integrity
        super().__init__(message, code="PERSISTENCE_ERROR")
