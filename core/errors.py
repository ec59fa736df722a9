"""
Shared error types for core services.
"""


class ValidationIssue(ValueError):
    def __init__(
        self,
        message: str,
        field: str = "unknown",
        error_type: str = "invalid",
        error_code: str | None = None,
        data: dict | None = None,
    ):
        super().__init__(message)
        self.field = field
        self.error_type = error_type
        self.error_code = error_code
        self.data = data


class RecordNotFoundError(LookupError):
    """Raised when a lookup that must succeed finds no row."""

    def __init__(self, model: str, record_id=None, message: str | None = None):
        if message is None:
            if record_id is None:
                message = f"{model} not found"
            else:
                message = f"{model} not found: {record_id}"
        super().__init__(message)
        self.model = model
        self.record_id = record_id
