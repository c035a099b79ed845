class VendHubError(Exception):
    """Base class for every error the ingestion core raises on purpose."""

    code = "VENDHUB_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def __str__(self) -> str:
        return self.message


class MalformedInput(VendHubError):
    """The upload as a whole cannot be processed (empty, no data rows, bad headers)."""

    code = "MALFORMED_INPUT"


class MissingField(VendHubError):
    code = "MISSING_FIELD"

    def __init__(self, fields: list[str]):
        self.fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")

    @property
    def field(self) -> str:
        return self.fields[0]


class InvalidDate(VendHubError):
    code = "INVALID_DATE"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid date format: {value}")


class InvalidAmount(VendHubError):
    code = "INVALID_AMOUNT"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid price: {value}")


class PersistenceError(VendHubError):
    """The store rejected a lookup, insert or update."""

    code = "DATABASE_ERROR"


class ValidationError(VendHubError):
    code = "VALIDATION_ERROR"


class NotFoundError(VendHubError):
    code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} with id {resource_id} not found")
