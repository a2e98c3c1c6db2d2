class LinkError(Exception):
    """Base for every failure a link operation reports to its caller."""

    kind = "error"
    status_code = 400
    message = "Something went wrong."

    def __init__(self, message: str | None = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    @property
    def detail(self) -> str | dict[str, str]:
        return self.message


class ValidationError(LinkError):
    kind = "validation"
    status_code = 422
    message = "Invalid input."

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(self.errors.values()) or None)

    @property
    def detail(self) -> dict[str, str]:
        return self.errors


class UnauthorizedError(LinkError):
    kind = "unauthorized"
    status_code = 401
    message = "Unauthorized"


class NotFoundError(LinkError):
    kind = "not_found"
    status_code = 404
    message = "Link not found."


class CodeTakenError(LinkError):
    kind = "code_taken"
    status_code = 409
    message = "That short code is already taken. Please choose a different one."


class AllocationExhaustedError(LinkError):
    kind = "allocation_exhausted"
    status_code = 503
    message = "Failed to generate a unique short code. Please try again."


class OperationFailedError(LinkError):
    kind = "operation_failed"
    status_code = 500
    message = "The operation failed. Please try again."


STATUS_BY_KIND = {
    cls.kind: cls.status_code
    for cls in (
        ValidationError,
        UnauthorizedError,
        NotFoundError,
        CodeTakenError,
        AllocationExhaustedError,
        OperationFailedError,
    )
}
