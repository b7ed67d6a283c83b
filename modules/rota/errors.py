class RotaError(Exception):
    """Base error for scheduling rules. `status_code` maps it onto HTTP."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RotaError):
    status_code = 400


class PermissionDeniedError(RotaError):
    status_code = 403


class NotFoundError(RotaError):
    status_code = 404


class ConflictError(RotaError):
    """Overlapping assignment, stale version, or a request already decided."""

    status_code = 409
