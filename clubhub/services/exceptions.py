class ServiceError(Exception):
    """Error raised by the service layer and rendered as a JSON response."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def detail(self) -> str:
        return self.message


class Unauthenticated(ServiceError):
    status_code = 401


class Forbidden(ServiceError):
    status_code = 403


class NotFound(ServiceError):
    status_code = 404


class InvalidInput(ServiceError):
    status_code = 400


class Conflict(ServiceError):
    status_code = 409


class UpstreamFailure(ServiceError):
    """A remote dependency (the generative model) failed or misbehaved."""

    status_code = 502


class NoClubsAvailable(NotFound):
    def __init__(self, message: str = "No clubs available to suggest"):
        super().__init__(message)
