"""Domain errors raised by services; routers map them to HTTP responses."""

from fastapi import HTTPException, status


class DealsAdminError(Exception):
    """Base class for service-layer errors."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.detail)


class NotFoundError(DealsAdminError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(DealsAdminError):
    status_code = status.HTTP_409_CONFLICT


class StorageError(DealsAdminError):
    """Object storage rejected a request or could not be reached."""

    status_code = status.HTTP_502_BAD_GATEWAY


class AuthProviderError(DealsAdminError):
    """The hosted auth provider rejected a request or could not be reached."""

    status_code = status.HTTP_502_BAD_GATEWAY

    def __init__(self, detail: str, upstream_status: int | None = None):
        super().__init__(detail)
        self.upstream_status = upstream_status
        # upstream 4xx: bad credentials or input
        if upstream_status in (400, 401, 403, 422):
            self.status_code = status.HTTP_400_BAD_REQUEST
