"""
Garage core REST API base library
"""

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import schemas


logger = logging.getLogger(__name__)


def _error_response(message: str, status_code: int, headers: Optional[Dict[str, Any]] = None) -> JSONResponse:
    return JSONResponse(
        jsonable_encoder(schemas.APIError(Error=message)),
        status_code=status_code,
        headers=headers
    )


async def handle_generic_exception(request: Request, _: Exception):
    logger.exception(f"Unhandled exception caught in base exception handler @ '{request.method} {request.url.path}'")
    return _error_response("Unexpected server error. The requested action wasn't completed successfully.", 500)


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    msgs = "; ".join(
        f"{'.'.join(str(loc) for loc in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    logger.debug(f"Request validation failed @ '{request.method} {request.url.path}': {msgs}")
    return _error_response(f"Invalid request: {msgs}", 400)


class APIException(HTTPException):
    """
    Base class for any kind of generic API exception
    """

    def __init__(
            self,
            status_code: int,
            detail: Optional[str] = None,
            message: Optional[str] = None,
            headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.message = message

    @classmethod
    async def handle(cls, request: Request, exc: StarletteHTTPException) -> Response:
        """
        Handle exceptions in a generic way to produce APIError models
        """

        status_code = getattr(exc, "status_code", 500)
        message = getattr(exc, "message", None) or str(exc.detail or exc.__class__.__name__)

        logger.debug(
            f"{type(exc).__name__}: {message} @ '{request.method} "
            f"{request.url.path}' (details: {exc.detail})"
        )
        return _error_response(message, status_code, getattr(exc, "headers", None))


class BadRequest(APIException):
    """
    Exception when the user probably messed something up, e.g. with invalid or unknown fields

    The `message` field must be user-friendly and not too informative!
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(status_code=400, detail=detail, message=message)


class Unauthorized(APIException):
    """
    Exception when the request carries no bearer token or the token couldn't be verified

    Both cases look identical to the client, since the response
    must not reveal why the authentication didn't succeed.
    """

    def __init__(self, detail: Optional[str] = None):
        super().__init__(
            status_code=401,
            detail=detail,
            message="Missing or invalid bearer token",
            headers={"WWW-Authenticate": "Bearer"}
        )


class Forbidden(APIException):
    """
    Exception when the authenticated user isn't allowed to manipulate a resource
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(status_code=403, detail=detail, message=message)


class NotFound(APIException):
    """
    Exception when a requested resource was not found in the system
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(status_code=404, detail=detail, message=message)


class Conflict(APIException):
    """
    Exception when a request would violate the state of cars and garages

    Such requests are treated like any other bad request (status 400).
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(status_code=400, detail=detail, message=message)


class MethodNotAllowed(APIException):
    """
    Exception when a known resource doesn't support the requested method
    """

    def __init__(self, request: Request, allowed: str):
        super().__init__(
            status_code=405,
            detail=allowed,
            message=f"The {request.method} method is not allowed on {request.url}",
            headers={"Accept": allowed, "Allow": allowed}
        )


class NotAcceptable(APIException):
    """
    Exception when the client doesn't accept the media type of the response
    """

    def __init__(self, offered: str, accepted: Optional[str]):
        super().__init__(
            status_code=406,
            detail=accepted,
            message=f"Unsupported Accept MIME type {accepted or ''}. Must accept {offered}"
        )


class InternalServerException(APIException):
    """
    Exception for problems within the server implementation or its collaborators
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(status_code=500, detail=detail, message=message)
