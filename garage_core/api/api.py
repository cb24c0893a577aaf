"""
Garage core REST API definitions

Users own cars and may park them in garages. Clients authenticate with
ID tokens of the identity provider, which can be obtained by logging in
through `GET /authReq`. The token must be included in the `Authorization`
header with the type `Bearer` for every path operation dealing with cars.
Garages can be managed without authentication.

The API always returns JSON-encoded data for endpoints that return a body,
so clients need to accept `application/json`; otherwise, `406` is returned.
All error responses use the schema of the `APIError`, where the `Error`
field contains a human-readable description of the problem:

1. `400` (Bad Request) is returned for invalid bodies, invalid path IDs or
   page cursors and for requests that would violate the state of cars and
   garages, e.g. deleting a car that's still in a garage.
2. `401` (Unauthorized) is returned whenever the bearer token is missing or
   can't be verified. Log in again to obtain a fresh token.
3. `403` (Forbidden) is returned when trying to move a car of another user.
4. `404` (Not Found) is returned whenever a model ID can't be found.
   Cars of other users are never found.
"""

import contextlib
import logging.config
from typing import Callable, Dict, Optional

import fastapi
from fastapi.exceptions import RequestValidationError, StarletteHTTPException

from . import base
from .auth import IdentityProvider, IdentityVerifier, OAuthClient
from .routers import router
from .. import schemas, __version__
from ..persistence import database
from ..settings import Settings


DEFAULT_EXCEPTION_HANDLERS = {
    StarletteHTTPException: base.APIException.handle,
    RequestValidationError: base.handle_request_validation_error,
    Exception: base.handle_generic_exception
}


def _make_app(
        title: str,
        version: str,
        description: str,
        exception_handlers: Optional[Dict[type, Callable]] = None,
        **kwargs
) -> fastapi.FastAPI:
    app = fastapi.FastAPI(
        title=title,
        version=version,
        description=description,
        responses={
            400: {"model": schemas.APIError},
            401: {"model": schemas.APIError},
            406: {"model": schemas.APIError}
        },
        **kwargs
    )

    handlers = exception_handlers or DEFAULT_EXCEPTION_HANDLERS
    for exc in handlers:
        app.add_exception_handler(exc, handlers[exc])

    return app


def create_app(
        settings: Optional[Settings] = None,
        configure_logging: bool = True,
        configure_database: bool = True,
        verifier: Optional[IdentityVerifier] = None,
        oauth_client: Optional[OAuthClient] = None
) -> fastapi.FastAPI:
    """
    Create a new ``FastAPI`` instance using the specified settings and switches

    This function is conveniently used to allow overwriting the settings
    before launching the application as well as to allow multiple ``FastAPI``
    instances in one program, which in turn makes unit testing much easier.
    The identity collaborators are constructed here once (if not given)
    and stored in the application's state for the path operations.

    :param settings: optional Settings instance (would be created if not present)
    :param configure_logging: switch whether to configure logging
    :param configure_database: switch whether to configure the database
    :param verifier: optional verifier of bearer tokens (created from the settings if not present)
    :param oauth_client: optional client for the login flow (created from the settings if not present)
    :return: new ``FastAPI`` instance
    """

    if settings is None:
        settings = Settings()

    if configure_logging:
        logging.config.dictConfig(settings.logging.model_dump(by_alias=True))
    logger = logging.getLogger(__name__)
    logger.debug("Starting application...")

    if configure_database:
        database.init(settings.database.connection, settings.database.debug_sql)

    if verifier is None or oauth_client is None:
        provider = IdentityProvider(settings.identity)
        verifier = verifier or IdentityVerifier(provider)
        oauth_client = oauth_client or OAuthClient(provider)
    if not settings.identity.client_id:
        logger.warning("No OAuth client ID configured! Bearer tokens can't be verified.")

    @contextlib.asynccontextmanager
    async def lifespan(_: fastapi.FastAPI):
        logger.info("Starting API...")
        yield
        logger.info("Shutting down...")

    app = _make_app(
        title="Garage core REST API",
        version=__version__,
        description=__doc__,
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.verifier = verifier
    app.state.oauth_client = oauth_client
    app.include_router(router)
    return app


class APIWrapper:
    """
    Wrapper class around the FastAPI main object, accessible via the ``app`` property

    There should be only one global instance of this object, which should only
    export its functionality to hold the ``app`` property. This wrapper can be
    used to allow easy command-line usage via ``uvicorn`` calls. Example:

    .. code-block::

        uvicorn garage_core.api:api.app
    """

    def __init__(self):
        self._app: Optional[fastapi.FastAPI] = None

    def get_app(self) -> fastapi.FastAPI:
        return self.app

    def set_app(self, application: fastapi.FastAPI):
        if not isinstance(application, fastapi.FastAPI):
            raise TypeError
        self._app = application

    @property
    def app(self) -> fastapi.FastAPI:
        """
        Return the ``app`` instance (or create it with default settings if it doesn't exist)
        """

        if self._app is not None:
            return self._app
        self._app = create_app()
        return self._app


api = APIWrapper()
