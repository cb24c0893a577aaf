"""
Garage core API dependency library
"""

import logging
from typing import Generator, Optional

import sqlalchemy.exc
import fastapi.datastructures
from fastapi import Depends, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from . import base
from .auth import IdentityVerifier
from ..persistence import database
from ..settings import Settings


JSON_MEDIA_TYPE = "application/json"

_bearer_scheme = HTTPBearer(auto_error=False)


def get_session() -> Generator[Session, None, bool]:
    """
    Return a generator to handle database sessions gracefully
    """

    logger = logging.getLogger(__name__)
    session = database.get_new_session()

    try:
        yield session
        session.flush()
    except sqlalchemy.exc.DBAPIError as exc:
        details = (exc.statement or "").replace("\n", "")
        logger.exception(f"{type(exc).__name__}: {exc.orig} @ {details!r}")
        session.rollback()
        raise
    except sqlalchemy.exc.SQLAlchemyError as exc:
        logger.exception(f"{type(exc).__name__}: {str(exc)}")
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
    return True


def accepts_json(accept: Optional[str]) -> bool:
    """
    Determine whether the value of an Accept header allows JSON responses
    """

    if not accept or not accept.strip():
        return True

    for entry in accept.split(","):
        media_type, *params = [part.strip().lower() for part in entry.split(";")]
        if media_type not in (JSON_MEDIA_TYPE, "application/*", "*/*"):
            continue
        quality = 1.0
        for param in params:
            name, _, value = param.partition("=")
            if name.strip() == "q":
                try:
                    quality = float(value.strip())
                except ValueError:
                    quality = 0.0
        # a quality of zero explicitly marks the media type as not acceptable
        if quality > 0:
            return True
    return False


async def require_json_accept(request: Request):
    """
    Reject the request with 406 Not Acceptable if the client doesn't accept JSON responses
    """

    accept = request.headers.get("Accept")
    if not accepts_json(accept):
        raise base.NotAcceptable(JSON_MEDIA_TYPE, accept)


def check_auth_token(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme)
) -> str:
    """
    Return the subject of the verified bearer token or raise 401 Unauthorized
    """

    logger = logging.getLogger(__name__)
    if credentials is None:
        logger.debug(f"No bearer token in request '{request.method} {request.url.path}'")
        raise base.Unauthorized("missing bearer token")

    verifier: IdentityVerifier = request.app.state.verifier
    claims = verifier.verify(credentials.credentials)
    if claims is None:
        logger.debug(f"Invalid bearer token in request '{request.method} {request.url.path}'")
        raise base.Unauthorized("invalid bearer token")
    return claims["sub"]


class MinimalRequestData:
    """
    Collection of minimal dependencies used by path operations without authentication
    """

    def __init__(
            self,
            request: Request,
            response: Response,
            session: Session = Depends(get_session)
    ):
        self.request = request
        self.response = response
        self.headers: fastapi.datastructures.Headers = request.headers
        self.session = session

    @property
    def config(self) -> Settings:
        return self.request.app.state.settings

    @property
    def base_url(self) -> str:
        """
        Absolute URL of the API root used to build hyperlinks in responses
        """

        if self.config.server.public_base_url:
            return str(self.config.server.public_base_url).rstrip("/")
        return str(self.request.base_url).rstrip("/")

    @property
    def page_size(self) -> int:
        return self.config.general.page_size


class LocalRequestData(MinimalRequestData):
    """
    Collection of core dependencies used by all path operations acting on behalf of a user

    The ``subject`` is the verified identity of the requesting user.
    Note that any dependency added here will be added to the OpenAPI
    definition, if it refers to a Query, Header, Path or Cookie.
    """

    def __init__(
            self,
            request: Request,
            response: Response,
            session: Session = Depends(get_session),
            subject: str = Depends(check_auth_token)
    ):
        super().__init__(request, response, session)
        self.subject: str = subject
