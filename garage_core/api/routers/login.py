"""
Garage core router module for logging in via the identity provider

The login is a two-step OAuth2 authorization code flow: `/authReq` redirects
the browser to the consent page of the identity provider, which redirects back
to `/oauth` with an authorization code. That code is exchanged for the tokens
of the user, whose ID token is then shown to be used as bearer token.
"""

import html
import logging
from typing import Optional

from fastapi import Depends
from fastapi.responses import HTMLResponse, RedirectResponse

from ._router import router
from ..auth import OAuthClient, OAuthError
from ..base import BadRequest, InternalServerException
from ..dependency import MinimalRequestData
from ...persistence import models
from ...persistence.store import EntityStore


logger = logging.getLogger(__name__)

USER_INFO_PAGE = """<!DOCTYPE html>
<html>
<head><title>User Info</title></head>
<body>
<h1>User Info</h1>
<p>Name: {name}</p>
<p>User ID: {user_id}</p>
<p>Use the following ID token as bearer token in the <code>Authorization</code> header:</p>
<pre style="white-space: pre-wrap; word-break: break-all">{id_token}</pre>
</body>
</html>
"""


def _get_redirect_url(local: MinimalRequestData) -> str:
    return local.config.identity.redirect_url or f"{local.base_url}/oauth"


@router.get("/authReq", tags=["Authentication"], status_code=302, response_class=RedirectResponse)
def request_authorization(local: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Redirect to the consent page of the identity provider to start the login
    """

    oauth: OAuthClient = local.request.app.state.oauth_client
    return RedirectResponse(oauth.authorization_url(_get_redirect_url(local)), status_code=302)


@router.get("/oauth", tags=["Authentication"], response_class=HTMLResponse)
def receive_authorization(
        code: Optional[str] = None,
        error: Optional[str] = None,
        local: MinimalRequestData = Depends(MinimalRequestData)
):
    """
    Exchange the authorization code for the user's tokens and show the ID token

    Users logging in for the first time are registered with their user ID.

    * `400`: if the provider denied the authorization or the code is missing or invalid
    * `500`: if the identity provider couldn't be reached or answered unexpectedly
    """

    if error:
        raise BadRequest("The authorization was denied", detail=error)
    if not code:
        raise BadRequest("Missing authorization code")

    oauth: OAuthClient = local.request.app.state.oauth_client
    try:
        tokens = oauth.exchange_code(code, _get_redirect_url(local))
    except OAuthError as exc:
        if exc.client_error:
            raise BadRequest("Invalid authorization code", detail=str(exc)) from exc
        raise InternalServerException("The identity provider failed to issue tokens", detail=str(exc)) from exc

    try:
        user_id, name = oauth.fetch_profile(tokens["access_token"])
    except OAuthError as exc:
        raise InternalServerException("The user profile couldn't be retrieved", detail=str(exc)) from exc

    store = EntityStore(models.User, local.session)
    if not store.all(user_id=user_id):
        store.create(user_id=user_id, name=name)
        logger.info(f"Registered new user {user_id!r}")

    return HTMLResponse(USER_INFO_PAGE.format(
        name=html.escape(name),
        user_id=html.escape(user_id),
        id_token=html.escape(tokens["id_token"])
    ))
