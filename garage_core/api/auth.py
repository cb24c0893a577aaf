"""
Authentication helper library for the core REST API

Clients authenticate with OpenID Connect ID tokens issued by the identity
provider (Google by default). The provider publishes its signing keys
through the ``jwks_uri`` of its discovery document. The keys are fetched
lazily and kept for a configurable number of seconds.
"""

import logging
import threading
import time
import urllib.parse
from typing import Any, Dict, Optional, Tuple

import requests
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JOSEError, JWTClaimsError

from ..schemas import config


logger = logging.getLogger(__name__)


class OAuthError(Exception):
    """
    Exception raised when the identity provider rejected or failed an OAuth request

    :param message: human-readable description of the problem
    :param status_code: HTTP status code of the provider's response, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500


class IdentityProvider:
    """
    Access to the identity provider's discovery document and its signing keys

    :param identity: identity section of the configuration
    :param http: optional requests session used for all outgoing requests
    """

    def __init__(self, identity: config.IdentityConfig, http: Optional[requests.Session] = None):
        self.config = identity
        self.http = http or requests.Session()
        self._discovery: Optional[Dict[str, Any]] = None
        self._keys: Optional[Dict[str, Any]] = None
        self._keys_fetched: float = 0.0
        self._lock = threading.Lock()

    def _get_json(self, url: str) -> Dict[str, Any]:
        response = self.http.get(url, timeout=self.config.timeout)
        response.raise_for_status()
        return response.json()

    def discover(self) -> Dict[str, Any]:
        """
        Return the OpenID configuration document of the provider (fetched only once)
        """

        if self._discovery is None:
            logger.debug(f"Fetching OpenID configuration from {self.config.discovery_url!r}...")
            self._discovery = self._get_json(self.config.discovery_url)
        return self._discovery

    def get_key_set(self) -> Dict[str, Any]:
        """
        Return the JSON web key set of the provider, refreshing it after the cache expired

        :raises requests.RequestException: when the keys couldn't be fetched
        """

        with self._lock:
            age = time.monotonic() - self._keys_fetched
            if self._keys is None or age >= self.config.key_cache_seconds:
                jwks_uri = self.discover()["jwks_uri"]
                keys = self._get_json(jwks_uri)
                if not isinstance(keys.get("keys"), list):
                    raise ValueError(f"No key set found at {jwks_uri!r}")
                logger.debug(f"Fetched {len(keys['keys'])} signing key(s) from {jwks_uri!r}")
                self._keys = keys
                self._keys_fetched = time.monotonic()
            return self._keys

    @property
    def authorization_endpoint(self) -> str:
        return self.discover()["authorization_endpoint"]

    @property
    def token_endpoint(self) -> str:
        return self.discover()["token_endpoint"]


class IdentityVerifier:
    """
    Verifier of ID tokens signed by the identity provider

    A token is only accepted with a valid RS256 signature from one of
    the provider's keys, if it didn't expire, if its audience is the
    configured client ID and if it was issued by an accepted issuer.
    """

    def __init__(self, provider: IdentityProvider):
        self.provider = provider

    def verify(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Return the claims of the token or None if it can't be verified for any reason
        """

        identity = self.provider.config
        try:
            claims = jwt.decode(
                token,
                self.provider.get_key_set(),
                algorithms=["RS256"],
                audience=identity.client_id,
                issuer=identity.issuers,
                options={"verify_at_hash": False}
            )
        except ExpiredSignatureError:
            logger.debug("Rejected expired ID token")
            return None
        except JWTClaimsError as exc:
            logger.debug(f"Rejected ID token with invalid claims: {exc}")
            return None
        except JOSEError as exc:
            logger.debug(f"Rejected malformed or wrongly signed ID token: {exc}")
            return None
        except (requests.RequestException, KeyError, ValueError) as exc:
            logger.warning(f"Signing keys of the identity provider unavailable: {type(exc).__name__}: {exc}")
            return None

        if not isinstance(claims.get("sub"), str) or not claims["sub"]:
            logger.debug("Rejected ID token without subject")
            return None
        return claims


class OAuthClient:
    """
    Client for the OAuth2 authorization code flow of the identity provider
    """

    def __init__(self, provider: IdentityProvider):
        self.provider = provider

    @property
    def config(self) -> config.IdentityConfig:
        return self.provider.config

    def authorization_url(self, redirect_url: str) -> str:
        """
        Return the URL of the provider's consent page for the configured client
        """

        query = urllib.parse.urlencode({
            "client_id": self.config.client_id,
            "redirect_uri": redirect_url,
            "response_type": "code",
            "scope": self.config.scope,
            "access_type": "offline",
            "include_granted_scopes": "true"
        })
        return f"{self.provider.authorization_endpoint}?{query}"

    def exchange_code(self, code: str, redirect_url: str) -> Dict[str, Any]:
        """
        Exchange the authorization code for the tokens of the user

        :param code: authorization code handed to the redirect URL by the provider
        :param redirect_url: the same redirect URL used for the authorization URL
        :return: token response of the provider (containing at least
            ``access_token`` and ``id_token``)
        :raises OAuthError: when the provider rejected the code or failed otherwise
        """

        try:
            response = self.provider.http.post(
                self.provider.token_endpoint,
                data={
                    "code": code,
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                    "redirect_uri": redirect_url,
                    "grant_type": "authorization_code"
                },
                timeout=self.config.timeout
            )
        except requests.RequestException as exc:
            raise OAuthError(f"Token endpoint unreachable: {exc}") from exc

        if not response.ok:
            raise OAuthError(f"Token exchange failed: {response.text[:200]}", response.status_code)
        tokens = response.json()
        if "access_token" not in tokens or "id_token" not in tokens:
            raise OAuthError("Token response misses the access or ID token")
        return tokens

    def fetch_profile(self, access_token: str) -> Tuple[str, str]:
        """
        Return the user ID (subject) and the display name of the token's user

        :raises OAuthError: when the profile couldn't be retrieved
        """

        try:
            response = self.provider.http.get(
                self.config.profile_url,
                params={"personFields": "names"},
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.config.timeout
            )
        except requests.RequestException as exc:
            raise OAuthError(f"Profile endpoint unreachable: {exc}") from exc

        if not response.ok:
            raise OAuthError(f"Profile request failed: {response.text[:200]}", response.status_code)
        profile = response.json()
        resource_name = profile.get("resourceName", "")
        if not resource_name.startswith("people/"):
            raise OAuthError(f"Unexpected profile resource name {resource_name!r}")

        names = profile.get("names") or [{}]
        display_name = names[0].get("displayName") or names[0].get("givenName") or ""
        return resource_name[len("people/"):], display_name
