"""
Helper functions to make writing unit tests for the Garage core easier
"""

import os
import random
import string
import secrets
import unittest
import urllib.parse
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Type, Union

import pydantic
import httpx
import sqlalchemy.orm
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine as _Engine

from garage_core import settings as _settings
from garage_core.api.api import create_app
from garage_core.api.auth import OAuthError
from garage_core.persistence import database, models

from . import conf


class StaticVerifier:
    """
    Identity verifier accepting a fixed set of bearer tokens without contacting any provider
    """

    def __init__(self, tokens: Dict[str, str]):
        self.tokens = tokens

    def verify(self, token: str) -> Optional[Dict[str, Any]]:
        if token not in self.tokens:
            return None
        return {"sub": self.tokens[token]}


class StaticOAuthClient:
    """
    OAuth client simulating a provider which only accepts the authorization code ``valid-code``
    """

    user_id: str = "117000000000000000001"
    name: str = "Alice <Tester>"
    id_token: str = "header.payload.signature"

    def authorization_url(self, redirect_url: str) -> str:
        return "https://accounts.example.org/auth?" + urllib.parse.urlencode({"redirect_uri": redirect_url})

    def exchange_code(self, code: str, redirect_url: str) -> Dict[str, Any]:
        if code != "valid-code":
            raise OAuthError("invalid_grant", 400)
        return {"access_token": "access", "id_token": self.id_token}

    def fetch_profile(self, access_token: str) -> Tuple[str, str]:
        return self.user_id, self.name


class BaseTest(unittest.TestCase):
    """
    A base class for unit tests which introduces simple setup and teardown of unit tests

    If a subclass needs special setup or teardown functionality, it **MUST**
    call the superclasses setup and teardown methods: the superclass setup
    method at the beginning of the subclass setup method, the superclass
    teardown method at the end of the subclass teardown method.
    """

    config_file: Optional[str] = None
    database_url: Optional[str] = None
    _database_file: Optional[str] = None

    def setUp(self) -> None:
        self.config_file = f"config_{os.getpid()}_{secrets.token_hex(8)}.json"
        _settings.CONFIG_PATHS = [self.config_file]
        database.PRINT_SQLITE_WARNING = False

        if conf.DATABASE_URL is not None:
            self.database_url = conf.DATABASE_URL
        else:
            self._database_file = conf.DATABASE_DEFAULT_FILE_FORMAT.format(
                os.getpid(),
                "".join([random.choice(string.ascii_lowercase) for _ in range(6)])
            )
            self.database_url = conf.DATABASE_URL_FORMAT.format(self._database_file)

    def tearDown(self) -> None:
        if conf.DATABASE_URL is not None:
            engine = sqlalchemy.create_engine(self.database_url)
            models.Base.metadata.drop_all(bind=engine)
            engine.dispose()

        elif self._database_file and os.path.exists(self._database_file):
            os.remove(self._database_file)

        if self.config_file and os.path.exists(self.config_file):
            os.remove(self.config_file)


class BasePersistenceTests(BaseTest):
    engine: _Engine
    session: sqlalchemy.orm.Session

    def setUp(self) -> None:
        super().setUp()
        opts = {"echo": conf.SQLALCHEMY_ECHOING}
        if self.database_url.startswith("sqlite:"):
            opts["connect_args"] = {"check_same_thread": False}
        self.engine = sqlalchemy.create_engine(self.database_url, **opts)
        self.session = sqlalchemy.orm.sessionmaker(autoflush=False, bind=self.engine)()
        models.Base.metadata.create_all(bind=self.engine)

    def tearDown(self) -> None:
        self.session.close()
        self.engine.dispose()
        super().tearDown()


class BaseAPITests(BaseTest):
    """
    A base class for unit tests of the HTTP API, using an in-process test client

    Bearer tokens are checked by a ``StaticVerifier`` accepting the tokens
    in ``conf.TOKENS``. The default token used in requests is ``token``.
    """

    base_url: str = "http://testserver"
    token: Optional[str] = None
    client: TestClient

    def setUp(self) -> None:
        super().setUp()
        self.token = next(iter(conf.TOKENS))
        settings = _settings.Settings(
            database={"connection": self.database_url, "debug_sql": conf.SQLALCHEMY_ECHOING},
            identity={"client_id": conf.CLIENT_ID, "client_secret": "secret"}
        )
        self.app = create_app(
            settings,
            configure_logging=False,
            verifier=StaticVerifier(conf.TOKENS),
            oauth_client=StaticOAuthClient()
        )
        self.client = TestClient(self.app, base_url=self.base_url)

    def tearDown(self) -> None:
        self.client.close()
        database.dispose()
        super().tearDown()

    def url(self, *segments: Any) -> str:
        return "/".join([self.base_url, *(str(s) for s in segments)])

    def assertQuery(
            self,
            endpoint: Tuple[str, str],
            status_code: Union[int, Iterable[int]] = 200,
            json: Optional[Any] = None,
            headers: Optional[dict] = None,
            token: Optional[str] = "",
            r_none: bool = False,
            r_is_json: bool = True,
            r_headers: Optional[Union[Mapping, Iterable]] = None,
            r_schema: Optional[Union[pydantic.BaseModel, Type[pydantic.BaseModel]]] = None,
            **kwargs
    ) -> httpx.Response:
        """
        Do a query to the specified endpoint and return the response

        Besides also carrying the optional JSON data, headers and other keyword arguments,
        this function asserts that the response has the specified status code. Furthermore,
        the optional asserted response headers and asserted response schema can be used,
        where the headers are either an iterable to only assert certain keys or a mapping
        to also assert values, and the schema is either a schema class or an instance
        thereof (in the later case, the values will be compared to the response, too).

        :param endpoint: tuple of the method and the path (or absolute URL) of the endpoint
        :param status_code: asserted status code(s) of the final server's response
        :param json: optional JSON-serializable data or model holding the request data
        :param headers: optional set of headers to sent in the request
        :param token: bearer token for the request (empty string for the default
            token of the test case, None to send no ``Authorization`` header)
        :param r_none: switch to expect no (=empty) result and skip all other response content checks
        :param r_is_json: switch to check that the response contains JSON data
        :param r_headers optional set of headers which are asserted in the response
        :param r_schema: optional class or instance of a response schema to be asserted
        :param kwargs: dict of any further keyword arguments, passed to ``TestClient.request``
        :return: response to the requested resource
        """

        method, path = endpoint
        if isinstance(json, pydantic.BaseModel):
            json = json.model_dump()

        headers = dict(headers or {})
        if token == "":
            token = self.token
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
        response = self.client.request(method.upper(), path, json=json, headers=headers, **kwargs)

        if isinstance(status_code, int):
            self.assertEqual(status_code, response.status_code, response.text)
        else:
            self.assertIn(response.status_code, status_code, response.text)

        if r_headers is not None:
            for k in (r_headers if isinstance(r_headers, Iterable) else r_headers.keys()):
                self.assertIsNotNone(response.headers.get(k), response.headers)
                if isinstance(r_headers, Mapping):
                    self.assertEqual(r_headers[k], response.headers.get(k), response.headers)

        if r_none:
            self.assertEqual("", response.text)

        else:
            if r_is_json:
                try:
                    self.assertIsNotNone(response.json())
                except ValueError:
                    self.fail(("No JSON content detected", response.headers, response.text))

            if r_schema and isinstance(r_schema, pydantic.BaseModel):
                self.assertEqual(r_schema, type(r_schema)(**response.json()), response.json())
            elif r_schema and isinstance(r_schema, type) and issubclass(r_schema, pydantic.BaseModel):
                self.assertTrue(r_schema(**response.json()), response.json())

        return response

    def assertError(self, response: httpx.Response, message: Optional[str] = None):
        self.assertEqual(["Error"], list(response.json().keys()), response.text)
        if message is not None:
            self.assertEqual(message, response.json()["Error"])
