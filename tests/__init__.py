"""
Garage core unit tests
"""

import unittest
from .api import APITests, LoginAPITests
from .auth import AcceptHeaderTests, IdentityVerifierTests, OAuthClientTests
from .misc import CarOperationTests, GarageOperationTests, ParkingTests
from .persistence import CursorTests, EntityStoreTests
from .settings import LoggerTests, SettingsTests


TEST_CLASSES = [
    AcceptHeaderTests,
    APITests,
    CarOperationTests,
    CursorTests,
    EntityStoreTests,
    GarageOperationTests,
    IdentityVerifierTests,
    LoggerTests,
    LoginAPITests,
    OAuthClientTests,
    ParkingTests,
    SettingsTests,
]


def get_suite() -> unittest.TestSuite:
    suite = unittest.TestSuite()
    for cls in TEST_CLASSES:
        for fixture in filter(lambda f: f.startswith("test_"), dir(cls)):
            suite.addTest(cls(fixture))
    return suite
