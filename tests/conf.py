"""
Data definitions used for unit testing
"""

from typing import Dict, Optional

# Set the database URL to be used (default: None) which will be
# passed to SQLAlchemy, so make sure it's understood by SQLAlchemy
# (using None enables the sqlite database instead, see below)
# Note: The database is cleared by dropping all tables after every test.
DATABASE_URL: Optional[str] = None

# Default file format for halfway persistent sqlite database files,
# which will be removed after the unittests have completed (the
# placeholders will be filled with the PID and a random nonce)
DATABASE_DEFAULT_FILE_FORMAT: str = "/tmp/unittest_garage_{}_{}.db"

# Default database URL when USE_DATABASE_URL above is not set (the
# placeholder will be filled with the database file location from above)
DATABASE_URL_FORMAT: str = "sqlite:///{}"

# Enable or disable echoing of commands issued by SQLAlchemy (default: False)
SQLALCHEMY_ECHOING: bool = False

# Bearer tokens accepted by the identity verifier of the API tests, mapped to their subjects
TOKENS: Dict[str, str] = {
    "token-of-alice": "109876543210987654321",
    "token-of-bob": "100000000000000000042"
}

# Client ID (audience) used for ID tokens signed during the identity tests
CLIENT_ID: str = "garage-unittest.apps.example.org"
