"""
Garage core REST API package

The ``api`` object wraps the lazily created ``FastAPI`` application.
"""

from .api import api, create_app
