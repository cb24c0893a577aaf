"""
Special schemas for the configuration file and its properties
"""

from typing import Dict, List, Optional, Union

import pydantic


class GeneralConfig(pydantic.BaseModel):
    page_size: pydantic.PositiveInt = 5


class ServerConfig(pydantic.BaseModel):
    host: str = "127.0.0.1"
    port: pydantic.conint(gt=0, lt=65536) = 8000
    public_base_url: Optional[pydantic.HttpUrl] = None


class DatabaseConfig(pydantic.BaseModel):
    connection: str = "sqlite://"
    debug_sql: bool = False


class IdentityConfig(pydantic.BaseModel):
    client_id: str = ""
    client_secret: str = ""
    redirect_url: Optional[str] = None
    discovery_url: str = "https://accounts.google.com/.well-known/openid-configuration"
    issuers: List[str] = ["accounts.google.com", "https://accounts.google.com"]
    scope: str = "https://www.googleapis.com/auth/userinfo.profile"
    profile_url: str = "https://people.googleapis.com/v1/people/me"
    key_cache_seconds: pydantic.NonNegativeInt = 3600
    timeout: pydantic.PositiveFloat = 10.0


class LoggingConfig(pydantic.BaseModel):
    version: pydantic.conint(ge=1, le=1) = 1
    disable_existing_loggers: bool = False
    incremental: bool = False
    filters: Dict[str, Dict[str, Union[str, list]]] = {
        "urllib3_no_debug": {
            "()": "garage_core.misc.logger.NoDebugFilter",
            "name": "urllib3.connectionpool"
        }
    }
    formatters: Dict[str, Dict[str, str]] = {
        "default": {
            "style": "{",
            "format": "{asctime}: GarageCore {process}: [{levelname}] {name}: {message}",
            "datefmt": "%d.%m.%Y %H:%M:%S"
        },
        "file": {
            "style": "{",
            "format": "{asctime} ({process}): [{levelname}] {name}: {message}",
            "datefmt": "%d.%m.%Y %H:%M"
        },
        "access": {
            "()": "uvicorn.logging.AccessFormatter",
            "fmt": "%(asctime)s %(client_addr)s - \"%(request_line)s\" %(status_code)s"
        }
    }
    loggers: Dict[str, dict] = {
        "uvicorn.access": {
            "level": "INFO",
            "handlers": ["access"],
            "propagate": False
        }
    }
    handlers: Dict[str, Dict[str, Union[str, list]]] = {
        "default": {
            "level": "INFO",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout",
            "formatter": "default",
            "filters": ["urllib3_no_debug"]
        },
        "file": {
            "level": "DEBUG",
            "class": "logging.FileHandler",
            "filename": "./garage_core.log",
            "formatter": "file",
            "filters": ["urllib3_no_debug"]
        },
        "access": {
            "level": "INFO",
            "class": "logging.FileHandler",
            "filename": "./access.log",
            "formatter": "access"
        }
    }
    root: dict = {
        "level": "INFO",
        "handlers": ["default", "file"]
    }


class CoreConfig(pydantic.BaseModel):
    general: GeneralConfig = GeneralConfig()
    server: ServerConfig = ServerConfig()
    database: DatabaseConfig = DatabaseConfig()
    identity: IdentityConfig = IdentityConfig()
    logging: LoggingConfig = LoggingConfig()
