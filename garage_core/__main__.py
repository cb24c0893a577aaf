#!/usr/bin/env python3

import sys
import json
import argparse
from typing import List, Optional
from collections import OrderedDict

import uvicorn
import alembic.config
import sqlalchemy.exc

from garage_core import settings as _settings
from garage_core.api.api import create_app
from garage_core.persistence import database, models


def get_parser(program: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=program)

    commands = parser.add_subparsers(
        description="Available sub-commands: init, users*, run",
        dest="command",
        required=True,
        metavar="<command>",
        help="the sub-command to be executed (some have their own subcommands, too)"
    )

    parser_init = commands.add_parser(
        "init",
        description="Initialize the project by creating the config file and the database tables"
    )

    parser_users = commands.add_parser(
        "users",
        description="Inspect users that logged in via the identity provider"
    )
    user_command = parser_users.add_subparsers(
        description="Available actions: show",
        dest="action",
        metavar="<action>",
        required=True,
        help="action to perform for users"
    )
    parser_users_show = user_command.add_parser(
        "show",
        description="Show a list of all users"
    )

    parser_run = commands.add_parser(
        "run",
        description="Run 'uvicorn' ASGI server to serve the Garage core REST API"
    )

    parser_init.add_argument(
        "--database",
        type=str,
        metavar="url",
        help="Database connection URL including scheme and auth"
    )
    parser_init.add_argument(
        "--no-migrations",
        action="store_true",
        help="Do not apply migrations automatically (not recommended)"
    )

    parser_users_show.add_argument(
        "--json",
        action="store_true",
        help="Print the result in JSON format instead of human-readable text"
    )
    parser_users_show.add_argument(
        "--indent",
        type=int,
        metavar="n",
        help="(JSON-only) Indent the JSON response with n spaces (default: none)"
    )

    parser_run.add_argument(
        "--host",
        type=str,
        metavar="host",
        help="Bind TCP socket to this host (overwrite config)"
    )
    parser_run.add_argument(
        "--port",
        type=int,
        metavar="port",
        help="Bind TCP socket to this port (overwrite config)"
    )
    parser_run.add_argument(
        "--config",
        type=str,
        metavar="config",
        default="config.json",
        help="Overwrite the config file (defaults to 'config.json')"
    )
    parser_run.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging of all components"
    )
    parser_run.add_argument(
        "--debug-sql",
        action="store_true",
        help="Enable echoing of database actions (overwrites config)"
    )
    parser_run.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload"
    )
    parser_run.add_argument(
        "--workers",
        type=int,
        default=None,
        metavar="n",
        help="Number of worker processes (not valid with --reload)",
    )
    parser_run.add_argument(
        "--no-access-log",
        action="store_true",
        help="Disable access logs"
    )
    parser_run.add_argument(
        "--root-path",
        type=str,
        default="",
        metavar="p",
        help="Sub-mount the application below the given path"
    )

    return parser


def run_server(args: argparse.Namespace):
    _settings.CONFIG_PATHS.insert(0, args.config)
    try:
        settings = _settings.Settings()
    except ValueError:
        print("Ensure that the configuration file is valid. Please correct any errors.", file=sys.stderr)
        raise

    if args.debug:
        settings.logging.root["level"] = "DEBUG"
        for handler in settings.logging.handlers:
            settings.logging.handlers[handler]["level"] = "DEBUG"
    if args.debug_sql:
        settings.database.debug_sql = args.debug_sql

    port = args.port
    if port is None:
        port = settings.server.port
    host = args.host
    if host is None:
        host = settings.server.host

    app = create_app(settings=settings)
    print(f"Server running at host {host} port {port}", file=sys.stderr)

    uvicorn.run(
        "garage_core.api:api.app" if args.reload else app,
        port=port,
        host=host,
        reload=args.reload,
        workers=args.workers,
        log_level="debug" if args.debug else "info",
        log_config=settings.logging.model_dump(by_alias=True),
        access_log=not args.no_access_log,
        proxy_headers=True,
        root_path=args.root_path
    )


def _setup_config(db: Optional[str] = None) -> _settings.Settings:
    if _settings.find_config_file() is None:
        print("No settings file found. A basic config will be created now.")
        _settings.store_configuration(_settings.get_default_core_config(db))
    else:
        print(
            "A config file has been found and will be used. If you want a fresh installation, "
            "you should remove the config file and clear the database, then run this command again."
        )
    return _settings.Settings()


def init_project(args: argparse.Namespace) -> int:
    settings = _setup_config(_settings.get_db_from_env(args.database))

    if not args.no_migrations:
        alembic.config.main(argv=["upgrade", "head"])

    database.init(settings.database.connection, settings.database.debug_sql, create_all=False)
    session = database.get_new_session()
    try:
        session.query(models.User).all()
        session.query(models.Garage).all()
        session.query(models.Car).all()
    except sqlalchemy.exc.DatabaseError:
        print(
            "Not all tables were found in the database. Please initialize the database first. "
            "Perform the necessary database migrations using the 'alembic upgrade head' command.",
            file=sys.stderr
        )
        return 1
    finally:
        session.close()

    if not settings.identity.client_id or not settings.identity.client_secret:
        print(
            "\nThere's no OAuth client configured yet. Nobody can log in or use the car "
            "endpoints without it. Add the client ID and client secret of your identity "
            "provider to the 'identity' section of the config file."
        )

    print("Done.")
    return 0


def print_table(objs: List[dict], keys: Optional[List[str]] = None):
    info = OrderedDict()
    if keys:
        for k in keys:
            info[k] = len(k)
    for obj in objs:
        for key in obj:
            if keys and key not in keys:
                continue
            if key not in info:
                info[key] = len(key)
            info[key] = max(len(str(obj.get(key))), info.get(key))

    print(" | ".join([f"{k:<{info[k]}}" for k in info]))
    print("-+-".join(["-" * info[k] for k in info]))
    for obj in objs:
        print(" | ".join([f"{obj[k]!s:<{info[k]}}" for k in info]))


def show_users(args: argparse.Namespace) -> int:
    config = _settings.Settings()
    database.init(config.database.connection, config.database.debug_sql, create_all=False)
    with database.get_new_session() as session:
        users = [
            {"id": user.id, "user_id": user.user_id, "name": user.name, "created": str(user.created)}
            for user in session.query(models.User).order_by(models.User.id).all()
        ]
    if args.json:
        print(json.dumps(users, indent=args.indent))
        return 0
    print_table(users, ["id", "user_id", "name", "created"])
    return 0


def handle_users(args: argparse.Namespace) -> int:
    if args.action == "show":
        return show_users(args)
    raise RuntimeError(f"Unknown users action {args.action!r}")


if __name__ == "__main__":
    program_name = sys.argv[0] if not sys.argv[0].endswith("__main__.py") else "garage_core"
    namespace = get_parser(program_name).parse_args(sys.argv[1:])
    _settings.SETTINGS_LOG_INFO_FUNCTION = print

    command_functions = {
        "run": run_server,
        "init": init_project,
        "users": handle_users
    }
    exit(command_functions[namespace.command](namespace))
