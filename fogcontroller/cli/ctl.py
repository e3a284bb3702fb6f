import dataclasses
import json
import os
from typing import Optional

import requests
import typer

from fogcontroller.core.config import get_settings
from fogcontroller.core.logger import setup_logger
from .catalog import catalog_app
from .config import config_app
from .iofog import iofog_app
from .registry import registry_app
from .user import user_app

logger = setup_logger(__name__, include_location=True)

cli_app = typer.Typer(help="Fog controller: device fleet management API and CLI.", no_args_is_help=True)


@cli_app.callback()
def main(ctx: typer.Context):
    """Load settings once per invocation; tests pass their own through `obj`."""
    if ctx.obj is None:
        ctx.obj = get_settings()


server_app = typer.Typer(help="Run the API server.", no_args_is_help=True)
cli_app.add_typer(server_app, name="server")

# Database management
db_app = typer.Typer(help="Database management.", no_args_is_help=True)
cli_app.add_typer(db_app, name="db")

controller_app = typer.Typer(help="Controller information.", no_args_is_help=True)
cli_app.add_typer(controller_app, name="controller")

cli_app.add_typer(catalog_app, name="catalog")
cli_app.add_typer(registry_app, name="registry")
cli_app.add_typer(iofog_app, name="iofog")
cli_app.add_typer(user_app, name="user")
cli_app.add_typer(config_app, name="config")


@server_app.command("start")
def start_server(
    ctx: typer.Context,
    port: Optional[int] = typer.Option(None, "--port", "-p", min=1, max=65535, help="Listen on this port instead of the configured one"),
):
    """
    Start the API server. Port and TLS files come from the config store,
    then the config file, then the environment.
    """
    from fogcontroller.server.app import create_app
    from fogcontroller.server.runner import load_server_config, start_server as run_server

    settings = ctx.obj
    config = load_server_config(settings)
    if port is not None:
        config = dataclasses.replace(config, port=port)

    scheme = "https" if config.ssl_enabled else "http"
    debug_status = "enabled" if config.debug else "disabled"
    logger.info(f"Starting fog controller at {scheme}://{config.host}:{config.port} (Debug {debug_status})")

    if not run_server(create_app(settings), config):
        logger.error("Server was not started.")


@db_app.command("apply-schema")
def db_apply_schema(
    ctx: typer.Context,
    schema_file: str = typer.Option(
        None,
        "--file",
        "-f",
        help="Path to schema_ddl.sql (defaults to packaged fogcontroller/database/ddl/postgres/schema_ddl.sql)",
    ),
):
    """Apply the schema DDL to the configured Postgres database."""
    try:
        settings = ctx.obj
        import psycopg

        if schema_file:
            if not os.path.exists(schema_file):
                typer.echo(f"Schema file not found: {schema_file}")
                raise typer.Exit(code=2)
            with open(schema_file, "r", encoding="utf-8") as f:
                ddl_sql = f.read()
            ddl_origin = schema_file
        else:
            from importlib import resources as pkg_resources
            ddl_sql = pkg_resources.files("fogcontroller").joinpath("database/ddl/postgres/schema_ddl.sql").read_text(encoding="utf-8")
            ddl_origin = "package://fogcontroller/database/ddl/postgres/schema_ddl.sql"

        with psycopg.connect(settings.conn_string) as conn:
            conn.execute("SET client_min_messages TO WARNING")
            with conn.cursor() as cur:
                cur.execute(ddl_sql)
                conn.commit()
        typer.echo(f"Applied schema from {ddl_origin}")
    except typer.Exit:
        raise
    except Exception as e:
        typer.echo(f"Error applying schema: {e}")
        raise typer.Exit(code=1)


@controller_app.command("status")
def controller_status(
    ctx: typer.Context,
    host: str = typer.Option("localhost", "--host", help="Controller host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Controller port (defaults to the configured one)"),
    https: bool = typer.Option(False, "--https", help="Use HTTPS"),
):
    """Ask a running controller for its status."""
    settings = ctx.obj
    scheme = "https" if https else "http"
    url = f"{scheme}://{host}:{port or settings.port}/api/v2/status"
    try:
        response = requests.get(url, timeout=10, verify=False if https else True)
        response.raise_for_status()
    except requests.RequestException as e:
        typer.echo(f"Controller at {url} is not reachable: {e}")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(response.json(), indent=2))
