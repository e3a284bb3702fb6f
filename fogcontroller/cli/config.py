"""`fogcontroller config` verb: the key/value config store read at server start."""
from pathlib import Path
from typing import Annotated, Literal, Optional

import typer

from fogcontroller.core.common import AppBaseModel
from fogcontroller.core.errors import ValidationError
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.config_store.service import ConfigService
from fogcontroller.server.api.user.schema import UserEntry
from .dispatch import add_help_command, echo_json, execute_case

logger = setup_logger(__name__, include_location=True)


class ConfigAddCommand(AppBaseModel):
    command: Literal["add"] = "add"
    port: Optional[int] = None
    ssl_key: Optional[Path] = None
    ssl_cert: Optional[Path] = None
    intermediate_cert: Optional[Path] = None


class ConfigListCommand(AppBaseModel):
    command: Literal["list"] = "list"


async def _add_config(command: ConfigAddCommand, user: Optional[UserEntry]) -> None:
    values = command.model_dump(exclude={"command"}, exclude_none=True)
    if not values:
        raise ValidationError("Nothing to store: pass at least one of --port, --ssl-key, --ssl-cert, --intermediate-cert")
    for key, value in values.items():
        await ConfigService.set_value(key, str(value))
    logger.success("Config has been updated successfully.")


async def _list_config(command: ConfigListCommand, user: Optional[UserEntry]) -> None:
    echo_json(await ConfigService.list_values())


HANDLERS = {
    "add": _add_config,
    "list": _list_config,
}


def dispatch(settings, command: AppBaseModel) -> None:
    execute_case(settings, command, HANDLERS[command.command])


config_app = typer.Typer(help="Manage the controller config store.", no_args_is_help=True)


@config_app.command("add")
def add_config(
    ctx: typer.Context,
    port: Annotated[Optional[int], typer.Option("--port", "-p", min=1, max=65535, help="Port")] = None,
    ssl_key: Annotated[Optional[Path], typer.Option("--ssl-key", "-k", help="Path to SSL key file")] = None,
    ssl_cert: Annotated[Optional[Path], typer.Option("--ssl-cert", "-c", help="Path to SSL certificate file")] = None,
    intermediate_cert: Annotated[Optional[Path], typer.Option("--intermediate-cert", "-i", help="Path to SSL intermediate certificate file")] = None,
):
    """Add new settings."""
    dispatch(ctx.obj, ConfigAddCommand(**ctx.params))


@config_app.command("list")
def list_config(ctx: typer.Context):
    """Display current settings."""
    dispatch(ctx.obj, ConfigListCommand())


add_help_command(config_app)
