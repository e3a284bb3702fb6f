"""
Command dispatch shared by every CLI resource verb.

A verb parses its sub-command into a typed command model and hands it to
`execute_case` together with the coroutine handling it. The handler runs
against the service layer inside one event loop with the database pool
open. Errors stop at this boundary: they are logged and the process exits
normally.
"""
import asyncio
import functools
import json
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

import typer

from fogcontroller.core.common import AppBaseModel
from fogcontroller.core.config import Settings
from fogcontroller.core.db.pool import close_pool, init_pool
from fogcontroller.core.errors import AuthenticationError, FogControllerError, ValidationError, classify_error
from fogcontroller.core.logger import setup_logger
from fogcontroller.core.logging_context import LoggingContext
from fogcontroller.server.api.user.schema import UserEntry
from fogcontroller.server.api.user.service import UserService

logger = setup_logger(__name__, include_location=True)

Handler = Callable[[Any, Optional[UserEntry]], Awaitable[Any]]


def prepare_user(handler: Handler) -> Callable[[Any], Awaitable[Any]]:
    """Resolve the user named by `command.user_id` before running the handler."""

    @functools.wraps(handler)
    async def wrapper(command: Any) -> Any:
        user_id = getattr(command, "user_id", None)
        user = await UserService.get_user_by_id(user_id) if user_id is not None else None
        if user is None:
            raise AuthenticationError(
                "Invalid user id" if user_id is None else f"Invalid user id {user_id}"
            )
        return await handler(command, user)

    return wrapper


async def _with_pool(settings: Settings, call: Callable[[], Awaitable[Any]]) -> Any:
    await init_pool(settings.conn_string)
    try:
        return await call()
    finally:
        await close_pool()


def run_async(settings: Settings, call: Callable[[], Awaitable[Any]]) -> Any:
    return asyncio.run(_with_pool(settings, call))


def execute_case(settings: Settings, command: AppBaseModel, handler: Handler, is_user_required: bool = False) -> None:
    name = getattr(command, "command", type(command).__name__)
    with LoggingContext(logger, scope=name):
        try:
            if is_user_required:
                decorated = prepare_user(handler)
                run_async(settings, lambda: decorated(command))
            else:
                run_async(settings, lambda: handler(command, None))
        except FogControllerError as e:
            logger.error(e.message)
        except Exception as e:
            info = classify_error(e)
            logger.error(f"{info.kind.value}: {info.message}")


def read_payload_file(path: Path) -> dict:
    """Parse a `--file` JSON payload."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON in {path}: {e}")
    if not isinstance(data, dict):
        raise ValidationError(f"{path} must contain a JSON object")
    return data


def echo_json(value: Any) -> str:
    """Log a service result the way the CLI prints it."""
    if isinstance(value, AppBaseModel):
        value = value.to_payload()
    elif isinstance(value, list):
        value = [item.to_payload() if isinstance(item, AppBaseModel) else item for item in value]
    text = json.dumps(value, default=str)
    logger.info(text)
    return text


def add_help_command(app: typer.Typer) -> None:
    """Register `help`, which prints the verb's usage like `--help` does."""

    @app.command("help")
    def show_help(ctx: typer.Context):
        """Show this message."""
        typer.echo(ctx.parent.get_help())
