"""`fogcontroller user` verb."""
from typing import Annotated, Literal, Optional

import typer

from fogcontroller.core.common import AppBaseModel, transform
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.user.schema import UserCreateRequest, UserEntry, UserUpdateRequest
from fogcontroller.server.api.user.service import UserService
from .dispatch import add_help_command, echo_json, execute_case

logger = setup_logger(__name__, include_location=True)


class UserAddCommand(AppBaseModel):
    command: Literal["add"] = "add"
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    password: str


class UserUpdateCommand(AppBaseModel):
    command: Literal["update"] = "update"
    user_id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    password: Optional[str] = None


class UserIdCommand(AppBaseModel):
    command: Literal["remove", "generate-token"]
    user_id: int


class UserListCommand(AppBaseModel):
    command: Literal["list"] = "list"


async def _create_user(command: UserAddCommand, user: Optional[UserEntry]) -> None:
    created = await UserService.create_user(transform(UserCreateRequest, command.model_dump(exclude={"command"})))
    echo_json({"id": created.id})
    logger.success("User has been created successfully.")


async def _update_user(command: UserUpdateCommand, user: Optional[UserEntry]) -> None:
    await UserService.update_user(command.user_id, transform(UserUpdateRequest, command.model_dump(exclude={"command", "user_id"})))
    logger.success("User has been updated successfully.")


async def _delete_user(command: UserIdCommand, user: Optional[UserEntry]) -> None:
    await UserService.delete_user(command.user_id)
    logger.success("User has been removed successfully.")


async def _list_users(command: UserListCommand, user: Optional[UserEntry]) -> None:
    echo_json(await UserService.list_users())


async def _generate_token(command: UserIdCommand, user: Optional[UserEntry]) -> None:
    echo_json({"accessToken": await UserService.generate_token(command.user_id)})


HANDLERS = {
    "add": _create_user,
    "update": _update_user,
    "remove": _delete_user,
    "list": _list_users,
    "generate-token": _generate_token,
}


def dispatch(settings, command: AppBaseModel) -> None:
    execute_case(settings, command, HANDLERS[command.command])


user_app = typer.Typer(help="Manage users.", no_args_is_help=True)

FirstNameOpt = Annotated[Optional[str], typer.Option("--first-name", "-f", help="User's first name")]
LastNameOpt = Annotated[Optional[str], typer.Option("--last-name", "-l", help="User's last name")]
UserIdOpt = Annotated[int, typer.Option("--user-id", "-u", help="User's id")]


@user_app.command("add")
def add_user(
    ctx: typer.Context,
    email: Annotated[str, typer.Option("--email", "-e", help="User's email address")],
    password: Annotated[str, typer.Option("--password", "-p", help="User's password")],
    first_name: FirstNameOpt = None,
    last_name: LastNameOpt = None,
):
    """Add a new user."""
    dispatch(ctx.obj, UserAddCommand(**ctx.params))


@user_app.command("update")
def update_user(
    ctx: typer.Context,
    user_id: UserIdOpt,
    first_name: FirstNameOpt = None,
    last_name: LastNameOpt = None,
    password: Annotated[Optional[str], typer.Option("--password", "-p", help="User's password")] = None,
):
    """Update existing user."""
    dispatch(ctx.obj, UserUpdateCommand(**ctx.params))


@user_app.command("remove")
def remove_user(ctx: typer.Context, user_id: UserIdOpt):
    """Delete a user."""
    dispatch(ctx.obj, UserIdCommand(command="remove", user_id=user_id))


@user_app.command("list")
def list_users(ctx: typer.Context):
    """List all users."""
    dispatch(ctx.obj, UserListCommand())


@user_app.command("generate-token")
def generate_token(ctx: typer.Context, user_id: UserIdOpt):
    """Generate a new access token for a user."""
    dispatch(ctx.obj, UserIdCommand(command="generate-token", user_id=user_id))


add_help_command(user_app)
