"""`fogcontroller registry` verb."""
from typing import Annotated, Literal, Optional

import typer

from fogcontroller.core.common import AppBaseModel, delete_undefined_fields, transform, validate_boolean_cli_options
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.registry.schema import RegistryPayload
from fogcontroller.server.api.registry.service import RegistryService
from fogcontroller.server.api.user.schema import UserEntry
from .dispatch import add_help_command, echo_json, execute_case

logger = setup_logger(__name__, include_location=True)


class RegistryFlags(AppBaseModel):
    uri: Optional[str] = None
    public: bool = False
    private: bool = False
    username: Optional[str] = None
    password: Optional[str] = None
    requires_cert: bool = False
    certificate: Optional[str] = None
    email: Optional[str] = None


class RegistryAddCommand(RegistryFlags):
    command: Literal["add"] = "add"
    user_id: Optional[int] = None


class RegistryUpdateCommand(RegistryFlags):
    command: Literal["update"] = "update"
    item_id: int


class RegistryRemoveCommand(AppBaseModel):
    command: Literal["remove"] = "remove"
    item_id: int


class RegistryListCommand(AppBaseModel):
    command: Literal["list"] = "list"


def build_registry(flags: RegistryFlags) -> dict:
    return delete_undefined_fields({
        "url": flags.uri,
        "isPublic": validate_boolean_cli_options(flags.public, flags.private),
        "username": flags.username,
        "password": flags.password,
        "requiresCert": flags.requires_cert or None,
        "certificate": flags.certificate,
        "userEmail": flags.email,
    })


async def _create_registry(command: RegistryAddCommand, user: UserEntry) -> None:
    registry = await RegistryService.create_registry(transform(RegistryPayload, build_registry(command)), user)
    echo_json({"id": registry.id})
    logger.success("Registry has been created successfully.")


async def _update_registry(command: RegistryUpdateCommand, user: Optional[UserEntry]) -> None:
    await RegistryService.update_registry(command.item_id, transform(RegistryPayload, build_registry(command)))
    logger.success("Registry has been updated successfully.")


async def _delete_registry(command: RegistryRemoveCommand, user: Optional[UserEntry]) -> None:
    await RegistryService.delete_registry(command.item_id)
    logger.success("Registry has been removed successfully.")


async def _list_registries(command: RegistryListCommand, user: Optional[UserEntry]) -> None:
    echo_json(await RegistryService.list_registries())


HANDLERS = {
    "add": (_create_registry, True),
    "update": (_update_registry, False),
    "remove": (_delete_registry, False),
    "list": (_list_registries, False),
}


def dispatch(settings, command: AppBaseModel) -> None:
    handler, is_user_required = HANDLERS[command.command]
    execute_case(settings, command, handler, is_user_required)


registry_app = typer.Typer(help="Manage docker registries.", no_args_is_help=True)

UriOpt = Annotated[Optional[str], typer.Option("--uri", "-U", help="Registry URI")]
PublicOpt = Annotated[bool, typer.Option("--public", "-b", help="Set registry as public")]
PrivateOpt = Annotated[bool, typer.Option("--private", "-r", help="Set registry as private")]
UsernameOpt = Annotated[Optional[str], typer.Option("--username", "-l", help="Registry's user name")]
PasswordOpt = Annotated[Optional[str], typer.Option("--password", "-p", help="Password")]
RequiresCertOpt = Annotated[bool, typer.Option("--requires-cert", "-c", help="Requires certificate")]
CertificateOpt = Annotated[Optional[str], typer.Option("--certificate", "-C", help="Certificate")]
EmailOpt = Annotated[Optional[str], typer.Option("--email", "-e", help="Email address")]
ItemIdOpt = Annotated[int, typer.Option("--item-id", "-i", help="Registry ID")]


@registry_app.command("add")
def add_registry(
    ctx: typer.Context,
    uri: UriOpt = None,
    public: PublicOpt = False,
    private: PrivateOpt = False,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    requires_cert: RequiresCertOpt = False,
    certificate: CertificateOpt = None,
    email: EmailOpt = None,
    user_id: Annotated[Optional[int], typer.Option("--user-id", "-u", help="User's id")] = None,
):
    """Add a new Registry."""
    dispatch(ctx.obj, RegistryAddCommand(**ctx.params))


@registry_app.command("update")
def update_registry(
    ctx: typer.Context,
    item_id: ItemIdOpt,
    uri: UriOpt = None,
    public: PublicOpt = False,
    private: PrivateOpt = False,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    requires_cert: RequiresCertOpt = False,
    certificate: CertificateOpt = None,
    email: EmailOpt = None,
):
    """Update a Registry."""
    dispatch(ctx.obj, RegistryUpdateCommand(**ctx.params))


@registry_app.command("remove")
def remove_registry(ctx: typer.Context, item_id: ItemIdOpt):
    """Delete a Registry."""
    dispatch(ctx.obj, RegistryRemoveCommand(item_id=item_id))


@registry_app.command("list")
def list_registries(ctx: typer.Context):
    """List all Registries."""
    dispatch(ctx.obj, RegistryListCommand())


add_help_command(registry_app)
