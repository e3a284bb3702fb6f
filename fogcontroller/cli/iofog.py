"""`fogcontroller iofog` verb: fog nodes."""
from pathlib import Path
from typing import Annotated, Literal, Optional

import typer

from fogcontroller.core.common import AppBaseModel, delete_undefined_fields, transform
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.fog.schema import FogCreateRequest, FogUpdateRequest
from fogcontroller.server.api.fog.service import FogService
from fogcontroller.server.api.provision.service import ProvisionService
from fogcontroller.server.api.user.schema import UserEntry
from .dispatch import add_help_command, echo_json, execute_case, read_payload_file

logger = setup_logger(__name__, include_location=True)


class FogFlags(AppBaseModel):
    file: Optional[Path] = None
    name: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    description: Optional[str] = None
    fog_type: Optional[int] = None


class FogAddCommand(FogFlags):
    command: Literal["add"] = "add"
    user_id: Optional[int] = None


class FogUpdateCommand(FogFlags):
    command: Literal["update"] = "update"
    node_id: str


class FogNodeCommand(AppBaseModel):
    """remove, info and provisioning-key take only the node id."""
    command: Literal["remove", "info", "provisioning-key"]
    node_id: str


class FogListCommand(AppBaseModel):
    command: Literal["list"] = "list"


def build_fog(flags: FogFlags) -> dict:
    if flags.file:
        return read_payload_file(flags.file)
    return delete_undefined_fields({
        "name": flags.name,
        "location": flags.location,
        "latitude": flags.latitude,
        "longitude": flags.longitude,
        "description": flags.description,
        "fogTypeId": flags.fog_type,
    })


async def _create_fog(command: FogAddCommand, user: UserEntry) -> None:
    fog = await FogService.create_fog(transform(FogCreateRequest, build_fog(command)), user)
    echo_json({"uuid": fog.uuid})
    logger.success("ioFog node has been created successfully.")


async def _update_fog(command: FogUpdateCommand, user: Optional[UserEntry]) -> None:
    fog = {**build_fog(command), "instanceId": command.node_id}
    await FogService.update_fog(transform(FogUpdateRequest, fog))
    logger.success("ioFog node has been updated successfully.")


async def _delete_fog(command: FogNodeCommand, user: Optional[UserEntry]) -> None:
    await FogService.delete_fog(command.node_id)
    logger.success("ioFog node has been removed successfully")


async def _list_fogs(command: FogListCommand, user: Optional[UserEntry]) -> None:
    echo_json([fog.to_public_payload() for fog in await FogService.list_fogs()])


async def _get_fog(command: FogNodeCommand, user: Optional[UserEntry]) -> None:
    echo_json((await FogService.get_fog(command.node_id)).to_public_payload())


async def _generate_provisioning_key(command: FogNodeCommand, user: Optional[UserEntry]) -> None:
    echo_json(await ProvisionService.issue_key(command.node_id))


HANDLERS = {
    "add": (_create_fog, True),
    "update": (_update_fog, False),
    "remove": (_delete_fog, False),
    "list": (_list_fogs, False),
    "info": (_get_fog, False),
    "provisioning-key": (_generate_provisioning_key, False),
}


def dispatch(settings, command: AppBaseModel) -> None:
    handler, is_user_required = HANDLERS[command.command]
    execute_case(settings, command, handler, is_user_required)


iofog_app = typer.Typer(help="Manage ioFog nodes.", no_args_is_help=True)

FileOpt = Annotated[Optional[Path], typer.Option("--file", "-f", help="ioFog settings JSON file")]
NodeIdOpt = Annotated[str, typer.Option("--node-id", "-i", help="ioFog node ID")]
NameOpt = Annotated[Optional[str], typer.Option("--name", "-n", help="ioFog node name")]
LocationOpt = Annotated[Optional[str], typer.Option("--location", "-l", help="ioFog node location")]
LatitudeOpt = Annotated[Optional[float], typer.Option("--latitude", "-t", help="ioFog node latitude")]
LongitudeOpt = Annotated[Optional[float], typer.Option("--longitude", "-g", help="ioFog node longitude")]
DescriptionOpt = Annotated[Optional[str], typer.Option("--description", "-d", help="ioFog node description")]
FogTypeOpt = Annotated[Optional[int], typer.Option("--fog-type", "-y", help="ioFog node architecture type (1 x86, 2 ARM)")]


@iofog_app.command("add")
def add_fog(
    ctx: typer.Context,
    file: FileOpt = None,
    name: NameOpt = None,
    location: LocationOpt = None,
    latitude: LatitudeOpt = None,
    longitude: LongitudeOpt = None,
    description: DescriptionOpt = None,
    fog_type: FogTypeOpt = None,
    user_id: Annotated[Optional[int], typer.Option("--user-id", "-u", help="User's id")] = None,
):
    """Add a new ioFog node."""
    dispatch(ctx.obj, FogAddCommand(**ctx.params))


@iofog_app.command("update")
def update_fog(
    ctx: typer.Context,
    node_id: NodeIdOpt,
    file: FileOpt = None,
    name: NameOpt = None,
    location: LocationOpt = None,
    latitude: LatitudeOpt = None,
    longitude: LongitudeOpt = None,
    description: DescriptionOpt = None,
    fog_type: FogTypeOpt = None,
):
    """Update existing ioFog node."""
    dispatch(ctx.obj, FogUpdateCommand(**ctx.params))


@iofog_app.command("remove")
def remove_fog(ctx: typer.Context, node_id: NodeIdOpt):
    """Delete an ioFog node."""
    dispatch(ctx.obj, FogNodeCommand(command="remove", node_id=node_id))


@iofog_app.command("list")
def list_fogs(ctx: typer.Context):
    """List all ioFog nodes."""
    dispatch(ctx.obj, FogListCommand())


@iofog_app.command("info")
def fog_info(ctx: typer.Context, node_id: NodeIdOpt):
    """Get ioFog node settings."""
    dispatch(ctx.obj, FogNodeCommand(command="info", node_id=node_id))


@iofog_app.command("provisioning-key")
def provisioning_key(ctx: typer.Context, node_id: NodeIdOpt):
    """Get provisioning key for an ioFog node."""
    dispatch(ctx.obj, FogNodeCommand(command="provisioning-key", node_id=node_id))


add_help_command(iofog_app)
