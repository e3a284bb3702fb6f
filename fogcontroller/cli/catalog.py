"""
`fogcontroller catalog` verb.

Each sub-command declares only the flags it accepts and is parsed into its
own command model. Flat flags are then folded into the nested catalog item
payload the service layer expects.
"""
from pathlib import Path
from typing import Annotated, Any, Dict, Literal, Optional, Union

import typer
from pydantic import Field

from fogcontroller.core.common import AppBaseModel, delete_undefined_fields, transform, validate_boolean_cli_options
from fogcontroller.core.logger import setup_logger
from fogcontroller.server.api.catalog.schema import ARM_FOG_TYPE_ID, X86_FOG_TYPE_ID, CatalogItemPayload
from fogcontroller.server.api.catalog.service import CatalogItemService
from fogcontroller.server.api.user.schema import UserEntry
from .dispatch import add_help_command, echo_json, execute_case, read_payload_file

logger = setup_logger(__name__, include_location=True)

JSON_SCHEMA = """\
  name: string
  description: string
  category: string
  publisher: string
  diskRequired: number
  ramRequired: number
  picture: string
  isPublic: boolean
  registryId: number
  configExample: string
  images: array of objects
    containerImage: string
    fogTypeId: number
  inputType: object
    infoType: string
    infoFormat: string
  outputType: object
    infoType: string
    infoFormat: string"""


# =============================================================================
# Commands
# =============================================================================

class CatalogItemFlags(AppBaseModel):
    file: Optional[Path] = None
    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    x86_image: Optional[str] = None
    arm_image: Optional[str] = None
    publisher: Optional[str] = None
    disk_required: Optional[int] = None
    ram_required: Optional[int] = None
    picture: Optional[str] = None
    public: bool = False
    private: bool = False
    registry_id: Optional[int] = None
    input_type: Optional[str] = None
    input_format: Optional[str] = None
    output_type: Optional[str] = None
    output_format: Optional[str] = None
    config_example: Optional[str] = None


class CatalogAddCommand(CatalogItemFlags):
    command: Literal["add"] = "add"
    user_id: Optional[int] = None


class CatalogUpdateCommand(CatalogItemFlags):
    command: Literal["update"] = "update"
    item_id: int


class CatalogRemoveCommand(AppBaseModel):
    command: Literal["remove"] = "remove"
    item_id: int


class CatalogListCommand(AppBaseModel):
    command: Literal["list"] = "list"


class CatalogInfoCommand(AppBaseModel):
    command: Literal["info"] = "info"
    item_id: int


CatalogCommand = Annotated[
    Union[CatalogAddCommand, CatalogUpdateCommand, CatalogRemoveCommand, CatalogListCommand, CatalogInfoCommand],
    Field(discriminator="command"),
]


# =============================================================================
# Object builder
# =============================================================================

def build_catalog_item(flags: CatalogItemFlags) -> Dict[str, Any]:
    """Fold flat CLI flags into the catalog item payload, dropping unset fields."""
    item: Dict[str, Any] = {
        "name": flags.name,
        "description": flags.description,
        "category": flags.category,
        "configExample": flags.config_example,
        "publisher": flags.publisher,
        "diskRequired": flags.disk_required,
        "ramRequired": flags.ram_required,
        "picture": flags.picture,
        "isPublic": validate_boolean_cli_options(flags.public, flags.private),
        "registryId": flags.registry_id,
    }

    if flags.x86_image is not None or flags.arm_image is not None:
        item["images"] = [
            {"containerImage": flags.x86_image, "fogTypeId": X86_FOG_TYPE_ID},
            {"containerImage": flags.arm_image, "fogTypeId": ARM_FOG_TYPE_ID},
        ]

    if flags.input_type is not None:
        item["inputType"] = {"infoType": flags.input_type, "infoFormat": flags.input_format}

    if flags.output_type is not None:
        item["outputType"] = {"infoType": flags.output_type, "infoFormat": flags.output_format}

    return delete_undefined_fields(item)


def catalog_item_from_command(command: CatalogItemFlags) -> Dict[str, Any]:
    return read_payload_file(command.file) if command.file else build_catalog_item(command)


# =============================================================================
# Handlers
# =============================================================================

async def _create_catalog_item(command: CatalogAddCommand, user: UserEntry) -> None:
    item = catalog_item_from_command(command)
    echo_json(item)
    result = await CatalogItemService.create_catalog_item(transform(CatalogItemPayload, item), user)
    echo_json(result)
    logger.success("Catalog item has been created successfully.")


async def _update_catalog_item(command: CatalogUpdateCommand, user: Optional[UserEntry]) -> None:
    item = catalog_item_from_command(command)
    echo_json(item)
    await CatalogItemService.update_catalog_item(command.item_id, transform(CatalogItemPayload, item), user, is_cli=True)
    logger.success("Catalog item has been updated successfully.")


async def _delete_catalog_item(command: CatalogRemoveCommand, user: Optional[UserEntry]) -> None:
    echo_json(command.model_dump())
    await CatalogItemService.delete_catalog_item(command.item_id, user, is_cli=True)
    logger.success("Catalog item has been removed successfully")


async def _list_catalog_items(command: CatalogListCommand, user: Optional[UserEntry]) -> None:
    echo_json(await CatalogItemService.list_catalog_items(user, is_cli=True))


async def _get_catalog_item(command: CatalogInfoCommand, user: Optional[UserEntry]) -> None:
    echo_json(command.model_dump())
    echo_json(await CatalogItemService.get_catalog_item(command.item_id, user, is_cli=True))


HANDLERS = {
    "add": (_create_catalog_item, True),
    "update": (_update_catalog_item, False),
    "remove": (_delete_catalog_item, False),
    "list": (_list_catalog_items, False),
    "info": (_get_catalog_item, False),
}


def dispatch(settings, command: CatalogCommand) -> None:
    handler, is_user_required = HANDLERS[command.command]
    execute_case(settings, command, handler, is_user_required)


# =============================================================================
# Typer commands
# =============================================================================

catalog_app = typer.Typer(
    help="Manage catalog items.",
    no_args_is_help=True,
    epilog="JSON File Schema:\n\n\b\n" + JSON_SCHEMA,
)

FileOpt = Annotated[Optional[Path], typer.Option("--file", "-f", help="Catalog item settings JSON file")]
ItemIdOpt = Annotated[int, typer.Option("--item-id", "-i", help="Catalog item ID")]
NameOpt = Annotated[Optional[str], typer.Option("--name", "-n", help="Catalog item name")]
DescriptionOpt = Annotated[Optional[str], typer.Option("--description", "-d", help="Catalog item description")]
CategoryOpt = Annotated[Optional[str], typer.Option("--category", "-c", help="Catalog item category")]
X86ImageOpt = Annotated[Optional[str], typer.Option("--x86-image", "-x", help="x86 docker image name")]
ArmImageOpt = Annotated[Optional[str], typer.Option("--arm-image", "-a", help="ARM docker image name")]
PublisherOpt = Annotated[Optional[str], typer.Option("--publisher", "-p", help="Catalog item publisher name")]
DiskRequiredOpt = Annotated[Optional[int], typer.Option("--disk-required", "-s", help="Amount of disk required to run the microservice (MB)")]
RamRequiredOpt = Annotated[Optional[int], typer.Option("--ram-required", "-r", help="Amount of RAM required to run the microservice (MB)")]
PictureOpt = Annotated[Optional[str], typer.Option("--picture", "-t", help="Catalog item picture")]
PublicOpt = Annotated[bool, typer.Option("--public", "-P", help="Public catalog item")]
PrivateOpt = Annotated[bool, typer.Option("--private", "-V", help="Private catalog item")]
RegistryIdOpt = Annotated[Optional[int], typer.Option("--registry-id", "-g", help="Catalog item docker registry ID")]
InputTypeOpt = Annotated[Optional[str], typer.Option("--input-type", "-I", help="Catalog item input type")]
InputFormatOpt = Annotated[Optional[str], typer.Option("--input-format", "-F", help="Catalog item input format")]
OutputTypeOpt = Annotated[Optional[str], typer.Option("--output-type", "-O", help="Catalog item output type")]
OutputFormatOpt = Annotated[Optional[str], typer.Option("--output-format", "-T", help="Catalog item output format")]
ConfigExampleOpt = Annotated[Optional[str], typer.Option("--config-example", "-X", help="Catalog item config example")]
UserIdOpt = Annotated[Optional[int], typer.Option("--user-id", "-u", help="User's id")]


@catalog_app.command("add")
def add_catalog_item(
    ctx: typer.Context,
    file: FileOpt = None,
    name: NameOpt = None,
    description: DescriptionOpt = None,
    category: CategoryOpt = None,
    x86_image: X86ImageOpt = None,
    arm_image: ArmImageOpt = None,
    publisher: PublisherOpt = None,
    disk_required: DiskRequiredOpt = None,
    ram_required: RamRequiredOpt = None,
    picture: PictureOpt = None,
    public: PublicOpt = False,
    private: PrivateOpt = False,
    registry_id: RegistryIdOpt = None,
    input_type: InputTypeOpt = None,
    input_format: InputFormatOpt = None,
    output_type: OutputTypeOpt = None,
    output_format: OutputFormatOpt = None,
    config_example: ConfigExampleOpt = None,
    user_id: UserIdOpt = None,
):
    """Add a new catalog item."""
    dispatch(ctx.obj, CatalogAddCommand(**ctx.params))


@catalog_app.command("update")
def update_catalog_item(
    ctx: typer.Context,
    item_id: ItemIdOpt,
    file: FileOpt = None,
    name: NameOpt = None,
    description: DescriptionOpt = None,
    category: CategoryOpt = None,
    x86_image: X86ImageOpt = None,
    arm_image: ArmImageOpt = None,
    publisher: PublisherOpt = None,
    disk_required: DiskRequiredOpt = None,
    ram_required: RamRequiredOpt = None,
    picture: PictureOpt = None,
    public: PublicOpt = False,
    private: PrivateOpt = False,
    registry_id: RegistryIdOpt = None,
    input_type: InputTypeOpt = None,
    input_format: InputFormatOpt = None,
    output_type: OutputTypeOpt = None,
    output_format: OutputFormatOpt = None,
    config_example: ConfigExampleOpt = None,
):
    """Update existing catalog item."""
    dispatch(ctx.obj, CatalogUpdateCommand(**ctx.params))


@catalog_app.command("remove")
def remove_catalog_item(ctx: typer.Context, item_id: ItemIdOpt):
    """Delete a catalog item."""
    dispatch(ctx.obj, CatalogRemoveCommand(item_id=item_id))


@catalog_app.command("list")
def list_catalog_items(ctx: typer.Context):
    """List all catalog items."""
    dispatch(ctx.obj, CatalogListCommand())


@catalog_app.command("info")
def catalog_item_info(ctx: typer.Context, item_id: ItemIdOpt):
    """Get catalog item settings."""
    dispatch(ctx.obj, CatalogInfoCommand(item_id=item_id))


add_help_command(catalog_app)
