"""
`fogcontroller catalog ...` through the typer app with the database layer patched out.
"""
import json
from unittest.mock import AsyncMock, patch

import pytest
from typer.testing import CliRunner

from fogcontroller.cli import cli_app
from fogcontroller.server.api.catalog.schema import CatalogItemEntry
from fogcontroller.server.api.user.schema import UserEntry

runner = CliRunner()


@pytest.fixture
def no_pool():
    with patch("fogcontroller.cli.dispatch.init_pool", new=AsyncMock()) as init_pool, \
            patch("fogcontroller.cli.dispatch.close_pool", new=AsyncMock()) as close_pool:
        yield init_pool, close_pool


@pytest.fixture
def dispatch_logger():
    with patch("fogcontroller.cli.dispatch.logger") as logger:
        yield logger


def _logged_errors(logger):
    return [call.args[0] for call in logger.error.call_args_list]


def test_add_without_user_is_rejected_before_the_service(settings, no_pool, dispatch_logger):
    create = AsyncMock()
    with patch("fogcontroller.cli.dispatch.UserService.get_user_by_id", new=AsyncMock(return_value=None)), \
            patch("fogcontroller.cli.catalog.CatalogItemService.create_catalog_item", new=create):
        result = runner.invoke(cli_app, ["catalog", "add", "--name", "sensor", "--user-id", "42"], obj=settings)

    assert result.exit_code == 0
    create.assert_not_awaited()
    assert _logged_errors(dispatch_logger) == ["Invalid user id 42"]


def test_add_without_user_id_is_rejected(settings, no_pool, dispatch_logger):
    create = AsyncMock()
    with patch("fogcontroller.cli.catalog.CatalogItemService.create_catalog_item", new=create):
        result = runner.invoke(cli_app, ["catalog", "add", "-n", "sensor"], obj=settings)

    assert result.exit_code == 0
    create.assert_not_awaited()
    assert _logged_errors(dispatch_logger) == ["Invalid user id"]


def test_add_builds_payload_for_the_resolved_user(settings, no_pool, dispatch_logger):
    user = UserEntry(id=42, email="ops@example.com")
    create = AsyncMock(return_value={"id": 7})
    with patch("fogcontroller.cli.dispatch.UserService.get_user_by_id", new=AsyncMock(return_value=user)), \
            patch("fogcontroller.cli.catalog.CatalogItemService.create_catalog_item", new=create), \
            patch("fogcontroller.cli.catalog.logger"):
        result = runner.invoke(
            cli_app,
            ["catalog", "add", "-n", "sensor", "-x", "repo/sensor:x86", "--public", "-I", "temperature", "-u", "42"],
            obj=settings,
        )

    assert result.exit_code == 0
    create.assert_awaited_once()
    payload, passed_user = create.await_args.args
    assert passed_user is user
    assert payload.name == "sensor"
    assert payload.is_public is True
    assert [(image.fog_type_id, image.container_image) for image in payload.images] == [
        (1, "repo/sensor:x86"),
        (2, None),
    ]
    assert payload.input_type.info_type == "temperature"
    assert payload.output_type is None
    no_pool[0].assert_awaited_once_with(settings.conn_string)
    no_pool[1].assert_awaited_once()


def test_public_and_private_are_exclusive(settings, no_pool, dispatch_logger):
    update = AsyncMock()
    with patch("fogcontroller.cli.catalog.CatalogItemService.update_catalog_item", new=update):
        result = runner.invoke(cli_app, ["catalog", "update", "-i", "3", "--public", "--private"], obj=settings)

    assert result.exit_code == 0
    update.assert_not_awaited()
    assert _logged_errors(dispatch_logger) == ["Two opposite can't be used simultaneously"]


def test_update_from_file(settings, no_pool, dispatch_logger, tmp_path):
    path = tmp_path / "item.json"
    path.write_text('{"name": "from-file", "images": [{"containerImage": "a", "fogTypeId": 1}]}')
    update = AsyncMock()
    with patch("fogcontroller.cli.catalog.CatalogItemService.update_catalog_item", new=update), \
            patch("fogcontroller.cli.catalog.logger"):
        result = runner.invoke(cli_app, ["catalog", "update", "--item-id", "3", "--file", str(path), "-n", "ignored"], obj=settings)

    assert result.exit_code == 0
    item_id, payload, user = update.await_args.args
    assert item_id == 3
    assert payload.name == "from-file"
    assert user is None
    assert update.await_args.kwargs == {"is_cli": True}


def test_info_prints_the_item(settings, no_pool, dispatch_logger):
    item = CatalogItemEntry(id=3, name="sensor", is_public=True)
    with patch("fogcontroller.cli.catalog.CatalogItemService.get_catalog_item", new=AsyncMock(return_value=item)):
        result = runner.invoke(cli_app, ["catalog", "info", "-i", "3"], obj=settings)

    assert result.exit_code == 0
    printed = [json.loads(call.args[0]) for call in dispatch_logger.info.call_args_list]
    assert {"id": 3, "name": "sensor", "isPublic": True} in printed


def test_service_errors_do_not_change_exit_code(settings, no_pool, dispatch_logger):
    with patch(
        "fogcontroller.cli.catalog.CatalogItemService.delete_catalog_item",
        new=AsyncMock(side_effect=RuntimeError("connection lost")),
    ):
        result = runner.invoke(cli_app, ["catalog", "remove", "-i", "3"], obj=settings)

    assert result.exit_code == 0
    assert _logged_errors(dispatch_logger) == ["unknown: connection lost"]


@pytest.mark.parametrize(
    "args",
    [
        ["catalog", "update", "-i", "3", "--user-id", "1"],
        ["catalog", "remove", "-i", "3", "--name", "x"],
        ["catalog", "list", "--item-id", "3"],
        ["catalog", "add", "--item-id", "3"],
    ],
)
def test_illegal_options_are_usage_errors(settings, args):
    with patch("fogcontroller.cli.catalog.dispatch") as dispatch:
        result = runner.invoke(cli_app, args, obj=settings)

    assert result.exit_code == 2
    dispatch.assert_not_called()


def test_missing_item_id_is_a_usage_error(settings):
    with patch("fogcontroller.cli.catalog.dispatch") as dispatch:
        result = runner.invoke(cli_app, ["catalog", "info"], obj=settings)

    assert result.exit_code == 2
    dispatch.assert_not_called()


def test_help_lists_file_schema(settings):
    result = runner.invoke(cli_app, ["catalog", "--help"], obj=settings)
    assert result.exit_code == 0
    assert "JSON File Schema" in result.output
    assert "containerImage" in result.output


def test_help_command_prints_usage(settings):
    with patch("fogcontroller.cli.catalog.dispatch") as dispatch:
        result = runner.invoke(cli_app, ["catalog", "help"], obj=settings)

    assert result.exit_code == 0
    dispatch.assert_not_called()
    assert "Manage catalog items." in result.output
    assert "JSON File Schema" in result.output
    for verb in ("add", "update", "remove", "list", "info"):
        assert verb in result.output
