"""
Tests for folding flat `catalog` flags into the nested catalog item payload.
"""

import pytest

from fogcontroller.cli.catalog import CatalogAddCommand, CatalogUpdateCommand, build_catalog_item, catalog_item_from_command
from fogcontroller.core.errors import ValidationError


def test_only_given_fields_are_present():
    item = build_catalog_item(CatalogAddCommand(name="sensor", disk_required=0, category="UTILITIES"))
    assert item == {"name": "sensor", "diskRequired": 0, "category": "UTILITIES"}


def test_no_flags_builds_empty_item():
    assert build_catalog_item(CatalogAddCommand()) == {}


@pytest.mark.parametrize(
    "public,private,expected",
    [(True, False, True), (False, True, False)],
)
def test_public_private_flags(public, private, expected):
    item = build_catalog_item(CatalogAddCommand(name="x", public=public, private=private))
    assert item["isPublic"] is expected


def test_is_public_absent_without_flags():
    assert "isPublic" not in build_catalog_item(CatalogAddCommand(name="x"))


def test_public_and_private_together_fail():
    with pytest.raises(ValidationError):
        build_catalog_item(CatalogAddCommand(name="x", public=True, private=True))


def test_single_image_flag_builds_both_images():
    item = build_catalog_item(CatalogAddCommand(x86_image="repo/sensor:x86"))
    assert item["images"] == [
        {"containerImage": "repo/sensor:x86", "fogTypeId": 1},
        {"fogTypeId": 2},
    ]


def test_arm_image_only():
    item = build_catalog_item(CatalogUpdateCommand(item_id=3, arm_image="repo/sensor:arm"))
    assert [image["fogTypeId"] for image in item["images"]] == [1, 2]
    assert item["images"][1]["containerImage"] == "repo/sensor:arm"
    assert "containerImage" not in item["images"][0]


def test_no_images_without_image_flags():
    assert "images" not in build_catalog_item(CatalogAddCommand(name="x"))


def test_input_and_output_types():
    item = build_catalog_item(
        CatalogAddCommand(input_type="temperature", input_format="celsius", output_type="alert")
    )
    assert item["inputType"] == {"infoType": "temperature", "infoFormat": "celsius"}
    assert item["outputType"] == {"infoType": "alert"}


def test_format_without_type_is_ignored():
    item = build_catalog_item(CatalogAddCommand(input_format="celsius", output_format="json"))
    assert "inputType" not in item
    assert "outputType" not in item


def test_file_payload_replaces_flags(tmp_path):
    path = tmp_path / "item.json"
    path.write_text('{"name": "from-file", "ramRequired": 64}')
    command = CatalogAddCommand(file=path, name="from-flags")
    assert catalog_item_from_command(command) == {"name": "from-file", "ramRequired": 64}


def test_file_payload_must_be_object(tmp_path):
    path = tmp_path / "item.json"
    path.write_text("[1, 2]")
    with pytest.raises(ValidationError):
        catalog_item_from_command(CatalogAddCommand(file=path))


def test_file_payload_must_be_json(tmp_path):
    path = tmp_path / "item.json"
    path.write_text("name: yaml")
    with pytest.raises(ValidationError):
        catalog_item_from_command(CatalogAddCommand(file=path))
