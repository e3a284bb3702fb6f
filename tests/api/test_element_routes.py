from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from fogcontroller.core.errors import NotFoundError
from fogcontroller.server.api.auth import get_authenticated_user
from fogcontroller.server.api.catalog.schema import CatalogItemEntry
from fogcontroller.server.api.catalog.service import get_catalog_item_service
from fogcontroller.server.api.user.schema import UserEntry
from fogcontroller.server.app import create_app

USER = UserEntry(id=11, email="author@example.com")


@pytest.fixture
def service():
    mock = MagicMock()
    mock.create_catalog_item = AsyncMock(return_value={"id": 21})
    mock.update_catalog_item = AsyncMock()
    mock.delete_catalog_item = AsyncMock()
    mock.list_catalog_items = AsyncMock(return_value=[])
    mock.get_catalog_item = AsyncMock()
    return mock


@pytest.fixture
def client(settings, service):
    app = create_app(settings, use_pool=False)
    app.dependency_overrides[get_authenticated_user] = lambda: USER
    app.dependency_overrides[get_catalog_item_service] = lambda: service
    return TestClient(app)


def test_create_element(client, service):
    r = client.post(
        "/api/v2/authoring/organization/element/create",
        json={
            "t": "token",
            "name": "sensor",
            "isPublic": True,
            "images": [{"containerImage": "repo/sensor", "fogTypeId": 1}],
        },
    )
    assert r.status_code == 200
    assert r.json()["elementId"] == 21
    payload, user = service.create_catalog_item.await_args.args
    assert payload.name == "sensor"
    assert payload.images[0].fog_type_id == 1
    assert user is USER


def test_update_element_uses_api_scope(client, service):
    r = client.post(
        "/api/v2/authoring/organization/element/update",
        json={"elementId": 21, "description": "new"},
    )
    assert r.status_code == 200
    item_id, item, user = service.update_catalog_item.await_args.args
    assert item_id == 21
    assert item.description == "new"
    assert service.update_catalog_item.await_args.kwargs == {"is_cli": False}


def test_delete_missing_element(client, service):
    service.delete_catalog_item.side_effect = NotFoundError("Invalid catalog item id 99")
    r = client.post("/api/v2/authoring/organization/element/delete", json={"elementId": 99})
    assert r.status_code == 404
    assert r.json()["errormessage"] == "Invalid catalog item id 99"


def test_list_elements(client, service):
    service.list_catalog_items.return_value = [
        CatalogItemEntry(id=1, name="public-one", is_public=True, user_id=2),
        CatalogItemEntry(id=2, name="mine", user_id=11),
    ]
    r = client.get("/api/v2/authoring/organization/element/list")
    assert r.status_code == 200
    assert [element["name"] for element in r.json()["elements"]] == ["public-one", "mine"]
    assert r.json()["elements"][0]["isPublic"] is True


def test_get_element(client, service):
    service.get_catalog_item.return_value = CatalogItemEntry(id=5, name="sensor")
    r = client.get("/api/v2/authoring/organization/element/get/5")
    assert r.status_code == 200
    assert r.json()["element"] == {"id": 5, "name": "sensor"}
    assert service.get_catalog_item.await_args.args[0] == 5


def test_malformed_body_is_rejected(client, service):
    r = client.post("/api/v2/authoring/organization/element/create", json={"diskRequired": -1})
    assert r.status_code == 422
    service.create_catalog_item.assert_not_awaited()
