from fogcontroller.server.api import API_PREFIX
from fogcontroller.server.app import create_app

EXPECTED = {
    ("GET", "/status"),
    ("POST", "/status"),
    ("GET", "/authoring/integrator/instances/list/{userId}"),
    ("GET", "/instance/create/type/{type}"),
    ("GET", "/instance/getfabriclist"),
    ("GET", "/getfabrictypes"),
    ("POST", "/authoring/fabric/instance/delete"),
    ("POST", "/authoring/integrator/instance/delete"),
    ("POST", "/authoring/integrator/instance/create"),
    ("POST", "/authoring/integrator/instance/update"),
    ("POST", "/authoring/organization/element/create"),
    ("POST", "/authoring/organization/element/update"),
    ("POST", "/authoring/organization/element/delete"),
    ("GET", "/authoring/organization/element/list"),
    ("GET", "/authoring/organization/element/get/{elementId}"),
    ("GET", "/authoring/fabric/track/element/list/{trackId}"),
    ("POST", "/authoring/element/instance/create"),
    ("POST", "/authoring/build/element/instance/create"),
    ("POST", "/authoring/element/instance/update"),
    ("POST", "/authoring/element/instance/config/update"),
    ("POST", "/authoring/element/instance/name/update"),
    ("POST", "/authoring/element/instance/delete"),
    ("POST", "/authoring/element/instance/comsat/pipe/create"),
    ("POST", "/authoring/element/instance/comsat/pipe/delete"),
    ("POST", "/authoring/element/instance/port/create"),
    ("POST", "/authoring/element/instance/port/delete"),
    ("POST", "/authoring/element/instance/route/create"),
    ("POST", "/authoring/element/instance/route/delete"),
    ("GET", "/authoring/fabric/provisionkey/instanceid/{instanceId}"),
    ("POST", "/authoring/fabric/provisioningkey/list/delete"),
    ("GET", "/instance/provision/key/{provisionKey}/fabrictype/{fabricType}"),
    ("POST", "/instance/provision/key/{provisionKey}/fabrictype/{fabricType}"),
    ("GET", "/authoring/fabric/track/list/{instanceId}"),
    ("POST", "/authoring/user/track/update"),
    ("POST", "/authoring/fabric/track/update"),
    ("POST", "/authoring/fabric/track/delete"),
    ("GET", "/authoring/fabric/viewer/access"),
    ("POST", "/instance/status/id/{ID}/token/{Token}"),
    ("POST", "/instance/config/changes/id/{ID}/token/{Token}"),
}

AGENT_POLL_ROUTES = [
    "/instance/changes/id/{ID}/token/{Token}/timestamp/{TimeStamp}",
    "/instance/config/id/{ID}/token/{Token}",
    "/instance/containerconfig/id/{ID}/token/{Token}",
    "/instance/containerlist/id/{ID}/token/{Token}",
    "/instance/registries/id/{ID}/token/{Token}",
    "/instance/routing/id/{ID}/token/{Token}",
]


def _registered(app):
    return {
        (method.upper(), path)
        for path, operations in app.openapi()["paths"].items()
        for method in operations
    }


def test_every_route_is_under_the_api_prefix(settings):
    assert API_PREFIX == "/api/v2"
    paths = create_app(settings, use_pool=False).openapi()["paths"]
    assert paths
    assert all(path.startswith(API_PREFIX + "/") for path in paths)


def test_route_table(settings):
    registered = _registered(create_app(settings, use_pool=False))
    expected = {(method, API_PREFIX + path) for method, path in EXPECTED}
    for path in AGENT_POLL_ROUTES:
        expected |= {("GET", API_PREFIX + path), ("POST", API_PREFIX + path)}
    assert expected - registered == set()
