import pytest

from fogcontroller.core.errors import NotFoundError
from fogcontroller.server.api.user.schema import UserEntry
from fogcontroller.server.api.viewer import service as viewer_service
from fogcontroller.server.api.viewer.service import ViewerService

USER = UserEntry(id=8, email="ops@example.com")


@pytest.mark.asyncio
async def test_viewer_access_for_own_fog(fake_db):
    cur, _ = fake_db(
        viewer_service,
        fetchone=[{"api_base_url": "https://fog-a:60400", "access_token": "tok", "element_id": "el-1"}],
    )

    access = await ViewerService.get_viewer_access("fog-a", USER)

    assert access.api_base_url == "https://fog-a:60400"
    assert access.element_id == "el-1"
    [(_, params)] = cur.executed
    assert params == {"uuid": "fog-a", "user_id": 8}


@pytest.mark.asyncio
async def test_viewer_access_missing(fake_db):
    fake_db(viewer_service, fetchone=[None])
    with pytest.raises(NotFoundError):
        await ViewerService.get_viewer_access("fog-z", USER)
