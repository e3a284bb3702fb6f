import pytest

from fogcontroller.core.errors import AuthenticationError, NotFoundError, ValidationError
from fogcontroller.server.api.provision import service as provision_service
from fogcontroller.server.api.provision.service import PROVISION_KEY_LENGTH, PROVISION_KEY_TTL_MS, ProvisionService
from fogcontroller.server.api.user.schema import UserEntry

NOW = 1_700_000_000_000


@pytest.fixture(autouse=True)
def frozen_clock(monkeypatch):
    monkeypatch.setattr(provision_service, "now_ms", lambda: NOW)


def _key_row(expiration_time, fog_type_id=1):
    return {"id": 4, "expiration_time": expiration_time, "fog_uuid": "fog-a", "fog_type_id": fog_type_id}


@pytest.mark.asyncio
async def test_issue_key(fake_db):
    cur, conn = fake_db(provision_service, fetchone=[{"exists": 1}])

    key = await ProvisionService.issue_key("fog-a", UserEntry(id=3, email="ops@example.com"))

    assert len(key.key) == PROVISION_KEY_LENGTH
    assert key.key.isalnum()
    assert key.expiration_time == NOW + PROVISION_KEY_TTL_MS
    assert cur.executed[0][1] == {"uuid": "fog-a", "user_id": 3}
    assert len(cur.statements("DELETE FROM fogcontroller.provision_keys")) == 1
    assert conn.commits == 1


@pytest.mark.asyncio
async def test_issue_key_for_foreign_fog(fake_db):
    cur, conn = fake_db(provision_service, fetchone=[None])
    with pytest.raises(NotFoundError):
        await ProvisionService.issue_key("fog-a", UserEntry(id=3, email="ops@example.com"))
    assert cur.statements("INSERT") == []


@pytest.mark.asyncio
async def test_unknown_key(fake_db):
    fake_db(provision_service, fetchone=[None])
    with pytest.raises(NotFoundError):
        await ProvisionService.provision("nope", 1)


@pytest.mark.asyncio
async def test_expired_key_is_deleted(fake_db):
    cur, conn = fake_db(provision_service, fetchone=[_key_row(NOW - 1)])

    with pytest.raises(AuthenticationError):
        await ProvisionService.provision("AbCd1234", 1)

    assert cur.executed[-1] == ("DELETE FROM fogcontroller.provision_keys WHERE id = %(id)s", {"id": 4})
    assert conn.commits == 1
    assert cur.statements("UPDATE fogcontroller.fogs") == []


@pytest.mark.asyncio
async def test_invalid_fog_type(fake_db):
    cur, conn = fake_db(provision_service, fetchone=[_key_row(NOW + 1), None])
    with pytest.raises(ValidationError):
        await ProvisionService.provision("AbCd1234", 7)
    assert conn.commits == 0


@pytest.mark.asyncio
async def test_provision_same_type(fake_db):
    cur, conn = fake_db(provision_service, fetchone=[_key_row(NOW + 1, fog_type_id=1), {"exists": 1}])

    result = await ProvisionService.provision("AbCd1234", 1)

    assert result.id == "fog-a"
    assert len(result.token) == 64
    [(_, update)] = [(sql, params) for sql, params in cur.executed if sql.startswith("UPDATE fogcontroller.fogs")]
    assert update["token"] == result.token
    assert cur.statements("UPDATE fogcontroller.change_tracking") == []
    assert conn.commits == 1


@pytest.mark.asyncio
async def test_provision_with_new_type_reloads_containers(fake_db):
    cur, _ = fake_db(provision_service, fetchone=[_key_row(NOW + 1, fog_type_id=1), {"exists": 1}])

    await ProvisionService.provision("AbCd1234", 2)

    [bump] = cur.statements("UPDATE fogcontroller.change_tracking")
    assert "container_list = %(now)s" in bump


@pytest.mark.asyncio
async def test_delete_unknown_key(fake_db):
    fake_db(provision_service, rowcount=0)
    with pytest.raises(NotFoundError):
        await ProvisionService.delete_key("nope", UserEntry(id=3, email="ops@example.com"))
