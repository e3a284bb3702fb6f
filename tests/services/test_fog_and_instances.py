from types import SimpleNamespace
from unittest.mock import patch

import pytest
from psycopg import errors as pg_errors

from fogcontroller.core.errors import ConflictError, NotFoundError, ValidationError
from fogcontroller.server.api.element_instance import service as instance_service
from fogcontroller.server.api.element_instance.schema import PortCreateRequest
from fogcontroller.server.api.element_instance.service import (
    COMSAT_FIRST_PORT,
    PIPE_PORT_CONSTRAINT,
    ElementInstanceService,
)
from fogcontroller.server.api.fog import service as fog_service
from fogcontroller.server.api.fog.schema import FogCreateRequest, FogUpdateRequest
from fogcontroller.server.api.fog.service import FOG_UUID_LENGTH, FogService
from fogcontroller.server.api.user.schema import UserEntry

USER = UserEntry(id=8, email="ops@example.com")
FOG_ROW = {"uuid": "f" * 32, "name": "edge-1", "user_id": 8, "fog_type_id": 1}
INSTANCE_ROW = {"uuid": "inst-1", "name": "sensor", "fog_uuid": "f" * 32, "user_id": 8, "ports": []}


class TestFogService:

    @pytest.mark.asyncio
    async def test_create_inserts_change_tracking_row(self, fake_db):
        cur, conn = fake_db(fog_service, fetchone=[{"exists": 1}, FOG_ROW])

        fog = await FogService.create_fog(FogCreateRequest(name="edge-1", fog_type_id=1), USER)

        assert fog.uuid == FOG_ROW["uuid"]
        _, insert = next((sql, params) for sql, params in cur.executed if sql.startswith("INSERT INTO fogcontroller.fogs"))
        assert len(insert["uuid"]) == FOG_UUID_LENGTH
        assert insert["user_id"] == 8
        assert len(cur.statements("INSERT INTO fogcontroller.change_tracking")) == 1
        assert conn.commits == 1

    @pytest.mark.asyncio
    async def test_create_with_unknown_type(self, fake_db):
        cur, conn = fake_db(fog_service, fetchone=[None])
        with pytest.raises(ValidationError):
            await FogService.create_fog(FogCreateRequest(name="edge-1", fog_type_id=9), USER)
        assert conn.commits == 0

    @pytest.mark.asyncio
    async def test_get_fog_by_token_needs_both_parts(self, fake_db):
        cur, _ = fake_db(fog_service)
        assert await FogService.get_fog_by_token("abc", "") is None
        assert cur.executed == []

    @pytest.mark.asyncio
    async def test_get_foreign_fog(self, fake_db):
        cur, _ = fake_db(fog_service, fetchall=[[]])
        with pytest.raises(NotFoundError):
            await FogService.get_fog("abc", USER)
        assert cur.executed[0][1] == {"uuid": "abc", "user_id": 8}

    @pytest.mark.asyncio
    async def test_config_update_signals_agent(self, fake_db):
        cur, _ = fake_db(fog_service, fetchall=[[FOG_ROW]], fetchone=[{**FOG_ROW, "cpu_limit": 50}])

        fog = await FogService.update_fog(FogUpdateRequest(instance_id=FOG_ROW["uuid"], cpu_limit=50))

        assert fog.cpu_limit == 50
        [bump] = cur.statements("UPDATE fogcontroller.change_tracking")
        assert "config = %(now)s" in bump

    @pytest.mark.asyncio
    async def test_detail_update_does_not_signal_agent(self, fake_db):
        cur, _ = fake_db(fog_service, fetchall=[[FOG_ROW]], fetchone=[{**FOG_ROW, "location": "Berlin"}])
        await FogService.update_fog(FogUpdateRequest(instance_id=FOG_ROW["uuid"], location="Berlin"))
        assert cur.statements("UPDATE fogcontroller.change_tracking") == []

    @pytest.mark.asyncio
    async def test_request_deletion(self, fake_db):
        cur, conn = fake_db(fog_service, fetchall=[[FOG_ROW]])

        await FogService.request_fog_deletion(FOG_ROW["uuid"], USER)

        assert len(cur.statements("UPDATE fogcontroller.element_instances SET fog_uuid = NULL")) == 1
        [bump] = cur.statements("UPDATE fogcontroller.change_tracking")
        assert "deletenode = %(now)s, container_list = %(now)s" in bump
        assert cur.statements("DELETE") == []
        assert conn.commits == 1


class TestElementInstanceService:

    @pytest.mark.asyncio
    async def test_comsat_pipe_starts_at_first_port(self, fake_db):
        cur, conn = fake_db(
            instance_service,
            fetchone=[INSTANCE_ROW, {"port": COMSAT_FIRST_PORT}, {"element_instance_uuid": "inst-1", "passcode": "x" * 8, "port": COMSAT_FIRST_PORT}],
        )

        pipe = await ElementInstanceService.create_comsat_pipe("inst-1", USER)

        assert pipe.port == 50000
        _, insert = next((sql, params) for sql, params in cur.executed if sql.startswith("INSERT INTO fogcontroller.satellite_pipes"))
        assert insert["port"] == 50000
        assert conn.commits == 1

    @pytest.mark.parametrize(
        "constraint, message",
        [
            (PIPE_PORT_CONSTRAINT, "Comsat port 50000 was taken by another pipe, try again"),
            ("satellite_pipes_element_instance_uuid_key", "Element instance inst-1 already has a comsat pipe"),
        ],
    )
    @pytest.mark.asyncio
    async def test_comsat_pipe_unique_violations_are_conflicts(self, fake_db, constraint, message):
        cur, conn = fake_db(instance_service, fetchone=[INSTANCE_ROW, {"port": COMSAT_FIRST_PORT}])
        original_execute = cur.execute

        class Violation(pg_errors.UniqueViolation):
            diag = SimpleNamespace(constraint_name=constraint)

        async def execute(sql, params=None):
            if sql.lstrip().startswith("INSERT INTO fogcontroller.satellite_pipes"):
                raise Violation("duplicate key")
            await original_execute(sql, params)

        with patch.object(cur, "execute", new=execute):
            with pytest.raises(ConflictError) as exc:
                await ElementInstanceService.create_comsat_pipe("inst-1", USER)

        assert exc.value.message == message
        assert cur.statements("UPDATE fogcontroller.change_tracking") == []
        assert conn.commits == 0

    @pytest.mark.asyncio
    async def test_port_in_use_on_the_same_fog(self, fake_db):
        cur, conn = fake_db(instance_service, fetchone=[INSTANCE_ROW, {"element_instance_uuid": "inst-2"}])
        request = PortCreateRequest(instance_id="inst-1", port_internal=80, port_external=8080)

        with pytest.raises(ConflictError):
            await ElementInstanceService.create_port(request, USER)

        assert cur.statements("INSERT") == []
        assert conn.commits == 0

    @pytest.mark.asyncio
    async def test_create_port(self, fake_db):
        with_port = {**INSTANCE_ROW, "ports": [{"portInternal": 80, "portExternal": 8080}]}
        cur, conn = fake_db(instance_service, fetchone=[INSTANCE_ROW, None, with_port])
        request = PortCreateRequest(instance_id="inst-1", port_internal=80, port_external=8080)

        instance = await ElementInstanceService.create_port(request, USER)

        assert instance.ports[0].port_external == 8080
        [bump] = cur.statements("UPDATE fogcontroller.change_tracking")
        assert "container_list = %(now)s" in bump
        assert conn.commits == 1

    @pytest.mark.asyncio
    async def test_foreign_instance(self, fake_db):
        fake_db(instance_service, fetchone=[None])
        with pytest.raises(NotFoundError):
            await ElementInstanceService.create_comsat_pipe("inst-1", USER)
