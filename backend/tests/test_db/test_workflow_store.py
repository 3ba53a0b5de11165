"""Tests for the SQLite workflow store."""

import json

import pytest

from automation.db.database import get_db
from automation.db.workflow_store import WorkflowStore
from automation.models import (
    TriggerType,
    WorkflowCreate,
    WorkflowStatus,
    WorkflowUpdate,
)


def _create_request(name: str = "Notify", event_key: str = "item.created") -> WorkflowCreate:
    return WorkflowCreate.model_validate(
        {
            "name": name,
            "description": "Tell the team",
            "triggerType": "event",
            "nodes": [
                {"id": "trigger_1", "type": "trigger", "config": {"eventKey": event_key}},
                {"id": "delay_1", "type": "delay", "config": {"delayMs": 1000}},
            ],
            "edges": [{"id": "e1", "source": "trigger_1", "target": "delay_1"}],
        }
    )


@pytest.fixture
def store(test_db) -> WorkflowStore:
    return WorkflowStore()


class TestCreateAndGet:
    """Tests for creating and reading workflows."""

    @pytest.mark.asyncio
    async def test_create_assigns_metadata(self, store):
        definition = await store.create_workflow(_create_request())

        assert definition.id.startswith("wf_")
        assert definition.status == WorkflowStatus.DRAFT
        assert definition.version == 1
        assert definition.created_at == definition.updated_at
        assert definition.trigger_config == {"eventKey": "item.created"}

    @pytest.mark.asyncio
    async def test_get_round_trip(self, store):
        created = await store.create_workflow(_create_request())

        loaded = await store.get_workflow(created.id)

        assert loaded == created

    @pytest.mark.asyncio
    async def test_get_missing(self, store):
        assert await store.get_workflow("wf_missing") is None

    @pytest.mark.asyncio
    async def test_stored_values_reclamped_on_load(self, store):
        created = await store.create_workflow(_create_request())

        # Simulate a document written before the current bounds
        raw = json.loads(created.model_dump_json(by_alias=True))
        raw["nodes"][1]["config"]["delayMs"] = 900_000
        db = await get_db()
        await db.execute(
            "UPDATE workflows SET definition_json = ? WHERE id = ?",
            (json.dumps(raw), created.id),
        )
        await db.commit()

        definition, diagnostics = await store.get_workflow_with_diagnostics(created.id)

        assert definition.node("delay_1").config.delay_ms == 300_000
        assert [(d.node_id, d.field) for d in diagnostics] == [("delay_1", "delayMs")]


class TestUpdate:
    """Tests for saving edits."""

    @pytest.mark.asyncio
    async def test_update_bumps_version(self, store):
        created = await store.create_workflow(_create_request())

        updated = await store.update_workflow(created.id, WorkflowUpdate(name="Renamed"))

        assert updated.name == "Renamed"
        assert updated.version == 2
        assert updated.nodes == created.nodes

    @pytest.mark.asyncio
    async def test_update_replaces_nodes(self, store):
        created = await store.create_workflow(_create_request())

        updated = await store.update_workflow(
            created.id,
            WorkflowUpdate(
                nodes=[{"id": "trigger_1", "type": "trigger", "config": {"eventKey": "user.login"}}],
                edges=[],
            ),
        )

        assert [n.id for n in updated.nodes] == ["trigger_1"]
        assert updated.trigger_config == {"eventKey": "user.login"}
        assert await store.find_active(TriggerType.EVENT, "user.login") == []

    @pytest.mark.asyncio
    async def test_update_missing(self, store):
        assert await store.update_workflow("wf_missing", WorkflowUpdate(name="x")) is None

    @pytest.mark.asyncio
    async def test_delete(self, store):
        created = await store.create_workflow(_create_request())

        assert await store.delete_workflow(created.id)
        assert not await store.delete_workflow(created.id)
        assert await store.get_workflow(created.id) is None


class TestListAndLookup:
    """Tests for listing, duplication and trigger lookups."""

    @pytest.mark.asyncio
    async def test_list_filters(self, store):
        first = await store.create_workflow(_create_request("Alpha"))
        await store.create_workflow(_create_request("Beta"))
        await store.set_status(first.id, WorkflowStatus.ACTIVE)

        items, total = await store.list_workflows()
        assert total == 2
        assert {i.name for i in items} == {"Alpha", "Beta"}

        active, total = await store.list_workflows(status=WorkflowStatus.ACTIVE)
        assert total == 1
        assert active[0].id == first.id
        assert active[0].event_key == "item.created"
        assert (active[0].node_count, active[0].edge_count) == (2, 1)

        found, _ = await store.list_workflows(search="bet")
        assert [i.name for i in found] == ["Beta"]

    @pytest.mark.asyncio
    async def test_list_paging(self, store):
        for name in ("One", "Two", "Three"):
            await store.create_workflow(_create_request(name))

        page, total = await store.list_workflows(limit=2, skip=2)

        assert total == 3
        assert len(page) == 1

    @pytest.mark.asyncio
    async def test_duplicate(self, store):
        source = await store.create_workflow(_create_request("Alpha"))
        await store.set_status(source.id, WorkflowStatus.ACTIVE)

        copy = await store.duplicate_workflow(source.id)

        assert copy.id != source.id
        assert copy.name == "Alpha (copy)"
        assert copy.status == WorkflowStatus.DRAFT
        assert copy.nodes == source.nodes

    @pytest.mark.asyncio
    async def test_find_active_by_event(self, store):
        login = await store.create_workflow(_create_request("Login", "user.login"))
        created = await store.create_workflow(_create_request("Created", "item.created"))
        await store.create_workflow(_create_request("Draft", "item.created"))
        await store.set_status(login.id, WorkflowStatus.ACTIVE)
        await store.set_status(created.id, WorkflowStatus.ACTIVE)

        found = await store.find_active(TriggerType.EVENT, "item.created")

        assert [d.id for d in found] == [created.id]
        assert len(await store.find_active(TriggerType.EVENT)) == 2
