"""Pytest configuration and fixtures."""

import os
import tempfile
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient

from automation.db.database import close_database, init_database
from automation.main import app
from automation.models import WorkflowGraph


@pytest.fixture
async def test_db() -> AsyncGenerator[str, None]:
    """Set up a fresh SQLite database for a test."""
    # Create a temporary database file
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name

    # Initialize the database
    await init_database(db_path)

    yield db_path

    # Clean up
    await close_database()
    os.unlink(db_path)


@pytest.fixture
async def client(test_db: str) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client backed by the test database."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def branching_graph() -> WorkflowGraph:
    """Event trigger -> condition -> two actions, plus a floating note."""
    return WorkflowGraph.model_validate(
        {
            "triggerType": "event",
            "nodes": [
                {
                    "id": "trigger_1",
                    "type": "trigger",
                    "label": "Item created",
                    "config": {"eventKey": "item.created"},
                },
                {
                    "id": "condition_1",
                    "type": "condition",
                    "config": {"conditionExpression": "{{trigger.item.status}} == active"},
                },
                {
                    "id": "action_1",
                    "type": "action",
                    "config": {"actionType": "send_notification"},
                },
                {
                    "id": "action_2",
                    "type": "action",
                    "config": {"actionType": "log"},
                },
                {"id": "note_1", "type": "note", "config": {"noteContent": "FYI"}},
            ],
            "edges": [
                {"id": "e1", "source": "trigger_1", "target": "condition_1"},
                {
                    "id": "e2",
                    "source": "condition_1",
                    "target": "action_1",
                    "sourceHandle": "true",
                },
                {
                    "id": "e3",
                    "source": "condition_1",
                    "target": "action_2",
                    "sourceHandle": "false",
                },
            ],
        }
    )
