"""WorkflowStore - Storage layer for workflow documents."""

import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Any

import aiosqlite

from automation.db.database import get_db
from automation.models.node_config import ConfigDiagnostic
from automation.models.trigger import TriggerType
from automation.models.workflow import (
    WorkflowCreate,
    WorkflowDefinition,
    WorkflowStatus,
    WorkflowSummary,
    WorkflowUpdate,
    collect_config_diagnostics,
)

logger = logging.getLogger(__name__)


def _generate_id() -> str:
    """Generate a unique ID."""
    return f"wf_{uuid.uuid4().hex[:12]}"


def _now() -> str:
    """Get current timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat()


def _event_key(definition: WorkflowDefinition) -> str | None:
    if definition.trigger_type != TriggerType.EVENT:
        return None
    return definition.trigger_config.get("eventKey") or None


def _row_to_summary(row: aiosqlite.Row) -> WorkflowSummary:
    definition = json.loads(row["definition_json"])
    return WorkflowSummary(
        id=row["id"],
        name=row["name"],
        description=row["description"],
        status=row["status"],
        trigger_type=row["trigger_type"],
        event_key=row["event_key"],
        version=row["version"],
        node_count=len(definition.get("nodes", [])),
        edge_count=len(definition.get("edges", [])),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class WorkflowStore:
    """Storage abstraction for workflow documents."""

    async def create_workflow(self, request: WorkflowCreate) -> WorkflowDefinition:
        """Create a new draft workflow."""
        db = await get_db()
        now = _now()

        definition = WorkflowDefinition(
            id=_generate_id(),
            name=request.name,
            description=request.description,
            status=WorkflowStatus.DRAFT,
            trigger_type=request.trigger_type,
            trigger_config=request.trigger_config,
            nodes=request.nodes,
            edges=request.edges,
            version=1,
            created_at=now,
            updated_at=now,
        )

        await db.execute(
            """
            INSERT INTO workflows (id, name, description, status, trigger_type, event_key,
                                   version, definition_json, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                definition.id,
                definition.name,
                definition.description,
                definition.status.value,
                definition.trigger_type.value,
                _event_key(definition),
                definition.version,
                definition.model_dump_json(by_alias=True),
                now,
                now,
            ),
        )
        await db.commit()
        logger.info(f"Created workflow {definition.id} ({definition.name})")
        return definition

    async def list_workflows(
        self,
        status: WorkflowStatus | None = None,
        trigger_type: TriggerType | None = None,
        search: str | None = None,
        limit: int = 50,
        skip: int = 0,
    ) -> tuple[list[WorkflowSummary], int]:
        """List workflows matching the filters, newest first.

        Returns:
            The requested page of summaries and the total match count
        """
        db = await get_db()

        clauses: list[str] = []
        params: list[Any] = []
        if status:
            clauses.append("status = ?")
            params.append(status.value)
        if trigger_type:
            clauses.append("trigger_type = ?")
            params.append(trigger_type.value)
        if search:
            clauses.append("(name LIKE ? OR description LIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        cursor = await db.execute(f"SELECT COUNT(*) FROM workflows {where}", params)
        total = (await cursor.fetchone())[0]

        cursor = await db.execute(
            f"""
            SELECT id, name, description, status, trigger_type, event_key, version,
                   definition_json, created_at, updated_at
            FROM workflows {where}
            ORDER BY updated_at DESC
            LIMIT ? OFFSET ?
            """,
            [*params, limit, skip],
        )
        rows = await cursor.fetchall()
        return [_row_to_summary(row) for row in rows], total

    async def get_workflow(self, workflow_id: str) -> WorkflowDefinition | None:
        """Get a workflow by ID. Stored configs are re-validated on load."""
        loaded = await self.get_workflow_with_diagnostics(workflow_id)
        return loaded[0] if loaded else None

    async def get_workflow_with_diagnostics(
        self, workflow_id: str
    ) -> tuple[WorkflowDefinition, list[ConfigDiagnostic]] | None:
        """Get a workflow plus the config values re-clamped while loading it."""
        db = await get_db()
        cursor = await db.execute(
            "SELECT definition_json FROM workflows WHERE id = ?",
            (workflow_id,),
        )
        row = await cursor.fetchone()

        if row is None:
            return None

        raw = json.loads(row["definition_json"])
        diagnostics = collect_config_diagnostics(raw.get("nodes", []))
        if diagnostics:
            logger.info(
                f"Workflow {workflow_id}: {len(diagnostics)} stored config value(s) re-clamped"
            )
        return WorkflowDefinition.model_validate(raw), diagnostics

    async def save_workflow(self, definition: WorkflowDefinition) -> WorkflowDefinition:
        """Persist an edited workflow, bumping its version."""
        db = await get_db()
        definition.sync_trigger_config()
        definition.version += 1
        definition.updated_at = _now()

        await db.execute(
            """
            UPDATE workflows
            SET name = ?, description = ?, status = ?, trigger_type = ?, event_key = ?,
                version = ?, definition_json = ?, updated_at = ?
            WHERE id = ?
            """,
            (
                definition.name,
                definition.description,
                definition.status.value,
                definition.trigger_type.value,
                _event_key(definition),
                definition.version,
                definition.model_dump_json(by_alias=True),
                definition.updated_at,
                definition.id,
            ),
        )
        await db.commit()
        return definition

    async def update_workflow(
        self, workflow_id: str, update: WorkflowUpdate
    ) -> WorkflowDefinition | None:
        """Apply a partial update and re-validate the document."""
        existing = await self.get_workflow(workflow_id)
        if existing is None:
            return None

        data = existing.model_dump(by_alias=True)
        # An explicit null leaves the field as it was
        changes = update.model_dump(by_alias=True, include=update.model_fields_set)
        data.update({key: value for key, value in changes.items() if value is not None})
        definition = WorkflowDefinition.model_validate(data)
        return await self.save_workflow(definition)

    async def set_status(
        self, workflow_id: str, status: WorkflowStatus
    ) -> WorkflowDefinition | None:
        """Move a workflow to ``status``."""
        definition = await self.get_workflow(workflow_id)
        if definition is None:
            return None
        definition.status = status
        logger.info(f"Workflow {workflow_id} is now {status.value}")
        return await self.save_workflow(definition)

    async def duplicate_workflow(self, workflow_id: str) -> WorkflowDefinition | None:
        """Copy a workflow into a new draft."""
        source = await self.get_workflow(workflow_id)
        if source is None:
            return None
        return await self.create_workflow(
            WorkflowCreate(
                name=f"{source.name} (copy)",
                description=source.description,
                trigger_type=source.trigger_type,
                trigger_config=source.trigger_config,
                nodes=[n.model_copy(deep=True) for n in source.nodes],
                edges=[e.model_copy(deep=True) for e in source.edges],
            )
        )

    async def delete_workflow(self, workflow_id: str) -> bool:
        """Delete a workflow."""
        db = await get_db()
        cursor = await db.execute(
            "DELETE FROM workflows WHERE id = ?",
            (workflow_id,),
        )
        await db.commit()
        return cursor.rowcount > 0

    async def find_active(
        self, trigger_type: TriggerType, event_key: str | None = None
    ) -> list[WorkflowDefinition]:
        """Active workflows started by ``trigger_type`` (and ``event_key``)."""
        db = await get_db()
        if event_key is None:
            cursor = await db.execute(
                "SELECT id FROM workflows WHERE status = ? AND trigger_type = ?",
                (WorkflowStatus.ACTIVE.value, trigger_type.value),
            )
        else:
            cursor = await db.execute(
                """
                SELECT id FROM workflows
                WHERE status = ? AND trigger_type = ? AND event_key = ?
                """,
                (WorkflowStatus.ACTIVE.value, trigger_type.value, event_key),
            )
        rows = await cursor.fetchall()

        definitions = []
        for row in rows:
            definition = await self.get_workflow(row["id"])
            if definition is not None:
                definitions.append(definition)
        return definitions


# Module-level singleton
workflow_store = WorkflowStore()
