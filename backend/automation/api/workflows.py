"""Workflow API routes."""

import logging

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, ValidationError

from automation.api.templates import load_template
from automation.db import workflow_store
from automation.models import (
    ConfigDiagnostic,
    EdgeCreate,
    EdgeRewire,
    NodeCreate,
    NodeType,
    NodeUpdate,
    SwitchCase,
    TriggerType,
    ValidationReport,
    WorkflowCreate,
    WorkflowDefinition,
    WorkflowEdge,
    WorkflowListResponse,
    WorkflowNode,
    WorkflowStatus,
    WorkflowUpdate,
)
from automation.rules import has_errors, validate_graph
from automation.services import WorkflowGraphEditor

logger = logging.getLogger(__name__)

router = APIRouter()


class CreateFromTemplateRequest(BaseModel):
    """Request to create a workflow from a template."""

    template_id: str


class WorkflowSaveResponse(BaseModel):
    """A saved workflow together with what validation found in it."""

    workflow: WorkflowDefinition
    validation: ValidationReport


class NodeEditResponse(BaseModel):
    """An edited node plus any config values that were substituted."""

    node: WorkflowNode
    diagnostics: list[ConfigDiagnostic] = []


class CaseUpdate(BaseModel):
    """Request model for editing a switch case."""

    label: str | None = None
    value: str | None = None


def _report(
    definition: WorkflowDefinition, diagnostics: list[ConfigDiagnostic] | None = None
) -> ValidationReport:
    violations = validate_graph(definition.nodes, definition.edges, definition.trigger_type)
    return ValidationReport(
        valid=not has_errors(violations),
        violations=violations,
        diagnostics=diagnostics or [],
    )


async def _load(workflow_id: str) -> WorkflowDefinition:
    definition = await workflow_store.get_workflow(workflow_id)
    if definition is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return definition


def _require_node(definition: WorkflowDefinition, node_id: str) -> WorkflowNode:
    node = definition.node(node_id)
    if node is None:
        raise HTTPException(status_code=404, detail="Node not found")
    return node


def _require_switch(definition: WorkflowDefinition, node_id: str) -> WorkflowNode:
    node = _require_node(definition, node_id)
    if node.type != NodeType.SWITCH:
        raise HTTPException(status_code=400, detail="Node is not a switch")
    return node


# ==================== Workflows ====================


@router.get("/workflows")
async def list_workflows(
    status: WorkflowStatus | None = Query(None),
    trigger_type: TriggerType | None = Query(None, alias="triggerType"),
    search: str | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
    skip: int = Query(0, ge=0),
) -> WorkflowListResponse:
    """List workflows, newest first."""
    items, total = await workflow_store.list_workflows(
        status=status, trigger_type=trigger_type, search=search, limit=limit, skip=skip
    )
    return WorkflowListResponse(items=items, total=total)


@router.post("/workflows", status_code=201)
async def create_workflow(request: WorkflowCreate) -> WorkflowSaveResponse:
    """Create a draft workflow. Violations are reported, not rejected."""
    definition = await workflow_store.create_workflow(request)
    return WorkflowSaveResponse(workflow=definition, validation=_report(definition))


@router.post("/workflows/from-template", status_code=201)
async def create_from_template(request: CreateFromTemplateRequest) -> WorkflowSaveResponse:
    """Create a new workflow from a template."""
    definition = await workflow_store.create_workflow(load_template(request.template_id))
    return WorkflowSaveResponse(workflow=definition, validation=_report(definition))


@router.get("/workflows/{workflow_id}")
async def get_workflow(workflow_id: str) -> WorkflowDefinition:
    """Get a workflow document."""
    return await _load(workflow_id)


@router.put("/workflows/{workflow_id}")
async def update_workflow(workflow_id: str, update: WorkflowUpdate) -> WorkflowSaveResponse:
    """Replace the given fields of a workflow and save it."""
    try:
        definition = await workflow_store.update_workflow(workflow_id, update)
    except ValidationError as e:
        # triggerConfig is only checked once merged into the document
        raise HTTPException(
            status_code=422,
            detail=e.errors(include_url=False, include_context=False, include_input=False),
        )
    if definition is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return WorkflowSaveResponse(workflow=definition, validation=_report(definition))


@router.delete("/workflows/{workflow_id}")
async def delete_workflow(workflow_id: str) -> dict[str, bool]:
    """Delete a workflow."""
    deleted = await workflow_store.delete_workflow(workflow_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return {"deleted": True}


@router.get("/workflows/{workflow_id}/validation")
async def validate_workflow(workflow_id: str) -> ValidationReport:
    """Validate a workflow's graph and report re-clamped config values."""
    loaded = await workflow_store.get_workflow_with_diagnostics(workflow_id)
    if loaded is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    definition, diagnostics = loaded
    return _report(definition, diagnostics)


@router.post("/workflows/{workflow_id}/activate")
async def activate_workflow(workflow_id: str) -> WorkflowDefinition:
    """Make a workflow live. Refused while the graph has errors."""
    definition = await _load(workflow_id)
    report = _report(definition)
    if not report.valid:
        logger.info(f"Refusing to activate workflow {workflow_id}: graph has errors")
        raise HTTPException(
            status_code=409,
            detail={
                "message": "Workflow has validation errors",
                "violations": [
                    v.model_dump(by_alias=True, mode="json") for v in report.violations
                ],
            },
        )
    definition.status = WorkflowStatus.ACTIVE
    return await workflow_store.save_workflow(definition)


@router.post("/workflows/{workflow_id}/pause")
async def pause_workflow(workflow_id: str) -> WorkflowDefinition:
    """Stop a workflow from being activated."""
    definition = await workflow_store.set_status(workflow_id, WorkflowStatus.PAUSED)
    if definition is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return definition


@router.post("/workflows/{workflow_id}/duplicate", status_code=201)
async def duplicate_workflow(workflow_id: str) -> WorkflowDefinition:
    """Copy a workflow into a new draft."""
    definition = await workflow_store.duplicate_workflow(workflow_id)
    if definition is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return definition


# ==================== Nodes ====================


@router.post("/workflows/{workflow_id}/nodes", status_code=201)
async def create_node(workflow_id: str, request: NodeCreate) -> WorkflowNode:
    """Place a new node in a workflow."""
    definition = await _load(workflow_id)
    editor = WorkflowGraphEditor(definition)

    node = editor.add_node(request.type, request.position, request.label, request.config)
    if node is None:
        raise HTTPException(status_code=400, detail="Workflow already has a trigger node")

    await workflow_store.save_workflow(definition)
    return node


@router.patch("/workflows/{workflow_id}/nodes/{node_id}")
async def update_node(workflow_id: str, node_id: str, update: NodeUpdate) -> NodeEditResponse:
    """Edit a node's label, position or config."""
    definition = await _load(workflow_id)
    node = _require_node(definition, node_id)
    editor = WorkflowGraphEditor(definition)

    if update.label is not None:
        editor.relabel(node_id, update.label)
    if update.position is not None:
        editor.move_node(node_id, update.position)
    diagnostics = []
    if update.config is not None:
        diagnostics = editor.update_config(node_id, update.config) or []

    await workflow_store.save_workflow(definition)
    return NodeEditResponse(node=node, diagnostics=diagnostics)


@router.delete("/workflows/{workflow_id}/nodes/{node_id}")
async def delete_node(workflow_id: str, node_id: str) -> dict[str, bool]:
    """Delete a node and the edges touching it."""
    definition = await _load(workflow_id)
    if not WorkflowGraphEditor(definition).remove_node(node_id):
        raise HTTPException(status_code=404, detail="Node not found")
    await workflow_store.save_workflow(definition)
    return {"deleted": True}


# ==================== Switch cases ====================


@router.post("/workflows/{workflow_id}/nodes/{node_id}/cases", status_code=201)
async def add_case(workflow_id: str, node_id: str) -> SwitchCase:
    """Append a case to a switch node."""
    definition = await _load(workflow_id)
    _require_switch(definition, node_id)

    case = WorkflowGraphEditor(definition).add_case(node_id)
    await workflow_store.save_workflow(definition)
    return case


@router.patch("/workflows/{workflow_id}/nodes/{node_id}/cases/{index}")
async def update_case(
    workflow_id: str, node_id: str, index: int, update: CaseUpdate
) -> SwitchCase:
    """Change a switch case's label or value."""
    definition = await _load(workflow_id)
    _require_switch(definition, node_id)

    case = WorkflowGraphEditor(definition).update_case(
        node_id, index, label=update.label, value=update.value
    )
    if case is None:
        raise HTTPException(status_code=404, detail="Case not found")
    await workflow_store.save_workflow(definition)
    return case


@router.delete("/workflows/{workflow_id}/nodes/{node_id}/cases/{index}")
async def remove_case(workflow_id: str, node_id: str, index: int) -> dict[str, bool]:
    """Remove a switch case and the edges leaving through its handle."""
    definition = await _load(workflow_id)
    _require_switch(definition, node_id)

    if WorkflowGraphEditor(definition).remove_case(node_id, index) is None:
        raise HTTPException(status_code=404, detail="Case not found")
    await workflow_store.save_workflow(definition)
    return {"deleted": True}


# ==================== Edges ====================


@router.post("/workflows/{workflow_id}/edges", status_code=201)
async def create_edge(workflow_id: str, request: EdgeCreate) -> WorkflowEdge:
    """Connect two nodes."""
    definition = await _load(workflow_id)

    # Verify both nodes exist
    if definition.node(request.source) is None:
        raise HTTPException(status_code=404, detail="Source node not found")
    if definition.node(request.target) is None:
        raise HTTPException(status_code=404, detail="Target node not found")

    edge = WorkflowGraphEditor(definition).connect(
        request.source, request.target, request.source_handle, request.label
    )
    if edge is None:
        raise HTTPException(
            status_code=400,
            detail="Edge is not allowed: bad handle, invalid target or duplicate",
        )

    await workflow_store.save_workflow(definition)
    return edge


@router.patch("/workflows/{workflow_id}/edges/{edge_id}")
async def rewire_edge(workflow_id: str, edge_id: str, request: EdgeRewire) -> WorkflowEdge:
    """Move an edge's endpoints or handle. Omitted fields keep their value."""
    definition = await _load(workflow_id)
    edge = definition.edge(edge_id)
    if edge is None:
        raise HTTPException(status_code=404, detail="Edge not found")

    changes = {
        field: getattr(request, field)
        for field in ("source", "target", "source_handle")
        if field in request.model_fields_set
    }
    if not WorkflowGraphEditor(definition).rewire(edge_id, **changes):
        raise HTTPException(status_code=400, detail="Rewired edge would be invalid")

    await workflow_store.save_workflow(definition)
    return edge


@router.delete("/workflows/{workflow_id}/edges/{edge_id}")
async def delete_edge(workflow_id: str, edge_id: str) -> dict[str, bool]:
    """Delete an edge."""
    definition = await _load(workflow_id)
    if not WorkflowGraphEditor(definition).disconnect(edge_id):
        raise HTTPException(status_code=404, detail="Edge not found")
    await workflow_store.save_workflow(definition)
    return {"deleted": True}
