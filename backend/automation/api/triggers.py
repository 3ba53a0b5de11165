"""Trigger API routes: reference data and the ways a workflow gets activated."""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Header, HTTPException, Query
from pydantic import BaseModel
from pydantic import Field as PydanticField

from automation.db import workflow_store
from automation.models import (
    ActionCategory,
    ActionDefinition,
    Activation,
    DispatchResult,
    InboundEvent,
    TriggerEventDefinition,
    TriggerNodeConfig,
    TriggerType,
    WorkflowDefinition,
    WorkflowStatus,
)
from automation.services import TriggerMatcher, action_catalog, trigger_catalog
from automation.services.schedule import next_fire_times
from automation.services.trigger_matcher import (
    event_activation,
    manual_activation,
    webhook_activation,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class RunRequest(BaseModel):
    """Request to run a workflow by hand."""

    payload: dict[str, Any] = {}


class ScheduleResponse(BaseModel):
    """Upcoming fire times of a schedule trigger."""

    workflow_id: str = PydanticField(alias="workflowId")
    cron_expression: str = PydanticField(alias="cronExpression")
    next_fire_times: list[datetime] = PydanticField(alias="nextFireTimes")

    model_config = {"populate_by_name": True}


def _trigger_config(definition: WorkflowDefinition) -> TriggerNodeConfig:
    trigger = definition.trigger_node()
    if trigger is None or not isinstance(trigger.config, TriggerNodeConfig):
        return TriggerNodeConfig()
    return trigger.config


# ==================== Reference data ====================


@router.get("/trigger-events")
async def list_trigger_events() -> list[TriggerEventDefinition]:
    """List the platform events a trigger can listen for."""
    return trigger_catalog.list_events()


@router.get("/actions")
async def list_actions(category: ActionCategory | None = Query(None)) -> list[ActionDefinition]:
    """List the action types an action node can perform."""
    return action_catalog.list_actions(category)


# ==================== Activation ====================


@router.post("/events")
async def dispatch_event(event: InboundEvent) -> DispatchResult:
    """Match an inbound event against every active event-triggered workflow."""
    candidates = await workflow_store.find_active(TriggerType.EVENT, event.event_key)
    matcher = TriggerMatcher(trigger_catalog)

    activations: list[Activation] = []
    for definition in candidates:
        result = matcher.match(_trigger_config(definition), event)
        if result.matched:
            activations.append(event_activation(definition.id, event))
        else:
            logger.debug(
                f"Workflow {definition.id} skipped {event.event_key}: {result.outcome.value}"
            )

    logger.info(
        f"Event {event.event_key} activated {len(activations)} of {len(candidates)} workflow(s)"
    )
    return DispatchResult(
        event_key=event.event_key, activations=activations, evaluated=len(candidates)
    )


@router.post("/webhooks/{workflow_id}")
async def receive_webhook(
    workflow_id: str,
    payload: dict[str, Any] = Body(default={}),
    x_webhook_secret: str | None = Header(None),
) -> Activation:
    """Activate a webhook-triggered workflow with the request body as trigger data."""
    definition = await workflow_store.get_workflow(workflow_id)
    if definition is None or definition.trigger_type != TriggerType.WEBHOOK:
        raise HTTPException(status_code=404, detail="Webhook not found")
    if definition.status != WorkflowStatus.ACTIVE:
        raise HTTPException(status_code=409, detail="Workflow is not active")

    activation = webhook_activation(
        workflow_id, _trigger_config(definition), payload, x_webhook_secret
    )
    if activation is None:
        raise HTTPException(status_code=401, detail="Invalid webhook secret")
    return activation


@router.post("/workflows/{workflow_id}/run")
async def run_workflow(workflow_id: str, request: RunRequest | None = None) -> Activation:
    """Start a workflow by hand, whatever its trigger type."""
    definition = await workflow_store.get_workflow(workflow_id)
    if definition is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    logger.info(f"Manual run requested for workflow {workflow_id}")
    return manual_activation(workflow_id, request.payload if request else None)


@router.get("/workflows/{workflow_id}/schedule")
async def preview_schedule(
    workflow_id: str, count: int = Query(5, ge=1, le=50)
) -> ScheduleResponse:
    """Show the next fire times of a schedule trigger."""
    definition = await workflow_store.get_workflow(workflow_id)
    if definition is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    if definition.trigger_type != TriggerType.SCHEDULE:
        raise HTTPException(status_code=400, detail="Workflow is not schedule-triggered")

    expression = _trigger_config(definition).cron_expression or ""
    try:
        fire_times = next_fire_times(expression, count=count)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return ScheduleResponse(
        workflow_id=workflow_id, cron_expression=expression, next_fire_times=fire_times
    )
