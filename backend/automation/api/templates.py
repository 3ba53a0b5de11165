"""Template API routes.

Templates are starter workflows stored as ``<id>.workflow.json`` files in
the ``templates`` directory next to the package.
"""

import json
from pathlib import Path

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel
from pydantic import Field as PydanticField

from automation.models import TriggerType, WorkflowCreate

router = APIRouter()

TEMPLATES_DIR = Path(__file__).parent.parent.parent / "templates"


class TemplateSummary(BaseModel):
    """Catalog entry for one workflow template."""

    id: str
    name: str
    description: str = ""
    trigger_type: TriggerType = PydanticField(default=TriggerType.MANUAL, alias="triggerType")
    node_count: int = PydanticField(default=0, alias="nodeCount")
    tags: list[str] = []

    model_config = {"populate_by_name": True}


def _template_id(template_file: Path) -> str:
    return template_file.name.removesuffix(".workflow.json")


def _load_templates() -> list[TemplateSummary]:
    """Summarise every template file, sorted by id."""
    if not TEMPLATES_DIR.exists():
        return []

    summaries: list[TemplateSummary] = []
    for template_file in sorted(TEMPLATES_DIR.glob("*.workflow.json")):
        data = json.loads(template_file.read_text())
        summaries.append(
            TemplateSummary(
                id=_template_id(template_file),
                name=data.get("name", _template_id(template_file)),
                description=data.get("description", ""),
                trigger_type=data.get("triggerType", TriggerType.MANUAL),
                # Notes are annotations, not steps
                node_count=sum(1 for n in data.get("nodes", []) if n.get("type") != "note"),
                tags=data.get("tags", []),
            )
        )
    return summaries


def load_template(template_id: str) -> WorkflowCreate:
    """Read one template as a workflow creation request.

    Raises:
        HTTPException: 404 if no template has this id
    """
    template_file = TEMPLATES_DIR / f"{template_id}.workflow.json"
    if not template_file.is_file():
        raise HTTPException(status_code=404, detail=f"Template '{template_id}' not found")

    return WorkflowCreate.model_validate_json(template_file.read_text())


@router.get("/templates")
async def list_templates(
    tag: str | None = Query(None),
    trigger_type: TriggerType | None = Query(None, alias="triggerType"),
) -> list[TemplateSummary]:
    """List workflow templates, optionally narrowed by tag or trigger type."""
    summaries = _load_templates()
    if tag:
        summaries = [s for s in summaries if tag in s.tags]
    if trigger_type:
        summaries = [s for s in summaries if s.trigger_type == trigger_type]
    return summaries


@router.get("/templates/{template_id}")
async def get_template(template_id: str) -> WorkflowCreate:
    """Get a template's workflow document."""
    return load_template(template_id)
