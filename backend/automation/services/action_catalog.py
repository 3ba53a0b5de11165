"""Catalog of actions an action node can perform."""

from automation.models.action import ActionCategory, ActionDefinition

_C = ActionCategory

BUILTIN_ACTIONS: list[ActionDefinition] = [
    ActionDefinition(value="create_item", label="Create Item", category=_C.ITEM),
    ActionDefinition(value="update_item", label="Update Item", category=_C.ITEM),
    ActionDefinition(value="delete_item", label="Delete Item", category=_C.ITEM),
    ActionDefinition(value="clone_item", label="Clone Item", category=_C.ITEM),
    ActionDefinition(value="find_items", label="Find Items", category=_C.ITEM),
    ActionDefinition(value="bulk_update_items", label="Bulk Update Items", category=_C.ITEM),
    ActionDefinition(value="update_field", label="Update Field", category=_C.ITEM),
    ActionDefinition(value="assign_attribute", label="Assign Attribute", category=_C.ITEM),
    ActionDefinition(value="create_board_task", label="Create Board Task", category=_C.BOARD),
    ActionDefinition(value="update_board_task", label="Update Board Task", category=_C.BOARD),
    ActionDefinition(value="move_board_task", label="Move Board Task", category=_C.BOARD),
    ActionDefinition(value="assign_board_task", label="Assign Board Task", category=_C.BOARD),
    ActionDefinition(value="archive_board_task", label="Archive Board Task", category=_C.BOARD),
    ActionDefinition(
        value="send_notification", label="Send Notification", category=_C.NOTIFICATION
    ),
    ActionDefinition(value="send_email", label="Send Email", category=_C.NOTIFICATION),
    ActionDefinition(value="webhook", label="Send Webhook", category=_C.EXTERNAL),
    ActionDefinition(value="http_request", label="HTTP Request", category=_C.EXTERNAL),
    ActionDefinition(value="transform_data", label="Transform Data", category=_C.DATA),
    ActionDefinition(value="set_variable", label="Set Variable", category=_C.DATA),
    ActionDefinition(value="log", label="Write Log", category=_C.DATA),
    ActionDefinition(value="fire_event", label="Fire Event", category=_C.DATA),
]


class ActionCatalog:
    """Lookup over the available action definitions."""

    def __init__(self, actions: list[ActionDefinition] | None = None) -> None:
        self._actions = {a.value: a for a in (BUILTIN_ACTIONS if actions is None else actions)}

    def lookup(self, action_type: str) -> ActionDefinition | None:
        return self._actions.get(action_type)

    def list_actions(self, category: ActionCategory | None = None) -> list[ActionDefinition]:
        """List actions, optionally restricted to one category."""
        return [a for a in self._actions.values() if category is None or a.category == category]


# Module-level singleton
action_catalog = ActionCatalog()
