"""워크플로우 에디터 그래프 변환.

Workflow editor graph conversion. The editor draws a workflow as nodes and
edges; storage keeps ``{trigger, conditions, actions}``.

Layout of a deserialized graph:
    - trigger_0 at (250, 50)
    - condition_<i> to the right of the trigger
    - action_<id> at (250, 200 + 150 * i), chained trigger -> action 1 -> ... -> action N
"""

from typing import Any

DEFAULT_TRIGGER: str = "RECORD_CREATED"

TRIGGER_NODE_ID: str = "trigger_0"
ACTION_PREFIX: str = "action_"

TRIGGER_POSITION: dict[str, float] = {"x": 250, "y": 50}
ACTION_X: float = 250
ACTION_TOP: float = 200
ACTION_SPACING: float = 150
CONDITION_X: float = 550
CONDITION_SPACING: float = 120


def trigger_label(trigger: str) -> str:
    """RECORD_CREATED -> "Record Created"."""
    return " ".join(part.capitalize() for part in trigger.split("_"))


def _action_id(node: dict[str, Any], index: int) -> str:
    node_id: str = str(node.get("id") or index)
    return node_id.removeprefix(ACTION_PREFIX)


def serialize(nodes: list[dict[str, Any]]) -> dict[str, Any]:
    """그래프 → 저장 정의.

    Convert editor nodes to ``{trigger, conditions, actions}``. Actions are
    ordered by their vertical position; ``order`` is the sorted index.
    Edges do not affect the result.
    """
    trigger_node: dict[str, Any] | None = next((n for n in nodes if n.get("type") == "trigger"), None)
    trigger: str = ((trigger_node or {}).get("data") or {}).get("trigger_type") or DEFAULT_TRIGGER

    conditions: list[dict[str, Any]] = []
    for node in nodes:
        if node.get("type") != "condition":
            continue
        data: dict[str, Any] = node.get("data") or {}
        conditions.append(
            {
                "field": data.get("field"),
                "operator": data.get("operator"),
                "value": data.get("value"),
                "logic": data.get("logic") or "AND",
            }
        )

    action_nodes: list[dict[str, Any]] = sorted(
        (n for n in nodes if n.get("type") == "action"),
        key=lambda n: float((n.get("position") or {}).get("y") or 0),
    )
    actions: list[dict[str, Any]] = []
    for index, node in enumerate(action_nodes):
        data = node.get("data") or {}
        actions.append(
            {
                "id": _action_id(node, index),
                "type": data.get("action_type"),
                "name": data.get("label"),
                "config": data.get("config") or {},
                "order": index,
            }
        )

    return {"trigger": trigger, "conditions": conditions, "actions": actions}


def deserialize(
    trigger: str | None,
    conditions: list[dict[str, Any]],
    actions: list[dict[str, Any]],
    object_id: str | None = None,
    object_name: str | None = None,
) -> dict[str, list[dict[str, Any]]]:
    """저장 정의 → 그래프 (Stored definition to editor nodes and edges)."""
    trigger = trigger or DEFAULT_TRIGGER
    nodes: list[dict[str, Any]] = [
        {
            "id": TRIGGER_NODE_ID,
            "type": "trigger",
            "position": dict(TRIGGER_POSITION),
            "data": {
                "label": trigger_label(trigger),
                "trigger_type": trigger,
                "object_id": object_id,
                "object_name": object_name,
            },
        }
    ]
    edges: list[dict[str, Any]] = []

    for index, condition in enumerate(conditions):
        nodes.append(
            {
                "id": f"condition_{index}",
                "type": "condition",
                "position": {"x": CONDITION_X, "y": TRIGGER_POSITION["y"] + index * CONDITION_SPACING},
                "data": {
                    "field": condition.get("field"),
                    "operator": condition.get("operator"),
                    "value": condition.get("value"),
                    "logic": condition.get("logic") or "AND",
                },
            }
        )

    previous: str = TRIGGER_NODE_ID
    ordered: list[dict[str, Any]] = sorted(actions, key=lambda a: a.get("order", 0))
    for index, action in enumerate(ordered):
        node_id: str = f"{ACTION_PREFIX}{action.get('id') or index}"
        nodes.append(
            {
                "id": node_id,
                "type": "action",
                "position": {"x": ACTION_X, "y": ACTION_TOP + index * ACTION_SPACING},
                "data": {
                    "label": action.get("name"),
                    "action_type": action.get("type"),
                    "config": action.get("config") or {},
                },
            }
        )
        edges.append({"id": f"edge_{index}", "source": previous, "target": node_id})
        previous = node_id

    return {"nodes": nodes, "edges": edges}
