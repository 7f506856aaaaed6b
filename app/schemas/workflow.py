"""워크플로우 Pydantic 스키마 정의.

Workflow request schemas, the stored definition parts (conditions and
actions) and the editor graph (nodes and edges).
"""

from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

TriggerType = Literal[
    "RECORD_CREATED", "RECORD_UPDATED", "RECORD_DELETED",
    "FIELD_CHANGED", "STAGE_CHANGED", "TIME_BASED",
]
ConditionOperator = Literal[
    "equals", "not_equals", "contains", "not_contains",
    "starts_with", "ends_with", "greater_than", "less_than",
    "greater_or_equal", "less_or_equal", "is_empty", "is_not_empty",
    "in", "not_in",
]
ActionType = Literal[
    "SEND_EMAIL", "SEND_TELEGRAM", "CREATE_TASK", "CREATE_NOTIFICATION",
    "UPDATE_FIELD", "WEBHOOK", "DELAY",
]


class WorkflowCondition(BaseModel):
    """조건 - 트리거 컨텍스트의 점(.) 경로 필드와 연산자 비교.

    Condition on a dotted path into the trigger context. ``logic`` joins this
    condition to the accumulated result of the previous ones.
    """

    field: Annotated[str, Field(min_length=1)]
    operator: ConditionOperator
    value: Any = None
    logic: Literal["AND", "OR"] = "AND"


class WorkflowAction(BaseModel):
    """액션 - 순서(order)대로 실행 (Executed in ascending ``order``)."""

    id: Annotated[str, Field(min_length=1)]
    type: ActionType
    name: str | None = None
    config: dict[str, Any] = {}
    order: int = 0


class WorkflowCreate(BaseModel):
    """워크플로우 생성 요청 스키마 (Created inactive unless is_active is set)."""

    name: Annotated[str, Field(min_length=1, max_length=200)]
    description: str | None = None
    object_id: UUID
    trigger: TriggerType
    trigger_config: dict[str, Any] = {}
    conditions: list[WorkflowCondition] = []
    actions: list[WorkflowAction] = []
    is_active: bool = False


class WorkflowUpdate(BaseModel):
    name: Annotated[str | None, Field(min_length=1, max_length=200)] = None
    description: str | None = None
    trigger: TriggerType | None = None
    trigger_config: dict[str, Any] | None = None
    conditions: list[WorkflowCondition] | None = None
    actions: list[WorkflowAction] | None = None
    is_active: bool | None = None


class WorkflowTestRequest(BaseModel):
    record_id: UUID


# === 에디터 그래프 (Editor graph) ===

class GraphPosition(BaseModel):
    x: float = 0
    y: float = 0


class GraphNode(BaseModel):
    """에디터 노드 - type: trigger | condition | action."""

    id: str
    type: str
    position: GraphPosition = GraphPosition()
    data: dict[str, Any] = {}


class GraphEdge(BaseModel):
    id: str
    source: str
    target: str


class WorkflowGraph(BaseModel):
    """에디터 그래프 (Nodes and edges as drawn in the workflow editor)."""

    nodes: list[GraphNode]
    edges: list[GraphEdge] = []
