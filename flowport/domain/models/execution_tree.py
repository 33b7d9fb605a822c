"""
Execution Tree Domain Models.

- NodeStatus: lifecycle status reported for one node execution
- ExecutionEvent: one entry of an agent-flow run log (Value Object)
- TreeNode: node of the reconstructed execution forest (abstract)
  - RealTreeNode: wraps exactly one ExecutionEvent
  - VirtualIterationNode: synthesized container for one loop pass
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Any, Optional, Tuple
from enum import Enum


ITERATION_NODE_NAME = "iterationAgentflow"


class NodeStatus(str, Enum):
    """Node execution states."""
    FINISHED = "FINISHED"
    ERROR = "ERROR"
    TIMEOUT = "TIMEOUT"
    TERMINATED = "TERMINATED"
    STOPPED = "STOPPED"
    INPROGRESS = "INPROGRESS"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Any) -> "NodeStatus":
        """Parse a wire status, falling back to UNKNOWN."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class ExecutionEvent:
    """
    Value Object - one node execution in a run log.

    ``node_id`` is the logical node id and recurs when a node runs more than
    once (loops, retries). Order within the log is the only ordering signal.
    """
    node_id: str
    node_label: str = ""
    previous_node_ids: List[str] = field(default_factory=list)
    status: NodeStatus = NodeStatus.UNKNOWN
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def parent_node_id(self) -> Optional[str]:
        return self.data.get("parentNodeId") or None

    @property
    def iteration_index(self) -> Optional[int]:
        return self.data.get("iterationIndex")

    @property
    def is_iteration_member(self) -> bool:
        """True when the event ran inside a loop pass."""
        return self.parent_node_id is not None and self.iteration_index is not None

    @classmethod
    def from_dict(cls, raw: Any) -> "ExecutionEvent":
        """
        Build an event from its wire form.

        Tolerates missing or malformed fields: anything that is not a mapping
        becomes an anonymous event, a non-list ``previousNodeIds`` becomes
        empty, and a non-dict ``data`` becomes empty.
        """
        if isinstance(raw, ExecutionEvent):
            return raw
        if not isinstance(raw, dict):
            return cls(node_id="")

        previous = raw.get("previousNodeIds")
        if not isinstance(previous, (list, tuple)):
            previous = []
        data = raw.get("data")
        if not isinstance(data, dict):
            data = {}

        return cls(
            node_id=str(raw.get("nodeId") or ""),
            node_label=str(raw.get("nodeLabel") or ""),
            previous_node_ids=[str(p) for p in previous if p],
            status=NodeStatus.parse(raw.get("status")),
            data=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodeId": self.node_id,
            "nodeLabel": self.node_label,
            "previousNodeIds": list(self.previous_node_ids),
            "status": self.status.value,
            "data": self.data,
        }


@dataclass
class TreeNode(ABC):
    """
    Node of the execution forest.

    Children are owned exclusively by their parent. ``execution_index`` is the
    position in the source log and drives sibling ordering.

    Chains can be as deep as the log is long, so the serializers below walk
    the tree with an explicit stack.
    """
    id: str
    label: str
    status: NodeStatus
    data: Dict[str, Any] = field(default_factory=dict)
    children: List["TreeNode"] = field(default_factory=list)
    execution_index: int = 0

    @property
    def name(self) -> Optional[str]:
        """Logical node name (e.g. ``llmAgentflow``)."""
        return self.data.get("name")

    @property
    @abstractmethod
    def is_iteration(self) -> bool:
        """True for loop nodes and the loop passes grouped under them."""

    def _fields(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "name": self.name,
            "status": self.status.value,
            "data": self.data,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Display form consumed by the tree view."""
        built: Dict[int, Dict[str, Any]] = {}
        stack: List[Tuple["TreeNode", bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if not expanded:
                stack.append((node, True))
                stack.extend((child, False) for child in node.children)
                continue
            result = node._fields()
            result["children"] = [built.pop(id(child)) for child in node.children]
            built[id(node)] = result
        return built[id(self)]


def _push_nodes(stack: List[Any], nodes: List[TreeNode], closing: str) -> None:
    stack.append(closing)
    for index in range(len(nodes) - 1, -1, -1):
        stack.append(nodes[index])
        if index:
            stack.append(", ")


def dump_forest(forest: List[TreeNode]) -> str:
    """
    JSON text of ``[node.to_dict() for node in forest]``.

    Written piece by piece, so depth is bounded by memory rather than the
    interpreter recursion limit. Only each node's ``data`` goes through
    ``json.dumps``.
    """
    parts: List[str] = ["["]
    stack: List[Any] = []
    _push_nodes(stack, forest, "]")
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
            continue
        head = ", ".join(f"{json.dumps(k)}: {json.dumps(v)}" for k, v in item._fields().items())
        parts.append("{" + head + ', "children": [')
        _push_nodes(stack, item.children, "]}")
    return "".join(parts)


@dataclass
class RealTreeNode(TreeNode):
    """Tree node backed by one event of the log."""
    node_id: str = ""

    @property
    def is_iteration(self) -> bool:
        return self.name == ITERATION_NODE_NAME


@dataclass
class VirtualIterationNode(TreeNode):
    """Synthesized container grouping the events of one loop pass."""
    parent_node_id: str = ""
    iteration_index: int = 0
    iteration_context: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_iteration(self) -> bool:
        return True
