"""
Execution Tree Builder.

Rebuilds the hierarchical view of an agent-flow run from its flat, ordered
event log.

Linking rules:
- An event attaches under the most recent earlier occurrence of any of its
  ``previousNodeIds``; an event with no such occurrence is a root.
- Events whose payload carries both ``parentNodeId`` and ``iterationIndex``
  are loop members. Members sharing (parentNodeId, iterationIndex) are folded
  into one VirtualIterationNode, which hangs under the last occurrence of
  ``parentNodeId``.
- Inside a virtual node, members link to the most recent earlier member of
  the same pass; the rest attach to the virtual node itself.
- Children are ordered iteration nodes first, then by execution index.

Usage:
    from flowport.application.services.execution_tree_builder import (
        build_execution_tree, aggregate_status,
    )

    forest = build_execution_tree(executed_data)
    status = aggregate_status(forest)

The builder backs a display feature: malformed input degrades to a
best-effort forest and is logged, never raised.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple
import logging

from flowport.domain.models.execution_tree import (
    ITERATION_NODE_NAME,
    ExecutionEvent,
    NodeStatus,
    RealTreeNode,
    TreeNode,
    VirtualIterationNode,
)
from flowport.domain.models.json_value import JSONValue, strip_key

logger = logging.getLogger(__name__)


DEFAULT_CREDENTIAL_KEY = "FLOWISE_CREDENTIAL_ID"

GroupKey = Tuple[str, Any]


def scrub_credentials(data: JSONValue, key: str = DEFAULT_CREDENTIAL_KEY) -> JSONValue:
    """Return a copy of ``data`` with every ``key`` entry removed at any depth."""
    return strip_key(data, key)


def derive_iteration_status(statuses: Iterable[NodeStatus]) -> NodeStatus:
    """
    Status of one loop pass from the statuses of its members.

    ERROR wins over INPROGRESS; otherwise FINISHED only when every member
    finished. Anything else (including STOPPED members) is UNKNOWN.
    """
    statuses = list(statuses)
    if NodeStatus.ERROR in statuses:
        return NodeStatus.ERROR
    if NodeStatus.INPROGRESS in statuses:
        return NodeStatus.INPROGRESS
    if statuses and all(s == NodeStatus.FINISHED for s in statuses):
        return NodeStatus.FINISHED
    return NodeStatus.UNKNOWN


def build_execution_tree(
    events: Optional[Iterable[Any]],
    credential_key: str = DEFAULT_CREDENTIAL_KEY,
) -> List[TreeNode]:
    """
    Build the execution forest for one run.

    Args:
        events: Ordered event log, as wire dicts or ExecutionEvent objects
        credential_key: Payload key stripped from every node's data

    Returns:
        Root nodes in execution order. Empty for empty or unusable input.
    """
    if not events:
        return []
    try:
        return _TreeAssembly(events, credential_key).build()
    except Exception as e:
        logger.warning(f"Execution tree reconstruction failed, returning empty tree: {e}")
        return []


class _TreeAssembly:
    """Working state for a single build; discarded when it returns."""

    def __init__(self, raw_events: Iterable[Any], credential_key: str):
        self.events: List[ExecutionEvent] = [ExecutionEvent.from_dict(raw) for raw in raw_events]
        self.nodes: List[RealTreeNode] = [
            self._real_node(index, event, credential_key)
            for index, event in enumerate(self.events)
        ]
        self.roots: List[TreeNode] = []
        # id(node) -> parent; used to refuse attachments that would close a cycle
        self.parents: Dict[int, TreeNode] = {}
        self._last_occurrence: Dict[str, int] = {}
        self.used_ids = {node.id for node in self.nodes}

    @staticmethod
    def _real_node(index: int, event: ExecutionEvent, credential_key: str) -> RealTreeNode:
        data = scrub_credentials(event.data, credential_key)
        return RealTreeNode(
            id=f"{event.node_id}_{index}",
            label=event.node_label if event.node_id else "",
            status=event.status,
            data=data if isinstance(data, dict) else {},
            execution_index=index,
            node_id=event.node_id,
        )

    def build(self) -> List[TreeNode]:
        groups = self._link_events()
        for key, members in groups.items():
            self._attach_iteration(key, members)
        self._sort_children()
        self.roots.sort(key=lambda root: root.execution_index)
        return self.roots

    def _unique_id(self, candidate: str) -> str:
        while candidate in self.used_ids:
            candidate += "_v"
        self.used_ids.add(candidate)
        return candidate

    def _attach(self, child: TreeNode, parent: Optional[TreeNode]) -> None:
        if parent is None:
            self.roots.append(child)
            return
        parent.children.append(child)
        self.parents[id(child)] = parent

    def _link_events(self) -> Dict[GroupKey, List[int]]:
        """Link ordinary events and members within their pass; collect loop groups."""
        latest: Dict[str, int] = {}
        group_latest: Dict[GroupKey, Dict[str, int]] = {}
        groups: Dict[GroupKey, List[int]] = {}

        for index, event in enumerate(self.events):
            node = self.nodes[index]

            if not event.node_id:
                logger.warning(f"Execution event #{index} has no nodeId, placing it at the root")
                self.roots.append(node)
                continue

            if event.is_iteration_member:
                key = (event.parent_node_id, _hashable(event.iteration_index))
                members = groups.setdefault(key, [])
                seen = group_latest.setdefault(key, {})
                parent_index = _most_recent(event.previous_node_ids, seen)
                if parent_index is not None:
                    self._attach(node, self.nodes[parent_index])
                members.append(index)
                seen[event.node_id] = index
            else:
                parent_index = _most_recent(event.previous_node_ids, latest)
                if parent_index is None and event.previous_node_ids:
                    logger.debug(f"No earlier predecessor for {node.id}, placing it at the root")
                self._attach(node, self.nodes[parent_index] if parent_index is not None else None)

            latest[event.node_id] = index

        self._last_occurrence = latest
        return groups

    def _attach_iteration(self, key: GroupKey, member_indexes: List[int]) -> None:
        parent_node_id, iteration_index = key
        first = self.nodes[member_indexes[0]]
        iteration_context = first.data.get("iterationContext") or {"index": iteration_index}

        virtual = VirtualIterationNode(
            id=self._unique_id(f"{parent_node_id}_iteration_{iteration_index}"),
            label=f"Iteration #{iteration_index}",
            status=derive_iteration_status(self.nodes[i].status for i in member_indexes),
            data={
                "name": ITERATION_NODE_NAME,
                "iterationIndex": iteration_index,
                "iterationContext": iteration_context,
                "isVirtualNode": True,
                "parentIterationId": parent_node_id,
            },
            execution_index=first.execution_index,
            parent_node_id=parent_node_id,
            iteration_index=iteration_index,
            iteration_context=iteration_context,
        )

        for index in member_indexes:
            member = self.nodes[index]
            if id(member) not in self.parents:
                self._attach(member, virtual)

        parent_index = self._last_occurrence.get(parent_node_id)
        parent = self.nodes[parent_index] if parent_index is not None else None
        if parent is None:
            logger.warning(f"Iteration parent {parent_node_id} never executed, placing {virtual.id} at the root")
        elif self._is_ancestor(virtual, parent):
            logger.warning(f"Iteration parent {parent_node_id} is nested inside {virtual.id}, placing it at the root")
            parent = None
        self._attach(virtual, parent)

    def _is_ancestor(self, candidate: TreeNode, node: TreeNode) -> bool:
        current: Optional[TreeNode] = node
        while current is not None:
            if current is candidate:
                return True
            current = self.parents.get(id(current))
        return False

    def _sort_children(self) -> None:
        stack: List[TreeNode] = list(self.roots)
        while stack:
            node = stack.pop()
            node.children.sort(key=lambda child: (0 if child.is_iteration else 1, child.execution_index))
            stack.extend(node.children)


def _most_recent(candidates: Iterable[str], seen: Dict[str, int]) -> Optional[int]:
    indexes = [seen[node_id] for node_id in candidates if node_id in seen]
    return max(indexes) if indexes else None


def _hashable(value: Any) -> Any:
    try:
        hash(value)
        return value
    except TypeError:
        return repr(value)


# ═══════════════════════════════════════════════════════════════════════════════
# Forest queries
# ═══════════════════════════════════════════════════════════════════════════════

def _walk(forest: List[TreeNode]):
    """Pre-order traversal without recursion."""
    stack = list(reversed(forest))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def find_node(forest: List[TreeNode], node_id: str) -> Optional[TreeNode]:
    """Depth-first lookup by tree node id."""
    for node in _walk(forest):
        if node.id == node_id:
            return node
    return None


def collect_statuses(forest: List[TreeNode]) -> List[NodeStatus]:
    return [node.status for node in _walk(forest)]


def aggregate_status(forest: List[TreeNode]) -> Optional[NodeStatus]:
    """
    Overall run status.

    Precedence: ERROR > INPROGRESS > STOPPED > all FINISHED. Returns None
    when none applies or the forest is empty.
    """
    statuses = collect_statuses(forest)
    if not statuses:
        return None
    for status in (NodeStatus.ERROR, NodeStatus.INPROGRESS, NodeStatus.STOPPED):
        if status in statuses:
            return status
    if all(s == NodeStatus.FINISHED for s in statuses):
        return NodeStatus.FINISHED
    return None
