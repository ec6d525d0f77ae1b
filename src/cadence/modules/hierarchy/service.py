"""
Cadence Hierarchy - Service.

Builds the parent/child view of tags and guards writes against cycles.
"""

import logging
from collections import Counter, deque
from typing import Any, Iterable

from cadence.core import get_store
from cadence.core.store import GovernanceStore
from cadence.core.validation import require_tag
from cadence.exceptions import ConflictException
from cadence.modules.hierarchy.schemas import (
    HierarchyEdge,
    HierarchyIssue,
    HierarchyValidation,
    TagHierarchyNode,
)

logger = logging.getLogger(__name__)


def build_hierarchy_map(edges: Iterable[HierarchyEdge | dict[str, Any]]) -> dict[str, TagHierarchyNode]:
    """
    Group edges by tag.

    Every tag that appears as parent or child becomes a key. Lists keep edge
    order; nothing is deduplicated here.
    """
    grouped: dict[str, TagHierarchyNode] = {}
    for edge in edges:
        if isinstance(edge, dict):
            parent, child = edge["parent_tag"], edge["child_tag"]
        else:
            parent, child = edge.parent_tag, edge.child_tag

        grouped.setdefault(child, TagHierarchyNode()).parents.append(parent)
        grouped.setdefault(parent, TagHierarchyNode()).children.append(child)
    return grouped


def _walk(start: str, neighbours: dict[str, list[str]]) -> list[str]:
    """Breadth-first walk; each tag once, nearest first, start excluded."""
    seen = {start}
    order: list[str] = []
    queue = deque(neighbours.get(start, []))
    while queue:
        tag = queue.popleft()
        if tag in seen:
            continue
        seen.add(tag)
        order.append(tag)
        queue.extend(neighbours.get(tag, []))
    return order


def _edge_pair(edge: HierarchyEdge | dict[str, Any]) -> tuple[str, str]:
    if isinstance(edge, dict):
        return edge["parent_tag"], edge["child_tag"]
    return edge.parent_tag, edge.child_tag


def validate_hierarchy(edges: Iterable[HierarchyEdge | dict[str, Any]]) -> HierarchyValidation:
    """
    Report cycles (self-references included) and duplicate edges.

    Writes through HierarchyService never produce these; the check is for
    data loaded from a snapshot or edited directly in the database.
    """
    pairs = [_edge_pair(e) for e in edges]
    errors: list[HierarchyIssue] = []

    children: dict[str, list[str]] = {}
    for parent, child in pairs:
        children.setdefault(parent, []).append(child)
        children.setdefault(child, [])

    visiting: set[str] = set()
    done: set[str] = set()
    path: list[str] = []

    def visit(tag: str) -> None:
        visiting.add(tag)
        path.append(tag)
        for child in children[tag]:
            if child in visiting:
                errors.append(
                    HierarchyIssue(type="cycle", message="检测到循环依赖", tags=path[path.index(child):])
                )
            elif child not in done:
                visit(child)
        path.pop()
        visiting.discard(tag)
        done.add(tag)

    for tag in children:
        if tag not in done:
            visit(tag)

    for (parent, child), count in Counter(pairs).items():
        if count > 1:
            errors.append(HierarchyIssue(type="duplicate", message="发现重复标签关系", tags=[parent, child]))

    return HierarchyValidation(is_valid=not errors, errors=errors)


def find_tag_path(tag: str, edges: Iterable[HierarchyEdge | dict[str, Any]]) -> list[str]:
    """First root-to-tag path, depth-first from roots in edge order; [tag] when none."""
    hierarchy = build_hierarchy_map(edges)
    roots = [t for t, node in hierarchy.items() if not node.parents]

    def search(current: str, path: list[str]) -> list[str] | None:
        path = path + [current]
        if current == tag:
            return path
        for child in hierarchy[current].children:
            if child not in path:
                found = search(child, path)
                if found:
                    return found
        return None

    for root in roots:
        found = search(root, [])
        if found:
            return found
    return [tag]


class HierarchyService:
    """Reads and writes tag hierarchy edges."""

    def __init__(self, store: GovernanceStore | None = None):
        self.store = store or get_store()

    async def get_hierarchy(self) -> dict[str, TagHierarchyNode]:
        """Map of every related tag to its parents and children."""
        return build_hierarchy_map(await self.store.list_edges())

    async def get_tag_hierarchy(self, tag: str) -> TagHierarchyNode:
        """One tag's relatives; empty lists when the tag has no edges."""
        require_tag(tag)
        return (await self.get_hierarchy()).get(tag, TagHierarchyNode())

    async def ancestors(self, tag: str) -> list[str]:
        require_tag(tag)
        hierarchy = await self.get_hierarchy()
        return _walk(tag, {t: node.parents for t, node in hierarchy.items()})

    async def descendants(self, tag: str) -> list[str]:
        require_tag(tag)
        hierarchy = await self.get_hierarchy()
        return _walk(tag, {t: node.children for t, node in hierarchy.items()})

    async def validate(self) -> HierarchyValidation:
        report = validate_hierarchy(await self.store.list_edges())
        if not report.is_valid:
            logger.warning(f"[HIERARCHY] integrity check found {len(report.errors)} issue(s)")
        return report

    async def find_path(self, tag: str) -> list[str]:
        require_tag(tag)
        return find_tag_path(tag, await self.store.list_edges())

    async def add_relation(self, parent_tag: str, child_tag: str) -> HierarchyEdge:
        """
        Add a parent -> child edge.

        Raises:
            ConflictException: self-reference, duplicate edge, or the edge
                would close a cycle (child is already an ancestor of parent)
        """
        require_tag(parent_tag, "parent_tag")
        require_tag(child_tag, "child_tag")

        if parent_tag == child_tag:
            raise ConflictException(
                "A tag cannot be its own parent",
                details={"parent_tag": parent_tag, "child_tag": child_tag},
                code="HIERARCHY_CYCLE",
            )

        hierarchy = await self.get_hierarchy()
        parent_ancestors = _walk(parent_tag, {t: node.parents for t, node in hierarchy.items()})
        if child_tag in parent_ancestors:
            raise ConflictException(
                f"Relation '{parent_tag}' -> '{child_tag}' would create a cycle",
                details={"parent_tag": parent_tag, "child_tag": child_tag},
                code="HIERARCHY_CYCLE",
            )

        created = await self.store.insert_edge(parent_tag, child_tag)
        logger.info(f"[HIERARCHY] added {parent_tag} -> {child_tag}")
        return HierarchyEdge(**created)

    async def remove_relation(self, parent_tag: str, child_tag: str) -> None:
        require_tag(parent_tag, "parent_tag")
        require_tag(child_tag, "child_tag")
        await self.store.delete_edge(parent_tag, child_tag)
        logger.info(f"[HIERARCHY] removed {parent_tag} -> {child_tag}")
