"""Cadence Hierarchy Module - Parent/child tag relations."""

from cadence.modules.hierarchy.router import router
from cadence.modules.hierarchy.service import (
    HierarchyService,
    build_hierarchy_map,
    find_tag_path,
    validate_hierarchy,
)

__all__ = ["router", "HierarchyService", "build_hierarchy_map", "find_tag_path", "validate_hierarchy"]
