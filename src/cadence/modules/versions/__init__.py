"""Cadence Versions Module - Sealed, numbered batches of tag changes."""

from cadence.modules.versions.compare import check_merge_conflicts, compare_versions, merge_versions
from cadence.modules.versions.logger import ChangeBuffer, TagVersionLogger
from cadence.modules.versions.router import router
from cadence.modules.versions.service import VersionService

__all__ = [
    "router",
    "ChangeBuffer",
    "TagVersionLogger",
    "VersionService",
    "check_merge_conflicts",
    "compare_versions",
    "merge_versions",
]
