"""
Cadence Versions - Compare and merge.

Two changes are "the same change" when their type and details match; the
description, comment, author and timestamp may still differ.
"""

import json
from datetime import datetime, timezone
from uuid import uuid4

from cadence.exceptions import ValidationException
from cadence.modules.versions.schemas import (
    ChangeAuthorRef,
    MergeConflict,
    MergeConflictReport,
    TagChange,
    TagVersion,
    TagVersionDiff,
)

# Change types where both sides setting different new values cannot be merged
CONFLICT_DESCRIPTIONS = {
    "rename": "标签重命名冲突",
    "hierarchy": "标签层级变更冲突",
}


def change_key(change: TagChange) -> str:
    return json.dumps(
        {"type": change.type, "details": change.details.model_dump(mode="json")},
        sort_keys=True,
        ensure_ascii=False,
    )


def _by_key(changes: tuple[TagChange, ...]) -> dict[str, TagChange]:
    return {change_key(c): c for c in changes}


def _content(change: TagChange) -> dict:
    return change.model_dump(mode="json", exclude={"timestamp"})


def compare_versions(version1: TagVersion, version2: TagVersion) -> TagVersionDiff:
    changes1 = _by_key(version1.changes)
    changes2 = _by_key(version2.changes)

    return TagVersionDiff(
        additions=[c for key, c in changes2.items() if key not in changes1],
        deletions=[c for key, c in changes1.items() if key not in changes2],
        modifications=[
            changes2[key]
            for key, c in changes1.items()
            if key in changes2 and _content(c) != _content(changes2[key])
        ],
    )


def merge_versions(
    version1: TagVersion,
    version2: TagVersion,
    author: ChangeAuthorRef | None = None,
) -> TagVersion:
    """
    Union of both versions' changes; the newer change wins for the same key.

    The merged version is numbered after the higher of the two.
    """
    if version1.tag != version2.tag:
        raise ValidationException(
            f"Cannot merge versions of different tags: '{version1.tag}' and '{version2.tag}'",
            errors=[{"field": "tag", "value": [version1.tag, version2.tag]}],
        )

    merged: dict[str, TagChange] = {}
    for change in version1.changes + version2.changes:
        key = change_key(change)
        if key not in merged or merged[key].timestamp < change.timestamp:
            merged[key] = change

    return TagVersion(
        id=str(uuid4()),
        tag=version1.tag,
        version=max(version1.version, version2.version) + 1,
        changes=tuple(merged.values()),
        timestamp=datetime.now(timezone.utc),
        author=author,
    )


def check_merge_conflicts(version1: TagVersion, version2: TagVersion) -> MergeConflictReport:
    """Rename or hierarchy changes on both sides that end at different values."""
    first1: dict[str, TagChange] = {}
    for change in version1.changes:
        first1.setdefault(change.type, change)
    first2: dict[str, TagChange] = {}
    for change in version2.changes:
        first2.setdefault(change.type, change)

    conflicts = [
        MergeConflict(
            type=change_type,
            description=CONFLICT_DESCRIPTIONS[change_type],
            version1_change=change1,
            version2_change=first2[change_type],
        )
        for change_type, change1 in first1.items()
        if change_type in CONFLICT_DESCRIPTIONS
        and change_type in first2
        and change1.details.new_value != first2[change_type].details.new_value
    ]
    return MergeConflictReport(has_conflicts=bool(conflicts), conflicts=conflicts)
