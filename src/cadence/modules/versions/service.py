"""
Cadence Versions - Service.

Stores sealed tag versions and builds new ones from submitted changes.
"""

import logging
from typing import Any

from cadence.core import get_store
from cadence.core.store import GovernanceStore
from cadence.core.validation import require_tag
from cadence.exceptions import ConflictException, NotFoundException
from cadence.modules.versions.compare import check_merge_conflicts, compare_versions, merge_versions
from cadence.modules.versions.logger import TagVersionLogger, next_version_number
from cadence.modules.versions.schemas import (
    ChangeAuthorRef,
    MergeConflictReport,
    TagChangeCreate,
    TagChangeDetails,
    TagVersion,
    TagVersionDiff,
)

logger = logging.getLogger(__name__)


class VersionService:
    """Version history per tag."""

    def __init__(self, store: GovernanceStore | None = None):
        self.store = store or get_store()

    async def save_version(self, version: TagVersion) -> TagVersion:
        created = await self.store.insert_version(version.model_dump(mode="json"))
        logger.info(f"[VERSION] {version.tag} v{version.version} ({len(version.changes)} change(s))")
        return self._to_version(created)

    async def list_versions(self, tag: str) -> list[TagVersion]:
        """Versions of a tag, newest first."""
        require_tag(tag)
        return [self._to_version(v) for v in await self.store.list_versions(tag)]

    async def latest_version_number(self, tag: str) -> int | None:
        versions = await self.store.list_versions(tag)
        return versions[0]["version"] if versions else None

    async def commit_changes(
        self,
        tag: str,
        changes: list[TagChangeCreate],
        author: ChangeAuthorRef | None = None,
    ) -> TagVersion:
        """Seal changes into the version after the latest stored one."""
        version_logger = TagVersionLogger(tag, author=author)
        for change in changes:
            version_logger.log_change(change)

        version = version_logger.seal(await self.latest_version_number(tag))
        return await self.save_version(version)

    async def revert(self, tag: str, version: int, author: ChangeAuthorRef | None = None) -> TagVersion:
        """Append a new version that records a revert to an earlier one."""
        require_tag(tag)
        versions = await self.store.list_versions(tag)
        if not any(v["version"] == version for v in versions):
            raise NotFoundException("tag version", f"{tag}@{version}")

        revert_change = TagChangeCreate(
            type="revert",
            description=f"回退到版本 {version}",
            details=TagChangeDetails(target_version=version),
            author=author,
        )
        return await self.commit_changes(tag, [revert_change], author=author)

    async def get_version(self, tag: str, version: int) -> TagVersion:
        require_tag(tag)
        for v in await self.store.list_versions(tag):
            if v["version"] == version:
                return self._to_version(v)
        raise NotFoundException("tag version", f"{tag}@{version}")

    async def delete_version(self, tag: str, version_id: str) -> None:
        require_tag(tag)
        if not await self.store.delete_version(tag, version_id):
            raise NotFoundException("tag version", version_id)
        logger.info(f"[VERSION] Deleted {version_id} of {tag}")

    async def compare(self, tag: str, from_version: int, to_version: int) -> TagVersionDiff:
        """Changes that differ going from one stored version to another."""
        return compare_versions(
            await self.get_version(tag, from_version),
            await self.get_version(tag, to_version),
        )

    async def check_conflicts(self, tag: str, version_a: int, version_b: int) -> MergeConflictReport:
        return check_merge_conflicts(
            await self.get_version(tag, version_a),
            await self.get_version(tag, version_b),
        )

    async def merge(
        self,
        tag: str,
        version_a: int,
        version_b: int,
        author: ChangeAuthorRef | None = None,
    ) -> TagVersion:
        """
        Merge two stored versions into a new one.

        The result is numbered after the latest stored version, not just
        after the two inputs.

        Raises:
            ConflictException: Both versions rename the tag, or move it in
                the hierarchy, to different values
        """
        first = await self.get_version(tag, version_a)
        second = await self.get_version(tag, version_b)

        report = check_merge_conflicts(first, second)
        if report.has_conflicts:
            raise ConflictException(
                f"Versions {version_a} and {version_b} of '{tag}' conflict",
                details={"conflicts": [c.model_dump(mode="json") for c in report.conflicts]},
                code="VERSION_MERGE_CONFLICT",
            )

        merged = merge_versions(first, second, author=author)
        merged = merged.model_copy(update={"version": next_version_number(await self.latest_version_number(tag))})
        return await self.save_version(merged)

    def _to_version(self, data: dict[str, Any]) -> TagVersion:
        return TagVersion.model_validate(data)
