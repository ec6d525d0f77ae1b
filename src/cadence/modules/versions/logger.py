"""
Cadence Versions - Change logger.

ChangeBuffer is an immutable accumulator: every operation returns a new
buffer, so the caller always holds the exact state it threads through.

TagVersionLogger wraps one buffer for a single owner (one tag, one
session). It has no internal locking; concurrent writers must serialise
access themselves.
"""

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict

from cadence.core.validation import require_tag
from cadence.exceptions import ValidationException
from cadence.modules.versions.schemas import ChangeAuthorRef, TagChange, TagChangeCreate, TagVersion


def next_version_number(previous_version: int | None) -> int:
    if previous_version is None:
        return 1
    if isinstance(previous_version, bool) or not isinstance(previous_version, int) or previous_version < 0:
        raise ValidationException(
            f"previous_version must be a non-negative integer, got {previous_version!r}",
            errors=[{"field": "previous_version", "value": previous_version}],
        )
    return previous_version + 1


class ChangeBuffer(BaseModel):
    """Pending changes for one tag."""

    model_config = ConfigDict(frozen=True)

    tag: str
    author: ChangeAuthorRef | None = None
    changes: tuple[TagChange, ...] = ()

    def log_change(self, change: TagChangeCreate) -> "ChangeBuffer":
        """Return a new buffer with the change appended and timestamped now."""
        logged = TagChange(**change.model_dump(exclude={"timestamp"}), timestamp=datetime.now(timezone.utc))
        return self.model_copy(update={"changes": self.changes + (logged,)})

    def create_version(self, previous_version: int | None = None) -> TagVersion:
        """Seal the buffered changes into version (previous_version or 0) + 1."""
        return TagVersion(
            id=str(uuid4()),
            tag=self.tag,
            version=next_version_number(previous_version),
            changes=self.changes,
            timestamp=datetime.now(timezone.utc),
            author=self.author,
        )

    def cleared(self) -> "ChangeBuffer":
        return self.model_copy(update={"changes": ()})


class TagVersionLogger:
    """
    Single-owner session around a ChangeBuffer.

    create_version does not clear; call clear() afterwards, or use seal()
    which does both.
    """

    def __init__(self, tag: str, author: ChangeAuthorRef | None = None):
        self._buffer = ChangeBuffer(tag=require_tag(tag), author=author)

    @property
    def tag(self) -> str:
        return self._buffer.tag

    @property
    def buffer(self) -> ChangeBuffer:
        return self._buffer

    @property
    def changes(self) -> tuple[TagChange, ...]:
        return self._buffer.changes

    def log_change(self, change: TagChangeCreate) -> TagChange:
        self._buffer = self._buffer.log_change(change)
        return self._buffer.changes[-1]

    def create_version(self, previous_version: int | None = None) -> TagVersion:
        return self._buffer.create_version(previous_version)

    def clear(self) -> None:
        self._buffer = self._buffer.cleared()

    def seal(self, previous_version: int | None = None) -> TagVersion:
        version = self.create_version(previous_version)
        self.clear()
        return version
