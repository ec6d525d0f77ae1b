"""
Cadence Versions - Schemas.

Pydantic models for tag change records and sealed versions. Changes and
versions are frozen: once built they are values, not shared state.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TagChangeType = Literal["rename", "merge", "split", "alias", "hierarchy", "limit", "revert"]


class ChangeAuthorRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str | None = None


class TagChangeDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    old_value: str | tuple[str, ...] | None = None
    new_value: str | tuple[str, ...] | None = None
    reason: str | None = None
    target_version: int | None = None


class TagChangeCreate(BaseModel):
    """A change as submitted; the timestamp is assigned on logging."""

    model_config = ConfigDict(frozen=True)

    type: TagChangeType
    description: str = Field(..., min_length=1)
    details: TagChangeDetails = Field(default_factory=TagChangeDetails)
    comment: str | None = None
    author: ChangeAuthorRef | None = None


class TagChange(TagChangeCreate):
    """One logged modification to a tag."""

    timestamp: datetime


class TagVersion(BaseModel):
    """A sealed, numbered batch of changes."""

    model_config = ConfigDict(frozen=True)

    id: str
    tag: str
    version: int = Field(..., ge=1)
    changes: tuple[TagChange, ...] = ()
    timestamp: datetime
    author: ChangeAuthorRef | None = None


class CommitChangesRequest(BaseModel):
    """Changes to seal into the tag's next version."""

    changes: list[TagChangeCreate] = Field(..., min_length=1)


class TagVersionDiff(BaseModel):
    """Changes keyed by (type, details): added in, removed from, or reworded in the second version."""

    additions: list[TagChange] = Field(default_factory=list)
    deletions: list[TagChange] = Field(default_factory=list)
    modifications: list[TagChange] = Field(default_factory=list)


class MergeConflict(BaseModel):
    type: TagChangeType
    description: str
    version1_change: TagChange
    version2_change: TagChange


class MergeConflictReport(BaseModel):
    has_conflicts: bool
    conflicts: list[MergeConflict] = Field(default_factory=list)


class MergeVersionsRequest(BaseModel):
    version_a: int = Field(..., ge=1)
    version_b: int = Field(..., ge=1)
