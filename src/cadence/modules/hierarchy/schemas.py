"""
Cadence Hierarchy - Schemas.

Pydantic models for parent/child tag relations.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class HierarchyEdge(BaseModel):
    """Directed parent -> child relation."""

    parent_tag: str
    child_tag: str
    created_at: datetime | None = None


class TagHierarchyNode(BaseModel):
    """Parents and children of one tag, in edge insertion order."""

    parents: list[str] = Field(default_factory=list)
    children: list[str] = Field(default_factory=list)


class HierarchyRelationRequest(BaseModel):
    """Body for creating or removing a relation."""

    parent_tag: str = Field(..., min_length=1, max_length=100)
    child_tag: str = Field(..., min_length=1, max_length=100)


class TagLineageResponse(BaseModel):
    """Transitive relatives of a tag, nearest first."""

    tag: str
    ancestors: list[str]
    descendants: list[str]


class HierarchyIssue(BaseModel):
    type: Literal["cycle", "duplicate"]
    message: str
    tags: list[str]


class HierarchyValidation(BaseModel):
    """Integrity report over the stored edges."""

    is_valid: bool
    errors: list[HierarchyIssue] = Field(default_factory=list)


class TagPathResponse(BaseModel):
    """Root-to-tag path; just the tag itself when it has no ancestors."""

    tag: str
    path: list[str]
