"""
Cadence Notifications - Schemas.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class ChangeAuthor(BaseModel):
    name: str


class NotificationChange(BaseModel):
    type: str
    description: str
    author: ChangeAuthor | None = None


class Notification(BaseModel):
    """A tag change notice delivered to one user."""

    id: str
    user_id: str
    type: Literal["tag_change"] = "tag_change"
    tag: str
    change: NotificationChange
    timestamp: datetime
    read: bool = False


class MarkAllReadResponse(BaseModel):
    updated: int
