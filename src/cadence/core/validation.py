"""Cadence Core - Input checks shared by the governance services."""

from cadence.exceptions import ValidationException
from cadence.schemas import TAG_ROLES

# Fixed /tags/<segment> routes; a tag with one of these names could not be addressed
RESERVED_TAG_NAMES = frozenset({"analytics", "audit", "hierarchy", "permissions", "templates"})


def require_tag_name(tag: str | None, field: str = "tag") -> str:
    """Tags are case-sensitive keys; only empty or blank names are rejected."""
    if not isinstance(tag, str) or not tag.strip():
        raise ValidationException(
            f"{field} must be a non-empty string",
            errors=[{"field": field, "value": tag}],
        )
    return tag


def require_tag(tag: str | None, field: str = "tag") -> str:
    """A tag that can be governed, i.e. addressed as /tags/{tag}/... ."""
    require_tag_name(tag, field)
    if "/" in tag or tag in RESERVED_TAG_NAMES:
        raise ValidationException(
            f"{field} {tag!r} is reserved or contains '/'",
            errors=[{"field": field, "value": tag, "reserved": sorted(RESERVED_TAG_NAMES)}],
        )
    return tag


def require_user_id(user_id: str | None, field: str = "user_id") -> str:
    if not isinstance(user_id, str) or not user_id.strip():
        raise ValidationException(
            f"{field} must be a non-empty string",
            errors=[{"field": field, "value": user_id}],
        )
    return user_id


def require_role(role: str | None) -> str:
    if role not in TAG_ROLES:
        raise ValidationException(
            f"Invalid role: {role!r}",
            errors=[{"field": "role", "value": role, "allowed": list(TAG_ROLES)}],
        )
    return role
