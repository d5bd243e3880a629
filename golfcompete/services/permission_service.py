"""
Authorization predicates.

Pure functions over the acting user, the target resource and (where it
matters) the actor's series membership. FastAPI dependencies in
api/auth_dependencies.py load the inputs and turn a False into 403.
"""

from typing import Dict, Optional

from golfcompete.database.models import ParticipantRole, ParticipantStatus


def is_site_admin(actor: Optional[Dict]) -> bool:
    return bool(actor and actor.get("is_admin"))


def is_creator(actor: Dict, resource: Dict) -> bool:
    """Creator of a series/event/course (created_by) or owner of a round/note (user_id)."""
    owner = resource.get("created_by", resource.get("user_id"))
    return owner is not None and owner == actor.get("id")


def is_series_admin(membership: Optional[Dict]) -> bool:
    """A confirmed admin participant of the series."""
    return bool(
        membership
        and membership.get("role") == ParticipantRole.ADMIN.value
        and membership.get("status") == ParticipantStatus.CONFIRMED.value
    )


def can_manage(actor: Dict, resource: Dict, membership: Optional[Dict] = None) -> bool:
    """
    May ``actor`` update or delete ``resource``?

    Site admins always may, then the resource creator, then confirmed admins
    of the series that owns or contains the resource.
    """
    if is_site_admin(actor):
        return True
    if is_creator(actor, resource):
        return True
    return is_series_admin(membership)


def can_access_owned(actor: Dict, resource: Dict) -> bool:
    """Rounds and notes: only the owner or a site admin."""
    return is_site_admin(actor) or resource.get("user_id") == actor.get("id")
