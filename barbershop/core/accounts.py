# barbershop/core/accounts.py
"""Admin-side account changes: profile name, role and the block flag."""

import logging
from typing import Optional

from sqlmodel import Session, select

from .. import repository
from ..models import User
from ..schemas import UserRole
from . import audit
from .errors import InvalidInput, NotFound

logger = logging.getLogger(__name__)


def get_user(session: Session, user_id: int) -> User:
    user = repository.find_user(session, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


def update_user(session: Session, actor_id: Optional[int], user_id: int, changes: dict) -> User:
    """Apply a partial update and audit it as ``user.update``.

    ``changes`` holds only the fields the caller sent. Lifting the block
    flag also clears the reason unless a new one is sent alongside.
    """
    if not changes:
        raise InvalidInput("Nothing to update")

    user = get_user(session, user_id)

    role = changes.get("role")
    if role is not None:
        try:
            role = UserRole(role).value
        except ValueError as exc:
            raise InvalidInput(f"Unknown role {role!r}") from exc
        if actor_id == user.id and role != UserRole.admin.value:
            raise InvalidInput("Admins cannot remove their own admin role")

    before = audit.user_snapshot(user)

    if changes.get("name") is not None:
        user.name = changes["name"].strip()
    if role is not None:
        user.role = role
    if changes.get("is_booking_blocked") is not None:
        user.is_booking_blocked = changes["is_booking_blocked"]
        if not user.is_booking_blocked:
            user.block_reason = None
    if "block_reason" in changes:
        user.block_reason = changes["block_reason"] or None

    session.add(user)
    audit.record(session, actor_id, "user.update", "user", user.id, before, audit.user_snapshot(user))
    session.commit()
    session.refresh(user)

    logger.info("user %s updated by %s (%s)", user.id, actor_id, ", ".join(sorted(changes)))
    return user


def promote_to_admin(session: Session, email: str) -> User:
    user = session.exec(
        select(User).where(User.email == email.strip().lower())
    ).first()
    if user is None:
        raise NotFound(f"User not found: {email}")
    return update_user(session, None, user.id, {"role": UserRole.admin.value})
