"""
User service layer for accounts, profiles and password reset tokens.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, update, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from golfcompete.database.models import PasswordResetToken, User
from golfcompete.services.errors import AuthError, DatabaseError, ErrorCodes
from golfcompete.services.serializers import USER_FIELDS, to_dict
from golfcompete.utils.datetime_utils import ensure_aware, utcnow

logger = logging.getLogger(__name__)

# Profile columns a user (or admin) may change through update_user
UPDATABLE_PROFILE_FIELDS = ("first_name", "last_name", "username", "display_name", "email")
ADMIN_ONLY_FIELDS = ("is_admin", "is_active", "handicap_index")


def _user_to_dict(user: User, include_password_hash: bool = False) -> Dict:
    data = to_dict(user, USER_FIELDS)
    if include_password_hash:
        data["password_hash"] = user.password_hash
    return data


async def create_user(
    session: AsyncSession,
    email: str,
    password_hash: Optional[str],
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    username: Optional[str] = None,
    is_admin: bool = False,
    auth_provider: str = "email",
) -> Dict:
    """
    Create a new user account.

    Args:
        session: Database session
        email: Email address (normalized to lowercase)
        password_hash: bcrypt hash, or None for OAuth-only accounts
        first_name: Optional first name
        last_name: Optional last name
        username: Optional unique username
        is_admin: Site admin flag
        auth_provider: "email" or the OAuth provider name

    Returns:
        User dictionary

    Raises:
        AuthError: AUTH_EMAIL_IN_USE if the email is already registered
        DatabaseError: DB_CONSTRAINT_VIOLATION if the username is taken
    """
    email = email.strip().lower()
    if await get_user_by_email(session, email):
        raise AuthError("Email is already registered", ErrorCodes.AUTH_EMAIL_IN_USE)

    display_name = " ".join(part for part in (first_name, last_name) if part) or None
    new_user = User(
        email=email,
        password_hash=password_hash,
        first_name=first_name,
        last_name=last_name,
        username=username,
        display_name=display_name,
        is_admin=is_admin,
        auth_provider=auth_provider,
    )
    session.add(new_user)
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise DatabaseError(
            "Email or username already in use",
            ErrorCodes.DB_CONSTRAINT_VIOLATION,
            e,
            unique_violation=True,
        )
    await session.commit()

    logger.info(f"Created user {new_user.id} ({auth_provider})")
    return _user_to_dict(new_user)


async def get_user_by_id(session: AsyncSession, user_id: str) -> Optional[Dict]:
    """
    Get user by ID.

    Returns:
        User dictionary or None if not found
    """
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def get_user_by_email(
    session: AsyncSession, email: str, include_password_hash: bool = False
) -> Optional[Dict]:
    """
    Get user by email address.

    Args:
        session: Database session
        email: Email address (will be normalized to lowercase)
        include_password_hash: Include the stored hash (login only)

    Returns:
        User dictionary or None if not found
    """
    email = email.strip().lower() if email else None
    if not email:
        return None

    result = await session.execute(
        select(User).where(func.lower(User.email) == email).limit(1)
    )
    user = result.scalar_one_or_none()
    return _user_to_dict(user, include_password_hash) if user else None


async def update_user(
    session: AsyncSession, user_id: str, values: Dict[str, Any], allow_admin_fields: bool = False
) -> Optional[Dict]:
    """
    Update profile fields of a user.

    Unknown keys are ignored; is_admin, is_active and handicap_index are
    only applied when ``allow_admin_fields`` is set.

    Returns:
        Updated user dictionary, or None if the user does not exist
    """
    allowed = UPDATABLE_PROFILE_FIELDS + (ADMIN_ONLY_FIELDS if allow_admin_fields else ())
    update_values = {key: value for key, value in values.items() if key in allowed}
    if "email" in update_values and update_values["email"]:
        update_values["email"] = update_values["email"].strip().lower()

    user = await session.get(User, user_id)
    if user is None:
        return None

    for key, value in update_values.items():
        setattr(user, key, value)
    user.updated_at = utcnow()
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise DatabaseError(
            "Email or username already in use",
            ErrorCodes.DB_CONSTRAINT_VIOLATION,
            e,
            unique_violation=True,
        )
    await session.commit()
    return _user_to_dict(user)


async def set_user_active(session: AsyncSession, user_id: str, is_active: bool) -> Optional[Dict]:
    return await update_user(session, user_id, {"is_active": is_active}, allow_admin_fields=True)


async def update_user_password(session: AsyncSession, user_id: str, password_hash: str) -> bool:
    """
    Update a user's password.

    Returns:
        True if successful, False if the user does not exist
    """
    result = await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(password_hash=password_hash, updated_at=utcnow())
    )
    await session.commit()
    return result.rowcount > 0


async def record_sign_in(session: AsyncSession, user_id: str) -> None:
    await session.execute(
        update(User).where(User.id == user_id).values(last_sign_in_at=utcnow())
    )
    await session.commit()


async def delete_user(session: AsyncSession, user_id: str) -> bool:
    """
    Delete a user account.

    Raises:
        DatabaseError: DB_CONSTRAINT_VIOLATION while the user still owns records
    """
    user = await session.get(User, user_id)
    if user is None:
        return False
    try:
        await session.execute(
            PasswordResetToken.__table__.delete().where(PasswordResetToken.user_id == user_id)
        )
        await session.delete(user)
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise DatabaseError(
            "User still owns records and cannot be deleted",
            ErrorCodes.DB_CONSTRAINT_VIOLATION,
            e,
        )
    await session.commit()
    logger.info(f"Deleted user {user_id}")
    return True


async def list_users(
    session: AsyncSession, page: int = 1, per_page: int = 50, search: Optional[str] = None
) -> Tuple[List[Dict], int]:
    """
    Page through users, optionally filtered by email/name substring.

    Returns:
        Tuple of (users, total count)
    """
    conditions = []
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        conditions.append(
            or_(
                User.email.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.username.ilike(pattern),
            )
        )

    count_query = select(func.count()).select_from(User)
    query = select(User).order_by(User.created_at.desc(), User.id)
    if conditions:
        count_query = count_query.where(*conditions)
        query = query.where(*conditions)

    total = (await session.execute(count_query)).scalar_one()
    result = await session.execute(query.offset((page - 1) * per_page).limit(per_page))
    return [_user_to_dict(u) for u in result.scalars().all()], total


async def upsert_oauth_user(session: AsyncSession, identity: Dict) -> Dict:
    """
    Find or create the local account for an OAuth identity (matched by email).
    """
    existing = await get_user_by_email(session, identity["email"])
    if existing:
        return existing
    return await create_user(
        session,
        email=identity["email"],
        password_hash=None,
        first_name=identity.get("first_name"),
        last_name=identity.get("last_name"),
        auth_provider=identity.get("provider") or "email",
    )


async def create_password_reset_token(
    session: AsyncSession, user_id: str, token: str, expires_at: datetime
) -> None:
    """Store a reset token, invalidating the user's earlier unused tokens."""
    await session.execute(
        update(PasswordResetToken)
        .where(PasswordResetToken.user_id == user_id, PasswordResetToken.used.is_(False))
        .values(used=True)
    )
    session.add(PasswordResetToken(user_id=user_id, token=token, expires_at=expires_at))
    await session.commit()


async def consume_password_reset_token(session: AsyncSession, token: str) -> Optional[str]:
    """
    Mark a reset token as used.

    Returns:
        The owning user_id, or None if the token is unknown, used or expired
    """
    result = await session.execute(
        select(PasswordResetToken).where(PasswordResetToken.token == token)
    )
    reset_token = result.scalar_one_or_none()
    if reset_token is None or reset_token.used:
        return None
    if ensure_aware(reset_token.expires_at) < utcnow():
        return None

    reset_token.used = True
    await session.commit()
    return reset_token.user_id
