import logging

from taskflow.exceptions import Unauthorized
from taskflow.models.enums import Role
from taskflow.models.user import User
from taskflow.schemas.user import UserCreate, UserUpdate, PasswordUpdate
from taskflow.services import rules
from taskflow.services.access import load_actor
from taskflow.storage import Storage
from taskflow.utils.security import PasswordHasher, password_hasher

logger = logging.getLogger(__name__)


def _require_admin(actor: User, action: str):
    if not actor.is_admin:
        logger.warning("User %s is not an admin, cannot %s", actor.id, action)
        raise Unauthorized()


def _require_self_or_admin(actor: User, user_id: int):
    if not actor.is_admin and actor.id != user_id:
        logger.warning("User %s cannot modify user %s", actor.id, user_id)
        raise Unauthorized()


async def register_user(store: Storage, user_data: UserCreate, hasher: PasswordHasher = password_hasher) -> User:
    logger.info("Attempting to register new user: %s", user_data.username)

    async with store.transaction():
        user_data = rules.validate_payload(UserCreate, user_data)
        await rules.ensure_unique_username(store, user_data.username)
        await rules.ensure_unique_email(store, user_data.email)

        user = User(
            username=user_data.username,
            email=user_data.email,
            first_name=user_data.first_name,
            last_name=user_data.last_name,
            hashed_password=hasher.hash(user_data.password),
            role=user_data.role or Role.DEVELOPER,
            is_active=True if user_data.is_active is None else user_data.is_active,
        )
        user = await store.save(user)

    logger.info("Successfully registered user '%s' with ID: %s", user.username, user.id)
    return user


async def authenticate(store: Storage, username: str, password: str,
                       hasher: PasswordHasher = password_hasher) -> User | None:
    users = await store.find_by(User, username=username, limit=1)
    if not users or not hasher.verify(password, users[0].hashed_password):
        logger.warning("Authentication failed for username '%s'", username)
        return None
    return users[0]


async def find_by_id(store: Storage, user_id: int) -> User:
    logger.debug("Finding user by ID: %s", user_id)
    return await store.get(User, user_id)


async def find_by_username(store: Storage, username: str) -> User:
    logger.debug("Finding user by username: %s", username)
    return await store.find_by_unique_key(User, "username", username)


async def find_by_email(store: Storage, email: str) -> User:
    logger.debug("Finding user by email: %s", email)
    return await store.find_by_unique_key(User, "email", email)


async def find_all_users(store: Storage, actor_id: int, active_only: bool = False) -> list[User]:
    actor = await load_actor(store, actor_id)
    _require_admin(actor, "list users")
    if active_only:
        return await store.find_by(User, is_active=True)
    return await store.find_by(User)


async def find_users_by_role(store: Storage, actor_id: int, role: Role) -> list[User]:
    actor = await load_actor(store, actor_id)
    _require_admin(actor, "list users by role")
    return await store.find_by(User, role=role)


async def set_role(store: Storage, actor_id: int, user_id: int, role: Role) -> User:
    logger.info("Setting role of user %s to %s by user %s", user_id, role.name, actor_id)
    async with store.transaction():
        actor = await load_actor(store, actor_id)
        _require_admin(actor, "change roles")
        user = await store.get(User, user_id)
        user.role = role
        user = await store.save(user)
    return user


async def set_active(store: Storage, actor_id: int, user_id: int, active: bool) -> User:
    """
    Activate or deactivate an account.

    Deactivation never deletes anything: projects the user already owns and
    tasks already assigned stay as they are. It only stops the user from
    taking on new ones.
    """
    logger.info("%s user %s by user %s", "Activating" if active else "Deactivating", user_id, actor_id)
    async with store.transaction():
        actor = await load_actor(store, actor_id)
        _require_admin(actor, "change account activation")
        user = await store.get(User, user_id)
        user.is_active = active
        user = await store.save(user)
    return user


async def deactivate_user(store: Storage, actor_id: int, user_id: int) -> User:
    return await set_active(store, actor_id, user_id, False)


async def activate_user(store: Storage, actor_id: int, user_id: int) -> User:
    return await set_active(store, actor_id, user_id, True)


async def update_profile(store: Storage, actor_id: int, user_id: int, user_update: UserUpdate) -> User:
    logger.info("Updating profile of user %s by user %s", user_id, actor_id)
    async with store.transaction():
        actor = await load_actor(store, actor_id)
        _require_self_or_admin(actor, user_id)
        user = await store.get(User, user_id)

        user_update = rules.validate_payload(UserUpdate, user_update, exclude_unset=True)
        update_data = user_update.model_dump(exclude_unset=True, exclude_none=True)
        if "email" in update_data and update_data["email"] != user.email:
            await rules.ensure_unique_email(store, update_data["email"], exclude_id=user.id)

        # Only name and email fields; role, password and activation are separate operations
        for key in ("email", "first_name", "last_name"):
            if key in update_data:
                setattr(user, key, update_data[key])
        user = await store.save(user)
    return user


async def update_password(store: Storage, actor_id: int, user_id: int, password_update: PasswordUpdate,
                          hasher: PasswordHasher = password_hasher) -> User:
    logger.info("Updating password of user %s by user %s", user_id, actor_id)
    async with store.transaction():
        actor = await load_actor(store, actor_id)
        _require_self_or_admin(actor, user_id)
        user = await store.get(User, user_id)

        if not actor.is_admin:
            current = password_update.current_password or ""
            if not hasher.verify(current, user.hashed_password):
                logger.warning("Password change for user %s rejected: wrong current password", user_id)
                raise Unauthorized("Current password is incorrect")

        password_update = rules.validate_payload(PasswordUpdate, password_update)
        user.hashed_password = hasher.hash(password_update.new_password)
        user = await store.save(user)
    return user
