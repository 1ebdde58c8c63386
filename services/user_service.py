from sqlalchemy.exc import IntegrityError

from models import db
from models.user import User
from repositories import users as user_repo
from security.password import hash_password
from security.password_policy import validate_password
from security.rbac import ensure_admin, ensure_admin_or_owner
from services.errors import (
    AccessDeniedError,
    ConflictError,
    DuplicateUserInfoError,
    InvalidInputError,
    UserNotFoundError,
)
from services.requester import ADMIN, ALL_ROLES, CLIENT
from utils.audit import log_event
from utils.time import utcnow


def _is_valid_email(email: str) -> bool:
    return isinstance(email, str) and "@" in email and len(email) <= 255


def _clean_username(username):
    if not isinstance(username, str) or not username.strip():
        raise InvalidInputError("Username is required.")
    username = username.strip()
    if len(username) > 80:
        raise InvalidInputError("Username must be at most 80 characters.")
    return username


def _clean_email(email):
    email = (email or "").strip().lower() if isinstance(email, str) else email
    if not _is_valid_email(email):
        raise InvalidInputError("Invalid email.")
    return email


def _check_password(password):
    valid, errors = validate_password(password)
    if not valid:
        raise InvalidInputError("Password does not meet policy: " + "; ".join(errors))


def _resolve_roles(role_names):
    names = {str(n).strip().upper() for n in role_names if str(n).strip()}
    unknown = names - set(ALL_ROLES)
    if unknown:
        raise InvalidInputError(f"Unknown role(s): {', '.join(sorted(unknown))}")
    roles = user_repo.find_roles(names)
    if len(roles) != len(names):
        raise InvalidInputError("Roles are not seeded; run the application once to create them.")
    return roles


def _load(user_id):
    user = user_repo.find_user_by_id(user_id)
    if not user:
        raise UserNotFoundError(f"User with id {user_id} not found.")
    return user


def _save_new(user, requester_id, action):
    try:
        user_repo.save_user(user)
        log_event(action, user_id=requester_id or user.id, entity="user", entity_id=user.id, commit=False)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateUserInfoError("Username or email already in use.")
    return user


def register_user(username, email, password):
    """Self-service sign up; always a CLIENT."""
    return create_user(None, username, email, password, roles=[CLIENT], _self_service=True)


def create_user(requester, username, email, password, roles=None, is_active=True, _self_service=False):
    if not _self_service:
        ensure_admin(requester, "Only administrators can create users.")

    username = _clean_username(username)
    email = _clean_email(email)
    _check_password(password)

    if user_repo.exists_by_username(username):
        raise DuplicateUserInfoError("Username already exists.")
    if user_repo.exists_by_email(email):
        raise DuplicateUserInfoError("Email already exists.")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        is_active=bool(is_active),
        created_at=utcnow(),
    )
    user.roles = _resolve_roles(roles or [CLIENT])
    return _save_new(
        user,
        requester.user_id if requester else None,
        "REGISTER_SUCCESS" if _self_service else "USER_CREATE",
    )


def get_user(requester, user_id):
    ensure_admin_or_owner(requester, user_id, "You can only view your own profile.")
    return _load(user_id)


def update_user(requester, user_id, username=None, email=None, password=None, roles=None, is_active=None):
    """Patch a user. Only administrators may change roles or the active flag."""
    ensure_admin_or_owner(requester, user_id, "You do not have permission to update this user.")
    user = _load(user_id)

    if not requester.is_admin:
        if roles is not None and set(roles) != user.role_names:
            raise AccessDeniedError("You do not have permission to change roles.")
        if is_active is not None and bool(is_active) != user.is_active:
            raise AccessDeniedError("You do not have permission to change the active state.")

    if username is not None:
        username = _clean_username(username)
        if username != user.username and user_repo.exists_by_username(username, exclude_user_id=user.id):
            raise DuplicateUserInfoError(f"The username '{username}' is already in use.")
    if email is not None:
        email = _clean_email(email)
        if email != user.email and user_repo.exists_by_email(email, exclude_user_id=user.id):
            raise DuplicateUserInfoError(f"The email '{email}' is already in use.")
    if password is not None:
        _check_password(password)
    new_roles = None
    if requester.is_admin and roles:
        new_roles = _resolve_roles(roles)
        if user.id == requester.user_id and ADMIN not in {r.name for r in new_roles}:
            raise AccessDeniedError("Cannot remove your own ADMIN role.")

    if username is not None:
        user.username = username
    if email is not None:
        user.email = email
    if password is not None:
        user.password_hash = hash_password(password)
    if new_roles is not None:
        user.roles = new_roles
    if requester.is_admin and is_active is not None:
        user.is_active = bool(is_active)

    try:
        user_repo.save_user(user)
        log_event("USER_UPDATE", user_id=requester.user_id, entity="user", entity_id=user.id, commit=False)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise DuplicateUserInfoError("Username or email already in use.")
    return user


def delete_user(requester, user_id):
    ensure_admin_or_owner(requester, user_id, "You do not have permission to delete this user.")
    user = _load(user_id)
    if user_repo.has_dependents(user.id):
        raise ConflictError("User still owns services, bookings or reservations; deactivate the account instead.")
    user_repo.delete_user(user)
    log_event("USER_DELETE", user_id=requester.user_id, entity="user", entity_id=user_id, commit=False)
    db.session.commit()
    return True


def list_users(requester, role=None):
    ensure_admin(requester, "Only administrators can list users.")
    if role is not None and role.strip().upper() not in ALL_ROLES:
        raise InvalidInputError(f"Unknown role: {role}")
    return user_repo.list_users(role=role.strip().upper() if role else None)


def find_public_providers(search=None):
    """Active providers whose username contains ``search``. Needs no session."""
    term = search.strip() if isinstance(search, str) else ""
    return user_repo.find_public_providers(search=term or None)
