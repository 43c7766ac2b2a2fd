# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication and account management.

Every order belongs to an account. Passwords are hashed with bcrypt
(salted, cost factor 12).

ACCOUNTS:
- Customers self-register and are logged in immediately.
- Staff and admin accounts are created by an admin.
- Accounts are never deleted. Deactivation blocks login and ends every open
  session of that user.
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User, ROLE_CUSTOMER, ROLE_STAFF, ROLE_ADMIN
from ..repositories import UserRepository
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    is_valid_email,
    is_valid_phone,
)
from bakerist.time_utils import utcnow
from . import session_service


MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2

PROFILE_FIELDS = {"name", "contact_no", "barangay", "sitio", "preferences"}
STAFF_ROLES = (ROLE_STAFF, ROLE_ADMIN)
STAFF_FIELDS = {"name", "contact_no", "role", "permissions", "department"}


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""

    def __init__(self, message: str):
        super().__init__(message, field="password")


class DuplicateEmailError(ConflictError):
    """Raised when an email is already registered."""

    def __init__(self, email: str):
        super().__init__("Email already registered")
        self.email = email


class InvalidCredentialsError(ValueError):
    """Unknown email, wrong password or inactive account. Deliberately vague."""

    def __init__(self):
        super().__init__("Invalid email or password")


class AccountError(ValueError):
    """Raised when an account operation breaks a self-protection rule."""


def validate_password_strength(password: str | None) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt with cost factor 12.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=12)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Anything that is not a bcrypt hash never verifies.
    """
    if not password or not password_hash or not password_hash.startswith("$2"):
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def validate_registration(data: dict) -> None:
    """
    Check a registration form. Raises ValidationError naming the first bad field.
    """
    name = (data.get("name") or "").strip()
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationError(
            f"Name must be at least {MIN_NAME_LENGTH} characters long", field="name"
        )

    if not is_valid_email(data.get("email")):
        raise ValidationError("Please enter a valid email address", field="email")

    validate_password_strength(data.get("password"))

    if data.get("password") != data.get("confirm_password"):
        raise ValidationError("Passwords do not match", field="confirm_password")

    if not is_valid_phone(data.get("contact_no")):
        raise ValidationError(
            "Please enter a valid Philippine phone number", field="contact_no"
        )


def register(
    data: dict,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
    users: UserRepository | None = None,
):
    """
    Register a customer and open a session for them.

    Returns (user, session, plaintext_token).

    Raises:
        ValidationError: form problems (field attribute names the input)
        DuplicateEmailError: email already registered
    """
    users = users or UserRepository()
    validate_registration(data)

    email = data["email"].strip()
    if users.email_exists(email):
        raise DuplicateEmailError(email)

    user = User(
        name=data["name"].strip(),
        email=email,
        password_hash=hash_password(data["password"]),
        role=ROLE_CUSTOMER,
        contact_no=(data.get("contact_no") or "").strip(),
        barangay=(data.get("barangay") or "").strip(),
        sitio=(data.get("sitio") or "").strip(),
        is_active=True,
        preferences={
            "newsletter": bool(data.get("newsletter", False)),
            "sms_notifications": True,
        },
    )
    users.add(user)
    users.session.flush()

    session, token = session_service.create_session(
        user,
        user_agent=user_agent,
        ip_address=ip_address,
        commit=False,
    )
    users.session.commit()

    current_app.logger.info("Registered customer %s (id=%s)", user.email, user.id)
    return user, session, token


def authenticate(email: str, password: str, *, users: UserRepository | None = None) -> User:
    """
    Resolve credentials to an active user.

    Raises InvalidCredentialsError when the email is unknown, the account is
    inactive or the password does not match.
    """
    users = users or UserRepository()
    user = users.get_by_email((email or "").strip())

    if user is None or not user.is_active:
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        raise InvalidCredentialsError()
    return user


def login(
    email: str,
    password: str,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
    users: UserRepository | None = None,
):
    """
    Authenticate and open a session.

    Returns (user, session, plaintext_token).
    """
    users = users or UserRepository()
    user = authenticate(email, password, users=users)

    user.last_login_at = utcnow()
    session, token = session_service.create_session(
        user,
        user_agent=user_agent,
        ip_address=ip_address,
        commit=False,
    )
    users.session.commit()
    return user, session, token


def get_user(user_id: int, *, users: UserRepository | None = None) -> User:
    users = users or UserRepository()
    user = users.get(user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def update_profile(user_id: int, updates: dict, *, users: UserRepository | None = None) -> User:
    """
    Update the caller's own profile. Only name, contact_no, barangay, sitio
    and preferences are writable here.
    """
    users = users or UserRepository()
    user = get_user(user_id, users=users)

    for key in updates:
        if key not in PROFILE_FIELDS:
            raise ValidationError(f"Field not allowed: {key}", field=key)

    if "name" in updates:
        name = (updates["name"] or "").strip()
        if len(name) < MIN_NAME_LENGTH:
            raise ValidationError(
                f"Name must be at least {MIN_NAME_LENGTH} characters long", field="name"
            )
        user.name = name
    if "contact_no" in updates:
        if not is_valid_phone(updates["contact_no"]):
            raise ValidationError(
                "Please enter a valid Philippine phone number", field="contact_no"
            )
        user.contact_no = updates["contact_no"].strip()
    if "barangay" in updates:
        user.barangay = (updates["barangay"] or "").strip()
    if "sitio" in updates:
        user.sitio = (updates["sitio"] or "").strip()
    if "preferences" in updates:
        if not isinstance(updates["preferences"], dict):
            raise ValidationError("preferences must be an object", field="preferences")
        user.preferences = {**(user.preferences or {}), **updates["preferences"]}

    user.updated_at = utcnow()
    users.session.commit()
    return user


def change_password(
    user_id: int,
    current_password: str,
    new_password: str,
    *,
    users: UserRepository | None = None,
) -> User:
    users = users or UserRepository()
    user = get_user(user_id, users=users)

    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect", field="current_password")

    user.password_hash = hash_password(new_password)
    user.updated_at = utcnow()
    users.session.commit()
    return user


# -- Staff management (admin only; enforced by callers via MANAGE_STAFF) --

def create_staff_account(
    data: dict,
    *,
    created_by: User,
    users: UserRepository | None = None,
) -> User:
    """
    Create a staff (default) or admin account.

    `permissions` and `department` are stored as provided.
    """
    users = users or UserRepository()

    name = (data.get("name") or "").strip()
    if len(name) < MIN_NAME_LENGTH:
        raise ValidationError(
            f"Name must be at least {MIN_NAME_LENGTH} characters long", field="name"
        )
    email = (data.get("email") or "").strip()
    if not is_valid_email(email):
        raise ValidationError("Please enter a valid email address", field="email")

    role = data.get("role") or ROLE_STAFF
    if role not in STAFF_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(STAFF_ROLES)}", field="role")

    permissions = data.get("permissions") or []
    if not isinstance(permissions, list):
        raise ValidationError("permissions must be a list", field="permissions")

    if users.email_exists(email):
        raise DuplicateEmailError(email)

    staff = User(
        name=name,
        email=email,
        password_hash=hash_password(data.get("password")),
        role=role,
        contact_no=(data.get("contact_no") or "").strip(),
        barangay="",
        sitio="",
        is_active=True,
        permissions=permissions,
        department=data.get("department") or "Operations",
        created_by_user_id=created_by.id,
    )
    users.add(staff)
    users.session.commit()

    current_app.logger.info(
        "Staff account %s (%s) created by user %s", staff.email, staff.role, created_by.id
    )
    return staff


def list_staff_accounts(*, users: UserRepository | None = None) -> list[User]:
    users = users or UserRepository()
    return users.list(roles=STAFF_ROLES)


def _get_staff(staff_id: int, users: UserRepository) -> User:
    staff = users.get(staff_id)
    if staff is None or staff.role not in STAFF_ROLES:
        raise NotFoundError("Staff account", staff_id)
    return staff


def update_staff_account(
    staff_id: int,
    updates: dict,
    *,
    actor: User,
    users: UserRepository | None = None,
) -> User:
    """
    Edit a staff/admin account. An admin cannot change their own role.
    """
    users = users or UserRepository()
    staff = _get_staff(staff_id, users)

    for key in updates:
        if key not in STAFF_FIELDS:
            raise ValidationError(f"Field not allowed: {key}", field=key)

    if "role" in updates:
        if updates["role"] not in STAFF_ROLES:
            raise ValidationError(f"role must be one of: {', '.join(STAFF_ROLES)}", field="role")
        if staff.id == actor.id and updates["role"] != actor.role:
            raise AccountError("Cannot change your own role")
        staff.role = updates["role"]

    if "name" in updates:
        name = (updates["name"] or "").strip()
        if len(name) < MIN_NAME_LENGTH:
            raise ValidationError(
                f"Name must be at least {MIN_NAME_LENGTH} characters long", field="name"
            )
        staff.name = name
    if "contact_no" in updates:
        staff.contact_no = (updates["contact_no"] or "").strip()
    if "permissions" in updates:
        if not isinstance(updates["permissions"], list):
            raise ValidationError("permissions must be a list", field="permissions")
        staff.permissions = updates["permissions"]
    if "department" in updates:
        staff.department = updates["department"]

    staff.updated_at = utcnow()
    users.session.commit()
    return staff


def set_staff_active(
    staff_id: int,
    is_active: bool,
    *,
    actor: User,
    users: UserRepository | None = None,
) -> User:
    """
    Activate or deactivate a staff/admin account.

    Deactivation revokes every open session of that account. An admin cannot
    deactivate their own account.
    """
    users = users or UserRepository()
    staff = _get_staff(staff_id, users)

    if not is_active and staff.id == actor.id:
        raise AccountError("Cannot deactivate your own account")

    staff.is_active = bool(is_active)
    staff.updated_at = utcnow()

    if not staff.is_active:
        session_service.revoke_all_user_sessions(
            staff.id, reason="Account deactivated", commit=False
        )

    users.session.commit()
    current_app.logger.info(
        "Staff account %s %s by user %s",
        staff.id,
        "activated" if staff.is_active else "deactivated",
        actor.id,
    )
    return staff


def ensure_admin(name: str, email: str, password: str) -> tuple[User, bool]:
    """
    Create the first admin account if the email is not registered.

    Returns (user, created).
    """
    users = UserRepository()
    existing = users.get_by_email(email)
    if existing is not None:
        return existing, False

    admin = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=ROLE_ADMIN,
        is_active=True,
        permissions=[],
        department="Management",
    )
    users.add(admin)
    db.session.commit()
    return admin, True
