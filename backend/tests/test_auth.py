"""
Authentication, session and permission tests.

Verifies:
- Registration validation and duplicate email rejection
- Login fails the same way for unknown email, wrong password and inactive user
- Passwords are stored as bcrypt hashes
- Sessions expire (absolute and idle), are revoked on logout and on deactivation
- Revoking a session drops its cart
- Role-based permission table; stored staff permissions are never consulted
- Admin self-protection on staff management
"""

from datetime import timedelta

import pytest

from bakerist.models import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_STAFF, User
from bakerist.permissions import (
    MANAGE_INVENTORY,
    MANAGE_SETTINGS,
    MANAGE_STAFF,
    PLACE_ORDERS,
    UPDATE_ORDER_STATUS,
    VIEW_ORDERS,
    VIEW_OWN_ORDERS,
    VIEW_PRODUCTS,
)
from bakerist.services import auth_service, cart_service, permission_service, session_service
from bakerist.services.auth_service import (
    AccountError,
    DuplicateEmailError,
    InvalidCredentialsError,
)
from bakerist.time_utils import utcnow
from bakerist.validation import ValidationError

from conftest import PASSWORD, make_user


def registration(**overrides):
    data = {
        "name": "Maria Santos",
        "email": "maria@example.com",
        "password": "secret123",
        "confirm_password": "secret123",
        "contact_no": "09181234567",
        "barangay": "Laurel",
        "sitio": "Purok 2",
    }
    data.update(overrides)
    return data


# =============================================================================
# REGISTRATION AND LOGIN
# =============================================================================


class TestRegistration:
    def test_register_creates_customer_and_session(self, db_session):
        user, session, token = auth_service.register(registration())

        assert user.role == ROLE_CUSTOMER
        assert user.is_active is True
        assert session.user_id == user.id
        assert session_service.validate_session(token).user.id == user.id

    def test_password_is_bcrypt_hashed(self, db_session):
        user, _session, _token = auth_service.register(registration())
        assert user.password_hash.startswith("$2")
        assert "secret123" not in user.password_hash

    def test_duplicate_email(self, db_session, customer):
        with pytest.raises(DuplicateEmailError):
            auth_service.register(registration(email=customer.email))
        assert db_session.query(User).count() == 1

    @pytest.mark.parametrize(
        "overrides,field",
        [
            ({"name": "M"}, "name"),
            ({"email": "maria@"}, "email"),
            ({"password": "12345", "confirm_password": "12345"}, "password"),
            ({"confirm_password": "secret124"}, "confirm_password"),
            ({"contact_no": "555-1234"}, "contact_no"),
        ],
    )
    def test_invalid_form(self, db_session, overrides, field):
        with pytest.raises(ValidationError) as exc:
            auth_service.register(registration(**overrides))
        assert exc.value.field == field
        assert db_session.query(User).count() == 0


class TestLogin:
    def test_login_opens_session(self, db_session, customer):
        user, session, token = auth_service.login(customer.email, PASSWORD)
        assert user.id == customer.id
        assert user.last_login_at is not None
        assert session.role == ROLE_CUSTOMER
        assert len(token) == 64

    @pytest.mark.parametrize(
        "email,password",
        [
            ("juan@example.com", "wrong-password"),
            ("nobody@example.com", PASSWORD),
            ("juan@example.com", ""),
        ],
    )
    def test_invalid_credentials(self, db_session, customer, email, password):
        with pytest.raises(InvalidCredentialsError) as exc:
            auth_service.login(email, password)
        assert str(exc.value) == "Invalid email or password"

    def test_inactive_user_cannot_login(self, db_session):
        make_user(db_session, email="gone@bakerist.local", role=ROLE_STAFF, is_active=False)
        with pytest.raises(InvalidCredentialsError):
            auth_service.login("gone@bakerist.local", PASSWORD)

    def test_non_bcrypt_hash_never_verifies(self):
        assert auth_service.verify_password("secret123", "a1b2c3d4") is False

    def test_change_password(self, db_session, customer):
        auth_service.change_password(customer.id, PASSWORD, "newsecret")
        assert auth_service.authenticate(customer.email, "newsecret").id == customer.id

    def test_change_password_requires_current(self, db_session, customer):
        with pytest.raises(ValidationError) as exc:
            auth_service.change_password(customer.id, "nope", "newsecret")
        assert exc.value.field == "current_password"

    def test_profile_rejects_role_change(self, db_session, customer):
        with pytest.raises(ValidationError):
            auth_service.update_profile(customer.id, {"role": ROLE_ADMIN})
        assert customer.role == ROLE_CUSTOMER


# =============================================================================
# SESSIONS
# =============================================================================


class TestSessions:
    def test_validate_returns_context(self, db_session, customer_session, customer):
        _session, token = customer_session
        ctx = session_service.validate_session(token)
        assert ctx.user_id == customer.id
        assert ctx.role == ROLE_CUSTOMER

    def test_unknown_token(self, db_session):
        assert session_service.validate_session("f" * 64) is None
        assert session_service.validate_session("") is None

    def test_absolute_expiry_revokes_and_clears_cart(self, db_session, customer_session, pandesal):
        session, token = customer_session
        cart_service.add_to_cart(session.id, pandesal.id, 3)
        session.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        assert session_service.validate_session(token) is None
        assert session.is_revoked is True
        assert session.revoked_reason == "Expired"
        assert cart_service.get_cart(session.id) == []

    def test_idle_expiry_revokes(self, db_session, customer_session):
        session, token = customer_session
        session.last_used_at = utcnow() - timedelta(hours=3)
        db_session.commit()

        assert session_service.validate_session(token) is None
        assert session.is_revoked is True
        assert session.revoked_reason == "Idle timeout"

    def test_logout_revokes_and_clears_cart(self, db_session, customer_session, pandesal):
        session, token = customer_session
        cart_service.add_to_cart(session.id, pandesal.id, 3)

        assert session_service.revoke_session(token) is True
        assert session_service.validate_session(token) is None
        assert cart_service.get_cart(session.id) == []

    def test_revoke_unknown_token(self, db_session):
        assert session_service.revoke_session("0" * 64) is False

    def test_deactivation_revokes_sessions(self, db_session, admin, staff):
        _session, token = session_service.create_session(staff)
        auth_service.set_staff_active(staff.id, False, actor=admin)

        assert session_service.validate_session(token) is None
        with pytest.raises(InvalidCredentialsError):
            auth_service.login(staff.email, PASSWORD)

    def test_inactive_user_cannot_open_session(self, db_session):
        user = make_user(db_session, email="gone@bakerist.local", is_active=False)
        with pytest.raises(ValueError):
            session_service.create_session(user)


# =============================================================================
# PERMISSIONS
# =============================================================================


class TestPermissions:
    @pytest.mark.parametrize(
        "role,permission,expected",
        [
            (ROLE_CUSTOMER, VIEW_PRODUCTS, True),
            (ROLE_CUSTOMER, PLACE_ORDERS, True),
            (ROLE_CUSTOMER, VIEW_OWN_ORDERS, True),
            (ROLE_CUSTOMER, VIEW_ORDERS, False),
            (ROLE_CUSTOMER, MANAGE_INVENTORY, False),
            (ROLE_STAFF, VIEW_ORDERS, True),
            (ROLE_STAFF, UPDATE_ORDER_STATUS, True),
            (ROLE_STAFF, MANAGE_INVENTORY, True),
            (ROLE_STAFF, PLACE_ORDERS, False),
            (ROLE_STAFF, MANAGE_STAFF, False),
            (ROLE_STAFF, MANAGE_SETTINGS, False),
            (ROLE_ADMIN, MANAGE_STAFF, True),
            (ROLE_ADMIN, MANAGE_SETTINGS, True),
            (ROLE_ADMIN, "anything_at_all", True),
        ],
    )
    def test_role_table(self, db_session, role, permission, expected):
        user = make_user(db_session, email=f"{role}@bakerist.local", role=role)
        assert permission_service.has_permission(user, permission) is expected

    def test_no_user_has_nothing(self):
        assert permission_service.has_permission(None, VIEW_PRODUCTS) is False

    def test_stored_staff_permissions_ignored(self, db_session):
        user = make_user(
            db_session, email="ana@bakerist.local", role=ROLE_STAFF, permissions=[MANAGE_STAFF, MANAGE_SETTINGS]
        )
        assert permission_service.has_permission(user, MANAGE_STAFF) is False
        assert permission_service.has_permission(user, MANAGE_SETTINGS) is False

    def test_admin_permission_list_expanded(self, db_session, admin):
        codes = permission_service.get_user_permissions(admin)
        assert MANAGE_STAFF in codes
        assert "all" not in codes


# =============================================================================
# STAFF MANAGEMENT
# =============================================================================


class TestStaffManagement:
    def test_create_staff_defaults(self, db_session, admin):
        staff = auth_service.create_staff_account(
            {"name": "Ana Reyes", "email": "ana@bakerist.local", "password": "secret123"},
            created_by=admin,
        )
        assert staff.role == ROLE_STAFF
        assert staff.department == "Operations"
        assert staff.created_by_user_id == admin.id

    def test_create_staff_rejects_customer_role(self, db_session, admin):
        with pytest.raises(ValidationError):
            auth_service.create_staff_account(
                {"name": "Ana Reyes", "email": "ana@bakerist.local", "password": "secret123", "role": ROLE_CUSTOMER},
                created_by=admin,
            )

    def test_create_staff_duplicate_email(self, db_session, admin, customer):
        with pytest.raises(DuplicateEmailError):
            auth_service.create_staff_account(
                {"name": "Juan", "email": customer.email, "password": "secret123"},
                created_by=admin,
            )

    def test_cannot_change_own_role(self, db_session, admin):
        with pytest.raises(AccountError):
            auth_service.update_staff_account(admin.id, {"role": ROLE_STAFF}, actor=admin)
        assert admin.role == ROLE_ADMIN

    def test_cannot_deactivate_self(self, db_session, admin):
        with pytest.raises(AccountError):
            auth_service.set_staff_active(admin.id, False, actor=admin)
        assert admin.is_active is True

    def test_promote_other_staff(self, db_session, admin, staff):
        updated = auth_service.update_staff_account(staff.id, {"role": ROLE_ADMIN}, actor=admin)
        assert updated.role == ROLE_ADMIN

    def test_reactivate(self, db_session, admin, staff):
        auth_service.set_staff_active(staff.id, False, actor=admin)
        auth_service.set_staff_active(staff.id, True, actor=admin)
        assert auth_service.authenticate(staff.email, PASSWORD).id == staff.id

    def test_list_staff_excludes_customers(self, db_session, admin, staff, customer):
        emails = [u.email for u in auth_service.list_staff_accounts()]
        assert customer.email not in emails
        assert set(emails) == {admin.email, staff.email}
