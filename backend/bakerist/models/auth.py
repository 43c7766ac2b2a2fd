from __future__ import annotations

from ..extensions import db
from bakerist.time_utils import to_utc_z


ROLE_CUSTOMER = "customer"
ROLE_STAFF = "staff"
ROLE_ADMIN = "admin"
ROLES = (ROLE_CUSTOMER, ROLE_STAFF, ROLE_ADMIN)


class User(db.Model):
    """
    Customer, staff and admin accounts.

    Email is unique across all users. Accounts are never deleted; staff
    accounts are deactivated instead (is_active=False), which also blocks login.

    `permissions` and `department` are captured when an admin creates a staff
    account. Authorization only looks at `role`.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
        db.Index("ix_users_role_active", "role", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), nullable=False)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default=ROLE_CUSTOMER)

    # Delivery defaults (prefill checkout)
    contact_no = db.Column(db.String(32), nullable=True)
    barangay = db.Column(db.String(120), nullable=True)
    sitio = db.Column(db.String(120), nullable=True)

    preferences = db.Column(db.JSON, nullable=True)

    # Staff-only metadata
    permissions = db.Column(db.JSON, nullable=True)
    department = db.Column(db.String(64), nullable=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=True, onupdate=db.func.now())
    last_login_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role!r}>"

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "contact_no": self.contact_no,
            "barangay": self.barangay,
            "sitio": self.sitio,
            "preferences": self.preferences or {},
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "last_login_at": to_utc_z(self.last_login_at),
        }
        if self.role != ROLE_CUSTOMER:
            data["permissions"] = self.permissions or []
            data["department"] = self.department
            data["created_by_user_id"] = self.created_by_user_id
        return data


class SessionToken(db.Model):
    """
    Server-side login session.

    The plaintext token goes to the client; only its SHA-256 hash is stored
    here. `role` and `created_at` (login time) are captured when the session opens.

    Cart lines hang off the session and are removed with it.
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    role = db.Column(db.String(16), nullable=False)

    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "role": self.role,
            "login_time": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
        }
