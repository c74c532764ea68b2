from __future__ import annotations

from ..extensions import db
from authentiks.time_utils import to_utc_z, utcnow


class Company(db.Model):
    """
    Enterprise customer that owns brands and a QR credit balance.

    WHY: Credits are bought and spent per company; every brand user of the
    company draws from the same balance.
    """
    __tablename__ = "companies"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    company_name = db.Column(db.String(255), nullable=False)
    legal_entity = db.Column(db.String(255), nullable=True)
    industry = db.Column(db.String(128), nullable=True)
    country = db.Column(db.String(64), nullable=True)
    city = db.Column(db.String(128), nullable=True)
    cin_gst = db.Column(db.String(64), nullable=True)
    register_office_address = db.Column(db.Text, nullable=True)
    dispatch_address = db.Column(db.Text, nullable=True)
    email = db.Column(db.String(255), nullable=True)
    phone_number = db.Column(db.String(32), nullable=True)
    contact_person_name = db.Column(db.String(255), nullable=True)
    website = db.Column(db.String(255), nullable=True)

    # Running QR credit balance (never negative; see credit_service)
    qr_credits = db.Column(db.Integer, nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "companyName": self.company_name,
            "legalEntity": self.legal_entity,
            "industry": self.industry,
            "country": self.country,
            "city": self.city,
            "cinGst": self.cin_gst,
            "registerOfficeAddress": self.register_office_address,
            "dispatchAddress": self.dispatch_address,
            "email": self.email,
            "phoneNumber": self.phone_number,
            "contactPersonName": self.contact_person_name,
            "website": self.website,
            "qrCredits": self.qr_credits,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class Brand(db.Model):
    """A product brand. Orders, QR codes and brand users are scoped to one."""
    __tablename__ = "brands"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    brand_name = db.Column(db.String(255), nullable=False, index=True)
    brand_logo = db.Column(db.String(512), nullable=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    created_by_user_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    company = db.relationship("Company", backref=db.backref("brands", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "brandName": self.brand_name,
            "brandLogo": self.brand_logo,
            "companyId": self.company_id,
            "createdAt": to_utc_z(self.created_at),
        }


class User(db.Model):
    """
    Accounts for every role.

    Staff (superadmin/admin/manager and brand users) log in with email and
    password. Consumers (role "user") log in with a mobile OTP and have no
    password.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_role", "role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=True, unique=True)
    mobile = db.Column(db.String(32), nullable=True, unique=True)

    # Bcrypt hashed password (staff only)
    password_hash = db.Column(db.String(255), nullable=True)

    role = db.Column(db.String(32), nullable=False, default="user")

    # Profile
    name = db.Column(db.String(255), nullable=True)
    dob = db.Column(db.String(32), nullable=True)
    gender = db.Column(db.String(32), nullable=True)
    country = db.Column(db.String(64), nullable=True)
    state = db.Column(db.String(64), nullable=True)
    city = db.Column(db.String(128), nullable=True)

    # Brand users only
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=True, index=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True, index=True)

    created_by_user_id = db.Column(db.Integer, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_login_at = db.Column(db.DateTime, nullable=True)

    brand = db.relationship("Brand", foreign_keys=[brand_id])
    company = db.relationship("Company", foreign_keys=[company_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "mobile": self.mobile,
            "role": self.role,
            "name": self.name,
            "dob": self.dob,
            "gender": self.gender,
            "country": self.country,
            "state": self.state,
            "city": self.city,
            "brandId": self.brand_id,
            "brandName": self.brand.brand_name if self.brand else None,
            "companyId": self.company_id,
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
            "lastLoginAt": to_utc_z(self.last_login_at),
        }


class SessionToken(db.Model):
    """
    Bearer session token.

    SECURITY NOTES:
    - Only the SHA-256 hash of the token is stored
    - Role is snapshotted at login; a role change needs a new login
    - Revocable on logout
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_revoked", "user_id", "revoked_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    role = db.Column(db.String(32), nullable=False)

    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    last_used_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
    revoked_at = db.Column(db.DateTime, nullable=True)

    user = db.relationship("User", backref=db.backref("sessions", lazy=True))


class OtpChallenge(db.Model):
    """One-time password issued to a mobile number (bcrypt hashed)."""
    __tablename__ = "otp_challenges"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    mobile = db.Column(db.String(32), nullable=False, index=True)
    code_hash = db.Column(db.String(255), nullable=False)
    attempts = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    consumed_at = db.Column(db.DateTime, nullable=True)
