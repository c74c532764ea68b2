# Overview: Service-layer operations for accounts, companies and brands.

"""
Account Administration

WHO CREATES WHOM:
- superadmin creates admins and managers
- admin creates managers
- superadmin/admin create companies (with brands and a company login)
- a company user creates authorizer/creator logins for its own brand
- consumers self-register through OTP (see otp_service)
"""

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import User, Company, Brand
from ..permissions import (
    VALID_ROLES,
    ROLE_SUPERADMIN,
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_COMPANY,
    ROLE_AUTHORIZER,
    ROLE_CREATOR,
)
from ..validation import ValidationError, ConflictError, NotFoundError, AccessDeniedError, require_fields
from .auth_service import hash_password


PROFILE_FIELDS = ("name", "dob", "gender", "country", "state", "city")

# role of creator -> roles it may create through create-user
STAFF_CREATION_RULES = {
    ROLE_SUPERADMIN: (ROLE_ADMIN, ROLE_MANAGER),
    ROLE_ADMIN: (ROLE_MANAGER,),
}

BRAND_STAFF_ROLES = (ROLE_AUTHORIZER, ROLE_CREATOR)


class UserError(ValueError):
    """Raised for invalid account operations."""
    pass


class UserNotFoundError(UserError, NotFoundError):
    pass


class UserAccessError(UserError, AccessDeniedError):
    pass


def _normalize_email(email) -> str:
    value = str(email or "").strip().lower()
    if "@" not in value:
        raise ValidationError("A valid email is required")
    return value


def create_user(
    email: str,
    password: str,
    role: str,
    name: str | None = None,
    brand_id: int | None = None,
    company_id: int | None = None,
    created_by_user_id: int | None = None,
) -> User:
    """
    Create a password-login user.

    Raises ConflictError if the email is taken.
    """
    if role not in VALID_ROLES:
        raise ValidationError(f"Invalid role: {role}")
    email = _normalize_email(email)

    if db.session.query(User).filter_by(email=email).first():
        raise ConflictError("User already exists")

    user = User(
        email=email,
        password_hash=hash_password(password),
        role=role,
        name=name,
        brand_id=brand_id,
        company_id=company_id,
        created_by_user_id=created_by_user_id,
    )
    db.session.add(user)
    try:
        db.session.flush()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("User already exists")
    return user


def resolve_company(user: User) -> Company | None:
    """Company whose credit balance a brand user draws from."""
    if user.company_id:
        return db.session.get(Company, user.company_id)
    if user.brand_id:
        brand = db.session.get(Brand, user.brand_id)
        if brand:
            return brand.company
    return None


# =============================================================================
# PLATFORM STAFF
# =============================================================================

def create_staff_user(caller: User, data: dict) -> User:
    """Create an admin/manager following STAFF_CREATION_RULES."""
    require_fields(data, ("email", "password", "role"))
    role = data["role"]
    allowed = STAFF_CREATION_RULES.get(caller.role, ())
    if role not in allowed:
        raise UserAccessError(f"A {caller.role} cannot create {role} users")

    user = create_user(
        email=data["email"],
        password=data["password"],
        role=role,
        name=data.get("name"),
        created_by_user_id=caller.id,
    )
    db.session.commit()
    current_app.logger.info("User %s created %s %s", caller.id, role, user.email)
    return user


def list_staff_users(caller: User) -> list[User]:
    """superadmin: every admin and manager. admin: managers it created."""
    query = db.session.query(User)
    if caller.role == ROLE_SUPERADMIN:
        query = query.filter(User.role.in_((ROLE_ADMIN, ROLE_MANAGER)))
    else:
        query = query.filter(User.role == ROLE_MANAGER, User.created_by_user_id == caller.id)
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


# =============================================================================
# COMPANIES & BRANDS
# =============================================================================

COMPANY_FIELDS = {
    "legalEntity": "legal_entity",
    "industry": "industry",
    "country": "country",
    "city": "city",
    "cinGst": "cin_gst",
    "registerOfficeAddress": "register_office_address",
    "dispatchAddress": "dispatch_address",
    "email": "email",
    "phoneNumber": "phone_number",
    "contactPersonName": "contact_person_name",
    "website": "website",
}


def create_company(caller: User, data: dict) -> tuple[Company, list[Brand], User | None]:
    """
    Create a company with its brands and (optionally) its company login.

    Request shape:
    {
        "companyName": "...", "legalEntity": "...", ...company details,
        "brands": [{"brandName": "ACME", "brandLogo": "https://..."}],
        "loginEmail": "owner@acme.in", "loginPassword": "..."
    }

    brandName may be given at the top level instead of "brands". The
    company login is linked to the first brand.
    """
    require_fields(data, ("companyName",))

    company = Company(company_name=str(data["companyName"]).strip(), created_by_user_id=caller.id)
    for wire_name, attr in COMPANY_FIELDS.items():
        if data.get(wire_name) is not None:
            setattr(company, attr, data[wire_name])
    db.session.add(company)
    db.session.flush()

    brand_specs = data.get("brands") or []
    if not brand_specs and data.get("brandName"):
        brand_specs = [{"brandName": data["brandName"], "brandLogo": data.get("brandLogo")}]
    if not isinstance(brand_specs, list):
        raise ValidationError("brands must be a list")

    brands = []
    for spec in brand_specs:
        if not isinstance(spec, dict) or not str(spec.get("brandName") or "").strip():
            continue
        brand = Brand(
            brand_name=str(spec["brandName"]).strip(),
            brand_logo=spec.get("brandLogo"),
            company_id=company.id,
            created_by_user_id=caller.id,
        )
        db.session.add(brand)
        brands.append(brand)
    db.session.flush()

    login = None
    password = data.get("loginPassword") or data.get("password")
    if password:
        login = create_user(
            email=data.get("loginEmail") or data.get("email"),
            password=password,
            role=ROLE_COMPANY,
            name=data.get("contactPersonName") or company.company_name,
            brand_id=brands[0].id if brands else None,
            company_id=company.id,
            created_by_user_id=caller.id,
        )

    db.session.commit()
    current_app.logger.info(
        "Company %s (%s) created by user %s with %d brand(s)",
        company.id, company.company_name, caller.id, len(brands),
    )
    return company, brands, login


def list_companies() -> list[Company]:
    return db.session.query(Company).order_by(Company.created_at.desc(), Company.id.desc()).all()


def create_brand(caller: User, data: dict) -> Brand:
    require_fields(data, ("brandName", "companyId"))
    company = db.session.get(Company, data["companyId"])
    if not company:
        raise UserNotFoundError("Company not found")

    brand = Brand(
        brand_name=str(data["brandName"]).strip(),
        brand_logo=data.get("brandLogo"),
        company_id=company.id,
        created_by_user_id=caller.id,
    )
    db.session.add(brand)
    db.session.commit()
    return brand


def list_brands(company_id=None) -> list[Brand]:
    query = db.session.query(Brand)
    if company_id:
        query = query.filter(Brand.company_id == company_id)
    return query.order_by(Brand.brand_name).all()


def find_brand_by_name(name: str | None) -> Brand | None:
    """Case-insensitive brand lookup by display name."""
    if not name:
        return None
    return db.session.query(Brand).filter(
        db.func.lower(Brand.brand_name) == name.strip().lower()
    ).first()


# =============================================================================
# BRAND STAFF (authorizer / creator logins)
# =============================================================================

def create_brand_staff(caller: User, data: dict) -> User:
    require_fields(data, ("email", "password", "role"))
    role = data["role"]
    if role not in BRAND_STAFF_ROLES:
        raise ValidationError("Invalid role")
    if not caller.brand_id:
        raise UserAccessError("User is not linked to a brand")

    company = resolve_company(caller)
    user = create_user(
        email=data["email"],
        password=data["password"],
        role=role,
        name=data.get("name"),
        brand_id=caller.brand_id,
        company_id=company.id if company else None,
        created_by_user_id=caller.id,
    )
    db.session.commit()
    current_app.logger.info("Company user %s created %s %s", caller.id, role, user.email)
    return user


def list_brand_staff(caller: User) -> list[User]:
    if not caller.brand_id:
        return []
    return db.session.query(User).filter(
        User.brand_id == caller.brand_id,
        User.role.in_(BRAND_STAFF_ROLES),
    ).order_by(User.created_at.desc(), User.id.desc()).all()


# =============================================================================
# PROFILE
# =============================================================================

def update_profile(user: User, data: dict) -> User:
    """Update the caller's own profile fields. Unknown keys are ignored."""
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    for field in PROFILE_FIELDS:
        if field in data:
            value = data[field]
            setattr(user, field, str(value).strip() if value is not None else None)
    db.session.commit()
    return user
