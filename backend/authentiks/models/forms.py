from __future__ import annotations

from ..extensions import db
from authentiks.time_utils import to_utc_z, utcnow


FIELD_TYPES = ("text", "number", "dropdown", "file", "image", "textarea", "date", "email", "phone")
VARIANT_INPUT_TYPES = ("color", "text", "dropdown")

DEFAULT_STATIC_FIELDS = {
    "brand": {"enabled": True, "isMandatory": True},
    "mfdOn": {"enabled": True, "isMandatory": True},
    "bestBefore": {"enabled": True, "isMandatory": True},
}


class FormConfig(db.Model):
    """Global schema of the QR creation form (one active row)."""
    __tablename__ = "form_configs"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    form_name = db.Column(db.String(128), nullable=False, default="QR Creation Form")
    description = db.Column(db.Text, nullable=False, default="")
    custom_fields = db.Column(db.JSON, nullable=False, default=list)
    static_fields = db.Column(db.JSON, nullable=False, default=lambda: dict(DEFAULT_STATIC_FIELDS))
    variants = db.Column(db.JSON, nullable=False, default=list)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    updated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "formName": self.form_name,
            "description": self.description,
            "customFields": list(self.custom_fields or []),
            "staticFields": dict(self.static_fields or {}),
            "variants": list(self.variants or []),
            "isActive": self.is_active,
            "updatedAt": to_utc_z(self.updated_at),
        }
