# Overview: Service-layer operations for the global QR creation form schema.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import FormConfig, User
from ..models.forms import FIELD_TYPES, VARIANT_INPUT_TYPES, DEFAULT_STATIC_FIELDS
from ..validation import ValidationError


class FormConfigError(ValidationError):
    """Raised when a submitted form schema is invalid."""
    pass


VALIDATION_KEYS = ("minLength", "maxLength", "min", "max", "pattern")


def get_active_config() -> FormConfig:
    """The active form config, created with defaults on first read."""
    config = db.session.query(FormConfig).filter_by(is_active=True).order_by(FormConfig.id).first()
    if config is None:
        config = FormConfig(static_fields=dict(DEFAULT_STATIC_FIELDS))
        db.session.add(config)
        db.session.commit()
        current_app.logger.info("Created default QR creation form config")
    return config


def _text(value, label: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise FormConfigError(f"{label} is required")
    return text


def _options(value, label: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise FormConfigError(f"{label} options must be a list")
    return [str(option).strip() for option in value if str(option).strip()]


def _order(value, index: int) -> int:
    if value is None or value == "":
        return index
    if isinstance(value, bool):
        raise FormConfigError("order must be a number")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise FormConfigError("order must be a number")


def validate_custom_fields(fields) -> list[dict]:
    if fields is None:
        return []
    if not isinstance(fields, list):
        raise FormConfigError("customFields must be a list")

    cleaned = []
    seen = set()
    for index, field in enumerate(fields):
        if not isinstance(field, dict):
            raise FormConfigError(f"customFields[{index}] must be an object")
        name = _text(field.get("fieldName"), f"customFields[{index}].fieldName")
        if name.lower() in seen:
            raise FormConfigError(f"Duplicate field name: {name}")
        seen.add(name.lower())

        field_type = field.get("fieldType")
        if field_type not in FIELD_TYPES:
            raise FormConfigError(f"Invalid field type for {name}: {field_type}")

        options = _options(field.get("options"), name)
        if field_type == "dropdown" and not options:
            raise FormConfigError(f"Dropdown field {name} needs at least one option")

        rules = field.get("validation") or {}
        if not isinstance(rules, dict):
            raise FormConfigError(f"validation for {name} must be an object")

        cleaned.append({
            "fieldName": name,
            "fieldLabel": _text(field.get("fieldLabel"), f"customFields[{index}].fieldLabel"),
            "fieldType": field_type,
            "isMandatory": bool(field.get("isMandatory", False)),
            "options": options,
            "placeholder": str(field.get("placeholder") or ""),
            "order": _order(field.get("order"), index),
            "validation": {key: rules[key] for key in VALIDATION_KEYS if rules.get(key) is not None},
        })
    return sorted(cleaned, key=lambda item: item["order"])


def validate_variants(variants) -> list[dict]:
    if variants is None:
        return []
    if not isinstance(variants, list):
        raise FormConfigError("variants must be a list")

    cleaned = []
    seen = set()
    for index, variant in enumerate(variants):
        if not isinstance(variant, dict):
            raise FormConfigError(f"variants[{index}] must be an object")
        name = _text(variant.get("variantName"), f"variants[{index}].variantName")
        if name.lower() in seen:
            raise FormConfigError(f"Duplicate variant name: {name}")
        seen.add(name.lower())

        input_type = variant.get("inputType") or "text"
        if input_type not in VARIANT_INPUT_TYPES:
            raise FormConfigError(f"Invalid input type for variant {name}: {input_type}")
        options = _options(variant.get("options"), name)
        if input_type == "dropdown" and not options:
            raise FormConfigError(f"Dropdown variant {name} needs at least one option")

        cleaned.append({
            "variantName": name,
            "variantLabel": _text(variant.get("variantLabel"), f"variants[{index}].variantLabel"),
            "inputType": input_type,
            "options": options,
            "order": _order(variant.get("order"), index),
        })
    return sorted(cleaned, key=lambda item: item["order"])


def validate_static_fields(static_fields) -> dict:
    merged = {name: dict(flags) for name, flags in DEFAULT_STATIC_FIELDS.items()}
    if static_fields is None:
        return merged
    if not isinstance(static_fields, dict):
        raise FormConfigError("staticFields must be an object")
    for name, flags in static_fields.items():
        if name not in merged:
            raise FormConfigError(f"Unknown static field: {name}")
        if not isinstance(flags, dict):
            raise FormConfigError(f"staticFields.{name} must be an object")
        for key in ("enabled", "isMandatory"):
            if key in flags:
                merged[name][key] = bool(flags[key])
    return merged


def save_config(user: User, data: dict) -> FormConfig:
    """Validate and upsert the active form config."""
    if not isinstance(data, dict):
        raise FormConfigError("Request body must be a JSON object")

    custom_fields = validate_custom_fields(data.get("customFields"))
    variants = validate_variants(data.get("variants"))
    static_fields = validate_static_fields(data.get("staticFields"))

    config = db.session.query(FormConfig).filter_by(is_active=True).order_by(FormConfig.id).first()
    if config is None:
        config = FormConfig(created_by_user_id=user.id)
        db.session.add(config)

    if data.get("formName") is not None:
        config.form_name = _text(data["formName"], "formName")
    if data.get("description") is not None:
        config.description = str(data["description"])
    config.custom_fields = custom_fields
    config.variants = variants
    config.static_fields = static_fields
    config.updated_by_user_id = user.id
    db.session.commit()

    current_app.logger.info(
        "Form config updated by user %s: %d custom field(s), %d variant(s)",
        user.id, len(custom_fields), len(variants),
    )
    return config
