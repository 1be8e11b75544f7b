# =========================================================
# FILE: /adwall/services/form_schema_service.py
# =========================================================

import re
from typing import Any, Dict, List, Optional

from adwall.schemas.form_schema import (
    FieldError,
    FieldKind,
    FormField,
    FormSchema,
    RuleKind,
    SelectOption,
    ValidationRule,
)

AD_CATEGORIES = ["Tech", "Lifestyle", "Gaming", "Knowledge", "Other"]

URL_PATTERN = r"^(https?://|/).+"


def _required(message: str) -> ValidationRule:
    return ValidationRule(kind=RuleKind.REQUIRED, message=message)


def _max(n: int) -> ValidationRule:
    return ValidationRule(kind=RuleKind.MAX_LENGTH, value=n)


def _ad_fields(kind_label: str) -> List[FormField]:
    return [
        FormField(
            name="title", label="Ad title", type=FieldKind.TEXT,
            placeholder="Enter the ad title",
            rules=[_required("Title is required"), _max(100)],
        ),
        FormField(
            name="author", label="Publisher", type=FieldKind.TEXT,
            placeholder="Filled in automatically", disabled=True,
            rules=[_required("Publisher is required"), _max(50)],
        ),
        FormField(
            name="description", label="Copy", type=FieldKind.TEXTAREA,
            placeholder=f"Enter the {kind_label} copy",
            rules=[_required("Copy is required"), _max(500)],
        ),
        FormField(
            name="image_urls", label="Images", type=FieldKind.FILE, multiple=True,
            placeholder="Upload ad images",
            rules=[_required("At least one image is required")],
        ),
        FormField(
            name="video_urls", label="Videos", type=FieldKind.FILE, multiple=True,
            placeholder="Upload ad videos",
        ),
        FormField(
            name="target_url", label="Landing page", type=FieldKind.TEXT,
            placeholder="Link opened when the ad is clicked",
            rules=[
                _required("Landing page is required"),
                _max(255),
                ValidationRule(kind=RuleKind.PATTERN, value=URL_PATTERN, message="Must be a URL"),
            ],
        ),
        FormField(
            name="price", label="Bid per click", type=FieldKind.NUMBER,
            placeholder="Price charged per click",
            rules=[_required("Price is required")],
        ),
        FormField(
            name="category", label="Category", type=FieldKind.SELECT,
            options=[SelectOption(label=c, value=c) for c in AD_CATEGORIES],
        ),
    ]


FORM_SCHEMAS: Dict[str, FormSchema] = {
    "ad-form": FormSchema(id="ad-form", title="Create ad", fields=_ad_fields("ad")),
    "update-ad-form": FormSchema(id="update-ad-form", title="Update ad", fields=_ad_fields("promotion")),
}


def list_schemas() -> List[FormSchema]:
    return list(FORM_SCHEMAS.values())


def get_schema(schema_id: str) -> Optional[FormSchema]:
    return FORM_SCHEMAS.get(schema_id)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def _check(field: FormField, rule: ValidationRule, value: Any) -> Optional[str]:
    if rule.kind == RuleKind.REQUIRED:
        if _is_empty(value):
            return rule.message or f"{field.label} is required"
        return None

    if _is_empty(value):
        return None

    if rule.kind == RuleKind.PATTERN:
        if not re.match(str(rule.value), str(value)):
            return rule.message or f"{field.label} has an invalid format"
    elif rule.kind == RuleKind.MIN_LENGTH:
        if len(str(value)) < int(rule.value or 0):
            return rule.message or f"{field.label} must be at least {rule.value} characters"
    elif rule.kind == RuleKind.MAX_LENGTH:
        if len(str(value)) > int(rule.value or 0):
            return rule.message or f"{field.label} must be at most {rule.value} characters"
    return None


def validate(schema: FormSchema, payload: Dict[str, Any]) -> List[FieldError]:
    errors: List[FieldError] = []
    for field in schema.fields:
        if field.disabled:
            continue
        value = payload.get(field.name)
        if field.type == FieldKind.SELECT and not _is_empty(value) and field.options:
            if str(value) not in {o.value for o in field.options}:
                errors.append(FieldError(field=field.name, rule=RuleKind.PATTERN,
                                         message=f"{field.label} is not a valid option"))
                continue
        for rule in field.rules:
            message = _check(field, rule, value)
            if message:
                errors.append(FieldError(field=field.name, rule=rule.kind, message=message))
                break
    return errors
