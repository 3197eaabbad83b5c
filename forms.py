"""Conversion between HTML form fields, stored task rows and view data.

Checkboxes arrive as a field that is either present (checked) or absent,
the database keeps ``complete`` as 0/1 and templates work with booleans.
The two ``*_stored`` functions are the only place those representations
meet.
"""
from typing import Any, Iterable, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from schemas import StoredTask, TaskRecord

FIELD_LABELS = {
    "task_title": "task title",
    "task_description": "task description",
}


def bool_to_stored(flag: bool) -> int:
    return 1 if flag is True else 0


def stored_to_bool(value: int) -> bool:
    if value == 1:
        return True
    if value == 0:
        return False
    raise ValueError(f"Stored flag must be 0 or 1, got {value!r}")


def checkbox_checked(value: Optional[Any]) -> bool:
    """A checkbox counts as ticked when its field was posted with a value"""
    return value is not None and value not in ("", "0")


class TaskSubmission(BaseModel):
    task_title: str = Field(..., min_length=2, max_length=255)
    task_description: str = Field(..., min_length=2)

    @field_validator("task_title", "task_description", mode="before")
    @classmethod
    def require_text(cls, v, info: ValidationInfo):
        if v is None or not str(v).strip():
            raise PydanticCustomError("required", "Field is required")
        # the description is stored trimmed, so measure it that way
        if info.field_name == "task_description":
            return str(v).strip()
        return str(v)


def _error_message(error: dict) -> str:
    label = FIELD_LABELS.get(error["loc"][0], str(error["loc"][0]))
    ctx = error.get("ctx") or {}
    if error["type"] in ("missing", "required"):
        return f"The {label} field is required."
    if error["type"] == "string_too_short":
        return f"The {label} field must be at least {ctx['min_length']} characters in length."
    if error["type"] == "string_too_long":
        return f"The {label} field cannot exceed {ctx['max_length']} characters in length."
    return f"The {label} field is invalid."


def validate_submission(raw_fields: Mapping[str, Any]) -> dict[str, list[str]]:
    """Check a posted task form, returning error messages keyed by field.

    An empty dict means the submission passed.
    """
    data = {name: raw_fields.get(name) for name in FIELD_LABELS}
    try:
        TaskSubmission(**data)
    except ValidationError as e:
        errors: dict[str, list[str]] = {}
        for error in e.errors():
            errors.setdefault(error["loc"][0], []).append(_error_message(error))
        return errors
    return {}


def from_submission(raw_fields: Mapping[str, Any]) -> TaskRecord:
    """Build the record to store from an already validated form post"""
    return TaskRecord(
        task_title=raw_fields.get("task_title") or "",
        task_description=(raw_fields.get("task_description") or "").strip(),
        complete=bool_to_stored(checkbox_checked(raw_fields.get("complete"))),
    )


def from_posted_or_defaults(raw_fields: Optional[Mapping[str, Any]] = None) -> dict:
    """Values for a new form, or for redisplaying a rejected one"""
    raw_fields = raw_fields or {}
    return {
        "task_title": raw_fields.get("task_title") or "",
        "task_description": raw_fields.get("task_description") or "",
        "complete": checkbox_checked(raw_fields.get("complete")),
    }


def from_stored(record: StoredTask) -> dict:
    data = record.model_dump()
    data["complete"] = stored_to_bool(record.complete)
    data["complete_formatted"] = "Complete" if data["complete"] else "Incomplete"
    return data


def records_for_display(rows: Iterable[StoredTask]) -> list[dict]:
    return [from_stored(row) for row in rows]
