"""
Task form validation.

Runs synchronously before any request is dispatched. A form that fails
validation never reaches the network.
"""
from typing import Dict, Union

from .schema import Task, TaskFormData

TITLE_MIN_LENGTH = 3
DESCRIPTION_MIN_LENGTH = 10


class ValidationError(Exception):
    """Raised when a task form fails validation. `errors` maps field → message."""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.errors.items()))


def validate_form(form: Union[TaskFormData, Task]) -> Dict[str, str]:
    """
    Check title and description of a form (or a full task being edited).

    Returns:
        dict of field name → user-facing message; empty when the form is valid.
    """
    errors = {}

    title = (form.title or "").strip()
    if not title:
        errors["title"] = "Title is required"
    elif len(title) < TITLE_MIN_LENGTH:
        errors["title"] = f"Title must be at least {TITLE_MIN_LENGTH} characters"

    description = (form.description or "").strip()
    if not description:
        errors["description"] = "Description is required"
    elif len(description) < DESCRIPTION_MIN_LENGTH:
        errors["description"] = (
            f"Description must be at least {DESCRIPTION_MIN_LENGTH} characters"
        )

    return errors


def ensure_valid(form: Union[TaskFormData, Task]) -> None:
    """Raise ValidationError if the form has any field errors."""
    errors = validate_form(form)
    if errors:
        raise ValidationError(errors)
