"""
Input sanitization for content-type payloads.

A sanitized payload is a fresh dict holding every key of the input except
those ``get_non_writable_attributes`` reports for the schema. Unknown keys
are kept; rejecting them is the entity service's call.
"""
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from pydantic import BaseModel

from core_api.content_types import get_non_writable_attributes
from core_api.schemas import ContentTypeSchema

Payload = Mapping[str, Any] | BaseModel | None


class Sanitizer(Protocol):
    def __call__(self, data: Payload) -> dict[str, Any]: ...


def sanitize_input(
    data: Payload,
    model: ContentTypeSchema,
    get_non_writable: Callable[[ContentTypeSchema], set[str]] = get_non_writable_attributes,
) -> dict[str, Any]:
    """Return a copy of *data* without the attributes clients may not set."""
    if data is None:
        return {}
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    non_writable = get_non_writable(model)
    return {key: value for key, value in data.items() if key not in non_writable}


def make_sanitizer(
    model: ContentTypeSchema,
    get_non_writable: Callable[[ContentTypeSchema], set[str]] = get_non_writable_attributes,
) -> Sanitizer:
    """Bind ``sanitize_input`` to *model*."""

    def sanitizer(data: Payload) -> dict[str, Any]:
        return sanitize_input(data, model, get_non_writable)

    return sanitizer
