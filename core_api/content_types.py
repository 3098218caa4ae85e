"""
Attribute metadata helpers for content-type schemas.

These functions answer questions about a ``ContentTypeSchema`` without
touching storage: which attributes a client may write, which are managed
by the system, which are relations. The sanitizer and the SQL entity
service both rely on them so that the two agree on what is writable.
"""
from core_api.schemas import ContentKind, ContentTypeSchema

ID_ATTRIBUTE = "id"
DEFAULT_TIMESTAMPS: tuple[str, str] = ("created_at", "updated_at")


def is_single_type(model: ContentTypeSchema) -> bool:
    return model.kind == ContentKind.SINGLE_TYPE.value


def is_collection_type(model: ContentTypeSchema) -> bool:
    return model.kind == ContentKind.COLLECTION_TYPE.value


def get_timestamps(model: ContentTypeSchema) -> list[str]:
    """Return the ``[created, updated]`` attribute names, or ``[]`` when disabled."""
    timestamps = model.options.timestamps
    if timestamps is True:
        return list(DEFAULT_TIMESTAMPS)
    if timestamps:
        return list(timestamps)
    return []


def get_non_writable_attributes(model: ContentTypeSchema) -> set[str]:
    """
    Return every attribute name that must never be accepted from input.

    That is the id, the primary key, both timestamp attributes and any
    attribute declared with ``writable: false``.
    """
    declared = {name for name, attr in model.attributes.items() if not attr.writable}
    return {ID_ATTRIBUTE, model.primary_key, *get_timestamps(model), *declared}


def get_writable_attributes(model: ContentTypeSchema) -> list[str]:
    non_writable = get_non_writable_attributes(model)
    return [name for name in model.attributes if name not in non_writable]


def get_private_attributes(model: ContentTypeSchema) -> list[str]:
    return [name for name, attr in model.attributes.items() if attr.private]


def get_relation_attributes(model: ContentTypeSchema) -> dict[str, str]:
    """Map each relation attribute name to its target content-type name."""
    return {
        name: attr.target
        for name, attr in model.attributes.items()
        if attr.is_relation
    }
