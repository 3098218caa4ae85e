"""Content-type declarations shared by the test modules."""
from core_api.schemas import ContentTypeSchema


AUTHOR = ContentTypeSchema.model_validate({
    "model_name": "author",
    "kind": "collectionType",
    "attributes": {
        "name": {"type": "string", "required": True},
        "email": {"type": "email", "private": True},
    },
})

CATEGORY = ContentTypeSchema.model_validate({
    "model_name": "category",
    "attributes": {"label": {"type": "string"}},
})

ARTICLE = ContentTypeSchema.model_validate({
    "model_name": "article",
    "kind": "collectionType",
    "options": {"timestamps": True},
    "attributes": {
        "title": {"type": "string", "required": True},
        "body": {"type": "richtext"},
        "views": {"type": "integer"},
        "published": {"type": "boolean"},
        "createdBy": {"type": "string", "writable": False},
        "author": {"model": "author"},
        "categories": {"collection": "category", "autopopulate": False},
    },
})

HOMEPAGE = ContentTypeSchema.model_validate({
    "model_name": "homepage",
    "kind": "singleType",
    "options": {"timestamps": ["createdAt", "updatedAt"]},
    "attributes": {
        "title": {"type": "string"},
        "createdBy": {"type": "string", "writable": False},
        "hero": {"model": "article"},
    },
})

