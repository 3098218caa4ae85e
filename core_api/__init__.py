from core_api.schemas import AttributeSpec, ContentKind, ContentTypeOptions, ContentTypeSchema

__all__ = ["AttributeSpec", "ContentKind", "ContentTypeOptions", "ContentTypeSchema"]
