from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContentKind(str, Enum):
    SINGLE_TYPE = "singleType"
    COLLECTION_TYPE = "collectionType"


# --- Attributes ---

class AttributeSpec(BaseModel):
    type: str | None = None
    required: bool = False
    writable: bool = True
    private: bool = False
    # Relations: ``model`` targets a single entry, ``collection`` many.
    model: str | None = None
    collection: str | None = None
    autopopulate: bool = True
    model_config = ConfigDict(frozen=True, extra="allow")

    @property
    def is_relation(self) -> bool:
        return self.model is not None or self.collection is not None

    @property
    def target(self) -> str | None:
        return self.model or self.collection


# --- Content type ---

class ContentTypeOptions(BaseModel):
    # ``True`` means the default ``created_at`` / ``updated_at`` pair.
    timestamps: bool | tuple[str, str] = False
    model_config = ConfigDict(frozen=True, extra="allow")


class ContentTypeSchema(BaseModel):
    """
    Static description of one content type.

    ``kind`` is kept as a plain string so that declarations with an
    unrecognised kind can still be loaded; the service composer decides
    what to do with them.
    """

    model_name: str = Field(min_length=1)
    kind: str = ContentKind.COLLECTION_TYPE.value
    primary_key: str = "id"
    attributes: dict[str, AttributeSpec] = {}
    options: ContentTypeOptions = ContentTypeOptions()
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    @field_validator("kind", mode="before")
    @classmethod
    def _kind_value(cls, value):
        if isinstance(value, Enum):
            return value.value
        return value
