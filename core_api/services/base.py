from core_api.entity_service import EntityService
from core_api.schemas import ContentTypeSchema
from core_api.services.sanitize import Sanitizer


class BaseService:
    """
    State shared by the single-type and collection-type services.

    The sanitizer is injected rather than looked up on the instance, so a
    service cannot end up writing with a different sanitizer than the one
    it exposes as ``sanitize_input``.
    """

    kind: str

    def __init__(
        self,
        model: ContentTypeSchema,
        entity_service: EntityService,
        sanitize: Sanitizer,
    ) -> None:
        self.model = model
        self.entity_service = entity_service
        self.sanitize_input = sanitize

    @property
    def model_name(self) -> str:
        return self.model.model_name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.model_name!r})"
