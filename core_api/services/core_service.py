"""
Service composer: builds the default service for a content type.

``create_core_service`` chooses the service class from ``model.kind`` and
hands it a sanitizer bound to the same schema. ``build_services`` does
this once per declared content type at startup; the resulting services
are stateless and live for the whole process.
"""
import logging
from collections.abc import Callable, Iterable

from core_api.config import settings
from core_api.content_types import get_non_writable_attributes
from core_api.entity_service import EntityService
from core_api.exceptions import DuplicateContentTypeError, UnsupportedContentKindError
from core_api.schemas import ContentKind, ContentTypeSchema
from core_api.services.collection_type import CollectionTypeService
from core_api.services.sanitize import make_sanitizer
from core_api.services.single_type import SingleTypeService

logger = logging.getLogger(__name__)

CoreService = SingleTypeService | CollectionTypeService

_KNOWN_KINDS: frozenset[str] = frozenset(kind.value for kind in ContentKind)


def create_core_service(
    model: ContentTypeSchema,
    entity_service: EntityService,
    *,
    strict_kinds: bool | None = None,
    get_non_writable: Callable[[ContentTypeSchema], set[str]] = get_non_writable_attributes,
) -> CoreService:
    """
    Return the default service for *model*.

    Kinds other than ``singleType`` get a collection-type service. When
    *strict_kinds* is true (default: ``settings.STRICT_CONTENT_KINDS``) an
    unrecognised kind raises ``UnsupportedContentKindError`` instead.
    """
    if strict_kinds is None:
        strict_kinds = settings.STRICT_CONTENT_KINDS

    if model.kind not in _KNOWN_KINDS:
        if strict_kinds:
            raise UnsupportedContentKindError(model.model_name, model.kind)
        logger.warning(
            "Content type %r has unknown kind %r; using a collection type service",
            model.model_name,
            model.kind,
        )

    service_cls = (
        SingleTypeService if model.kind == ContentKind.SINGLE_TYPE.value else CollectionTypeService
    )
    sanitize = make_sanitizer(model, get_non_writable)
    return service_cls(model, entity_service, sanitize)


def build_services(
    models: Iterable[ContentTypeSchema],
    entity_service: EntityService,
    *,
    strict_kinds: bool | None = None,
) -> dict[str, CoreService]:
    """Build one service per content type, keyed by model name."""
    services: dict[str, CoreService] = {}
    for model in models:
        if model.model_name in services:
            raise DuplicateContentTypeError(model.model_name)
        services[model.model_name] = create_core_service(
            model, entity_service, strict_kinds=strict_kinds
        )
        logger.debug("Built %s for %r", type(services[model.model_name]).__name__, model.model_name)
    return services
