"""
Exception hierarchy for the core content-type services.

The generated services never raise or translate errors themselves: every
failure during a CRUD call comes from the entity service and reaches the
caller unchanged. The classes below cover the two places that do raise:
service composition (bad content-type declarations) and the bundled SQL
entity service.
"""


class CoreApiError(Exception):
    """Base class for every error raised by this package."""


class UnsupportedContentKindError(CoreApiError):
    def __init__(self, model_name: str, kind: str) -> None:
        super().__init__(f"Content type {model_name!r} has unsupported kind {kind!r}")
        self.model_name = model_name
        self.kind = kind


class DuplicateContentTypeError(CoreApiError):
    def __init__(self, model_name: str) -> None:
        super().__init__(f"Content type {model_name!r} is declared more than once")
        self.model_name = model_name


class EntityServiceError(CoreApiError):
    """Raised by the SQL entity service."""


class EntityNotFoundError(EntityServiceError):
    def __init__(self, model_name: str, params: dict | None = None) -> None:
        super().__init__(f"No {model_name} entry matches {params!r}")
        self.model_name = model_name
        self.params = params


class EntityValidationError(EntityServiceError):
    def __init__(self, model_name: str, errors: dict[str, str]) -> None:
        details = ", ".join(f"{field}: {msg}" for field, msg in errors.items())
        super().__init__(f"Invalid {model_name} data ({details})")
        self.model_name = model_name
        self.errors = errors
