"""
Single type service: content types holding at most one entry.

``create_or_update`` and ``delete`` read the current entry first and then
act on it. The two steps are separate awaits with no lock in between, so
two concurrent ``create_or_update`` calls can both see no entry and both
create one; preventing that is up to the entity service (for example a
unique constraint on the content type).
"""
from collections.abc import Iterable, Mapping
from typing import Any

from core_api.content_types import ID_ATTRIBUTE
from core_api.entity_service import Entity
from core_api.schemas import ContentKind
from core_api.services.base import BaseService
from core_api.services.sanitize import Payload


class SingleTypeService(BaseService):
    kind = ContentKind.SINGLE_TYPE.value

    async def find(self, populate: Iterable[str] | None = None) -> Entity | None:
        """Return the entry, or None when it has not been created yet."""
        return await self.entity_service.find(self.model, populate=populate)

    async def create_or_update(
        self,
        data: Payload,
        *,
        files: Mapping[str, Any] | None = None,
    ) -> Entity:
        """
        Create the entry when absent, otherwise update it in place.

        *data* is sanitized before reaching the entity service in both
        branches.
        """
        entity = await self.find()
        sanitized = self.sanitize_input(data)

        if entity is None:
            return await self.entity_service.create(self.model, sanitized, files=files)
        return await self.entity_service.update(
            self.model, {ID_ATTRIBUTE: entity[ID_ATTRIBUTE]}, sanitized, files=files
        )

    async def delete(self) -> Entity | None:
        """Delete the entry and return it; no-op returning None when absent."""
        entity = await self.find()
        if entity is None:
            return None
        return await self.entity_service.delete(self.model, {ID_ATTRIBUTE: entity[ID_ATTRIBUTE]})
