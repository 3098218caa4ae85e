"""
Collection type service: content types holding any number of entries.

Every method is a direct delegation to the entity service. Only the write
paths (``create`` and ``update``) touch the payload, and only to sanitize
it; errors raised by the entity service are not caught here.
"""
from collections.abc import Iterable, Mapping
from typing import Any

from core_api.entity_service import Entity
from core_api.schemas import ContentKind
from core_api.services.base import BaseService
from core_api.services.sanitize import Payload

Params = Mapping[str, Any]


class CollectionTypeService(BaseService):
    kind = ContentKind.COLLECTION_TYPE.value

    async def find(
        self,
        params: Params | None = None,
        populate: Iterable[str] | None = None,
    ) -> list[Entity]:
        return await self.entity_service.find(self.model, params, populate)

    async def find_one(self, params: Params, populate: Iterable[str] | None = None) -> Entity | None:
        return await self.entity_service.find_one(self.model, params, populate)

    async def count(self, params: Params | None = None) -> int:
        return await self.entity_service.count(self.model, params)

    async def create(self, data: Payload, *, files: Mapping[str, Any] | None = None) -> Entity:
        sanitized = self.sanitize_input(data)
        return await self.entity_service.create(self.model, sanitized, files=files)

    async def update(
        self,
        params: Params,
        data: Payload,
        *,
        files: Mapping[str, Any] | None = None,
    ) -> Entity:
        sanitized = self.sanitize_input(data)
        return await self.entity_service.update(self.model, params, sanitized, files=files)

    async def delete(self, params: Params) -> Entity:
        return await self.entity_service.delete(self.model, params)

    async def search(self, params: Params) -> list[Entity]:
        """Partial-match search; see the entity service for the matching rules."""
        return await self.entity_service.search(self.model, params)

    async def count_search(self, params: Params) -> int:
        return await self.entity_service.count_search(self.model, params)
