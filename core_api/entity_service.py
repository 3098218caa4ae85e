"""
Entity service: the persistence collaborator behind the core services.

``EntityService`` is the contract the generated services are written
against. ``SqlEntityService`` is the bundled implementation, storing the
entries of every content type in the single ``entries`` table.

Design notes
------------
- One session per operation, committed on success and rolled back on any
  error, mirroring a request-scoped ``get_db`` dependency. Errors are
  never swallowed; they reach the generated service (and its caller)
  unchanged.
- Query parameters follow the ``_limit`` / ``_start`` / ``_sort`` / ``_q``
  convention. ``id`` filters the primary key and every other key is an
  equality filter on a declared attribute.
- Relations are stored as target ids inside ``Entry.data`` and resolved
  with one extra ``SELECT ... IN`` per populated relation, so a list read
  without relations is a single round trip.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Protocol

from sqlalchemy import Select, asc, desc, false, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core_api.config import settings
from core_api.content_types import (
    ID_ATTRIBUTE,
    get_non_writable_attributes,
    get_relation_attributes,
    get_timestamps,
    is_single_type,
)
from core_api.database import async_session
from core_api.exceptions import EntityNotFoundError, EntityValidationError
from core_api.models import Entry
from core_api.schemas import ContentTypeSchema

logger = logging.getLogger(__name__)

Entity = dict[str, Any]
Uploader = Callable[[ContentTypeSchema, Entity, Mapping[str, Any]], Awaitable[None]]


class EntityService(Protocol):
    async def find(
        self,
        model: ContentTypeSchema,
        params: Mapping[str, Any] | None = None,
        populate: Iterable[str] | None = None,
    ) -> list[Entity] | Entity | None: ...

    async def find_one(
        self,
        model: ContentTypeSchema,
        params: Mapping[str, Any],
        populate: Iterable[str] | None = None,
    ) -> Entity | None: ...

    async def count(self, model: ContentTypeSchema, params: Mapping[str, Any] | None = None) -> int: ...

    async def create(
        self,
        model: ContentTypeSchema,
        data: Mapping[str, Any],
        files: Mapping[str, Any] | None = None,
    ) -> Entity: ...

    async def update(
        self,
        model: ContentTypeSchema,
        params: Mapping[str, Any],
        data: Mapping[str, Any],
        files: Mapping[str, Any] | None = None,
    ) -> Entity: ...

    async def delete(self, model: ContentTypeSchema, params: Mapping[str, Any]) -> Entity: ...

    async def search(self, model: ContentTypeSchema, params: Mapping[str, Any]) -> list[Entity]: ...

    async def count_search(self, model: ContentTypeSchema, params: Mapping[str, Any]) -> int: ...


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_RESERVED_PARAMS: frozenset[str] = frozenset({"_limit", "_start", "_sort", "_q"})

# Attribute types matched by the ``_q`` search term.
_SEARCHABLE_TYPES: frozenset[str] = frozenset(
    {"string", "text", "richtext", "email", "uid", "enumeration"}
)
_INTEGER_TYPES: frozenset[str] = frozenset({"integer", "biginteger"})
_FLOAT_TYPES: frozenset[str] = frozenset({"float", "decimal"})


def _json_value(name: str, sample: Any):
    """Return the typed JSON accessor for attribute *name* matching *sample*."""
    element = Entry.data[name]
    if isinstance(sample, bool):
        return element.as_boolean()
    if isinstance(sample, int):
        return element.as_integer()
    if isinstance(sample, float):
        return element.as_float()
    return element.as_string()


def _filter_clause(name: str, value: Any):
    if isinstance(value, (list, tuple, set)):
        values = list(value)
        if not values:
            return false()
        return _json_value(name, values[0]).in_(values)
    if value is None:
        return Entry.data[name].as_string().is_(None)
    return _json_value(name, value) == value


def _window_value(model: ContentTypeSchema, params: Mapping[str, Any], key: str, default: int) -> int:
    value = params.get(key, default)
    if isinstance(value, bool):
        raise EntityValidationError(model.model_name, {key: "must be an integer"})
    try:
        return int(value)
    except (TypeError, ValueError):
        raise EntityValidationError(model.model_name, {key: "must be an integer"}) from None


def _relation_id(value: Any) -> int | None:
    """
    Return the target id referenced by *value*, or None when it is not one.

    Accepts a bare id, a numeric string, or an object carrying an ``id``.
    """
    if isinstance(value, Mapping):
        value = value.get(ID_ATTRIBUTE)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdecimal():
        return int(value)
    return None


def _serialize(model: ContentTypeSchema, entry: Entry) -> Entity:
    entity: Entity = {ID_ATTRIBUTE: entry.id, **entry.data}
    if model.primary_key != ID_ATTRIBUTE:
        entity[model.primary_key] = entry.id
    timestamps = get_timestamps(model)
    if timestamps:
        created, updated = timestamps
        entity[created] = entry.created_at.isoformat() if entry.created_at else None
        entity[updated] = entry.updated_at.isoformat() if entry.updated_at else None
    return entity


class SqlEntityService:
    """
    ``EntityService`` backed by SQLAlchemy asyncio.

    *content_types* lists every schema relations may point to; an
    unregistered relation target is serialised without timestamps.
    *uploader* receives ``files`` after a create or update; without one,
    writes carrying files are rejected.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession] = async_session,
        content_types: Iterable[ContentTypeSchema] = (),
        uploader: Uploader | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._content_types = {ct.model_name: ct for ct in content_types}
        self._uploader = uploader

    def register(self, model: ContentTypeSchema) -> None:
        """Make *model* known as a relation target after construction."""
        self._content_types[model.model_name] = model

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # ------------------------------------------------------------------
    # Query building
    # ------------------------------------------------------------------

    def _conditions(self, model: ContentTypeSchema, params: Mapping[str, Any]) -> list:
        conditions = [Entry.content_type == model.model_name]
        unknown: dict[str, str] = {}
        for key, value in params.items():
            if key in _RESERVED_PARAMS:
                continue
            if key in (ID_ATTRIBUTE, model.primary_key):
                if isinstance(value, (list, tuple, set)):
                    conditions.append(Entry.id.in_(list(value)))
                else:
                    conditions.append(Entry.id == value)
            elif key in model.attributes:
                conditions.append(_filter_clause(key, value))
            else:
                unknown[key] = "unknown attribute"
        if unknown:
            raise EntityValidationError(model.model_name, unknown)
        return conditions

    def _search_condition(self, model: ContentTypeSchema, term: Any):
        term = str(term)
        clauses = [
            Entry.data[name].as_string().icontains(term, autoescape=True)
            for name, attr in model.attributes.items()
            if attr.type in _SEARCHABLE_TYPES
        ]
        if term.isdecimal():
            clauses.append(Entry.id == int(term))
        return or_(*clauses) if clauses else false()

    def _sort_column(self, model: ContentTypeSchema, field: str):
        """
        Return the column expression for *field*.

        Falls back to ``Entry.created_at`` for any unknown or relation
        attribute.
        """
        if field in (ID_ATTRIBUTE, model.primary_key):
            return Entry.id
        timestamps = get_timestamps(model)
        if timestamps and field == timestamps[0]:
            return Entry.created_at
        if timestamps and field == timestamps[1]:
            return Entry.updated_at
        attr = model.attributes.get(field)
        if attr is not None and not attr.is_relation:
            element = Entry.data[field]
            if attr.type in _INTEGER_TYPES:
                return element.as_integer()
            if attr.type in _FLOAT_TYPES:
                return element.as_float()
            return element.as_string()
        return Entry.created_at

    def _apply_window(self, model: ContentTypeSchema, query: Select, params: Mapping[str, Any]) -> Select:
        sort = params.get("_sort")
        if sort:
            for part in str(sort).split(","):
                field, _, direction = part.strip().partition(":")
                column = self._sort_column(model, field)
                query = query.order_by(desc(column) if direction.lower() == "desc" else asc(column))
        query = query.order_by(Entry.id)

        limit = _window_value(model, params, "_limit", settings.DEFAULT_LIMIT)
        if limit >= 0:
            query = query.limit(min(limit, settings.MAX_LIMIT))
        start = _window_value(model, params, "_start", 0)
        if start < 0:
            raise EntityValidationError(model.model_name, {"_start": "must not be negative"})
        if start:
            query = query.offset(start)
        return query

    def _select(self, model: ContentTypeSchema, params: Mapping[str, Any], search: bool = False) -> Select:
        query = select(Entry).where(*self._conditions(model, params))
        if search:
            query = query.where(self._search_condition(model, params.get("_q", "")))
        return query

    def _count(self, model: ContentTypeSchema, params: Mapping[str, Any], search: bool = False) -> Select:
        query = select(func.count()).select_from(Entry).where(*self._conditions(model, params))
        if search:
            query = query.where(self._search_condition(model, params.get("_q", "")))
        return query

    # ------------------------------------------------------------------
    # Population and payload handling
    # ------------------------------------------------------------------

    async def _populate(
        self,
        session: AsyncSession,
        model: ContentTypeSchema,
        entities: list[Entity],
        populate: Iterable[str] | None,
    ) -> None:
        relations = get_relation_attributes(model)
        if populate is None:
            names = [name for name in relations if model.attributes[name].autopopulate]
        else:
            names = [populate] if isinstance(populate, str) else list(dict.fromkeys(populate))
            unknown = {name: "not a relation" for name in names if name not in relations}
            if unknown:
                raise EntityValidationError(model.model_name, unknown)

        for name in names:
            ids: set[int] = set()
            for entity in entities:
                value = entity.get(name)
                if isinstance(value, list):
                    ids.update(value)
                elif value is not None:
                    ids.add(value)
            if not ids:
                continue

            target_name = relations[name]
            target = self._content_types.get(target_name) or ContentTypeSchema(model_name=target_name)
            result = await session.execute(
                select(Entry).where(Entry.content_type == target_name, Entry.id.in_(ids))
            )
            by_id = {entry.id: _serialize(target, entry) for entry in result.scalars().all()}

            for entity in entities:
                value = entity.get(name)
                if isinstance(value, list):
                    entity[name] = [by_id[i] for i in value if i in by_id]
                elif value is not None:
                    entity[name] = by_id.get(value)

    def _clean(self, model: ContentTypeSchema, data: Mapping[str, Any], creating: bool) -> dict[str, Any]:
        """Keep only writable declared attributes and check required ones on create."""
        non_writable = get_non_writable_attributes(model)
        cleaned = {
            key: value
            for key, value in data.items()
            if key in model.attributes and key not in non_writable
        }

        # Relations are stored as bare target ids; ``{"id": 1}`` becomes ``1``.
        invalid: dict[str, str] = {}
        for name, value in cleaned.items():
            attr = model.attributes[name]
            if not attr.is_relation or value is None:
                continue
            if attr.collection is not None:
                if not isinstance(value, (list, tuple)):
                    invalid[name] = "expected a list of ids"
                    continue
                ids = [_relation_id(item) for item in value]
                if None in ids:
                    invalid[name] = "expected a list of ids"
                    continue
                cleaned[name] = ids
            else:
                target_id = _relation_id(value)
                if target_id is None:
                    invalid[name] = "expected an id"
                    continue
                cleaned[name] = target_id
        if invalid:
            raise EntityValidationError(model.model_name, invalid)

        if creating:
            missing = {
                name: "required"
                for name, attr in model.attributes.items()
                if attr.required and cleaned.get(name) is None
            }
            if missing:
                raise EntityValidationError(model.model_name, missing)
        return cleaned

    def _check_files(self, model: ContentTypeSchema, files: Mapping[str, Any] | None) -> None:
        if files and self._uploader is None:
            raise EntityValidationError(
                model.model_name, {name: "file uploads are not configured" for name in files}
            )

    async def _upload(self, model: ContentTypeSchema, entity: Entity, files: Mapping[str, Any] | None) -> None:
        if files:
            await self._uploader(model, entity, files)

    async def _get_entry(self, session: AsyncSession, model: ContentTypeSchema, params: Mapping[str, Any]) -> Entry:
        query = self._select(model, params).order_by(Entry.id).limit(1)
        entry = (await session.execute(query)).scalars().first()
        if entry is None:
            raise EntityNotFoundError(model.model_name, dict(params))
        return entry

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def find(
        self,
        model: ContentTypeSchema,
        params: Mapping[str, Any] | None = None,
        populate: Iterable[str] | None = None,
    ) -> list[Entity] | Entity | None:
        """
        Return the entries of *model* matching *params*.

        A single type yields its only entry (or None) instead of a list.
        """
        params = params or {}
        logger.debug("find %s params=%r populate=%r", model.model_name, params, populate)
        async with self._session() as session:
            if is_single_type(model):
                query = self._select(model, params).order_by(Entry.id).limit(1)
                entry = (await session.execute(query)).scalars().first()
                if entry is None:
                    return None
                entities = [_serialize(model, entry)]
                await self._populate(session, model, entities, populate)
                return entities[0]

            query = self._apply_window(model, self._select(model, params), params)
            result = await session.execute(query)
            entities = [_serialize(model, e) for e in result.scalars().all()]
            await self._populate(session, model, entities, populate)
            return entities

    async def find_one(
        self,
        model: ContentTypeSchema,
        params: Mapping[str, Any],
        populate: Iterable[str] | None = None,
    ) -> Entity | None:
        logger.debug("find_one %s params=%r", model.model_name, params)
        async with self._session() as session:
            query = self._select(model, params).order_by(Entry.id).limit(1)
            entry = (await session.execute(query)).scalars().first()
            if entry is None:
                return None
            entities = [_serialize(model, entry)]
            await self._populate(session, model, entities, populate)
            return entities[0]

    async def count(self, model: ContentTypeSchema, params: Mapping[str, Any] | None = None) -> int:
        params = params or {}
        async with self._session() as session:
            return (await session.execute(self._count(model, params))).scalar_one()

    async def create(
        self,
        model: ContentTypeSchema,
        data: Mapping[str, Any],
        files: Mapping[str, Any] | None = None,
    ) -> Entity:
        cleaned = self._clean(model, data, creating=True)
        self._check_files(model, files)
        async with self._session() as session:
            entry = Entry(content_type=model.model_name, data=cleaned)
            session.add(entry)
            await session.flush()
            await session.refresh(entry)
            entity = _serialize(model, entry)
            await self._upload(model, entity, files)
        logger.debug("Created %s entry id=%s", model.model_name, entity[ID_ATTRIBUTE])
        return entity

    async def update(
        self,
        model: ContentTypeSchema,
        params: Mapping[str, Any],
        data: Mapping[str, Any],
        files: Mapping[str, Any] | None = None,
    ) -> Entity:
        cleaned = self._clean(model, data, creating=False)
        self._check_files(model, files)
        async with self._session() as session:
            entry = await self._get_entry(session, model, params)
            # Reassign rather than mutate so the JSON column is marked dirty.
            entry.data = {**entry.data, **cleaned}
            await session.flush()
            await session.refresh(entry)
            entity = _serialize(model, entry)
            await self._upload(model, entity, files)
        logger.debug("Updated %s entry id=%s", model.model_name, entity[ID_ATTRIBUTE])
        return entity

    async def delete(self, model: ContentTypeSchema, params: Mapping[str, Any]) -> Entity:
        async with self._session() as session:
            entry = await self._get_entry(session, model, params)
            entity = _serialize(model, entry)
            await session.delete(entry)
            await session.flush()
        logger.debug("Deleted %s entry id=%s", model.model_name, entity[ID_ATTRIBUTE])
        return entity

    async def search(self, model: ContentTypeSchema, params: Mapping[str, Any]) -> list[Entity]:
        logger.debug("search %s params=%r", model.model_name, params)
        async with self._session() as session:
            query = self._apply_window(model, self._select(model, params, search=True), params)
            result = await session.execute(query)
            entities = [_serialize(model, e) for e in result.scalars().all()]
            await self._populate(session, model, entities, None)
            return entities

    async def count_search(self, model: ContentTypeSchema, params: Mapping[str, Any]) -> int:
        async with self._session() as session:
            return (await session.execute(self._count(model, params, search=True))).scalar_one()
