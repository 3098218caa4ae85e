"""
Collection type service tests: every operation is a straight delegation,
with sanitization on the write paths only.
"""
import pytest

from core_api.exceptions import EntityNotFoundError, EntityValidationError
from core_api.services import CollectionTypeService, create_core_service, make_sanitizer

from tests.fixtures import ARTICLE, AUTHOR


def _service(entity_service) -> CollectionTypeService:
    return CollectionTypeService(ARTICLE, entity_service, make_sanitizer(ARTICLE))


# ---------------------------------------------------------------------------
# Delegation (mock collaborator)
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_find_delegates_params_and_populate(mock_entity_service):
    rows = [{"id": 1, "title": "A"}]
    mock_entity_service.find.return_value = rows
    params = {"filter": {"published": True}}

    result = await _service(mock_entity_service).find(params, ["author"])

    assert result is rows
    mock_entity_service.find.assert_awaited_once_with(ARTICLE, params, ["author"])


@pytest.mark.asyncio
async def test_find_without_arguments(mock_entity_service):
    mock_entity_service.find.return_value = []
    assert await _service(mock_entity_service).find() == []
    mock_entity_service.find.assert_awaited_once_with(ARTICLE, None, None)


@pytest.mark.asyncio
async def test_find_one_and_count(mock_entity_service):
    mock_entity_service.find_one.return_value = {"id": 2}
    mock_entity_service.count.return_value = 12
    service = _service(mock_entity_service)

    assert await service.find_one({"id": 2}, ["author"]) == {"id": 2}
    assert await service.count({"published": True}) == 12
    mock_entity_service.find_one.assert_awaited_once_with(ARTICLE, {"id": 2}, ["author"])
    mock_entity_service.count.assert_awaited_once_with(ARTICLE, {"published": True})


@pytest.mark.asyncio
async def test_create_sanitizes(mock_entity_service):
    await _service(mock_entity_service).create(
        {"title": "T", "id": 5, "created_at": "now", "createdBy": "x"}
    )
    mock_entity_service.create.assert_awaited_once_with(ARTICLE, {"title": "T"}, files=None)


@pytest.mark.asyncio
async def test_update_sanitizes_and_keeps_params(mock_entity_service):
    await _service(mock_entity_service).update({"id": 5}, {"title": "New", "createdBy": "x"})
    mock_entity_service.update.assert_awaited_once_with(
        ARTICLE, {"id": 5}, {"title": "New"}, files=None
    )


@pytest.mark.asyncio
async def test_delete_search_and_count_search(mock_entity_service):
    mock_entity_service.search.return_value = [{"id": 3}]
    mock_entity_service.count_search.return_value = 1
    service = _service(mock_entity_service)

    assert await service.delete({"id": 1}) == {"id": 1}
    assert await service.search({"_q": "py"}) == [{"id": 3}]
    assert await service.count_search({"_q": "py"}) == 1
    mock_entity_service.delete.assert_awaited_once_with(ARTICLE, {"id": 1})
    mock_entity_service.search.assert_awaited_once_with(ARTICLE, {"_q": "py"})
    mock_entity_service.count_search.assert_awaited_once_with(ARTICLE, {"_q": "py"})


@pytest.mark.asyncio
async def test_errors_propagate_unchanged(mock_entity_service):
    error = EntityNotFoundError("article", {"id": 404})
    mock_entity_service.delete.side_effect = error

    with pytest.raises(EntityNotFoundError) as excinfo:
        await _service(mock_entity_service).delete({"id": 404})
    assert excinfo.value is error


# ---------------------------------------------------------------------------
# End to end (SQL entity service)
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_crud_lifecycle(entity_service):
    service = create_core_service(ARTICLE, entity_service)

    created = await service.create({"title": "First", "views": 3, "createdBy": "x"})
    assert created["title"] == "First"
    assert "createdBy" not in created

    fetched = await service.find_one({"id": created["id"]})
    assert fetched["views"] == 3

    updated = await service.update({"id": created["id"]}, {"title": "Renamed", "id": 999})
    assert updated["id"] == created["id"]
    assert updated["title"] == "Renamed"
    assert updated["views"] == 3

    assert await service.count() == 1
    deleted = await service.delete({"id": created["id"]})
    assert deleted["title"] == "Renamed"
    assert await service.count() == 0
    assert await service.find_one({"id": created["id"]}) is None


@pytest.mark.asyncio
async def test_update_missing_entry_raises(entity_service):
    service = create_core_service(ARTICLE, entity_service)
    with pytest.raises(EntityNotFoundError):
        await service.update({"id": 12345}, {"title": "Ghost"})


@pytest.mark.asyncio
async def test_create_missing_required_attribute_raises(entity_service):
    service = create_core_service(ARTICLE, entity_service)
    with pytest.raises(EntityValidationError) as excinfo:
        await service.create({"body": "no title", "title": None})
    assert excinfo.value.errors == {"title": "required"}


@pytest.mark.asyncio
async def test_relation_sent_as_object_can_be_read_back(entity_service):
    author = await entity_service.create(AUTHOR, {"name": "Ann"})
    service = create_core_service(ARTICLE, entity_service)

    await service.create({"title": "T", "author": {"id": author["id"]}})
    [article] = await service.find()
    assert article["author"] == {"id": author["id"], "name": "Ann"}
    assert await service.count_search({"_q": "T"}) == 1
