# 가게 서비스 테스트
# - 사진 처리/저장 순서, 실패 시 정리, 작성자 확인, 상세 조합
import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from beanie import PydanticObjectId

from delicious.core.exceptions import AuthorizationError, UnsupportedMediaType, UpstreamFailure, ValidationError
from delicious.schemas.store_schema import StoreDraft, StorePatch
from delicious.services.store_service import StoreService


def make_draft():
    return StoreDraft(
        name="Fancy Cafe",
        tags=["Wifi"],
        location={"coordinates": [-79.38, 43.65], "address": "1 King St"},
    )


def make_service():
    stores = MagicMock()
    reviews = MagicMock()
    users = MagicMock()
    photos = MagicMock(ingest=AsyncMock(return_value=None), discard=AsyncMock())
    return StoreService(stores, reviews, users, photos), stores, reviews, users, photos


def make_user():
    return SimpleNamespace(id=PydanticObjectId(), name="Wes", gravatar="https://gravatar.com/avatar/x?s=200", hearts=[])


def test_create_with_rejected_photo_saves_nothing():
    service, stores, _, _, photos = make_service()
    photos.ingest = AsyncMock(side_effect=UnsupportedMediaType("text/plain"))
    stores.create = AsyncMock()

    with pytest.raises(UnsupportedMediaType):
        asyncio.run(service.create_store(make_draft(), MagicMock(), make_user()))
    stores.create.assert_not_awaited()


def test_create_attaches_photo_and_author():
    service, stores, _, _, photos = make_service()
    photos.ingest = AsyncMock(return_value="abc.jpeg")
    stores.create = AsyncMock(return_value="store")
    user = make_user()

    assert asyncio.run(service.create_store(make_draft(), MagicMock(), user)) == "store"
    draft, author_id = stores.create.call_args.args
    assert draft.photo == "abc.jpeg"
    assert author_id == user.id


def test_create_persistence_failure_discards_photo():
    service, stores, _, _, photos = make_service()
    photos.ingest = AsyncMock(return_value="abc.jpeg")
    stores.create = AsyncMock(side_effect=UpstreamFailure("mongodb", "down"))

    with pytest.raises(UpstreamFailure):
        asyncio.run(service.create_store(make_draft(), MagicMock(), make_user()))
    photos.discard.assert_awaited_once_with("abc.jpeg")


def test_update_by_non_owner_is_rejected_before_photo_is_written():
    service, stores, _, _, photos = make_service()
    stores.get = AsyncMock(return_value=SimpleNamespace(author=PydanticObjectId()))
    stores.update = AsyncMock()

    with pytest.raises(AuthorizationError):
        asyncio.run(service.update_store("x", StorePatch(name="Mine"), MagicMock(), make_user()))
    photos.ingest.assert_not_awaited()
    stores.update.assert_not_awaited()


def test_update_by_owner_passes_new_photo():
    service, stores, _, _, photos = make_service()
    user = make_user()
    stores.get = AsyncMock(return_value=SimpleNamespace(author=user.id))
    stores.update = AsyncMock(return_value="updated")
    photos.ingest = AsyncMock(return_value="new.png")

    assert asyncio.run(service.update_store("x", StorePatch(name="Mine"), MagicMock(), user)) == "updated"
    store_id, author_id, patch = stores.update.call_args.args
    assert (store_id, author_id, patch.photo) == ("x", user.id, "new.png")


def test_store_detail_includes_author_and_reviews():
    service, stores, reviews, users, _ = make_service()
    author = make_user()
    store = SimpleNamespace(id=PydanticObjectId(), name="Fancy Cafe", author=author.id)
    stores.find_by_slug = AsyncMock(return_value=store)
    reviews.for_store = AsyncMock(return_value=["r1", "r2"])
    users.get = AsyncMock(return_value=author)

    detail = asyncio.run(service.get_store_detail("fancy-cafe"))

    assert detail.store is store
    assert detail.reviews == ["r1", "r2"]
    assert detail.author.name == "Wes"
    assert detail.author.id == str(author.id)
    reviews.for_store.assert_awaited_once_with(store.id)


def test_store_detail_with_deleted_author():
    service, stores, reviews, users, _ = make_service()
    stores.find_by_slug = AsyncMock(return_value=SimpleNamespace(id=PydanticObjectId(), author=PydanticObjectId()))
    reviews.for_store = AsyncMock(return_value=[])
    users.get = AsyncMock(return_value=None)
    assert asyncio.run(service.get_store_detail("fancy-cafe")).author is None


def test_empty_review_is_rejected():
    service, stores, reviews, _, _ = make_service()
    stores.get = AsyncMock(return_value=SimpleNamespace(id=PydanticObjectId()))
    reviews.create = AsyncMock()
    with pytest.raises(ValidationError):
        asyncio.run(service.add_review("x", make_user(), "   ", 4))
    reviews.create.assert_not_awaited()


def test_hearted_stores_reads_user_hearts():
    service, stores, _, _, _ = make_service()
    user = make_user()
    user.hearts = [PydanticObjectId()]
    stores.find_by_ids = AsyncMock(return_value=["s"])
    assert asyncio.run(service.hearted_stores(user)) == ["s"]
    stores.find_by_ids.assert_awaited_once_with(user.hearts)
