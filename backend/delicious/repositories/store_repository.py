# 가게 저장소 레이어
# - 데이터 접근(조회/생성/수정/집계)만 담당
# - slug 생성, 작성자 검증, location.type 강제는 create/update 안에서 명시적으로 수행
# - 화면/응답은 모름: 결과를 돌려주거나 core.exceptions 예외를 던짐

import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import DuplicateKeyError, PyMongoError

from ..core.config import settings
from ..core.exceptions import AuthorizationError, NotFoundError, UpstreamFailure, ValidationError
from ..core.retry import slug_retrying
from ..models.store import Store
from ..schemas.store_schema import NearbyStore, StoreDraft, StorePage, StorePatch, TagCount, TopStore
from ..services.slug_service import generate_slug

logger = logging.getLogger(__name__)


def to_object_id(value: Any, resource: str = "store") -> PydanticObjectId:
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError):
        raise NotFoundError(resource, str(value))


def _validation_error(exc: PydanticValidationError) -> ValidationError:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return ValidationError(message=f"Invalid value for '{field}': {first.get('msg')}", field=field or None)


# ---- 집계 파이프라인 ----

def tag_counts_pipeline() -> List[Dict[str, Any]]:
    return [
        {"$unwind": "$tags"},
        {"$group": {"_id": "$tags", "count": {"$sum": 1}}},
        {"$sort": {"count": -1, "_id": 1}},
    ]


def top_rated_pipeline(limit: int) -> List[Dict[str, Any]]:
    return [
        {"$lookup": {"from": "reviews", "localField": "_id", "foreignField": "store", "as": "reviews"}},
        # 리뷰가 2개 이상인 가게만 (두 번째 원소가 존재)
        {"$match": {"reviews.1": {"$exists": True}}},
        {"$addFields": {"averageRating": {"$avg": "$reviews.rating"}, "reviewCount": {"$size": "$reviews"}}},
        {"$sort": {"averageRating": -1}},
        {"$limit": limit},
    ]


def text_search_pipeline(query: str) -> List[Dict[str, Any]]:
    return [
        {"$match": {"$text": {"$search": query}}},
        {"$sort": {"score": {"$meta": "textScore"}}},
    ]


def near_pipeline(longitude: float, latitude: float, max_distance: float, limit: int) -> List[Dict[str, Any]]:
    # $geoNear는 2dsphere 인덱스를 사용하고 가까운 순서로 정렬된 결과를 돌려줍니다
    return [
        {
            "$geoNear": {
                "near": {"type": "Point", "coordinates": [longitude, latitude]},
                "distanceField": "distance",
                "maxDistance": max_distance,
                "spherical": True,
            }
        },
        {"$limit": limit},
    ]


class StoreRepository:
    async def count_slugs(self, pattern: str, exclude_id: Optional[PydanticObjectId] = None) -> int:
        query: Dict[str, Any] = {"slug": {"$regex": pattern, "$options": "i"}}
        if exclude_id is not None:
            query["_id"] = {"$ne": exclude_id}
        return await Store.find(query).count()

    async def _save_with_slug(self, store: Store, insert: bool) -> Store:
        # unique 인덱스 충돌 시 접미사를 올려가며 다시 저장
        try:
            async for attempt in slug_retrying(settings.SLUG_MAX_ATTEMPTS):
                with attempt:
                    bump = attempt.retry_state.attempt_number - 1
                    store.slug = await generate_slug(
                        store.name,
                        lambda pattern: self.count_slugs(pattern, exclude_id=store.id),
                        bump=bump,
                    )
                    if insert:
                        await store.insert()
                    else:
                        await store.save()
        except DuplicateKeyError as exc:
            logger.error(f"[StoreRepository] slug 충돌 재시도 초과: name={store.name!r} slug={store.slug!r}")
            raise UpstreamFailure("mongodb", "Could not allocate a unique slug for this store.", {"slug": store.slug}) from exc
        return store

    async def create(self, draft: StoreDraft, author_id: PydanticObjectId) -> Store:
        if author_id is None:
            raise ValidationError(message="You must supply an author", field="author")
        try:
            store = Store(**draft.model_dump(), author=author_id)
        except PydanticValidationError as exc:
            raise _validation_error(exc)
        try:
            store = await self._save_with_slug(store, insert=True)
        except PyMongoError as exc:
            raise UpstreamFailure("mongodb", "Failed to save store.") from exc
        logger.info(f"[StoreRepository] 가게 생성: id={store.id} slug={store.slug}")
        return store

    async def get(self, store_id: Any) -> Store:
        store = await Store.get(to_object_id(store_id))
        if not store:
            raise NotFoundError("store", str(store_id))
        return store

    async def find_by_slug(self, slug: str) -> Store:
        store = await Store.find_one(Store.slug == slug)
        if not store:
            raise NotFoundError("store", slug)
        return store

    async def find_by_ids(self, ids: Iterable[PydanticObjectId]) -> List[Store]:
        ids = list(ids)
        if not ids:
            return []
        return await Store.find({"_id": {"$in": ids}}).to_list()

    async def all(self) -> List[Store]:
        return await Store.find_all().to_list()

    async def list_page(self, page: int, page_size: int = 4) -> StorePage:
        if page < 1:
            raise ValidationError(message="Page must be 1 or greater", field="page")
        skip = (page - 1) * page_size
        stores = await Store.find_all().sort("-created").skip(skip).limit(page_size).to_list()
        count = await Store.find_all().count()
        pages = math.ceil(count / page_size)
        redirect_page = None
        if not stores and skip:
            redirect_page = max(pages, 1)
        return StorePage(stores=stores, count=count, page=page, pages=pages, redirect_page=redirect_page)

    async def find_by_tag(self, tag: Optional[str] = None) -> List[Store]:
        # 태그를 지정하지 않으면 태그가 하나라도 있는 가게 전체
        query = {"tags": tag} if tag else {"tags.0": {"$exists": True}}
        return await Store.find(query).to_list()

    async def tag_counts(self) -> List[TagCount]:
        rows = await Store.aggregate(tag_counts_pipeline()).to_list()
        return [TagCount(tag=row["_id"], count=row["count"]) for row in rows]

    async def top_rated(self, limit: int = 10) -> List[TopStore]:
        return await Store.aggregate(top_rated_pipeline(limit), projection_model=TopStore).to_list()

    async def text_search(self, query: str) -> List[Store]:
        return await Store.aggregate(text_search_pipeline(query), projection_model=Store).to_list()

    async def near(self, longitude: float, latitude: float, max_distance: float = 10000, limit: int = 10) -> List[NearbyStore]:
        pipeline = near_pipeline(longitude, latitude, max_distance, limit)
        return await Store.aggregate(pipeline, projection_model=NearbyStore).to_list()

    async def update(self, store_id: Any, author_id: PydanticObjectId, patch: StorePatch) -> Store:
        store = await self.get(store_id)
        if store.author != author_id:
            raise AuthorizationError()

        changes = patch.model_dump(exclude_unset=True)
        if changes.get("photo") is None:
            # 새 사진이 없으면 기존 사진 유지
            changes.pop("photo", None)
        if changes.get("location") is not None:
            changes["location"]["type"] = "Point"
        name_changed = "name" in changes and changes["name"] is not None and changes["name"].strip() != store.name

        # 전체 스키마로 다시 검증한 뒤 저장
        try:
            validated = Store.model_validate({**store.model_dump(), **changes})
        except PydanticValidationError as exc:
            raise _validation_error(exc)
        for field in changes:
            setattr(store, field, getattr(validated, field))

        try:
            if name_changed:
                store = await self._save_with_slug(store, insert=False)
            else:
                await store.save()
        except PyMongoError as exc:
            raise UpstreamFailure("mongodb", "Failed to update store.") from exc
        logger.info(f"[StoreRepository] 가게 수정: id={store.id} slug={store.slug} name_changed={name_changed}")
        return store
