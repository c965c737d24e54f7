# 가게 서비스 레이어
# - 생성/수정: 작성자 확인 → 사진 처리 → 저장 순서를 명시적으로 수행
# - 사진 처리가 실패하면 아무것도 저장하지 않음
# - 저장이 실패하면 방금 쓴 사진 파일을 지움
# - 상세 화면용 조합 (가게 + 작성자 + 리뷰)

import logging
from typing import List, Optional, Tuple

from fastapi import Depends, UploadFile

from ..core.config import settings
from ..core.exceptions import AuthorizationError, ValidationError
from ..models.review import Review
from ..models.store import Store
from ..models.user import User
from ..repositories.review_repository import ReviewRepository
from ..repositories.store_repository import StoreRepository
from ..repositories.user_repository import UserRepository
from ..schemas.store_schema import AuthorSummary, StoreDetail, StoreDraft, StorePage, StorePatch, TagCount
from .photo_service import PhotoService, get_photo_service

logger = logging.getLogger(__name__)


def confirm_owner(store: Store, user: User) -> None:
    if store.author != user.id:
        raise AuthorizationError()


class StoreService:
    def __init__(self, stores: StoreRepository, reviews: ReviewRepository, users: UserRepository, photos: PhotoService):
        self.stores = stores
        self.reviews = reviews
        self.users = users
        self.photos = photos

    async def create_store(self, draft: StoreDraft, photo: Optional[UploadFile], author: User) -> Store:
        filename = await self.photos.ingest(photo)
        if filename:
            draft.photo = filename
        try:
            return await self.stores.create(draft, author.id)
        except Exception:
            await self.photos.discard(filename)
            raise

    async def edit_store(self, store_id: str, user: User) -> Store:
        store = await self.stores.get(store_id)
        confirm_owner(store, user)
        return store

    async def update_store(self, store_id: str, patch: StorePatch, photo: Optional[UploadFile], user: User) -> Store:
        # 작성자가 아니면 사진을 쓰기 전에 거부
        await self.edit_store(store_id, user)
        filename = await self.photos.ingest(photo)
        if filename:
            patch.photo = filename
        try:
            return await self.stores.update(store_id, user.id, patch)
        except Exception:
            await self.photos.discard(filename)
            raise

    async def get_store_detail(self, slug: str) -> StoreDetail:
        store = await self.stores.find_by_slug(slug)
        reviews = await self.reviews.for_store(store.id)
        author = await self.users.get(str(store.author))
        summary = None
        if author:
            summary = AuthorSummary(id=str(author.id), name=author.name, gravatar=author.gravatar)
        return StoreDetail(store=store, author=summary, reviews=reviews)

    async def list_stores(self, page: int) -> StorePage:
        return await self.stores.list_page(page, settings.STORES_PAGE_SIZE)

    async def stores_by_tag(self, tag: Optional[str]) -> Tuple[List[TagCount], List[Store]]:
        tags = await self.stores.tag_counts()
        stores = await self.stores.find_by_tag(tag)
        return tags, stores

    async def hearted_stores(self, user: User) -> List[Store]:
        return await self.stores.find_by_ids(user.hearts)

    async def add_review(self, store_id: str, author: User, text: str, rating: int) -> Review:
        store = await self.stores.get(store_id)
        if not text or not text.strip():
            raise ValidationError(message="Your review cannot be empty", field="text")
        review = await self.reviews.create(store.id, author.id, text, rating)
        logger.info(f"[StoreService] 리뷰 작성: store={store.id} rating={rating}")
        return review


def get_store_service(
    stores: StoreRepository = Depends(StoreRepository),
    reviews: ReviewRepository = Depends(ReviewRepository),
    users: UserRepository = Depends(UserRepository),
    photos: PhotoService = Depends(get_photo_service),
) -> StoreService:
    return StoreService(stores, reviews, users, photos)
