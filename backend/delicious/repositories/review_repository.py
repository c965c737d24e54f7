# 리뷰 저장소 레이어
# - Store.reviews 가상 관계 대신 필요한 곳에서 명시적으로 for_store() 호출

from typing import List
from beanie import PydanticObjectId
from pymongo.errors import PyMongoError
from ..core.exceptions import UpstreamFailure
from ..models.review import Review

class ReviewRepository:
    async def create(self, store_id: PydanticObjectId, author_id: PydanticObjectId, text: str, rating: int) -> Review:
        review = Review(store=store_id, author=author_id, text=text, rating=rating)
        try:
            return await review.insert()
        except PyMongoError as exc:
            raise UpstreamFailure("mongodb", "Failed to save review.") from exc

    async def for_store(self, store_id: PydanticObjectId) -> List[Review]:
        return await Review.find(Review.store == store_id).sort("-created").to_list()
