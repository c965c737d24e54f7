# Review 도메인 모델
# - store/author 참조, rating(1~5)
# - "top stores" 집계는 store, rating 필드에만 의존

from datetime import datetime
from beanie import Document, PydanticObjectId
from pydantic import Field, field_validator
from pymongo import ASCENDING, IndexModel

class Review(Document):
    created: datetime = Field(default_factory=datetime.utcnow)
    author: PydanticObjectId
    store: PydanticObjectId
    text: str = Field(min_length=1)
    rating: int = Field(ge=1, le=5)

    @field_validator("text", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    class Settings:
        name = "reviews"
        indexes = [IndexModel([("store", ASCENDING)], name="review_store")]
