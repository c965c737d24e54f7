# 가게 관련 입력/조회 스키마
# - StoreDraft/StorePatch: 저장소 레이어로 전달되는 입력
# - TagCount/TopStore/NearbyStore: 집계 결과 (Beanie projection model)

from dataclasses import dataclass, field
from typing import List, Optional
from beanie import PydanticObjectId
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from ..models.store import Location, Store
from ..models.review import Review

class StoreDraft(BaseModel):
    name: str
    description: Optional[str] = None
    tags: List[str] = []
    location: Location
    photo: Optional[str] = None

class StorePatch(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    location: Optional[Location] = None
    photo: Optional[str] = None

class TagCount(BaseModel):
    tag: str
    count: int

class TopStore(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # 집계 결과는 _id 로 읽고, 응답에서는 Store 문서와 같은 id 키로 내보냄
    id: PydanticObjectId = Field(validation_alias=AliasChoices("_id", "id"))
    name: str
    slug: str
    photo: Optional[str] = None
    location: Location
    average_rating: float = Field(alias="averageRating")
    review_count: int = Field(alias="reviewCount")

    class Settings:
        projection = {
            "_id": 1, "name": 1, "slug": 1, "photo": 1, "location": 1,
            "averageRating": 1, "reviewCount": 1,
        }

class NearbyStore(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: PydanticObjectId = Field(validation_alias=AliasChoices("_id", "id"))
    slug: str
    name: str
    description: Optional[str] = None
    photo: Optional[str] = None
    location: Location
    distance: float

    class Settings:
        projection = {
            "_id": 1, "slug": 1, "name": 1, "description": 1, "photo": 1,
            "location": 1, "distance": 1,
        }

@dataclass
class StorePage:
    stores: List[Store]
    count: int
    page: int
    pages: int
    # 요청한 페이지가 비어 있으면 이동해야 할 마지막 페이지 번호
    redirect_page: Optional[int] = None

class AuthorSummary(BaseModel):
    id: str
    name: str
    gravatar: str

@dataclass
class StoreDetail:
    store: Store
    author: Optional[AuthorSummary] = None
    reviews: List[Review] = field(default_factory=list)

class ReviewCreate(BaseModel):
    text: str
    rating: int = Field(ge=1, le=5)
