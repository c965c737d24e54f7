# Store 도메인 모델 (Beanie Document)
# - slug는 unique 인덱스 (StoreRepository가 생성/재시도 담당)
# - name/description 텍스트 인덱스, location 2dsphere 인덱스
# - reviews는 저장하지 않음 (ReviewRepository.for_store 로 조회)

from datetime import datetime
from typing import List, Literal, Optional
from beanie import Document, PydanticObjectId
from pydantic import BaseModel, Field, field_validator
from pymongo import ASCENDING, GEOSPHERE, TEXT, IndexModel

class Location(BaseModel):
    type: Literal["Point"] = "Point"
    # GeoJSON 순서: [경도, 위도]
    coordinates: List[float] = Field(min_length=2, max_length=2)
    address: str = Field(min_length=1)

    @field_validator("address", mode="before")
    @classmethod
    def strip_address(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("coordinates")
    @classmethod
    def check_range(cls, value: List[float]) -> List[float]:
        lng, lat = value
        if not -180 <= lng <= 180 or not -90 <= lat <= 90:
            raise ValueError("Please enter valid coordinates")
        return value


class Store(Document):
    name: str = Field(min_length=1)
    slug: str = ""
    description: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    created: datetime = Field(default_factory=datetime.utcnow)
    location: Location
    photo: Optional[str] = None
    author: PydanticObjectId

    @field_validator("name", "description", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("tags")
    @classmethod
    def unique_tags(cls, value: List[str]) -> List[str]:
        # 입력 순서는 유지하고 중복/빈 문자열만 제거
        return list(dict.fromkeys(tag.strip() for tag in value if tag and tag.strip()))

    class Settings:
        name = "stores"
        validate_on_save = True
        indexes = [
            IndexModel([("slug", ASCENDING)], name="store_slug_unique", unique=True),
            IndexModel([("name", TEXT), ("description", TEXT)], name="store_text"),
            IndexModel([("location", GEOSPHERE)], name="store_location_2dsphere"),
        ]
