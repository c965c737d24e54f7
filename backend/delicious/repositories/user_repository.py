# 사용자 저장소 레이어
# - 데이터 접근(조회/생성/수정)만 담당 (서비스 로직 분리)
# - hearts 토글은 한 번의 원자적 find_one_and_update 로 처리

from datetime import datetime
from typing import Any, Dict, List, Optional
from beanie import PydanticObjectId
from bson.errors import InvalidId
from pydantic import EmailStr
from pymongo import ReturnDocument
from ..models.user import User


def heart_toggle_pipeline(store_id: PydanticObjectId) -> List[Dict[str, Any]]:
    """hearts 배열에 store_id가 있으면 빼고, 없으면 추가하는 업데이트 파이프라인

    조건 판단과 변경이 같은 문서 업데이트 안에서 일어나므로
    같은 사용자의 동시 요청이 서로의 변경을 덮어쓰지 않습니다.
    """
    hearts = {"$ifNull": ["$hearts", []]}
    return [
        {
            "$set": {
                "hearts": {
                    "$cond": [
                        {"$in": [store_id, hearts]},
                        {"$setDifference": [hearts, [store_id]]},
                        {"$concatArrays": [hearts, [store_id]]},
                    ]
                }
            }
        }
    ]


class UserRepository:
    async def get_by_email(self, email: EmailStr) -> Optional[User]:
        return await User.find_one(User.email == email.strip().lower())

    async def create(self, name: str, email: EmailStr, hashed_password: str) -> User:
        user = User(name=name, email=email, hashed_password=hashed_password)
        return await user.insert()

    async def get(self, user_id: str) -> Optional[User]:
        try:
            return await User.get(PydanticObjectId(user_id))
        except (InvalidId, TypeError):
            return None

    async def save(self, user: User) -> User:
        return await user.save()

    async def get_by_valid_reset_token(self, token: str, now: datetime) -> Optional[User]:
        return await User.find_one(
            User.reset_password_token == token,
            {"reset_password_expiry": {"$gt": now}},
        )

    async def toggle_heart(self, user_id: PydanticObjectId, store_id: PydanticObjectId) -> Optional[List[PydanticObjectId]]:
        doc = await User.get_motor_collection().find_one_and_update(
            {"_id": user_id},
            heart_toggle_pipeline(store_id),
            projection={"hearts": 1},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        return [PydanticObjectId(h) for h in doc.get("hearts", [])]
