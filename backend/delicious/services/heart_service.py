# 즐겨찾기(하트) 서비스
# - 같은 가게를 두 번 토글하면 원래 상태로 돌아감

import logging
from typing import List

from fastapi import Depends
from beanie import PydanticObjectId

from ..core.exceptions import NotFoundError
from ..repositories.store_repository import StoreRepository
from ..repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class HeartService:
    def __init__(self, users: UserRepository, stores: StoreRepository):
        self.users = users
        self.stores = stores

    async def toggle_heart(self, user_id: PydanticObjectId, store_id: str) -> List[PydanticObjectId]:
        store = await self.stores.get(store_id)
        hearts = await self.users.toggle_heart(user_id, store.id)
        if hearts is None:
            raise NotFoundError("user", str(user_id))
        logger.info(f"[HeartService] 하트 토글: user={user_id} store={store.id} hearted={store.id in hearts}")
        return hearts


def get_heart_service(
    users: UserRepository = Depends(UserRepository),
    stores: StoreRepository = Depends(StoreRepository),
) -> HeartService:
    return HeartService(users, stores)
