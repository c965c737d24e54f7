# JSON API 라우터 (/api/v1)
# - GET  /stores                   : 전체 가게
# - GET  /search/{query}           : 전문 검색 (name, description)
# - GET  /stores/near/{lat}/{lng}  : 10km 이내 가까운 가게
# - POST /stores/{id}/heart        : 하트 토글 (로그인 필요)

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, Path
from fastapi.responses import JSONResponse

from ...core.config import settings
from ...core.security import get_current_user
from ...models.user import User
from ...repositories.store_repository import StoreRepository
from ...services.heart_service import HeartService, get_heart_service

router = APIRouter(tags=["api"])


@router.get("/stores", summary="전체 가게 (JSON)")
async def all_stores(repo: StoreRepository = Depends(StoreRepository)):
    return await repo.all()


@router.get("/search/", summary="빈 검색어")
@router.get("/search/{query}", summary="가게 전문 검색")
async def search_stores(query: str = "", repo: StoreRepository = Depends(StoreRepository)):
    if not query.strip():
        return JSONResponse(status_code=400, content={"status": 400, "message": "Empty search query returns empty results."})
    return await repo.text_search(query.strip())


@router.get("/stores/near/{lat}/{lng}", summary="가까운 가게 (가까운 순)")
async def map_stores(
    lat: float = Path(ge=-90, le=90),
    lng: float = Path(ge=-180, le=180),
    repo: StoreRepository = Depends(StoreRepository),
):
    # MongoDB 좌표 순서는 [경도, 위도]
    return await repo.near(lng, lat, settings.NEAR_MAX_DISTANCE_METERS, settings.NEAR_LIMIT)


@router.post("/stores/{store_id}/heart", summary="하트 토글")
async def heart_store(store_id: str, user: User = Depends(get_current_user), service: HeartService = Depends(get_heart_service)):
    hearts = await service.toggle_heart(user.id, store_id)
    # toggle_heart 가 store_id 를 검증했으므로 ObjectId 변환은 실패하지 않음
    return {"hearts": [str(h) for h in hearts], "hearted": PydanticObjectId(store_id) in hearts}
