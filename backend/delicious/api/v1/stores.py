# 가게 라우터 (화면 라우트 → JSON 뷰 모델)
# - GET  /, /stores, /stores/page/{page} : 목록 (빈 페이지면 마지막 페이지로 302)
# - GET  /store/{slug}                  : 상세 (가게 + 작성자 + 리뷰)
# - GET  /tags, /tag/{tag}              : 태그 목록 + 가게
# - GET  /top                           : 평점 상위 가게
# - GET  /hearts                        : 내가 하트한 가게 (로그인 필요)
# - GET  /stores/{id}/edit              : 수정할 가게 (작성자만)
# - POST /add, /add/{id}                : 생성/수정 (multipart, 사진 포함)
# - POST /reviews/{id}                  : 리뷰 작성 (로그인 필요)

from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import RedirectResponse
from pydantic import ValidationError as PydanticValidationError

from ...core.config import settings
from ...core.exceptions import ValidationError
from ...core.security import get_current_user
from ...models.user import User
from ...repositories.store_repository import StoreRepository
from ...schemas.store_schema import ReviewCreate, StoreDraft, StorePatch
from ...services.store_service import StoreService, get_store_service

router = APIRouter(tags=["stores"])


def store_form(
    name: str = Form(...),
    description: Optional[str] = Form(None),
    tags: List[str] = Form([]),
    address: str = Form(..., alias="location[address]"),
    lng: float = Form(..., alias="location[coordinates][0]"),
    lat: float = Form(..., alias="location[coordinates][1]"),
) -> StoreDraft:
    try:
        return StoreDraft(
            name=name,
            description=description,
            tags=tags,
            location={"type": "Point", "coordinates": [lng, lat], "address": address},
        )
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        raise ValidationError(message=first.get("msg", "Invalid store data"), field=".".join(map(str, first.get("loc", ()))))


@router.get("/", summary="가게 목록 (첫 페이지)")
@router.get("/stores", summary="가게 목록 (첫 페이지)")
@router.get("/stores/page/{page}", summary="가게 목록 (페이지)")
async def get_stores(page: int = 1, service: StoreService = Depends(get_store_service)):
    result = await service.list_stores(page)
    if result.redirect_page is not None:
        return RedirectResponse(url=f"/stores/page/{result.redirect_page}", status_code=302)
    return {"title": "Stores", "count": result.count, "page": result.page, "pages": result.pages, "stores": result.stores}


@router.get("/store/{slug}", summary="가게 상세")
async def get_store_by_slug(slug: str, service: StoreService = Depends(get_store_service)):
    detail = await service.get_store_detail(slug)
    return {"title": detail.store.name, "store": detail.store, "author": detail.author, "reviews": detail.reviews}


@router.get("/tags", summary="태그 목록 + 태그가 있는 가게")
@router.get("/tag/{tag}", summary="태그 목록 + 해당 태그의 가게")
async def get_stores_by_tag(tag: Optional[str] = None, service: StoreService = Depends(get_store_service)):
    tags, stores = await service.stores_by_tag(tag)
    return {"title": "Tags", "tag": tag, "tags": tags, "stores": stores}


@router.get("/top", summary="평점 상위 가게 (리뷰 2개 이상)")
async def get_top_stores(repo: StoreRepository = Depends(StoreRepository)):
    stores = await repo.top_rated(settings.TOP_STORES_LIMIT)
    return {"title": f"Top {len(stores)} Stores", "stores": stores}


@router.get("/hearts", summary="하트한 가게 (로그인 필요)")
async def get_hearted_stores(user: User = Depends(get_current_user), service: StoreService = Depends(get_store_service)):
    stores = await service.hearted_stores(user)
    return {"title": "Hearted Stores", "stores": stores}


@router.get("/stores/{store_id}/edit", summary="수정할 가게 조회 (작성자만)")
async def edit_store(store_id: str, user: User = Depends(get_current_user), service: StoreService = Depends(get_store_service)):
    store = await service.edit_store(store_id, user)
    return {"title": f"Edit {store.name}", "store": store}


@router.post("/add", summary="가게 생성 (로그인 필요)")
async def create_store(
    draft: StoreDraft = Depends(store_form),
    photo: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    service: StoreService = Depends(get_store_service),
):
    store = await service.create_store(draft, photo, user)
    return {"status": 200, "message": f"Successfully created {store.name}. Care to leave a review?", "store": store}


@router.post("/add/{store_id}", summary="가게 수정 (작성자만)")
async def update_store(
    store_id: str,
    draft: StoreDraft = Depends(store_form),
    photo: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    service: StoreService = Depends(get_store_service),
):
    patch = StorePatch(**draft.model_dump(exclude={"photo"}))
    store = await service.update_store(store_id, patch, photo, user)
    return {"status": 200, "message": f"Successfully updated {store.name}.", "store": store}


@router.post("/reviews/{store_id}", summary="리뷰 작성 (로그인 필요)")
async def add_review(
    store_id: str,
    payload: ReviewCreate,
    user: User = Depends(get_current_user),
    service: StoreService = Depends(get_store_service),
):
    review = await service.add_review(store_id, user, payload.text, payload.rating)
    return {"status": 200, "message": "Review saved!", "review": review}
