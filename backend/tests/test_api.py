# HTTP 레이어 테스트 (FastAPI TestClient)
# - DB 연결 없이 의존성 오버라이드로 서비스/저장소를 대체
# - startup 이벤트가 실행되지 않도록 with 블록 없이 사용
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from beanie import PydanticObjectId
from fastapi.testclient import TestClient

from delicious.core.config import settings
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from delicious.core.exceptions import ExpiredOrInvalidToken, NotFoundError, UnsupportedMediaType
from delicious.core.security import get_current_user
from delicious.main import app
from delicious.repositories.store_repository import StoreRepository
from delicious.schemas.store_schema import NearbyStore, StorePage, TopStore
from delicious.services.auth_service import ResetOutcome, get_auth_service
from delicious.services.heart_service import get_heart_service
from delicious.services.store_service import get_store_service

client = TestClient(app)


@pytest.fixture(autouse=True)
def clear_overrides():
    yield
    app.dependency_overrides.clear()


def override(dependency, value):
    app.dependency_overrides[dependency] = lambda: value
    return value


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


# ---- 목록 / 상세 ----

def test_store_page_past_the_end_redirects_to_last_page():
    service = override(get_store_service, MagicMock())
    service.list_stores = AsyncMock(return_value=StorePage(stores=[], count=6, page=9, pages=2, redirect_page=2))

    response = client.get("/stores/page/9", follow_redirects=False)

    assert response.status_code == 302
    assert response.headers["location"] == "/stores/page/2"
    service.list_stores.assert_awaited_once_with(9)


def test_store_page_lists_stores():
    service = override(get_store_service, MagicMock())
    service.list_stores = AsyncMock(return_value=StorePage(stores=[], count=0, page=1, pages=0))

    body = client.get("/stores").json()

    assert body == {"title": "Stores", "count": 0, "page": 1, "pages": 0, "stores": []}
    service.list_stores.assert_awaited_once_with(1)


def test_unknown_slug_is_404_envelope():
    service = override(get_store_service, MagicMock())
    service.get_store_detail = AsyncMock(side_effect=NotFoundError("store", "nope"))

    response = client.get("/store/nope")

    assert response.status_code == 404
    assert response.json() == {"status": 404, "message": "store 'nope' was not found"}


def test_unknown_route_is_404_envelope():
    response = client.get("/definitely/not/here")
    assert response.status_code == 404
    assert response.json()["status"] == 404


# ---- 검색 / 지도 ----

def test_empty_search_is_400_envelope():
    repo = override(StoreRepository, MagicMock(text_search=AsyncMock()))

    response = client.get("/api/v1/search/")

    assert response.status_code == 400
    assert response.json() == {"status": 400, "message": "Empty search query returns empty results."}
    repo.text_search.assert_not_awaited()


def test_search_with_no_matches_is_empty_list():
    repo = override(StoreRepository, MagicMock(text_search=AsyncMock(return_value=[])))

    response = client.get("/api/v1/search/coffee")

    assert response.status_code == 200
    assert response.json() == []
    repo.text_search.assert_awaited_once_with("coffee")


def test_near_passes_lng_then_lat():
    repo = override(StoreRepository, MagicMock(near=AsyncMock(return_value=[])))

    client.get("/api/v1/stores/near/43.65/-79.38")

    repo.near.assert_awaited_once_with(-79.38, 43.65, settings.NEAR_MAX_DISTANCE_METERS, settings.NEAR_LIMIT)


def test_near_with_out_of_range_coordinates_is_400_without_query():
    repo = override(StoreRepository, MagicMock(near=AsyncMock(return_value=[])))

    assert client.get("/api/v1/stores/near/95/0").status_code == 400
    assert client.get("/api/v1/stores/near/0/-181").status_code == 400
    repo.near.assert_not_awaited()


def test_database_failure_on_read_is_502_envelope():
    override(StoreRepository, MagicMock(near=AsyncMock(side_effect=OperationFailure("invalid point in geo near query"))))

    response = client.get("/api/v1/stores/near/43.65/-79.38")

    assert response.status_code == 502
    assert response.json()["status"] == 502
    assert response.json()["message"].startswith("[mongodb]")


def test_database_unreachable_is_502_envelope():
    service = override(get_store_service, MagicMock())
    service.stores_by_tag = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

    response = client.get("/tags")

    assert response.status_code == 502
    assert response.json()["status"] == 502


def test_nearby_and_top_rows_use_id_key_like_documents():
    row = {
        "_id": PydanticObjectId(),
        "name": "Fancy Cafe",
        "slug": "fancy-cafe",
        "location": {"coordinates": [-79.38, 43.65], "address": "1 King St"},
    }
    nearby = NearbyStore.model_validate({**row, "distance": 12.5})
    top = TopStore.model_validate({**row, "averageRating": 4.5, "reviewCount": 2})
    override(StoreRepository, MagicMock(near=AsyncMock(return_value=[nearby]), top_rated=AsyncMock(return_value=[top])))

    near_body = client.get("/api/v1/stores/near/43.65/-79.38").json()
    top_body = client.get("/top").json()

    assert near_body[0]["id"] == str(row["_id"])
    assert "_id" not in near_body[0]
    assert top_body["stores"][0]["id"] == str(row["_id"])
    assert "_id" not in top_body["stores"][0]
    assert top_body["stores"][0]["averageRating"] == 4.5


def test_near_with_non_numeric_coordinates_is_400():
    override(StoreRepository, MagicMock(near=AsyncMock(return_value=[])))
    response = client.get("/api/v1/stores/near/north/west")
    assert response.status_code == 400
    assert response.json()["status"] == 400


# ---- 하트 ----

def test_heart_requires_login():
    response = client.post(f"/api/v1/stores/{PydanticObjectId()}/heart")
    assert response.status_code == 401
    assert response.json() == {"status": 401, "message": "You must be logged in to do that!"}


def test_heart_toggle_reports_state():
    store_id = PydanticObjectId()
    user = override(get_current_user, SimpleNamespace(id=PydanticObjectId(), hearts=[]))
    service = override(get_heart_service, MagicMock(toggle_heart=AsyncMock(return_value=[store_id])))

    body = client.post(f"/api/v1/stores/{store_id}/heart").json()

    assert body == {"hearts": [str(store_id)], "hearted": True}
    service.toggle_heart.assert_awaited_once_with(user.id, str(store_id))

    service.toggle_heart = AsyncMock(return_value=[])
    assert client.post(f"/api/v1/stores/{store_id}/heart").json() == {"hearts": [], "hearted": False}


def test_heart_flag_ignores_hex_case():
    store_id = PydanticObjectId()
    override(get_current_user, SimpleNamespace(id=PydanticObjectId(), hearts=[]))
    override(get_heart_service, MagicMock(toggle_heart=AsyncMock(return_value=[store_id])))

    body = client.post(f"/api/v1/stores/{str(store_id).upper()}/heart").json()

    assert body == {"hearts": [str(store_id)], "hearted": True}


# ---- 가게 생성 ----

def test_add_store_with_non_image_is_415():
    override(get_current_user, SimpleNamespace(id=PydanticObjectId(), hearts=[]))
    service = override(get_store_service, MagicMock())
    service.create_store = AsyncMock(side_effect=UnsupportedMediaType("text/plain"))

    response = client.post(
        "/add",
        data={
            "name": "Fancy Cafe",
            "tags": ["Wifi"],
            "location[address]": "1 King St",
            "location[coordinates][0]": "-79.38",
            "location[coordinates][1]": "43.65",
        },
        files={"photo": ("notes.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 415
    assert response.json() == {"status": 415, "message": "text/plain is not an allowed filetype!"}
    draft = service.create_store.call_args.args[0]
    assert draft.location.coordinates == [-79.38, 43.65]
    assert draft.tags == ["Wifi"]


def test_add_store_requires_login():
    service = override(get_store_service, MagicMock(create_store=AsyncMock()))
    response = client.post(
        "/add",
        data={
            "name": "Fancy Cafe",
            "location[address]": "1 King St",
            "location[coordinates][0]": "-79.38",
            "location[coordinates][1]": "43.65",
        },
    )
    assert response.status_code == 401
    service.create_store.assert_not_awaited()


# ---- 비밀번호 재설정 ----

def test_forgot_reveals_unknown_email_when_configured():
    override(get_auth_service, MagicMock(request_reset=AsyncMock(return_value=ResetOutcome.UNKNOWN_EMAIL)))
    with patch.object(settings, "RESET_REVEAL_UNKNOWN_EMAIL", True):
        response = client.post("/account/forgot", json={"email": "nobody@example.com"})
    assert response.status_code == 200
    assert response.json()["message"] == "Could not find an account with that email."


def test_forgot_hides_unknown_email_when_configured():
    service = override(get_auth_service, MagicMock())
    with patch.object(settings, "RESET_REVEAL_UNKNOWN_EMAIL", False):
        service.request_reset = AsyncMock(return_value=ResetOutcome.UNKNOWN_EMAIL)
        unknown = client.post("/account/forgot", json={"email": "nobody@example.com"}).json()
        service.request_reset = AsyncMock(return_value=ResetOutcome.SENT)
        known = client.post("/account/forgot", json={"email": "wes@example.com"}).json()
    assert unknown == known


def test_forgot_builds_link_from_request_host():
    service = override(get_auth_service, MagicMock(request_reset=AsyncMock(return_value=ResetOutcome.SENT)))
    client.post("/account/forgot", json={"email": "wes@example.com"})
    email, base_url = service.request_reset.call_args.args
    assert email == "wes@example.com"
    assert base_url == "http://testserver/"


def test_expired_reset_token_is_400_envelope():
    override(get_auth_service, MagicMock(check_reset=AsyncMock(side_effect=ExpiredOrInvalidToken())))
    response = client.get("/account/reset/deadbeef")
    assert response.status_code == 400
    assert response.json()["message"] == "Password reset token is invalid or has expired."
