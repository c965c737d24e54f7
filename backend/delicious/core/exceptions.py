# 커스텀 예외 클래스 정의
# 서비스/저장소 레이어는 HTTP를 모릅니다. 여기 정의된 예외만 던지고,
# main.py의 예외 핸들러가 {status, message} 응답으로 변환합니다.

from typing import Any, Dict, Optional


class DeliciousError(Exception):
    """애플리케이션 예외의 기본 클래스

    Attributes:
        message: 사용자에게 보여줄 메시지
        context: 로그에만 남기는 디버깅 정보
    """
    status_code: int = 500

    def __init__(self, message: str = "An unexpected error occurred", context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)


class ValidationError(DeliciousError):
    """필수 필드 누락, 형식 오류 등 클라이언트가 고칠 수 있는 입력 오류

    Attributes:
        field: 검증 실패한 필드 이름 (있는 경우)
    """
    status_code = 400

    def __init__(self, message: str = "Validation failed", field: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        if field:
            ctx["field"] = field
        self.field = field
        super().__init__(message, ctx)


class AuthenticationError(DeliciousError):
    status_code = 401

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message)


class AuthorizationError(DeliciousError):
    """작성자가 아닌 사용자가 가게를 수정하려 할 때 발생"""
    status_code = 403

    def __init__(self, message: str = "You must own the store in order to edit it."):
        super().__init__(message)


class NotFoundError(DeliciousError):
    """slug/id/token 조회 실패"""
    status_code = 404

    def __init__(self, resource: str = "resource", resource_id: Optional[str] = None):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} '{resource_id}' was not found"
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(message, {"resource": resource, "resource_id": resource_id})


class UnsupportedMediaType(DeliciousError):
    """이미지가 아닌 파일 업로드

    Attributes:
        mimetype: 클라이언트가 선언한 content-type
    """
    status_code = 415

    def __init__(self, mimetype: Optional[str], message: Optional[str] = None):
        self.mimetype = mimetype
        super().__init__(message or f"{mimetype} is not an allowed filetype!", {"mimetype": mimetype})


class ExpiredOrInvalidToken(DeliciousError):
    status_code = 400

    def __init__(self, message: str = "Password reset token is invalid or has expired."):
        super().__init__(message)


class UpstreamFailure(DeliciousError):
    """데이터베이스/메일/디스크 I/O 실패

    Attributes:
        service: 실패한 외부 자원 이름 (예: "mongodb", "smtp", "assets")
    """
    status_code = 502

    def __init__(self, service: str, message: str, context: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__(f"[{service}] {message}", context)
