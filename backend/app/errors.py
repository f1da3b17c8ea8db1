"""도메인 오류 분류와 API 오류 응답 변환기입니다."""

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class DomainError(Exception):
    """서비스 레이어가 던지는 오류의 공통 부모. 상태 코드 매핑은 핸들러에서만 수행합니다."""

    code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(DomainError):
    code = "VALIDATION_ERROR"
    status_code = 400


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    status_code = 404


class AuthorizationError(DomainError):
    code = "FORBIDDEN"
    status_code = 403


class ConflictError(DomainError):
    code = "CONFLICT"
    status_code = 409


async def domain_error_handler(_: Request, exc: DomainError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_payload(exc.code, exc.message, exc.details),
    )
