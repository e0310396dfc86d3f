from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi import HTTPException
from slowapi.errors import RateLimitExceeded
import logging
from app.core.response import error_response, ValidationErrorDetail
from app.core.error_codes import ErrorCode
from app.exception.base_exception import BaseCustomException
from app.exception.common.rate_limit_exception import RateLimitException
from app.exception.service.price_rule_exception import PriceRuleValidationError
from app.core.config import IS_DEBUG
import traceback

logger = logging.getLogger("app")


def _error_code_value(exc: BaseCustomException) -> str:
    # error_code가 Enum이면 .value, 아니면 그대로 사용
    return exc.error_code.value if hasattr(exc.error_code, 'value') else exc.error_code


async def custom_exception_handler(request: Request, exc: BaseCustomException):
    """
    비즈니스 로직 예외(BaseCustomException)를 ApiResponse 포맷으로 변환

    Rationale:
        수식/피연산자/규칙 검증 예외를 표준 에러 응답으로 변환합니다.
        4xx 에러이므로 경고 수준으로 로깅합니다.
        정의 검증 실패(PriceRuleValidationError)는 필드별 이슈 목록을 result에 담습니다.
    """
    error_code_value = _error_code_value(exc)

    logger.warning({
        "status": exc.status_code,
        "errorCode": error_code_value,
        "message": exc.message,
        "client_ip": request.client.host if request.client else None,
        "path": request.url.path
    })

    result = None
    if isinstance(exc, PriceRuleValidationError):
        result = {"issues": [issue.model_dump() for issue in exc.issues]}

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            message=exc.message,
            code=error_code_value,
            result=result
        ).model_dump()
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """
    HTTPException을 ApiResponse 포맷으로 변환

    Rationale:
        X-Partner-Id 헤더 검증 등 HTTPException이 발생했을 때에도
        프론트엔드가 표준 Envelope Pattern을 받도록 변환합니다.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            message=exc.detail,
            code=ErrorCode.http_error(exc.status_code)
        ).model_dump()
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Pydantic Validation Error를 ApiResponse 포맷으로 변환 (422)

    Rationale:
        요청 본문 검증 실패(bookingHours 범위 등)를 필드별 에러로 변환하여 폼에서 바로 표시할 수 있게 합니다.
    """
    error_details = {}
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        error_details[field] = ValidationErrorDetail(
            message=error["msg"],
            type=error["type"],
            input=error.get("input")
        ).model_dump(mode="json")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_response(
            message="입력값을 확인해주세요.",
            code=ErrorCode.VALIDATION_ERROR,
            result=error_details
        ).model_dump()
    )


async def global_exception_handler_envelope(request: Request, exc: Exception):
    """
    모든 예외(500 포함)를 ApiResponse 포맷으로 변환

    Rationale:
        예상치 못한 서버 에러 발생 시 상세 스택 트레이스는 로그에만 기록하고,
        클라이언트에게는 일반적인 메시지만 반환합니다.
    """
    logger.exception(
        f"Unhandled Exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "client_ip": request.client.host if request.client else None,
        }
    )

    # 디버그 모드가 아닐 경우 상세 에러 정보(Stack Trace 등)를 노출하지 않음
    if IS_DEBUG:
        error_result = {
            "error_detail": str(exc),
            "stack_trace": traceback.format_exc()
        }
    else:
        error_result = None

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_response(
            message="서버 내부 오류가 발생했습니다. 담당자에게 문의해주세요.",
            code=ErrorCode.INTERNAL_ERROR,
            result=error_result
        ).model_dump()
    )


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    """
    Rate Limit 초과 예외 핸들러

    slowapi의 RateLimitExceeded 예외를 비즈니스 예외(RateLimitException)로 변환하여
    일관된 에러 응답 포맷을 유지합니다.

    Args:
        request (Request): FastAPI Request 객체
        exc (RateLimitExceeded): 발생한 Rate Limit 예외

    Returns:
        JSONResponse: 429 Too Many Requests 응답
    """
    rate_limit_exc = RateLimitException()
    return await custom_exception_handler(request, rate_limit_exc)
