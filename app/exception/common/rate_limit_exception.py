from app.exception.base_exception import BaseCustomException

class RateLimitException(BaseCustomException):
    """수식 미리보기/평가 API 호출 빈도 제한 초과"""
    error_code = "Rate-001"
    message = "일정 시간 내 너무 많은 요청이 발생했습니다."
    status_code = 429
