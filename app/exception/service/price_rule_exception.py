from typing import List, Optional

from app.exception.base_exception import BaseCustomException, ErrorCode


class OperandResolutionError(BaseCustomException):
    """
    조건 피연산자를 비교 가능한 값으로 해석하지 못한 경우

    Rationale:
        조건은 저장 전에 선언된 변수 기준으로 검증되므로, 여기서 실패하면
        손상되었거나 검증을 거치지 않은 정의입니다. 수식 오류와 달리 흡수하지 않고 호출자에게 전파합니다.
    """
    def __init__(self, message: str = "조건 피연산자를 해석할 수 없습니다."):
        super().__init__(
            message=message,
            error_code=ErrorCode.OPERAND_RESOLUTION_FAILED,
            status_code=400
        )


class InvalidLiteralError(OperandResolutionError):
    """리터럴 값이 valueType 형식(number/date/datetime/time)에 맞지 않는 경우"""
    def __init__(self, message: str = "리터럴 값 형식이 올바르지 않습니다."):
        super().__init__(message=message)
        self.error_code = ErrorCode.OPERAND_INVALID_LITERAL


class PriceRuleLimitExceededError(BaseCustomException):
    """조건 개수 제한 초과"""
    def __init__(self, message: str = "가격 규칙 조건 개수 제한을 초과했습니다."):
        super().__init__(
            message=message,
            error_code=ErrorCode.PRICE_RULE_LIMIT_EXCEEDED,
            status_code=400
        )


class PriceRuleNotFoundError(BaseCustomException):
    """요청한 가격 규칙이 없거나 다른 파트너 소유인 경우"""
    def __init__(self, message: str = "가격 규칙을 찾을 수 없습니다."):
        super().__init__(
            message=message,
            error_code=ErrorCode.PRICE_RULE_NOT_FOUND,
            status_code=404
        )


class PriceRuleValidationError(BaseCustomException):
    """
    가격 규칙 정의 검증 실패 (저장/평가 전 단계)

    Args:
        issues (list): ValidationIssue 목록. 응답 result에 그대로 실어 폼이 필드별로 표시할 수 있게 합니다.
    """
    def __init__(self, issues: Optional[List] = None, message: str = "가격 규칙 정의를 확인해주세요."):
        self.issues = issues or []
        super().__init__(
            message=message,
            error_code=ErrorCode.PRICE_RULE_INVALID_DEFINITION,
            status_code=422
        )
