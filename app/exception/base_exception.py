from enum import Enum

class ErrorCode(str, Enum):
    """
    애플리케이션 전반에서 사용하는 에러 코드 정의.
    형식: 카테고리(영문)-번호(3자리)
    """
    # 1. COMMON: 공통/일반 에러
    GENERIC_UNKNOWN = "GENERIC-000"
    COMMON_INTERNAL_ERROR = "COMMON-001"
    COMMON_BAD_REQUEST = "COMMON-002"

    # 2. FORMULA: 가격 수식 파싱/계산 관련
    FORMULA_SYNTAX_ERROR = "FORMULA-001"
    FORMULA_UNKNOWN_VARIABLE = "FORMULA-002"
    FORMULA_DIVISION_BY_ZERO = "FORMULA-003"
    FORMULA_LIMIT_EXCEEDED = "FORMULA-004"

    # 3. OPERAND: 조건 피연산자 해석 관련
    OPERAND_RESOLUTION_FAILED = "OPERAND-001"
    OPERAND_INVALID_LITERAL = "OPERAND-002"

    # 4. PRICE_RULE: 가격 규칙 정의/저장 관련
    PRICE_RULE_LIMIT_EXCEEDED = "PRICE_RULE-001"
    PRICE_RULE_NOT_FOUND = "PRICE_RULE-404"
    PRICE_RULE_INVALID_DEFINITION = "PRICE_RULE-422"


class BaseCustomException(Exception):
    """
    모든 커스텀 예외의 최상위 클래스.
    이 클래스를 상속받아 구체적인 예외를 정의해야 함.
    """
    error_code: ErrorCode = ErrorCode.GENERIC_UNKNOWN
    message: str = "알 수 없는 오류가 발생했습니다."
    status_code: int = 500

    def __init__(self, message: str = None, error_code: ErrorCode = None, status_code: int = None):
        if message:
            self.message = message
        if error_code:
            self.error_code = error_code
        if status_code:
            self.status_code = status_code
        super().__init__(self.message)
