from app.exception.base_exception import BaseCustomException, ErrorCode


class FormulaEvaluationError(BaseCustomException):
    """가격 수식 계산 중 발생하는 예외의 공통 상위 클래스"""
    def __init__(self, message: str = "가격 수식을 계산할 수 없습니다.", error_code: ErrorCode = ErrorCode.FORMULA_SYNTAX_ERROR):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=400
        )


class FormulaSyntaxError(FormulaEvaluationError):
    """수식 문법 오류 (예상치 못한 문자, 괄호 불일치, 빈 수식 등)"""
    def __init__(self, message: str = "수식 문법이 올바르지 않습니다."):
        super().__init__(message=message, error_code=ErrorCode.FORMULA_SYNTAX_ERROR)


class FormulaUnknownVariableError(FormulaEvaluationError):
    """수식에서 참조한 변수가 바인딩에 없는 경우"""
    def __init__(self, key: str):
        self.key = key
        super().__init__(
            message=f'Unknown variable "{key}".',
            error_code=ErrorCode.FORMULA_UNKNOWN_VARIABLE
        )


class FormulaDivisionByZeroError(FormulaEvaluationError):
    """0으로 나누기 (Infinity/NaN을 만들지 않고 즉시 실패)"""
    def __init__(self):
        super().__init__(message="Division by zero.", error_code=ErrorCode.FORMULA_DIVISION_BY_ZERO)


class FormulaLimitExceededError(FormulaEvaluationError):
    """수식 길이 또는 괄호 중첩 깊이 제한 초과"""
    def __init__(self, message: str):
        super().__init__(message=message, error_code=ErrorCode.FORMULA_LIMIT_EXCEEDED)
