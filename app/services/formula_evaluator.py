"""
가격 수식 파서/계산기 (Recursive Descent)

문법 (좌결합, 일반적인 우선순위):
    expression := term (('+' | '-') term)*
    term       := factor (('*' | '/') factor)*
    factor     := ('+' | '-') factor | '(' expression ')' | number | variable
    number     := digits ('.' digits)?
    variable   := identifier

Rationale:
    파트너가 입력하는 자유 텍스트이므로 eval()이나 범용 스크립트 엔진 대신
    사칙연산 + 괄호 + 이름 있는 변수만 허용하는 최소 문법을 직접 파싱합니다.
    0으로 나누기는 Infinity/NaN을 만들지 않고 즉시 실패시킵니다.
"""

import math
from typing import Callable, Mapping, Optional

from app.core.config import FORMULA_MAX_LENGTH, FORMULA_MAX_NESTING_DEPTH
from app.exception.service.formula_exception import (
    FormulaDivisionByZeroError,
    FormulaEvaluationError,
    FormulaLimitExceededError,
    FormulaSyntaxError,
    FormulaUnknownVariableError,
)

VariableObserver = Callable[[str], None]


def _is_digit(char: Optional[str]) -> bool:
    return char is not None and "0" <= char <= "9"


def _is_variable_start(char: Optional[str]) -> bool:
    return char is not None and (char == "_" or "a" <= char <= "z" or "A" <= char <= "Z")


def _is_variable_part(char: Optional[str]) -> bool:
    return _is_variable_start(char) or _is_digit(char)


class _FormulaParser:
    """단일 수식 문자열에 대한 파서 상태 (호출마다 새로 생성)"""

    def __init__(
        self,
        expression: str,
        variables: Mapping[str, float],
        on_variable: Optional[VariableObserver],
        max_depth: int,
    ):
        self.expression = expression
        self.length = len(expression)
        self.pos = 0
        self.depth = 0
        self.variables = variables
        self.on_variable = on_variable
        self.max_depth = max_depth

    def peek(self) -> Optional[str]:
        if self.pos < self.length:
            return self.expression[self.pos]
        return None

    def skip_whitespace(self) -> None:
        while self.pos < self.length and self.expression[self.pos].isspace():
            self.pos += 1

    def parse(self) -> float:
        value = self.parse_expression()
        self.skip_whitespace()
        if self.pos < self.length:
            raise FormulaSyntaxError(f'Unexpected character "{self.expression[self.pos]}".')
        return value

    def parse_expression(self) -> float:
        value = self.parse_term()
        while True:
            self.skip_whitespace()
            char = self.peek()
            if char not in ("+", "-"):
                return value
            self.pos += 1
            next_value = self.parse_term()
            value = value + next_value if char == "+" else value - next_value

    def parse_term(self) -> float:
        value = self.parse_factor()
        while True:
            self.skip_whitespace()
            char = self.peek()
            if char not in ("*", "/"):
                return value
            self.pos += 1
            next_value = self.parse_factor()
            if char == "/":
                if next_value == 0:
                    raise FormulaDivisionByZeroError()
                value = value / next_value
            else:
                value = value * next_value

    def parse_factor(self) -> float:
        self.skip_whitespace()
        char = self.peek()

        if char is None:
            raise FormulaSyntaxError("Unexpected end of expression.")

        if char in ("+", "-"):
            # 연속된 단항 부호는 재귀 없이 부호 플래그로 누적
            negative = False
            while char in ("+", "-"):
                if char == "-":
                    negative = not negative
                self.pos += 1
                self.skip_whitespace()
                char = self.peek()
            next_value = self.parse_factor()
            return -next_value if negative else next_value

        if char == "(":
            self.depth += 1
            if self.depth > self.max_depth:
                raise FormulaLimitExceededError(
                    f"Formula exceeds maximum nesting depth of {self.max_depth}."
                )
            self.pos += 1
            value = self.parse_expression()
            self.skip_whitespace()
            if self.peek() != ")":
                raise FormulaSyntaxError("Expected closing parenthesis.")
            self.pos += 1
            self.depth -= 1
            return value

        if _is_digit(char) or char == ".":
            return self.parse_number()

        if _is_variable_start(char):
            return self.parse_variable()

        raise FormulaSyntaxError(f'Unexpected character "{char}".')

    def parse_number(self) -> float:
        start = self.pos
        while _is_digit(self.peek()):
            self.pos += 1
        if self.peek() == ".":
            self.pos += 1
            while _is_digit(self.peek()):
                self.pos += 1

        raw = self.expression[start:self.pos]
        if not raw or raw == ".":
            raise FormulaSyntaxError("Invalid number literal.")
        return float(raw)

    def parse_variable(self) -> float:
        start = self.pos
        self.pos += 1
        while _is_variable_part(self.peek()):
            self.pos += 1
        key = self.expression[start:self.pos]

        # 관찰 콜백은 조회 시점에 호출 (미정의 변수도 관찰된 뒤 실패)
        if self.on_variable is not None:
            self.on_variable(key)
        if key not in self.variables:
            raise FormulaUnknownVariableError(key)
        return self.variables[key]


def evaluate_formula(
    expression: str,
    variables: Mapping[str, float],
    on_variable: Optional[VariableObserver] = None,
    *,
    max_length: int = FORMULA_MAX_LENGTH,
    max_depth: int = FORMULA_MAX_NESTING_DEPTH,
) -> float:
    """
    Evaluate an arithmetic price formula against numeric variable bindings.

    Args:
        expression: Formula text, e.g. ``"booking_hours * rate + 50"``.
        variables: Numeric bindings for bare identifiers in the formula.
        on_variable: Optional observer called with every identifier as it is looked up.
        max_length: Maximum accepted formula length in characters.
        max_depth: Maximum parenthesis nesting depth.

    Returns:
        float: The finite numeric result.

    Raises:
        FormulaSyntaxError: Empty input, unexpected character, unbalanced parentheses, trailing input.
        FormulaUnknownVariableError: Identifier missing from ``variables``.
        FormulaDivisionByZeroError: Right operand of ``/`` evaluated to zero.
        FormulaLimitExceededError: Length or nesting limit exceeded.
        FormulaEvaluationError: Result is not finite.
    """
    if not expression.strip():
        raise FormulaSyntaxError("Enter a formula before validating.")
    if len(expression) > max_length:
        raise FormulaLimitExceededError(f"Formula exceeds maximum length of {max_length} characters.")

    parser = _FormulaParser(expression, variables, on_variable, max_depth)
    try:
        result = parser.parse()
    except OverflowError:
        raise FormulaEvaluationError("Expression evaluates to an invalid number.")

    if not math.isfinite(result):
        raise FormulaEvaluationError("Expression evaluates to an invalid number.")
    return float(result)
