"""
가격 규칙 평가기 (Rule Evaluator, orchestrator)

역할:
    - formula를 then / else 구간으로 나누고, 조건 시퀀스 결과에 따라 적용할 구간을 선택
    - 선택된 구간의 수식을 계산하여 PriceRuleEvaluationResult로 반환

Rationale:
    [오류 처리 비대칭]
    -> 조건은 저장 전 선언된 변수 기준으로 검증되므로 피연산자 해석 실패는 예외로 전파합니다.
       반면 자유 텍스트 수식의 계산 실패(미정의 변수, 0으로 나누기 등)는 '가격 없음(price=None)'으로 흡수합니다.
       price=None을 받은 예약 흐름은 기본 요금으로 대체합니다.

    [then / else 분리]
    -> 문법에 조건식이 없으므로, 대소문자 무관 첫 번째 " else " 토큰을 기준으로 텍스트를 나눕니다.
"""

import logging
from typing import Dict, List, Optional, Tuple

from app.core.config import FORMULA_MAX_CONDITIONS
from app.exception.service.formula_exception import FormulaEvaluationError
from app.exception.service.price_rule_exception import PriceRuleLimitExceededError
from app.models.price_rule import (
    PriceRuleDefinition,
    PriceRuleEvaluationResult,
    PriceRuleExecutionContext,
)
from app.services.condition_evaluator import evaluate_condition_sequence
from app.services.execution_context import build_execution_variable_map, build_numeric_variable_map
from app.services.formula_evaluator import evaluate_formula

logger = logging.getLogger(__name__)

ELSE_MARKER = " else "


def split_formula_expressions(formula: str) -> Tuple[str, Optional[str]]:
    """
    Split ``"<then> else <else>"`` on the first case-insensitive ``" else "``.

    Returns:
        tuple: (then_expression, else_expression). ``else_expression`` is ``None`` when there is
        no marker or nothing follows it.
    """
    trimmed = formula.strip()
    else_index = trimmed.lower().find(ELSE_MARKER)
    if else_index == -1:
        return trimmed, None

    then_expression = trimmed[:else_index].strip()
    else_expression = trimmed[else_index + len(ELSE_MARKER):].strip()
    return then_expression, else_expression or None


def evaluate_price_rule(
    definition: PriceRuleDefinition,
    context: PriceRuleExecutionContext,
    *,
    max_conditions: int = FORMULA_MAX_CONDITIONS,
) -> PriceRuleEvaluationResult:
    """
    Evaluate a pricing rule for one booking.

    Args:
        definition: Variables, conditions and formula authored by the partner.
        context: Booking hours, optional ``now`` and variable overrides.
        max_conditions: Upper bound on ``definition.conditions``.

    Returns:
        PriceRuleEvaluationResult: Selected branch, applied expression and price (``None`` when
        no branch applies or the arithmetic fails).

    Raises:
        PriceRuleLimitExceededError: Too many conditions.
        OperandResolutionError: A condition operand cannot be resolved.
    """
    trimmed_formula = definition.formula.strip()
    if not trimmed_formula:
        return PriceRuleEvaluationResult(
            price=None,
            branch="unconditional",
            applied_expression=None,
            conditions_satisfied=False,
        )

    if len(definition.conditions) > max_conditions:
        raise PriceRuleLimitExceededError(
            f"Conditions count {len(definition.conditions)} exceeds maximum of {max_conditions}."
        )

    variable_map = build_execution_variable_map(definition, context)
    numeric_variable_map = build_numeric_variable_map(variable_map)
    then_expression, else_expression = split_formula_expressions(trimmed_formula)

    if not definition.conditions:
        if not then_expression:
            return PriceRuleEvaluationResult(
                price=None,
                branch="unconditional",
                applied_expression=None,
                conditions_satisfied=True,
            )
        price, used = _safe_evaluate(then_expression, numeric_variable_map)
        return PriceRuleEvaluationResult(
            price=price,
            branch="unconditional",
            applied_expression=then_expression,
            conditions_satisfied=True,
            used_variables=used,
        )

    conditions_match = evaluate_condition_sequence(definition.conditions, variable_map, definition)

    if conditions_match and then_expression:
        price, used = _safe_evaluate(then_expression, numeric_variable_map)
        return PriceRuleEvaluationResult(
            price=price,
            branch="then",
            applied_expression=then_expression,
            conditions_satisfied=True,
            used_variables=used,
        )

    if not conditions_match and else_expression:
        price, used = _safe_evaluate(else_expression, numeric_variable_map)
        return PriceRuleEvaluationResult(
            price=price,
            branch="else",
            applied_expression=else_expression,
            conditions_satisfied=False,
            used_variables=used,
        )

    if conditions_match:
        return PriceRuleEvaluationResult(
            price=None,
            branch="then",
            applied_expression=then_expression or None,
            conditions_satisfied=True,
        )

    return PriceRuleEvaluationResult(
        price=None,
        branch="no-match",
        applied_expression=else_expression or None,
        conditions_satisfied=False,
    )


def _safe_evaluate(expression: str, variables: Dict[str, float]) -> Tuple[Optional[float], List[str]]:
    """수식 계산 실패를 price=None으로 흡수하고, 관찰된 변수 목록을 함께 반환"""
    used: List[str] = []

    def observe(key: str) -> None:
        if key not in used:
            used.append(key)

    try:
        return evaluate_formula(expression, variables, observe), used
    except FormulaEvaluationError as e:
        logger.debug({
            "event": "price_rule_formula_failed",
            "expression": expression,
            "errorCode": e.error_code.value,
            "message": e.message,
        })
        return None, used
