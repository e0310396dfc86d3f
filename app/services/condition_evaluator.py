"""
조건 평가기 (Condition Evaluator)

Rationale:
    조건 시퀀스는 괄호 없는 평탄한 왼쪽 접기(fold)입니다.
    각 조건의 connector는 '직전까지의 누적 결과'와 자신을 결합하는 연산자이며,
    and/or 사이에 우선순위는 없습니다. (a or b and c == (a or b) and c)
"""

import operator
from typing import Callable, Dict, List, Mapping

from app.exception.service.price_rule_exception import OperandResolutionError
from app.models.price_rule import ComparableValue, PriceRuleCondition, PriceRuleDefinition
from app.services.operand_resolver import Binding, resolve_operand_value

_COMPARATORS: Dict[str, Callable] = {
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "=": operator.eq,
    "!=": operator.ne,
}


def compare_values(left: ComparableValue, right: ComparableValue, comparator: str) -> bool:
    """양쪽 모두 숫자면 수치 비교, 아니면 문자열(사전순) 비교"""
    compare = _COMPARATORS.get(comparator)
    if compare is None:
        raise OperandResolutionError(f'Unknown comparator "{comparator}".')

    if left.kind == "number" and right.kind == "number":
        return compare(float(left.value), float(right.value))
    return compare(_as_text(left), _as_text(right))


def _as_text(value: ComparableValue) -> str:
    # 정수값 숫자는 "5.0"이 아니라 "5"로 비교
    if value.kind == "number" and float(value.value).is_integer():
        return str(int(value.value))
    return str(value.value)


def evaluate_condition(
    condition: PriceRuleCondition,
    variables: Mapping[str, Binding],
    definition: PriceRuleDefinition,
) -> bool:
    left = resolve_operand_value(condition.left, variables, definition)
    right = resolve_operand_value(condition.right, variables, definition)
    matches = compare_values(left, right, condition.comparator)
    return not matches if condition.negated else matches


def evaluate_condition_sequence(
    conditions: List[PriceRuleCondition],
    variables: Mapping[str, Binding],
    definition: PriceRuleDefinition,
) -> bool:
    """
    Fold a condition sequence left to right.

    The first condition seeds the accumulator; each later condition is combined using its own
    ``connector`` (default ``and``). Every condition is evaluated, so resolution errors surface
    even when the result is already decided. An empty sequence is vacuously ``True``.
    """
    if not conditions:
        return True

    result = evaluate_condition(conditions[0], variables, definition)
    for condition in conditions[1:]:
        next_value = evaluate_condition(condition, variables, definition)
        if (condition.connector or "and") == "and":
            result = result and next_value
        else:
            result = result or next_value
    return result
