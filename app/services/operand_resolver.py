"""
조건 피연산자 해석기 (Operand Resolver)

역할:
    - PriceRuleOperand(변수 참조 또는 타입 있는 리터럴)를 비교 가능한 값(number | text)으로 변환

Rationale:
    작성 UI에서는 리터럴 입력칸에 변수 이름을 그대로 적는 경우가 많아,
    리터럴 값이 선언된 변수 키와 정확히 일치하면 리터럴 파싱보다 먼저 변수 참조로 취급합니다.
"""

import math
from typing import Mapping, Union

from app.exception.service.price_rule_exception import OperandResolutionError
from app.models.price_rule import ComparableValue, LiteralOperand, PriceRuleDefinition, VariableOperand
from app.utils.literal_parser import (
    parse_date_literal,
    parse_datetime_literal,
    parse_number_literal,
    time_literal_to_seconds,
)

Binding = Union[float, int, str]


def resolve_operand_value(
    operand: Union[VariableOperand, LiteralOperand],
    variables: Mapping[str, Binding],
    definition: PriceRuleDefinition,
) -> ComparableValue:
    """
    Resolve a condition operand to a comparable value.

    Raises:
        OperandResolutionError: Unknown variable, missing binding or non-numeric binding.
        InvalidLiteralError: Literal text does not parse for its ``valueType``.
    """
    if operand.kind == "literal":
        normalized = operand.value.strip()
        matching_variable = definition.find_variable(normalized)
        if matching_variable is not None:
            return _resolve_variable(matching_variable.key, variables, definition)

        value = parse_literal_value(operand)
        kind = "text" if operand.value_type == "text" else "number"
        return ComparableValue(value=value, kind=kind)

    return _resolve_variable(operand.key, variables, definition)


def parse_literal_value(literal: LiteralOperand) -> Union[float, str]:
    """valueType에 맞춰 리터럴 텍스트를 파싱 (date/datetime은 epoch ms, time은 초)"""
    value = literal.value.strip()

    if literal.value_type == "number":
        return parse_number_literal(value)
    if literal.value_type == "date":
        return float(parse_date_literal(value))
    if literal.value_type == "datetime":
        return float(parse_datetime_literal(value))
    if literal.value_type == "time":
        return float(time_literal_to_seconds(value))
    return value


def _resolve_variable(
    key: str,
    variables: Mapping[str, Binding],
    definition: PriceRuleDefinition,
) -> ComparableValue:
    variable = definition.find_variable(key)
    if variable is None:
        raise OperandResolutionError(f'Unknown variable "{key}".')

    if key not in variables:
        raise OperandResolutionError(f'Value for "{key}" is missing.')
    binding = variables[key]

    if variable.type == "text":
        return ComparableValue(value=str(binding), kind="text")

    try:
        numeric = float(binding)
    except (TypeError, ValueError):
        numeric = math.nan
    if not math.isfinite(numeric):
        raise OperandResolutionError(f'Variable "{key}" does not have a numeric value.')
    return ComparableValue(value=numeric, kind="number")
