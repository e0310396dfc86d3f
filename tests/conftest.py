import uuid

import pytest

from app.core.limiter import limiter
from app.models.price_rule import (
    LiteralOperand,
    PriceRuleCondition,
    PriceRuleDefinition,
    PriceRuleVariable,
    VariableOperand,
)


class RuleBuilder:
    """테스트용 가격 규칙 정의 조립 헬퍼"""

    @staticmethod
    def variable(key, type="number", initial_value=None, label=None):
        return PriceRuleVariable(key=key, label=label or key, type=type, initial_value=initial_value)

    @staticmethod
    def var(key):
        return VariableOperand(key=key)

    @staticmethod
    def lit(value, value_type="number"):
        return LiteralOperand(value=value, value_type=value_type)

    @staticmethod
    def condition(left, comparator, right, connector=None, negated=None):
        return PriceRuleCondition(
            id=str(uuid.uuid4()),
            connector=connector,
            negated=negated,
            comparator=comparator,
            left=left,
            right=right,
        )

    @classmethod
    def definition(cls, formula, conditions=None, variables=None):
        """variables를 생략하면 booking_hours 하나만 선언"""
        if variables is None:
            variables = [cls.variable("booking_hours", initial_value="1")]
        return PriceRuleDefinition(variables=variables, conditions=conditions or [], formula=formula)


@pytest.fixture
def rb():
    return RuleBuilder


@pytest.fixture(autouse=True)
def reset_limiter():
    """각 테스트 전에 limiter storage를 리셋"""
    limiter.reset()
    yield


@pytest.fixture
def partner_id():
    return "550e8400-e29b-41d4-a716-446655440000"


@pytest.fixture
def definition_payload():
    """API 요청용 camelCase definition JSON (6시간 초과 시 시간당 100, 아니면 120)"""
    return {
        "variables": [
            {"key": "booking_hours", "label": "Booking hours", "type": "number", "initialValue": "1"},
        ],
        "conditions": [
            {
                "id": "0b9c5f63-4d0b-4bb5-9a5a-3f4f1c2d9e01",
                "comparator": ">",
                "left": {"kind": "variable", "key": "booking_hours"},
                "right": {"kind": "literal", "value": "6", "valueType": "number"},
            }
        ],
        "formula": "booking_hours * 100 else booking_hours * 120",
    }
