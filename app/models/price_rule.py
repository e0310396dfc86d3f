"""
가격 규칙(Price Rule) 도메인 모델

역할:
    - 파트너가 예약 공간(booking area)별로 설정하는 동적 가격 규칙의 저장 형태(JSON)를 그대로 표현
    - 평가 시점 입력(PriceRuleExecutionContext)과 출력(PriceRuleEvaluationResult) 정의

Rationale:
    저장되는 definition JSON은 camelCase(initialValue, valueType ...)이므로
    alias + populate_by_name 조합으로 파이썬 코드에서는 snake_case를 사용합니다.
    구조 규칙(키 중복, 미선언 변수 참조 등)은 모델이 아니라 price_rule_validator가 이슈 목록으로 보고합니다.
    모델에서 바로 예외를 던지면 작성 폼이 모든 문제를 한 번에 받을 수 없기 때문입니다.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

VariableType = Literal["text", "number", "date", "time"]
LiteralValueType = Literal["text", "number", "datetime", "date", "time"]
Comparator = Literal["<", "<=", ">", ">=", "=", "!="]
Connector = Literal["and", "or"]
Branch = Literal["then", "else", "unconditional", "no-match"]

# 예약 시간에서 고정 비율로 파생되는 변수 (initialValue/override 무시)
BOOKING_DURATION_KEYS = ("booking_hours", "booking_days", "booking_weeks", "booking_months")


class PriceRuleVariable(BaseModel):
    """수식/조건에서 이름으로 참조되는 변수 선언"""
    key: str
    label: str = ""
    type: VariableType = "number"
    initial_value: Optional[str] = Field(None, alias="initialValue")
    user_input: Optional[bool] = Field(None, alias="userInput")

    model_config = ConfigDict(populate_by_name=True)


class VariableOperand(BaseModel):
    kind: Literal["variable"] = "variable"
    key: str


class LiteralOperand(BaseModel):
    kind: Literal["literal"] = "literal"
    value: str
    value_type: LiteralValueType = Field(..., alias="valueType")

    model_config = ConfigDict(populate_by_name=True)


PriceRuleOperand = Annotated[Union[VariableOperand, LiteralOperand], Field(discriminator="kind")]


class PriceRuleCondition(BaseModel):
    """
    단일 비교 조건

    connector는 시퀀스의 첫 조건에서는 의미가 없고, 이후 조건에서는 생략 시 'and'로 취급합니다.
    """
    id: str
    connector: Optional[Connector] = None
    negated: Optional[bool] = None
    comparator: Comparator
    left: PriceRuleOperand
    right: PriceRuleOperand


class PriceRuleDefinition(BaseModel):
    variables: List[PriceRuleVariable] = Field(default_factory=list)
    conditions: List[PriceRuleCondition] = Field(default_factory=list)
    formula: str = ""

    def find_variable(self, key: str) -> Optional[PriceRuleVariable]:
        """선언 순서상 첫 번째로 key가 일치하는 변수를 반환합니다."""
        for variable in self.variables:
            if variable.key == key:
                return variable
        return None


class PriceRuleExecutionContext(BaseModel):
    """
    평가 시점 입력 (저장되지 않음)

    Attributes:
        booking_hours (float): 예약 시간(시간 단위). days/weeks/months는 여기서 파생됩니다.
        now (datetime | None): 기준 시각. 없으면 평가 시점의 현재 시각. naive 값은 로컬 시각으로 해석합니다.
        variable_overrides (dict): 호출자가 지정하는 변수 값 (number | str | datetime | date)
    """
    booking_hours: float = Field(..., alias="bookingHours")
    now: Optional[datetime] = None
    variable_overrides: Dict[str, Any] = Field(default_factory=dict, alias="variableOverrides")

    model_config = ConfigDict(populate_by_name=True)


class PriceRuleEvaluationResult(BaseModel):
    price: Optional[float] = None
    branch: Branch
    applied_expression: Optional[str] = Field(None, alias="appliedExpression")
    conditions_satisfied: bool = Field(..., alias="conditionsSatisfied")
    used_variables: List[str] = Field(default_factory=list, alias="usedVariables")

    model_config = ConfigDict(populate_by_name=True)


class PriceRuleRecord(BaseModel):
    """저장소에 보관되는 가격 규칙 레코드 (평가기는 읽기만 함)"""
    id: str
    partner_id: str
    name: str
    description: Optional[str] = None
    definition: PriceRuleDefinition
    created_at: datetime
    updated_at: Optional[datetime] = None


class ValidationIssue(BaseModel):
    path: str
    message: str


class ValidationResult(BaseModel):
    ok: bool
    issues: List[ValidationIssue] = Field(default_factory=list)


class BookingPriceRuleSnapshot(BaseModel):
    """
    예약 생성 시점의 가격 규칙 스냅샷 (booking 테이블 컬럼과 1:1)

    Rationale:
        규칙이 이후에 수정되어도 예약 금액의 근거를 재현할 수 있도록 정의 전체를 함께 보관합니다.
    """
    price_rule_id: str
    price_rule_name: str
    price_rule_snapshot: Dict[str, Any]
    price_rule_branch: Branch
    price_rule_expression: Optional[str] = None


@dataclass(frozen=True)
class ComparableValue:
    """조건 비교용으로 해석된 피연산자 값"""
    value: Union[float, str]
    kind: Literal["number", "text"]


DEFAULT_PRICE_RULE_VARIABLES: List[PriceRuleVariable] = [
    PriceRuleVariable(key="booking_hours", label="Booking hours", type="number", initial_value="1", user_input=False),
    PriceRuleVariable(key="booking_days", label="Booking days", type="number", user_input=False),
    PriceRuleVariable(key="booking_weeks", label="Booking weeks", type="number", user_input=False),
    PriceRuleVariable(key="booking_months", label="Booking months", type="number", user_input=False),
    PriceRuleVariable(key="date", label="Current date", type="date", user_input=False),
    PriceRuleVariable(key="time", label="Current time", type="time", user_input=False),
    PriceRuleVariable(key="day_of_week", label="Day of week (Mon=0)", type="number", user_input=False),
    PriceRuleVariable(key="guest_count", label="Guest count", type="number", initial_value="1", user_input=True),
]
