"""
가격 규칙 도메인 서비스 (PriceRuleService)

역할:
    - 예약 견적: 가격 규칙 평가 결과에 인원수 배수 적용
    - 예약 스냅샷: 예약 시점의 규칙/분기/수식을 booking 컬럼 형태로 고정
    - 시작가: 여러 예약 공간(area)의 규칙 중 1시간 기준 최저가 계산

Rationale:
    [질문 1] 수식이 guest_count를 이미 쓰는 경우에도 인원수를 곱하는가?
    -> 아닙니다. 수식이 guest_count를 참조했다면 인원 반영은 수식 책임이므로 단가 = 총액입니다.
       참조하지 않았다면 '1인 단가'로 보고 인원수를 곱합니다.

    [질문 2] 시작가 계산 중 잘못된 규칙이 있으면?
    -> 해당 area만 건너뜁니다. 목록 화면 하나 때문에 전체 검색이 실패하면 안 되기 때문입니다.
"""

import logging
from datetime import datetime
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.exception.base_exception import BaseCustomException
from app.models.price_rule import (
    BookingPriceRuleSnapshot,
    PriceRuleDefinition,
    PriceRuleEvaluationResult,
    PriceRuleExecutionContext,
    PriceRuleRecord,
)
from app.services.pricing_rule_evaluator import evaluate_price_rule

logger = logging.getLogger(__name__)

STARTING_PRICE_DEFAULT_BOOKING_HOURS = 1


class PriceQuote(BaseModel):
    price: Optional[float] = None
    unit_price: Optional[float] = Field(None, alias="unitPrice")
    branch: str
    applied_expression: Optional[str] = Field(None, alias="appliedExpression")
    conditions_satisfied: bool = Field(..., alias="conditionsSatisfied")
    used_variables: list[str] = Field(default_factory=list, alias="usedVariables")
    guest_multiplier_applied: bool = Field(..., alias="guestMultiplierApplied")

    model_config = ConfigDict(populate_by_name=True)


class PriceRuleService:
    """가격 규칙 기반 예약 금액 계산 서비스 (상태 없음)"""

    def quote(
        self,
        definition: PriceRuleDefinition,
        booking_hours: float,
        guest_count: int = 1,
        start_at: Optional[datetime] = None,
    ) -> PriceQuote:
        """
        Price a proposed booking.

        Parameters:
            definition (PriceRuleDefinition): Rule attached to the booking area.
            booking_hours (float): Proposed reservation length in hours.
            guest_count (int): Number of guests; bound to ``guest_count`` and used as a multiplier
                when the formula does not reference it.
            start_at (Optional[datetime]): Reservation start, used as ``now``; wall clock if omitted.

        Returns:
            PriceQuote: Total price (``None`` if the rule yields no price) plus evaluation details.

        Raises:
            OperandResolutionError: A condition operand cannot be resolved.
            PriceRuleLimitExceededError: Too many conditions.
        """
        result = evaluate_price_rule(
            definition,
            PriceRuleExecutionContext(
                booking_hours=booking_hours,
                now=start_at,
                variable_overrides={"guest_count": guest_count},
            ),
        )

        formula_handles_guests = "guest_count" in result.used_variables
        multiplier = 1 if formula_handles_guests else guest_count
        total = result.price * multiplier if result.price is not None else None

        return PriceQuote(
            price=total,
            unit_price=result.price,
            branch=result.branch,
            applied_expression=result.applied_expression,
            conditions_satisfied=result.conditions_satisfied,
            used_variables=result.used_variables,
            guest_multiplier_applied=not formula_handles_guests,
        )

    def build_snapshot(
        self, record: PriceRuleRecord, result: PriceRuleEvaluationResult
    ) -> BookingPriceRuleSnapshot:
        """예약 레코드에 함께 저장할 가격 규칙 스냅샷 생성"""
        return BookingPriceRuleSnapshot(
            price_rule_id=record.id,
            price_rule_name=record.name,
            price_rule_snapshot=record.definition.model_dump(by_alias=True, exclude_none=True),
            price_rule_branch=result.branch,
            price_rule_expression=result.applied_expression,
        )

    def compute_starting_price(
        self, definitions: Iterable[Optional[PriceRuleDefinition]]
    ) -> Optional[float]:
        """
        Compute the lowest 1-hour price across booking areas.

        Areas without a rule, rules that raise, yield no price or a negative price are skipped.

        Returns:
            Optional[float]: Minimum price, or ``None`` if no area produced a usable price.
        """
        prices = []
        for definition in definitions:
            if definition is None:
                continue

            try:
                result = evaluate_price_rule(
                    definition,
                    PriceRuleExecutionContext(booking_hours=STARTING_PRICE_DEFAULT_BOOKING_HOURS),
                )
            except BaseCustomException as e:
                logger.warning({
                    "event": "starting_price_rule_skipped",
                    "errorCode": getattr(e.error_code, "value", e.error_code),
                    "message": e.message,
                })
                continue
            except Exception as e:
                # 예상하지 못한 오류도 해당 area만 건너뜀
                logger.warning({
                    "event": "starting_price_rule_skipped",
                    "errorType": type(e).__name__,
                    "message": str(e),
                })
                continue

            if result.price is None or result.price < 0:
                continue
            prices.append(result.price)

        if not prices:
            return None
        return min(prices)
