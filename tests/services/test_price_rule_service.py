"""
PriceRuleService 단위 테스트

테스트 대상:
- 견적: 인원수 배수 적용 여부 (수식의 guest_count 사용 여부에 따라)
- 예약 스냅샷 생성
- 시작가: 잘못된/음수/가격 없는 규칙 건너뛰기
"""
import pytest
from datetime import datetime, timezone

from app.models.price_rule import PriceRuleEvaluationResult, PriceRuleRecord
from app.services import price_rule_service
from app.services.price_rule_service import PriceRuleService


@pytest.fixture
def svc():
    return PriceRuleService()


class TestQuote:

    def test_guest_count_multiplies_per_person_formula(self, svc, rb):
        quote = svc.quote(rb.definition("booking_hours * 100"), booking_hours=2, guest_count=3)
        assert quote.unit_price == 200
        assert quote.price == 600
        assert quote.guest_multiplier_applied is True

    def test_formula_using_guest_count_is_not_multiplied(self, svc, rb):
        definition = rb.definition(
            "booking_hours * 10 * guest_count",
            variables=[rb.variable("booking_hours"), rb.variable("guest_count", initial_value="1")],
        )
        quote = svc.quote(definition, booking_hours=2, guest_count=3)
        assert quote.unit_price == 60
        assert quote.price == 60
        assert quote.guest_multiplier_applied is False
        assert quote.used_variables == ["booking_hours", "guest_count"]

    def test_default_single_guest(self, svc, rb):
        quote = svc.quote(rb.definition("booking_hours * 100"), booking_hours=1.5)
        assert quote.price == 150

    def test_no_price_stays_none(self, svc, rb):
        quote = svc.quote(rb.definition("booking_hours / 0"), booking_hours=2, guest_count=4)
        assert quote.price is None
        assert quote.unit_price is None

    def test_start_at_is_used_as_now(self, svc, rb):
        definition = rb.definition(
            "booking_hours * 150 else booking_hours * 100",
            conditions=[rb.condition(rb.var("day_of_week"), ">=", rb.lit("5"))],
            variables=[rb.variable("booking_hours"), rb.variable("day_of_week")],
        )
        quote = svc.quote(definition, booking_hours=2, start_at=datetime(2024, 1, 20, 10, 0))
        assert quote.branch == "then"
        assert quote.price == 300

    def test_quote_dump_uses_camel_case(self, svc, rb):
        dumped = svc.quote(rb.definition("10"), booking_hours=1).model_dump(by_alias=True)
        assert set(dumped) == {
            "price", "unitPrice", "branch", "appliedExpression",
            "conditionsSatisfied", "usedVariables", "guestMultiplierApplied",
        }


def test_build_snapshot(svc, rb):
    definition = rb.definition(
        "booking_hours * 10 else 5",
        conditions=[rb.condition(rb.var("booking_hours"), ">", rb.lit("4"))],
    )
    record = PriceRuleRecord(
        id="rule-1",
        partner_id="partner-1",
        name="Long stay",
        definition=definition,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )
    result = PriceRuleEvaluationResult(
        price=60, branch="then", applied_expression="booking_hours * 10", conditions_satisfied=True
    )

    snapshot = svc.build_snapshot(record, result)

    assert snapshot.price_rule_id == "rule-1"
    assert snapshot.price_rule_name == "Long stay"
    assert snapshot.price_rule_branch == "then"
    assert snapshot.price_rule_expression == "booking_hours * 10"
    assert snapshot.price_rule_snapshot["formula"] == "booking_hours * 10 else 5"
    right = snapshot.price_rule_snapshot["conditions"][0]["right"]
    assert right == {"kind": "literal", "value": "4", "valueType": "number"}


class TestStartingPrice:

    def test_minimum_of_usable_prices(self, svc, rb):
        definitions = [
            None,
            rb.definition("100"),
            rb.definition("booking_hours * 80"),
            rb.definition("-5"),                              # 음수 제외
            rb.definition("1 / 0"),                           # 가격 없음
            rb.definition("10", conditions=[rb.condition(rb.var("ghost"), ">", rb.lit("1"))]),  # 오류
        ]
        assert svc.compute_starting_price(definitions) == 80

    def test_evaluated_for_one_hour(self, svc, rb):
        definition = rb.definition(
            "booking_hours * 50 else booking_hours * 70",
            conditions=[rb.condition(rb.var("booking_hours"), ">", rb.lit("4"))],
        )
        assert svc.compute_starting_price([definition]) == 70

    def test_zero_is_a_valid_price(self, svc, rb):
        assert svc.compute_starting_price([rb.definition("0"), rb.definition("10")]) == 0

    @pytest.mark.parametrize("definitions", [[], [None, None]])
    def test_no_usable_price(self, svc, definitions):
        assert svc.compute_starting_price(definitions) is None

    def test_skipped_rule_is_logged(self, svc, rb, caplog):
        definition = rb.definition("10", conditions=[rb.condition(rb.var("ghost"), ">", rb.lit("1"))])
        with caplog.at_level("WARNING", logger="app.services.price_rule_service"):
            assert svc.compute_starting_price([definition]) is None
        assert any(
            isinstance(record.msg, dict) and record.msg.get("event") == "starting_price_rule_skipped"
            for record in caplog.records
        )

    def test_unexpected_error_skips_only_that_area(self, svc, rb, monkeypatch, caplog):
        broken = rb.definition("999")
        real_evaluate = price_rule_service.evaluate_price_rule

        def evaluate(definition, context):
            if definition is broken:
                raise RecursionError("maximum recursion depth exceeded")
            return real_evaluate(definition, context)

        monkeypatch.setattr(price_rule_service, "evaluate_price_rule", evaluate)

        with caplog.at_level("WARNING", logger="app.services.price_rule_service"):
            assert svc.compute_starting_price([broken, rb.definition("40")]) == 40
        assert any(
            isinstance(record.msg, dict) and record.msg.get("errorType") == "RecursionError"
            for record in caplog.records
        )

    def test_long_unary_sign_chain(self, svc, rb):
        assert svc.compute_starting_price([rb.definition("-" * 990 + "5")]) == 5
