"""
build_execution_variable_map 단위 테스트

Note:
    time / day_of_week 기본값은 로컬 벽시계 기준이므로 naive datetime(로컬로 해석)을,
    date 기본값은 UTC 자정 기준이므로 UTC aware datetime을 사용합니다.
"""
import pytest
from datetime import date, datetime, timezone

from app.models.price_rule import DEFAULT_PRICE_RULE_VARIABLES, PriceRuleDefinition, PriceRuleExecutionContext
from app.services.execution_context import build_execution_variable_map, build_numeric_variable_map

JAN_15_2024_UTC_MS = 1705276800000.0
DAY_MS = 86_400_000


def build(definition, booking_hours=1, now=None, overrides=None):
    context = PriceRuleExecutionContext(
        booking_hours=booking_hours,
        now=now,
        variable_overrides=overrides or {},
    )
    return build_execution_variable_map(definition, context)


class TestBookingDuration:

    def test_duration_variables_derive_from_hours(self, rb):
        definition = rb.definition("1", variables=[
            rb.variable("booking_hours"),
            rb.variable("booking_days"),
            rb.variable("booking_weeks"),
            rb.variable("booking_months"),
        ])
        bindings = build(definition, booking_hours=360)

        assert bindings["booking_hours"] == 360
        assert bindings["booking_days"] == 15
        assert bindings["booking_weeks"] == pytest.approx(360 / 168)
        assert bindings["booking_months"] == 0.5

    def test_duration_ignores_overrides_and_initial_value(self, rb):
        definition = rb.definition("1", variables=[rb.variable("booking_hours", initial_value="99")])
        bindings = build(definition, booking_hours=2, overrides={"booking_hours": 50})
        assert bindings["booking_hours"] == 2

    def test_non_finite_booking_hours_become_zero(self, rb):
        definition = rb.definition("1")
        assert build(definition, booking_hours=float("inf"))["booking_hours"] == 0.0

    def test_only_declared_variables_are_bound(self, rb):
        definition = rb.definition("1")
        assert list(build(definition, booking_hours=3)) == ["booking_hours"]


class TestTextVariable:

    def test_string_override(self, rb):
        definition = rb.definition("1", variables=[rb.variable("plan", type="text", initial_value="basic")])
        assert build(definition, overrides={"plan": "premium"})["plan"] == "premium"

    def test_non_string_override_uses_initial_value(self, rb):
        definition = rb.definition("1", variables=[rb.variable("plan", type="text", initial_value="basic")])
        assert build(definition, overrides={"plan": 5})["plan"] == "basic"

    def test_no_initial_value_is_empty_string(self, rb):
        definition = rb.definition("1", variables=[rb.variable("plan", type="text")])
        assert build(definition)["plan"] == ""


class TestDateVariable:

    @pytest.fixture
    def definition(self, rb):
        return rb.definition("1", variables=[rb.variable("date", type="date")])

    def test_default_is_utc_midnight_of_now(self, definition):
        now = datetime(2024, 1, 15, 22, 45, tzinfo=timezone.utc)
        assert build(definition, now=now)["date"] == JAN_15_2024_UTC_MS

    @pytest.mark.parametrize(
        "override",
        [
            "2024-01-15",
            "2024-01-15T18:00:00Z",
            date(2024, 1, 15),
            datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc),
            JAN_15_2024_UTC_MS,
        ]
    )
    def test_override_forms(self, definition, override):
        now = datetime(2030, 6, 1, tzinfo=timezone.utc)
        assert build(definition, now=now, overrides={"date": override})["date"] == JAN_15_2024_UTC_MS

    def test_initial_value_used_without_override(self, rb):
        definition = rb.definition("1", variables=[rb.variable("date", type="date", initial_value="2024-01-16")])
        now = datetime(2030, 6, 1, tzinfo=timezone.utc)
        assert build(definition, now=now)["date"] == JAN_15_2024_UTC_MS + DAY_MS

    def test_unparseable_override_falls_back_to_now(self, definition):
        now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
        assert build(definition, now=now, overrides={"date": "2024-13-45"})["date"] == JAN_15_2024_UTC_MS

    def test_out_of_range_override_falls_back_to_now(self, definition):
        now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
        overrides = {"date": "0001-01-01T00:00:00+05:00"}
        assert build(definition, now=now, overrides=overrides)["date"] == JAN_15_2024_UTC_MS


class TestTimeVariable:

    @pytest.fixture
    def definition(self, rb):
        return rb.definition("1", variables=[rb.variable("time", type="time")])

    def test_default_is_local_seconds_of_now(self, definition):
        assert build(definition, now=datetime(2024, 1, 15, 10, 30))["time"] == 37800

    @pytest.mark.parametrize(
        "override, expected",
        [
            ("18:00", 64800),
            ("7:30 PM", 70200),
            (3600, 3600),
            (datetime(2024, 1, 15, 1, 0, 30), 3630),
        ]
    )
    def test_override_forms(self, definition, override, expected):
        now = datetime(2024, 1, 15, 10, 30)
        assert build(definition, now=now, overrides={"time": override})["time"] == expected

    def test_invalid_override_falls_back_to_now(self, definition):
        now = datetime(2024, 1, 15, 10, 30)
        assert build(definition, now=now, overrides={"time": "25:00"})["time"] == 37800

    def test_initial_value_used_without_override(self, rb):
        definition = rb.definition("1", variables=[rb.variable("time", type="time", initial_value="09:00")])
        assert build(definition, now=datetime(2024, 1, 15, 10, 30))["time"] == 32400


class TestNumberVariable:

    def test_day_of_week_defaults_to_local_weekday(self, rb):
        definition = rb.definition("1", variables=[rb.variable("day_of_week")])
        # 2024-01-15는 월요일(0), 2024-01-20은 토요일(5)
        assert build(definition, now=datetime(2024, 1, 15, 12, 0))["day_of_week"] == 0
        assert build(definition, now=datetime(2024, 1, 20, 12, 0))["day_of_week"] == 5

    def test_day_of_week_override(self, rb):
        definition = rb.definition("1", variables=[rb.variable("day_of_week")])
        bindings = build(definition, now=datetime(2024, 1, 15, 12, 0), overrides={"day_of_week": "6"})
        assert bindings["day_of_week"] == 6

    @pytest.mark.parametrize(
        "override, expected",
        [
            (12, 12),
            ("12.5", 12.5),
            (" 3 ", 3),
            ("", 10),           # 빈 문자열은 숫자로 보지 않음
            ("abc", 10),
            ("1_000", 10),      # 밑줄 구분자는 숫자로 보지 않음
            (True, 10),         # bool은 숫자로 보지 않음
            (float("nan"), 10),
            (None, 10),
        ]
    )
    def test_override_with_initial_value_fallback(self, rb, override, expected):
        definition = rb.definition("1", variables=[rb.variable("rate", initial_value="10")])
        assert build(definition, overrides={"rate": override})["rate"] == expected

    def test_missing_initial_value_defaults_to_zero(self, rb):
        definition = rb.definition("1", variables=[rb.variable("rate", initial_value="ten")])
        assert build(definition)["rate"] == 0


def test_default_variables_are_all_bound():
    definition = PriceRuleDefinition(variables=DEFAULT_PRICE_RULE_VARIABLES, formula="1")
    bindings = build(definition, booking_hours=24, now=datetime(2024, 1, 15, 10, 0), overrides={"guest_count": 3})

    assert list(bindings) == [variable.key for variable in DEFAULT_PRICE_RULE_VARIABLES]
    assert bindings["booking_days"] == 1
    assert bindings["guest_count"] == 3
    assert all(isinstance(value, float) for value in bindings.values())


def test_default_now_is_wall_clock(rb):
    definition = rb.definition("1", variables=[rb.variable("time", type="time")])
    seconds = build(definition)["time"]
    assert 0 <= seconds < 86400


def test_build_numeric_variable_map_drops_text():
    numeric = build_numeric_variable_map({"booking_hours": 2.0, "plan": "basic", "rate": 5})
    assert numeric == {"booking_hours": 2.0, "rate": 5.0}
