"""
evaluate_formula 단위 테스트

테스트 대상:
- 사칙연산 우선순위/좌결합, 단항 부호, 괄호
- 숫자 리터럴 형식 (.5, 5.)
- 문법 오류 메시지, 미정의 변수, 0으로 나누기
- 길이/중첩 제한, 변수 관찰 콜백
"""
import pytest

from app.exception.base_exception import ErrorCode
from app.exception.service.formula_exception import (
    FormulaDivisionByZeroError,
    FormulaEvaluationError,
    FormulaLimitExceededError,
    FormulaSyntaxError,
    FormulaUnknownVariableError,
)
from app.services.formula_evaluator import evaluate_formula


class TestArithmetic:

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("1 + 2 * 3", 7),
            ("(1 + 2) * 3", 9),
            ("10 - 4 - 3", 3),       # 좌결합
            ("8 / 4 / 2", 1),
            ("-3 + 5", 2),
            ("--2", 2),
            ("+4", 4),
            ("2 * -3", -6),
            (".5 * 4", 2),
            ("5. + 1", 6),
            ("  ( ( 7 ) )  ", 7),
            ("7 / 2", 3.5),
        ]
    )
    def test_evaluates_expression(self, expression, expected):
        assert evaluate_formula(expression, {}) == pytest.approx(expected)

    def test_result_is_float(self):
        result = evaluate_formula("2", {})
        assert isinstance(result, float)
        assert result == 2.0

    def test_variables_are_bound_by_name(self):
        result = evaluate_formula("booking_hours * rate + 50", {"booking_hours": 3, "rate": 100})
        assert result == 350

    def test_identifier_may_contain_digits_and_underscores(self):
        assert evaluate_formula("_rate2 * 2", {"_rate2": 21}) == 42


class TestSyntaxErrors:

    @pytest.mark.parametrize("expression", ["", "   ", "\t\n"])
    def test_blank_formula(self, expression):
        with pytest.raises(FormulaSyntaxError, match="Enter a formula before validating."):
            evaluate_formula(expression, {})

    def test_unexpected_end(self):
        with pytest.raises(FormulaSyntaxError, match="Unexpected end of expression."):
            evaluate_formula("1 +", {})

    def test_missing_closing_parenthesis(self):
        with pytest.raises(FormulaSyntaxError, match="Expected closing parenthesis."):
            evaluate_formula("(1 + 2", {})

    @pytest.mark.parametrize(
        "expression, char",
        [
            ("1 2", "2"),
            ("1 $ 2", "$"),
            ("1 + 2)", ")"),
            ("1e3", "e"),
            ("é + 1", "é"),
        ]
    )
    def test_unexpected_character(self, expression, char):
        with pytest.raises(FormulaSyntaxError) as exc_info:
            evaluate_formula(expression, {})
        assert exc_info.value.message == f'Unexpected character "{char}".'

    def test_lone_dot_is_invalid_number(self):
        with pytest.raises(FormulaSyntaxError, match="Invalid number literal."):
            evaluate_formula(".", {})

    def test_syntax_error_code(self):
        with pytest.raises(FormulaSyntaxError) as exc_info:
            evaluate_formula("(", {})
        assert exc_info.value.error_code == ErrorCode.FORMULA_SYNTAX_ERROR
        assert exc_info.value.status_code == 400


class TestEvaluationErrors:

    def test_unknown_variable(self):
        with pytest.raises(FormulaUnknownVariableError) as exc_info:
            evaluate_formula("rate * 2", {"booking_hours": 1})
        assert exc_info.value.key == "rate"
        assert exc_info.value.message == 'Unknown variable "rate".'
        assert exc_info.value.error_code == ErrorCode.FORMULA_UNKNOWN_VARIABLE

    @pytest.mark.parametrize("expression", ["1 / 0", "10 / (2 - 2)", "x / y"])
    def test_division_by_zero(self, expression):
        with pytest.raises(FormulaDivisionByZeroError, match="Division by zero."):
            evaluate_formula(expression, {"x": 1, "y": 0})

    def test_non_finite_result(self):
        # 400자리 숫자는 float로 inf가 되어 유한하지 않음
        with pytest.raises(FormulaEvaluationError, match="Expression evaluates to an invalid number."):
            evaluate_formula("9" * 400, {})

    def test_all_formula_errors_share_base_class(self):
        for expression in ("(", "missing", "1/0"):
            with pytest.raises(FormulaEvaluationError):
                evaluate_formula(expression, {})


class TestLimits:

    def test_formula_length_limit(self):
        with pytest.raises(FormulaLimitExceededError, match="maximum length of 3 characters"):
            evaluate_formula("1 + 1", {}, max_length=3)

    def test_nesting_at_limit_is_allowed(self):
        expression = "(" * 5 + "1" + ")" * 5
        assert evaluate_formula(expression, {}, max_depth=5) == 1

    def test_nesting_over_limit(self):
        expression = "(" * 6 + "1" + ")" * 6
        with pytest.raises(FormulaLimitExceededError, match="maximum nesting depth of 5"):
            evaluate_formula(expression, {}, max_depth=5)

    def test_sequential_parentheses_do_not_accumulate_depth(self):
        expression = " + ".join(["(1)"] * 10)
        assert evaluate_formula(expression, {}, max_depth=1) == 10

    def test_long_unary_sign_chain(self):
        # 단항 부호는 괄호 중첩으로 세지 않으며 길이 제한 안쪽이면 계산됨
        assert evaluate_formula("-" * 990 + "5", {}) == 5
        assert evaluate_formula("-" * 991 + "5", {}) == -5
        assert evaluate_formula("2 * - + - 3", {}) == 6


class TestVariableObserver:

    def test_observer_sees_every_lookup_in_order(self):
        seen = []
        evaluate_formula("a + b * a", {"a": 1, "b": 2}, seen.append)
        assert seen == ["a", "b", "a"]

    def test_observer_called_before_unknown_variable_failure(self):
        seen = []
        with pytest.raises(FormulaUnknownVariableError):
            evaluate_formula("a + missing", {"a": 1}, seen.append)
        assert seen == ["a", "missing"]

    def test_observer_not_required(self):
        assert evaluate_formula("a", {"a": 5}) == 5
