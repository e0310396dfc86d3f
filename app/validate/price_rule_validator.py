"""
가격 규칙 정의 검증 (작성 시점)

Rationale:
    작성 폼은 모든 문제를 한 번에 표시해야 하므로, 단위 검증 함수는 예외 대신
    필드 경로가 붙은 ValidationIssue 목록을 반환하고 validate_definition이 이를 모읍니다.
"""

import re
import uuid
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError

from app.core.config import FORMULA_MAX_CONDITIONS, FORMULA_MAX_LENGTH
from app.exception.service.price_rule_exception import InvalidLiteralError
from app.models.price_rule import (
    LiteralOperand,
    PriceRuleDefinition,
    ValidationIssue,
    ValidationResult,
)
from app.services.operand_resolver import parse_literal_value

VARIABLE_KEY_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
IF_TOKEN_PATTERN = re.compile(r"\bif\b", re.IGNORECASE)
ELSE_TOKEN_PATTERN = re.compile(r"\belse\b", re.IGNORECASE)

NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500

# --- 단위 검증 함수들 (가장 작은 단위) ---

def validate_variables(definition: PriceRuleDefinition) -> List[ValidationIssue]:
    """변수 키 형식, 라벨 누락, 키 중복 검증"""
    issues = []
    seen = set()
    for index, variable in enumerate(definition.variables):
        path = f"variables.{index}"
        if not VARIABLE_KEY_PATTERN.match(variable.key):
            issues.append(ValidationIssue(
                path=f"{path}.key",
                message="Variable keys must start with a letter or underscore and contain only letters, digits or underscores.",
            ))
        elif variable.key in seen:
            issues.append(ValidationIssue(path=f"{path}.key", message=f'Duplicate variable key "{variable.key}".'))
        seen.add(variable.key)

        if not variable.label.strip():
            issues.append(ValidationIssue(path=f"{path}.label", message="Give each variable a label."))
    return issues


def validate_conditions(definition: PriceRuleDefinition) -> List[ValidationIssue]:
    """조건 개수, 조건 id(UUID), 변수 참조, 리터럴 값 검증"""
    issues = []
    if len(definition.conditions) > FORMULA_MAX_CONDITIONS:
        issues.append(ValidationIssue(
            path="conditions",
            message=f"Add at most {FORMULA_MAX_CONDITIONS} conditions.",
        ))

    declared = {variable.key for variable in definition.variables}
    for index, condition in enumerate(definition.conditions):
        path = f"conditions.{index}"
        if not _is_uuid(condition.id):
            issues.append(ValidationIssue(path=f"{path}.id", message="Condition id must be a UUID."))

        for side in ("left", "right"):
            operand = getattr(condition, side)
            if operand.kind == "variable":
                if operand.key not in declared:
                    issues.append(ValidationIssue(
                        path=f"{path}.{side}",
                        message=f'Condition references unknown variable "{operand.key}".',
                    ))
            else:
                message = _literal_issue(operand, declared)
                if message:
                    issues.append(ValidationIssue(path=f"{path}.{side}.value", message=message))
    return issues


def validate_formula(definition: PriceRuleDefinition) -> List[ValidationIssue]:
    """수식 필수/길이 및 IF-ELSE 짝 검증"""
    formula = definition.formula
    if not formula.strip():
        return [ValidationIssue(path="formula", message="Add a formula to determine the price action.")]

    issues = []
    if len(formula) > FORMULA_MAX_LENGTH:
        issues.append(ValidationIssue(
            path="formula",
            message=f"Formula must be at most {FORMULA_MAX_LENGTH} characters.",
        ))
    if IF_TOKEN_PATTERN.search(formula) and len(ELSE_TOKEN_PATTERN.findall(formula)) != 1:
        issues.append(ValidationIssue(
            path="formula",
            message="A formula with IF must contain exactly one ELSE.",
        ))
    return issues


def _literal_issue(operand: LiteralOperand, declared: set) -> Optional[str]:
    value = operand.value.strip()
    if not value:
        return "Enter a value."
    # 선언된 변수 이름을 리터럴 칸에 적은 경우는 변수 참조로 평가됨
    if value in declared:
        return None
    try:
        parse_literal_value(operand)
    except InvalidLiteralError as e:
        return e.message
    return None


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def _schema_issues(error: ValidationError) -> List[ValidationIssue]:
    # pydantic loc 튜플 → "conditions.0.comparator"
    return [
        ValidationIssue(path=".".join(str(loc) for loc in detail["loc"]), message=detail["msg"])
        for detail in error.errors()
    ]

# --- 조합 검증 함수들 ---

def validate_definition(definition: Union[PriceRuleDefinition, Dict[str, Any]]) -> ValidationResult:
    """
    가격 규칙 정의 전체를 검증합니다.
    (스키마 파싱 → 변수 → 조건 → 수식, 모든 이슈를 한 번에 수집)
    """
    if not isinstance(definition, PriceRuleDefinition):
        try:
            definition = PriceRuleDefinition.model_validate(definition)
        except ValidationError as e:
            return ValidationResult(ok=False, issues=_schema_issues(e))

    issues = (
        validate_variables(definition)
        + validate_conditions(definition)
        + validate_formula(definition)
    )
    return ValidationResult(ok=not issues, issues=issues)


def validate_price_rule_payload(
    name: str,
    description: Optional[str],
    definition: Union[PriceRuleDefinition, Dict[str, Any]],
) -> ValidationResult:
    """
    가격 규칙 레코드 작성 요청(name/description/definition)을 검증합니다.
    definition 이슈 경로에는 "definition." 접두사가 붙습니다.
    """
    issues = []
    if not name or not name.strip():
        issues.append(ValidationIssue(path="name", message="Name is required."))
    elif len(name) > NAME_MAX_LENGTH:
        issues.append(ValidationIssue(path="name", message=f"Name must be at most {NAME_MAX_LENGTH} characters."))
    if description is not None and len(description) > DESCRIPTION_MAX_LENGTH:
        issues.append(ValidationIssue(
            path="description",
            message=f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters.",
        ))

    definition_result = validate_definition(definition)
    issues.extend(
        ValidationIssue(path=f"definition.{issue.path}", message=issue.message)
        for issue in definition_result.issues
    )
    return ValidationResult(ok=not issues, issues=issues)
