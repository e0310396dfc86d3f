from fastapi import APIRouter, Depends, Request, status
from typing import List
import logging

from app.api.dependencies import get_price_rule_repository, get_price_rule_service, validate_partner_id
from app.core.limiter import PRICE_RULE_RATE_LIMIT, limiter
from app.core.response import ApiResponse, success_response
from app.exception.service.price_rule_exception import PriceRuleNotFoundError, PriceRuleValidationError
from app.models.dto import (
    EvaluatePriceRuleRequest,
    FormulaPreviewRequest,
    FormulaPreviewResponse,
    PriceRuleUpsertRequest,
)
from app.models.price_rule import PriceRuleDefinition, PriceRuleRecord
from app.repositories.base import IPriceRuleRepository
from app.services.formula_evaluator import evaluate_formula
from app.services.price_rule_service import PriceRuleService
from app.validate.price_rule_validator import validate_definition, validate_price_rule_payload

router = APIRouter(
    prefix="/api/pricing-rules",
    tags=["Pricing Rules"],
)
logger = logging.getLogger("app")


def _dump_record(record: PriceRuleRecord) -> dict:
    return record.model_dump(by_alias=True, mode="json")


def _parse_payload(body: PriceRuleUpsertRequest) -> PriceRuleDefinition:
    """작성 요청 검증 후 정의 모델 반환. 이슈가 하나라도 있으면 422"""
    result = validate_price_rule_payload(body.name, body.description, body.definition)
    if not result.ok:
        raise PriceRuleValidationError(issues=result.issues)
    return PriceRuleDefinition.model_validate(body.definition)


@router.post("/validate", status_code=status.HTTP_200_OK)
def validate_price_rule_definition(definition: dict) -> ApiResponse:
    """
    가격 규칙 정의 검증 (저장하지 않음)

    Returns:
        200 OK: {"ok": bool, "issues": [{"path", "message"}, ...]}
    """
    result = validate_definition(definition)
    return success_response(result=result.model_dump())


@router.post("/formula/preview", status_code=status.HTTP_200_OK)
@limiter.limit(PRICE_RULE_RATE_LIMIT)
def preview_formula(request: Request, body: FormulaPreviewRequest) -> ApiResponse:
    """
    수식 미리보기: 샘플 변수 값으로 수식을 계산합니다.

    Returns:
        200 OK: {"value": float, "usedVariables": [...]}
        400: 수식 오류 (문법, 미정의 변수, 0으로 나누기 등)
    """
    used: List[str] = []

    def observe(key: str) -> None:
        if key not in used:
            used.append(key)

    value = evaluate_formula(body.expression, body.variables, observe)
    preview = FormulaPreviewResponse(value=value, used_variables=used)
    return success_response(result=preview.model_dump(by_alias=True))


@router.post("/evaluate", status_code=status.HTTP_200_OK)
@limiter.limit(PRICE_RULE_RATE_LIMIT)
def evaluate_price_rule_quote(
    request: Request,
    body: EvaluatePriceRuleRequest,
    service: PriceRuleService = Depends(get_price_rule_service),
) -> ApiResponse:
    """
    예약 조건(시간, 인원, 시작 시각)으로 가격 규칙을 평가합니다.

    - **bookingHours**: 0.5 ~ 8760
    - **guestCount**: 1 ~ 999 (수식이 guest_count를 쓰지 않으면 총액에 곱함)
    - **startAt**: 기준 시각 (없으면 현재 시각)
    """
    validation = validate_definition(body.definition)
    if not validation.ok:
        raise PriceRuleValidationError(issues=validation.issues)

    definition = PriceRuleDefinition.model_validate(body.definition)
    quote = service.quote(
        definition,
        booking_hours=body.booking_hours,
        guest_count=body.guest_count,
        start_at=body.start_at,
    )
    logger.info({
        "event": "price_rule_evaluated",
        "branch": quote.branch,
        "price": quote.price,
        "bookingHours": body.booking_hours,
        "guestCount": body.guest_count,
    })
    return success_response(result=quote.model_dump(by_alias=True))


@router.get("", status_code=status.HTTP_200_OK)
def list_price_rules(
    partner_id: str = Depends(validate_partner_id),
    repo: IPriceRuleRepository = Depends(get_price_rule_repository),
) -> ApiResponse:
    """파트너의 가격 규칙 목록 조회"""
    records = repo.list(partner_id)
    return success_response(result={"price_rules": [_dump_record(r) for r in records]})


@router.post("", status_code=status.HTTP_201_CREATED)
def create_price_rule(
    body: PriceRuleUpsertRequest,
    partner_id: str = Depends(validate_partner_id),
    repo: IPriceRuleRepository = Depends(get_price_rule_repository),
) -> ApiResponse:
    """
    가격 규칙 생성

    Returns:
        201 Created: 생성된 레코드
        422: 이름/설명/정의 검증 실패 (result.issues)
    """
    definition = _parse_payload(body)
    record = repo.create(partner_id, body.name.strip(), body.description, definition)
    return success_response(result=_dump_record(record))


@router.get("/{price_rule_id}", status_code=status.HTTP_200_OK)
def get_price_rule(
    price_rule_id: str,
    partner_id: str = Depends(validate_partner_id),
    repo: IPriceRuleRepository = Depends(get_price_rule_repository),
) -> ApiResponse:
    record = repo.get(partner_id, price_rule_id)
    if record is None:
        raise PriceRuleNotFoundError()
    return success_response(result=_dump_record(record))


@router.put("/{price_rule_id}", status_code=status.HTTP_200_OK)
def update_price_rule(
    price_rule_id: str,
    body: PriceRuleUpsertRequest,
    partner_id: str = Depends(validate_partner_id),
    repo: IPriceRuleRepository = Depends(get_price_rule_repository),
) -> ApiResponse:
    definition = _parse_payload(body)
    record = repo.update(partner_id, price_rule_id, body.name.strip(), body.description, definition)
    if record is None:
        raise PriceRuleNotFoundError()
    return success_response(result=_dump_record(record))


@router.delete("/{price_rule_id}", status_code=status.HTTP_200_OK)
def delete_price_rule(
    price_rule_id: str,
    partner_id: str = Depends(validate_partner_id),
    repo: IPriceRuleRepository = Depends(get_price_rule_repository),
) -> ApiResponse:
    """
    가격 규칙 삭제

    Note:
        예약에는 스냅샷이 저장되므로 삭제해도 기존 예약 금액 근거는 남습니다.
    """
    if not repo.delete(partner_id, price_rule_id):
        raise PriceRuleNotFoundError()
    return success_response(result={"deleted": True})
