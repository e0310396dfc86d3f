from __future__ import annotations
from functools import lru_cache
from fastapi import Header, HTTPException
import uuid

from app.repositories.base import IPriceRuleRepository
from app.repositories.supabase_repository import SupabasePriceRuleRepository
from app.services.price_rule_service import PriceRuleService


@lru_cache(maxsize=1)
def get_price_rule_repository() -> IPriceRuleRepository:
    """
    Price Rule Repository 의존성 주입 (Singleton via lru_cache)

    Returns:
        IPriceRuleRepository: Supabase Repository 반환 (캐싱된 인스턴스)
    """
    return SupabasePriceRuleRepository()


def get_price_rule_service() -> PriceRuleService:
    """PriceRuleService 인스턴스 반환 (DI용, 상태 없음)"""
    return PriceRuleService()


def validate_partner_id(
    x_partner_id: str | None = Header(default=None, alias="X-Partner-Id")
) -> str:
    """
    X-Partner-Id 헤더 검증 및 반환 Dependency

    Raises:
        HTTPException(400): 헤더가 없거나 비어있는 경우, 또는 UUID 형식이 아닌 경우
    """
    if not x_partner_id or not x_partner_id.strip():
        raise HTTPException(
            status_code=400,
            detail="X-Partner-Id header is required and cannot be empty"
        )

    try:
        uuid.UUID(x_partner_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid X-Partner-Id format")

    return x_partner_id
