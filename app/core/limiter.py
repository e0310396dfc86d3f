"""
Rate Limiter 모듈
순환 임포트를 피하기 위해 limiter를 중앙 집중화
"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.config import RATE_LIMIT_PER_MINUTE

PRICE_RULE_RATE_LIMIT = f"{RATE_LIMIT_PER_MINUTE}/minute"


def partner_or_remote_address(request: Request) -> str:
    """
    Rate limit 키 결정: X-Partner-Id 헤더가 있으면 파트너 단위, 없으면 IP 단위

    Rationale:
        같은 사무실(NAT)의 여러 파트너가 수식 미리보기를 동시에 호출해도 서로 제한을 잠식하지 않도록 합니다.
    """
    partner_id = request.headers.get("X-Partner-Id", "").strip()
    if partner_id:
        return f"partner:{partner_id}"
    return get_remote_address(request)


limiter = Limiter(key_func=partner_or_remote_address)
