from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging
from supabase import Client
from app.core.config import PRICE_RULE_TABLE
from app.core.supabase_client import get_supabase_client
from app.models.price_rule import PriceRuleDefinition, PriceRuleRecord
from app.repositories.base import IPriceRuleRepository

# 로거 설정
logger = logging.getLogger(__name__)

_COLUMNS = "id,partner_id,name,description,definition,created_at,updated_at"


class SupabasePriceRuleRepository(IPriceRuleRepository):
    """
    Supabase (PostgreSQL) 기반 가격 규칙 저장소 구현체
    테이블: price_rule (id, partner_id, name, description, definition jsonb, created_at, updated_at)

    Rationale:
        definition은 camelCase JSON 그대로(by_alias) 저장하여 기존 저장 형식과 호환됩니다.
        조회/수정/삭제는 항상 partner_id 조건을 함께 걸어 다른 파트너의 규칙에 접근하지 못하게 합니다.
    """

    def __init__(self, client: Optional[Client] = None):
        """
        Args:
            client (Optional[Client]): 테스트 용이성을 위한 의존성 주입 지원
        """
        self.client = client or get_supabase_client()
        self.table = PRICE_RULE_TABLE

    def create(
        self, partner_id: str, name: str, description: Optional[str], definition: PriceRuleDefinition
    ) -> PriceRuleRecord:
        try:
            response = self.client.table(self.table).insert({
                "partner_id": partner_id,
                "name": name,
                "description": description,
                "definition": _dump_definition(definition),
            }).execute()
            return _to_record(response.data[0])
        except Exception as e:
            # 에러 로깅 후 상위 호출자에게 전파 (Fail Fast)
            logger.error(f"Failed to create price rule for partner {partner_id}: {e}", exc_info=True)
            raise

    def get(self, partner_id: str, price_rule_id: str) -> Optional[PriceRuleRecord]:
        try:
            response = self.client.table(self.table)\
                .select(_COLUMNS)\
                .eq("partner_id", partner_id)\
                .eq("id", price_rule_id)\
                .limit(1)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to get price rule {price_rule_id}: {e}", exc_info=True)
            raise

        if not response.data:
            return None
        return _to_record(response.data[0])

    def list(self, partner_id: str) -> List[PriceRuleRecord]:
        try:
            response = self.client.table(self.table)\
                .select(_COLUMNS)\
                .eq("partner_id", partner_id)\
                .order("created_at")\
                .execute()
        except Exception as e:
            logger.error(f"Failed to list price rules for partner {partner_id}: {e}", exc_info=True)
            raise

        return [_to_record(row) for row in response.data]

    def update(
        self,
        partner_id: str,
        price_rule_id: str,
        name: str,
        description: Optional[str],
        definition: PriceRuleDefinition,
    ) -> Optional[PriceRuleRecord]:
        try:
            response = self.client.table(self.table)\
                .update({
                    "name": name,
                    "description": description,
                    "definition": _dump_definition(definition),
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                })\
                .eq("partner_id", partner_id)\
                .eq("id", price_rule_id)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to update price rule {price_rule_id}: {e}", exc_info=True)
            raise

        if not response.data:
            return None
        return _to_record(response.data[0])

    def delete(self, partner_id: str, price_rule_id: str) -> bool:
        try:
            response = self.client.table(self.table)\
                .delete()\
                .eq("partner_id", partner_id)\
                .eq("id", price_rule_id)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to delete price rule {price_rule_id}: {e}", exc_info=True)
            raise

        return len(response.data) > 0


def _dump_definition(definition: PriceRuleDefinition) -> Dict[str, Any]:
    return definition.model_dump(by_alias=True, exclude_none=True)


def _to_record(row: Dict[str, Any]) -> PriceRuleRecord:
    """DB row → PriceRuleRecord (definition jsonb는 pydantic이 다시 파싱)"""
    return PriceRuleRecord.model_validate(row)
