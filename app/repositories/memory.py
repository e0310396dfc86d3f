import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional
from app.models.price_rule import PriceRuleDefinition, PriceRuleRecord
from app.repositories.base import IPriceRuleRepository

class InMemoryPriceRuleRepository(IPriceRuleRepository):
    """
    In-Memory 가격 규칙 저장소 구현체

    Note:
        서버 재시작 시 데이터가 초기화됩니다. 테스트와 로컬 개발용입니다.
        레코드는 {price_rule_id: PriceRuleRecord} 딕셔너리로 관리하며, dict 삽입 순서가 곧 생성 순서입니다.
    """

    def __init__(self):
        self._data: Dict[str, PriceRuleRecord] = {}

    def create(
        self, partner_id: str, name: str, description: Optional[str], definition: PriceRuleDefinition
    ) -> PriceRuleRecord:
        record = PriceRuleRecord(
            id=str(uuid.uuid4()),
            partner_id=partner_id,
            name=name,
            description=description,
            definition=definition,
            created_at=datetime.now(timezone.utc),
        )
        self._data[record.id] = record
        return record

    def get(self, partner_id: str, price_rule_id: str) -> Optional[PriceRuleRecord]:
        record = self._data.get(price_rule_id)
        if record is None or record.partner_id != partner_id:
            return None
        return record

    def list(self, partner_id: str) -> List[PriceRuleRecord]:
        return [record for record in self._data.values() if record.partner_id == partner_id]

    def update(
        self,
        partner_id: str,
        price_rule_id: str,
        name: str,
        description: Optional[str],
        definition: PriceRuleDefinition,
    ) -> Optional[PriceRuleRecord]:
        current = self.get(partner_id, price_rule_id)
        if current is None:
            return None

        updated = current.model_copy(update={
            "name": name,
            "description": description,
            "definition": definition,
            "updated_at": datetime.now(timezone.utc),
        })
        self._data[price_rule_id] = updated
        return updated

    def delete(self, partner_id: str, price_rule_id: str) -> bool:
        if self.get(partner_id, price_rule_id) is None:
            return False
        del self._data[price_rule_id]
        return True
