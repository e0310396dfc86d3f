from typing import Protocol, List, Optional
from app.models.price_rule import PriceRuleDefinition, PriceRuleRecord

class IPriceRuleRepository(Protocol):
    """가격 규칙 저장소 인터페이스 (Repository Pattern Protocol)

    모든 메서드는 partner_id 범위 안에서만 동작합니다. 다른 파트너의 규칙은 존재하지 않는 것으로 취급합니다.
    """

    def create(
        self, partner_id: str, name: str, description: Optional[str], definition: PriceRuleDefinition
    ) -> PriceRuleRecord:
        """
        가격 규칙 생성

        Args:
            partner_id (str): 규칙을 작성한 파트너 ID
            name (str): 규칙 이름
            description (Optional[str]): 설명
            definition (PriceRuleDefinition): 검증을 통과한 규칙 정의

        Returns:
            PriceRuleRecord: id/created_at이 채워진 레코드
        """
        ...

    def get(self, partner_id: str, price_rule_id: str) -> Optional[PriceRuleRecord]:
        """
        가격 규칙 단건 조회

        Returns:
            Optional[PriceRuleRecord]: 없으면 None
        """
        ...

    def list(self, partner_id: str) -> List[PriceRuleRecord]:
        """파트너의 가격 규칙 목록 (생성 순)"""
        ...

    def update(
        self,
        partner_id: str,
        price_rule_id: str,
        name: str,
        description: Optional[str],
        definition: PriceRuleDefinition,
    ) -> Optional[PriceRuleRecord]:
        """
        가격 규칙 수정

        Returns:
            Optional[PriceRuleRecord]: 수정된 레코드, 대상이 없으면 None
        """
        ...

    def delete(self, partner_id: str, price_rule_id: str) -> bool:
        """
        가격 규칙 삭제

        Returns:
            bool: 삭제했으면 True, 대상이 없으면 False
        """
        ...
