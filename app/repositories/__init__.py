from app.repositories.base import IPriceRuleRepository
from app.repositories.memory import InMemoryPriceRuleRepository

__all__ = ["IPriceRuleRepository", "InMemoryPriceRuleRepository"]
