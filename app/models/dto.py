from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# Request DTO
class EvaluatePriceRuleRequest(BaseModel):
    """Price a proposed booking against a (possibly unsaved) rule definition"""
    model_config = ConfigDict(populate_by_name=True)

    # definition은 dict로 받아 validator가 필드별 이슈로 보고하게 함
    definition: Dict[str, Any] = Field(..., description="Price rule definition (camelCase JSON)")
    booking_hours: float = Field(..., ge=0.5, le=8760, alias="bookingHours", description="Booking length in hours")
    guest_count: int = Field(1, ge=1, le=999, alias="guestCount", description="Number of guests")
    start_at: Optional[datetime] = Field(None, alias="startAt", description="Booking start (used as 'now')")


class FormulaPreviewRequest(BaseModel):
    """Live preview of a formula snippet against sample values"""
    expression: str = Field(..., description="Formula text")
    variables: Dict[str, float] = Field(default_factory=dict, description="Sample numeric bindings")


class PriceRuleUpsertRequest(BaseModel):
    """Create / update body for a price rule record"""
    name: str = Field(..., description="Rule name")
    description: Optional[str] = Field(None, description="Optional description")
    definition: Dict[str, Any] = Field(..., description="Price rule definition (camelCase JSON)")


# Response DTO
class FormulaPreviewResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    value: float
    used_variables: List[str] = Field(default_factory=list, alias="usedVariables")
