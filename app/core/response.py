from typing import TypeVar, Generic, Optional, Any
from pydantic import BaseModel, ConfigDict
from app.core.error_codes import ErrorCode

# Rationale:
# result 필드에 Pydantic 모델뿐만 아니라 ValidationResult dump, dict 등 일반 Python 타입도 허용하기 위해
# bound=BaseModel 제약을 두지 않습니다.
T = TypeVar('T')

class ApiResponse(BaseModel, Generic[T]):
    """
    API 공통 응답 모델 (Envelope Pattern)

    Attributes:
        isSuccess (bool): 성공 여부 (true/false)
        code (str): 응답 코드 (성공: "COMMON200", 실패: 에러코드)
        message (str): 메시지 (사용자 노출 가능)
        result (T | None): 실제 데이터 (실패 시에는 에러 상세 정보 또는 null)
    """
    isSuccess: bool
    code: str
    message: str
    result: Optional[T] = None

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "isSuccess": True,
                    "code": "COMMON200",
                    "message": "성공입니다.",
                    "result": {
                        "price": 600.0,
                        "branch": "then",
                        "appliedExpression": "booking_hours * 100"
                    }
                },
                {
                    "isSuccess": False,
                    "code": "PRICE_RULE-422",
                    "message": "가격 규칙 정의를 확인해주세요.",
                    "result": {
                        "issues": [
                            {"path": "formula", "message": "A formula with IF must contain exactly one ELSE."}
                        ]
                    }
                }
            ]
        }
    )


class ValidationErrorDetail(BaseModel):
    """
    Validation 에러의 상세 정보를 담는 모델
    """
    message: str
    type: str
    input: Any | None = None


def success_response(result: T, code: str = ErrorCode.COMMON_SUCCESS, message: str = "성공입니다.") -> ApiResponse[T]:
    """
    성공 응답 생성 팩토리 함수
    """
    return ApiResponse(isSuccess=True, code=code, message=message, result=result)


def error_response(message: str, code: str = "ERROR", result: Optional[Any] = None) -> ApiResponse[Any]:
    """
    실패 응답 생성 팩토리 함수
    """
    return ApiResponse(isSuccess=False, code=code, message=message, result=result)
