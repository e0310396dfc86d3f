import os
from dotenv import load_dotenv

load_dotenv()

APP_ENV = os.getenv("APP_ENV", "production")
IS_DEBUG = APP_ENV == "development"

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

PRICE_RULE_TABLE = os.getenv("PRICE_RULE_TABLE", "price_rule")

# 가격 규칙 수식/조건 제한
# Rationale: 파트너가 입력하는 자유 텍스트 수식이므로 파서 재귀 깊이와 평가 비용 상한을 둡니다.
FORMULA_MAX_LENGTH = int(os.getenv("FORMULA_MAX_LENGTH", "1000"))
FORMULA_MAX_NESTING_DEPTH = int(os.getenv("FORMULA_MAX_NESTING_DEPTH", "20"))
FORMULA_MAX_CONDITIONS = int(os.getenv("FORMULA_MAX_CONDITIONS", "20"))

RATE_LIMIT_PER_MINUTE = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))

LOG_DIR = os.getenv("LOG_DIR", "logs")

# CORS 허용 오리진 (환경변수 기반)
def _parse_origins(value: str | None) -> list[str]:
    if not value:
        return []
    normalized = value.replace("\n", ",").replace(";", ",")
    items = [item.strip() for item in normalized.split(",")]
    return [item for item in items if item]

_DEFAULT_ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# 우선순위: CORS_ALLOWED_ORIGINS(복수) > FRONTEND_URL(단일)
_cors_allowed_origins = _parse_origins(os.getenv("CORS_ALLOWED_ORIGINS"))
_single_frontend_url = [os.getenv("FRONTEND_URL")] if os.getenv("FRONTEND_URL") else []

# 중복 제거를 위해 dict 키 보존 방식 사용
ALLOWED_ORIGINS = list(dict.fromkeys(_DEFAULT_ALLOWED_ORIGINS + _cors_allowed_origins + _single_frontend_url))
