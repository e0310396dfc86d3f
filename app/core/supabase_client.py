from functools import lru_cache
from supabase import create_client, Client, ClientOptions
from app.core.config import SUPABASE_URL, SUPABASE_KEY

@lru_cache
def get_supabase_client() -> Client:
    """
    Supabase 클라이언트 반환 (Singleton via lru_cache)

    Returns:
        Client: Supabase Client 인스턴스

    Raises:
        ValueError: SUPABASE_URL 또는 SUPABASE_KEY 환경변수가 없는 경우

    Rationale:
        - 가격 규칙 엔진 자체는 DB 없이 동작하므로, 자격 증명은 저장소를 실제로 사용할 때 처음 검사합니다.
        - functools.lru_cache로 프로세스 단위 싱글톤을 유지합니다.
    """
    if not SUPABASE_URL or not SUPABASE_KEY:
        raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")

    options = ClientOptions(
        schema="public",
        auto_refresh_token=False,  # 서버 키로만 접근하므로 세션 갱신 불필요
        persist_session=False,
    )

    return create_client(SUPABASE_URL, SUPABASE_KEY, options=options)
