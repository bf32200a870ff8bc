"""
애플리케이션 설정 관리
"""
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import validator
from pydantic_settings import BaseSettings


_FILE_PATH = Path(__file__).resolve()


def _collect_env_files(file_path: Path) -> tuple[Path, ...]:
    """환경 파일 후보를 가까운 디렉터리부터 수집"""

    collected: list[Path] = []
    seen: set[Path] = set()

    for directory in file_path.parents:
        for name in (".env", ".env.local"):
            candidate = directory / name
            if candidate.exists() and candidate not in seen:
                collected.append(candidate)
                seen.add(candidate)

    return tuple(collected)


_ENV_FILES = _collect_env_files(_FILE_PATH)


def _load_dotenv_files() -> None:
    """프로젝트 전체에서 활용할 .env 파일들을 순차적으로 로드"""

    for dotenv_path in _ENV_FILES:
        load_dotenv(dotenv_path, override=False)


_load_dotenv_files()


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 서버 설정
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False

    # 로깅 설정
    LOG_LEVEL: str = "INFO"

    # Stripe API 설정 (주문 생성 플로우에서만 사용)
    STRIPE_API_KEY: Optional[str] = None
    STRIPE_PUBLISHABLE_KEY: str = ""
    STRIPE_API_BASE_URL: str = "https://api.stripe.com"

    # Stripe 웹훅 설정
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    # false 이면 서명 검증 없이 페이로드만 파싱 (로컬 테스트 전용)
    STRIPE_WEBHOOK_VERIFY_SIGNATURE: bool = True
    # 서명 타임스탬프 허용 오차(초)
    STRIPE_WEBHOOK_TOLERANCE_SECONDS: int = 300

    # 원장(ledger) 설정
    LEDGER_ORDER_PREFIX: str = "MOCK-ORDER"
    LEDGER_CUSTOMER_PREFIX: str = "MOCK-CUST"
    LEDGER_SEED_SAMPLE_DATA: bool = True
    DEFAULT_CURRENCY: str = "usd"

    @validator('LOG_LEVEL')
    def validate_log_level(cls, v):
        level = (v or "").upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f'지원하지 않는 LOG_LEVEL 입니다: {v}')
        return level

    @validator('STRIPE_WEBHOOK_TOLERANCE_SECONDS')
    def validate_tolerance(cls, v):
        if v < 0:
            raise ValueError('STRIPE_WEBHOOK_TOLERANCE_SECONDS는 0 이상이어야 합니다')
        return v

    @validator('DEFAULT_CURRENCY')
    def validate_currency(cls, v):
        if not v or len(v.strip()) != 3:
            raise ValueError('DEFAULT_CURRENCY는 3자리 ISO-4217 코드여야 합니다')
        return v.strip().lower()

    class Config:
        env_file = tuple(str(path) for path in _ENV_FILES) if _ENV_FILES else None
        case_sensitive = True
        extra = "allow"  # 추가 환경변수 허용


# 전역 설정 인스턴스
settings = Settings()
