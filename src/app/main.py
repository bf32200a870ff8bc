from fastapi import FastAPI
from contextlib import asynccontextmanager
import uvicorn
import logging
from datetime import datetime

# Core imports
from core.config import settings
from core.factory import ServiceFactory
from core.middleware import setup_exception_handlers
from core.responses import success_response

# Routers Import
from routers import ledger_router, order_router, webhook_router

# 로깅 설정
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """애플리케이션 라이프사이클 관리"""
    ServiceFactory.configure_dependencies()
    logger.info("의존성 주입 컨테이너 설정 완료")

    verifier = ServiceFactory.get_event_verifier()
    logger.info("[STRIPE] webhook verification: %s", verifier.describe())

    yield

    logger.info("애플리케이션 종료 - 인메모리 원장 데이터는 보존되지 않습니다")


# FastAPI 애플리케이션 생성
app = FastAPI(
    title="Stripe Ledger Sync",
    description="Stripe webhook ingestion and ledger order reconciliation",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG
)

setup_exception_handlers(app)


@app.get("/")
async def root():
    return success_response(
        data={"message": "Stripe Ledger Sync"},
        message="서버가 정상적으로 실행 중입니다"
    )


@app.get("/health")
async def health_check():
    store = ServiceFactory.get_ledger_store()
    return success_response(
        data={
            "ledger": store.stats(),
            "stripe_client": "configured" if ServiceFactory.get_payment_provider() else "not_configured",
            "timestamp": datetime.now().isoformat(),
            "version": APP_VERSION,
        },
        message="헬스 체크 성공"
    )


# 라우터 등록
app.include_router(webhook_router.router)
app.include_router(order_router.router)
app.include_router(ledger_router.router)


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
