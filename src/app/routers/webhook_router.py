"""
Stripe Webhook Router

- 원본 바이트 그대로 서명 검증 (재직렬화 금지)
- 검증/파싱 성공 시 즉시 200 응답, 핸들러 처리는 응답 이후 백그라운드에서 실행
- 페이로드를 읽지 못하거나 파싱/서명 검증에 실패하면 400
"""
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException, Request
from starlette.requests import ClientDisconnect

from core.factory import ServiceFactory
from core.responses import success_response
from services.event_processor import EventProcessor
from services.event_verifier import StripeEventVerifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook", tags=["webhooks", "stripe"])


def get_event_verifier() -> StripeEventVerifier:
    return ServiceFactory.get_event_verifier()


def get_event_processor() -> EventProcessor:
    return ServiceFactory.get_event_processor()


@router.get("/stripe")
async def stripe_webhook_get():
    return success_response(data={"ok": True}, message="stripe webhook alive")


@router.post("/stripe")
async def stripe_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    verifier: StripeEventVerifier = Depends(get_event_verifier),
    processor: EventProcessor = Depends(get_event_processor),
):
    try:
        raw = await request.body()
    except ClientDisconnect:
        logger.error("[STRIPE] failed to read webhook payload: client disconnected")
        raise HTTPException(status_code=400, detail="failed to read payload")

    logger.info(
        "[STRIPE] webhook received: len=%s, has_signature=%s",
        len(raw),
        bool(stripe_signature),
    )

    # 실패 시 SignatureInvalidError / MalformedPayloadError -> 미들웨어에서 400
    event = verifier.verify(raw, stripe_signature)

    background_tasks.add_task(processor.process, event)

    return success_response(
        data={"received": True, "event_id": event.id, "event_type": event.type},
        message="webhook received",
    )
