"""
전역 예외 처리 미들웨어

웹훅 호출자(Stripe)는 200 또는 400만 받는다. 서명 오류와 페이로드 오류는
서로 다른 error_code 와 로그 레벨로 구분한다.
"""
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
import logging

from core.responses import error_response, BusinessException
from services.event_verifier import MalformedPayloadError, SignatureInvalidError
from services.stripe_client import StripeAPIError

logger = logging.getLogger(__name__)

async def business_exception_handler(request: Request, exc: BusinessException):
    """비즈니스 예외 처리기"""
    logger.warning("Business exception on %s: %s", request.url.path, exc.message)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            message=exc.message,
            error_code=exc.error_code
        ).model_dump()
    )

async def signature_invalid_handler(request: Request, exc: SignatureInvalidError):
    """서명 검증 실패 - 잠재적 보안 이벤트로 기록"""
    client = request.client.host if request.client else "unknown"
    logger.warning("[STRIPE][security] signature rejected from %s: %s", client, exc.reason)

    return JSONResponse(
        status_code=400,
        content=error_response(
            message="invalid signature",
            error_code="INVALID_SIGNATURE"
        ).model_dump()
    )

async def malformed_payload_handler(request: Request, exc: MalformedPayloadError):
    """파싱 불가능한 페이로드 - 재전송해도 바뀌지 않는 영구 실패"""
    logger.error("[STRIPE] malformed webhook payload on %s: %s", request.url.path, exc.reason)

    return JSONResponse(
        status_code=400,
        content=error_response(
            message="invalid payload",
            error_code="MALFORMED_PAYLOAD"
        ).model_dump()
    )

async def stripe_api_exception_handler(request: Request, exc: StripeAPIError):
    """Stripe API 호출 실패"""
    logger.error("[STRIPE] API error on %s: status=%s code=%s", request.url.path, exc.status_code, exc.code)

    return JSONResponse(
        status_code=502,
        content=error_response(
            message=str(exc),
            error_code="EXTERNAL_SERVICE_ERROR",
            data={"stripe_status": exc.status_code, "stripe_code": exc.code},
        ).model_dump()
    )

async def http_exception_handler_custom(request: Request, exc: HTTPException):
    """HTTP 예외 처리기"""
    logger.warning("HTTP exception on %s: %s", request.url.path, exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(
            message=str(exc.detail),
            error_code="HTTP_ERROR"
        ).model_dump()
    )

async def general_exception_handler(request: Request, exc: Exception):
    """일반 예외 처리기"""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=500,
        content=error_response(
            message="내부 서버 오류가 발생했습니다",
            error_code="INTERNAL_SERVER_ERROR"
        ).model_dump()
    )

def setup_exception_handlers(app):
    """예외 처리기 설정"""
    app.add_exception_handler(BusinessException, business_exception_handler)
    app.add_exception_handler(SignatureInvalidError, signature_invalid_handler)
    app.add_exception_handler(MalformedPayloadError, malformed_payload_handler)
    app.add_exception_handler(StripeAPIError, stripe_api_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler_custom)
    app.add_exception_handler(Exception, general_exception_handler)
