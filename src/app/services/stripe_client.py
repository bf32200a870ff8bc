"""Stripe REST API 클라이언트 (결제 의도 생성 전용)"""
from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional

import httpx

from core.interfaces import IPaymentProvider


logger = logging.getLogger(__name__)


class StripeAPIError(RuntimeError):
    """Stripe API 오류"""

    def __init__(
        self,
        message: str,
        status_code: int,
        payload: Optional[Dict[str, Any]] = None,
        *,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload or {}
        self.code = code or self._extract_error_code()

    def _extract_error_code(self) -> Optional[str]:
        """응답 페이로드에서 오류 코드를 추출"""

        error = self.payload.get("error") if isinstance(self.payload, dict) else None
        if isinstance(error, dict):
            return error.get("code") or error.get("type")
        return None


def encode_form(params: Dict[str, Any], prefix: str = "") -> Dict[str, str]:
    """중첩 dict 를 Stripe 폼 인코딩 키(``metadata[orderId]``)로 평탄화"""

    flat: Dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        name = f"{prefix}[{key}]" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(encode_form(value, name))
        elif isinstance(value, bool):
            flat[name] = "true" if value else "false"
        else:
            flat[name] = str(value)
    return flat


class StripeClient(IPaymentProvider):
    """Stripe REST API 비동기 클라이언트"""

    ERROR_CODE_MESSAGES: Dict[str, str] = {
        "amount_too_small": "결제 금액이 Stripe 최소 금액보다 작습니다.",
        "amount_too_large": "결제 금액이 Stripe 최대 금액을 초과합니다.",
        "invalid_currency": "지원하지 않는 통화입니다.",
        "api_key_expired": "Stripe API 키가 만료되었습니다.",
        "rate_limit": "Stripe API 호출이 너무 많습니다. 잠시 후 다시 시도하세요.",
    }

    STATUS_MESSAGES: Dict[int, str] = {
        400: "Stripe API 요청 파라미터가 올바르지 않습니다.",
        401: "Stripe API 인증에 실패했습니다.",
        402: "Stripe 결제 요청이 거절되었습니다.",
        403: "Stripe API 접근 권한이 없습니다.",
        404: "요청한 Stripe 리소스를 찾지 못했습니다.",
        409: "Stripe 멱등성 키 충돌이 발생했습니다.",
        429: "Stripe API 호출이 제한되었습니다. 잠시 후 다시 시도하세요.",
        500: "Stripe API 서버 오류가 발생했습니다.",
        503: "Stripe API 서비스가 일시적으로 불가합니다.",
    }

    RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.stripe.com",
        timeout: float = 15.0,
        *,
        max_retries: int = 2,
        backoff_factor: float = 0.5,
    ) -> None:
        if not api_key or not api_key.strip():
            raise ValueError("Stripe 시크릿 API 키가 설정되지 않았습니다.")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_retries = max(0, int(max_retries))
        self.backoff_factor = max(0.0, float(backoff_factor))

    async def _request(
        self,
        method: str,
        path: str,
        data: Optional[Dict[str, Any]] = None,
        *,
        idempotency_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }
        # 재시도 사이에 같은 키를 유지해야 중복 결제 의도가 생기지 않는다
        if idempotency_key:
            headers["Idempotency-Key"] = idempotency_key

        form = encode_form(data) if data else None

        for attempt in range(self.max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, headers=headers, data=form)
            except httpx.RequestError as exc:
                logger.warning(
                    "[STRIPE] API request network error: %s %s attempt=%s error=%s",
                    method,
                    path,
                    attempt + 1,
                    exc,
                )

                if attempt == self.max_retries:
                    raise StripeAPIError(
                        "Stripe API 네트워크 오류가 발생했습니다.",
                        status_code=0,
                        payload={"error": {"message": str(exc)}},
                        code="network_error",
                    ) from exc

                await self._sleep_backoff(attempt)
                continue

            if response.status_code >= 400:
                payload = self._safe_json(response)
                message, code = self._resolve_error_message(payload, response.status_code)

                error = StripeAPIError(message, response.status_code, payload, code=code)

                if self._is_retryable_status(response.status_code) and attempt < self.max_retries:
                    logger.warning(
                        "[STRIPE] API request retry: %s %s status=%s code=%s attempt=%s",
                        method,
                        path,
                        response.status_code,
                        error.code,
                        attempt + 1,
                    )
                    await self._sleep_backoff(attempt)
                    continue

                logger.error(
                    "[STRIPE] API request failed: %s %s status=%s code=%s",
                    method,
                    path,
                    response.status_code,
                    error.code,
                )
                raise error

            try:
                return response.json()
            except ValueError as exc:
                logger.error("[STRIPE] API 응답 파싱 실패: %s", exc)
                raise StripeAPIError(
                    "Stripe API 응답을 파싱하지 못했습니다",
                    response.status_code,
                    payload={"error": {"message": str(exc)}},
                    code="parse_error",
                ) from exc

        # 이 지점에 도달했다면 모든 재시도가 실패한 것
        raise StripeAPIError("Stripe API 요청이 반복적으로 실패했습니다.", status_code=0)

    async def create_payment_intent(
        self,
        amount: int,
        currency: str,
        *,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        """결제 의도(PaymentIntent) 생성 - 자동 결제수단 활성화"""

        params: Dict[str, Any] = {
            "amount": amount,
            "currency": currency,
            "automatic_payment_methods": {"enabled": True},
            "metadata": dict(metadata or {}),
        }
        if description:
            params["description"] = description
            params["metadata"].setdefault("description", description)

        return await self._request(
            "POST",
            "/v1/payment_intents",
            data=params,
            idempotency_key=idempotency_key or str(uuid.uuid4()),
        )

    async def _sleep_backoff(self, attempt: int) -> None:
        """재시도 전 지수 백오프 딜레이"""

        delay = self.backoff_factor * (2**attempt)
        if delay > 0:
            await asyncio.sleep(delay)

    def _is_retryable_status(self, status_code: int) -> bool:
        return status_code in self.RETRYABLE_STATUS

    def _resolve_error_message(self, payload: Dict[str, Any], status_code: int) -> tuple[str, Optional[str]]:
        """Stripe 오류 응답을 기반으로 메시지와 코드 결정"""

        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict):
            code = error.get("code") or error.get("type")
            if code and code in self.ERROR_CODE_MESSAGES:
                return self.ERROR_CODE_MESSAGES[code], code

            message = error.get("message")
            if isinstance(message, str) and message.strip():
                return message, code

        status_message = self.STATUS_MESSAGES.get(status_code)
        if status_message:
            return status_message, None

        return "Stripe API 요청에 실패했습니다", None

    @staticmethod
    def _safe_json(response: httpx.Response) -> Dict[str, Any]:
        """JSON 파싱 실패 시 안전하게 fallback"""

        try:
            payload = response.json()
            return payload if isinstance(payload, dict) else {"data": payload}
        except ValueError:
            return {"error": {"message": response.text}}
