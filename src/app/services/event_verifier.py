"""
Stripe 웹훅 서명 검증 및 이벤트 파싱

Stripe-Signature 헤더 형식: ``t=<unix>,v1=<hex>[,v1=<hex>...][,v0=<hex>]``
기대 서명은 HMAC_SHA256(secret, f"{t}.{raw_payload}") 의 hex 값이며, 헤더의 v1 후보 중
하나라도 일치하고 타임스탬프가 허용 오차 안에 있어야 통과한다.
"""
from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from schemas import StripeEvent


logger = logging.getLogger(__name__)

SIGNATURE_SCHEME = "v1"
DEFAULT_TOLERANCE_SECONDS = 300


class WebhookVerificationError(Exception):
    """웹훅 검증 실패 공통 예외"""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class MalformedPayloadError(WebhookVerificationError):
    """페이로드를 이벤트 형태로 해석할 수 없음"""


class SignatureInvalidError(WebhookVerificationError):
    """서명 불일치, 헤더 누락 또는 타임스탬프 허용 오차 초과"""


def compute_signature(payload: bytes, secret: str, timestamp: int) -> str:
    """Stripe 방식의 v1 서명 계산"""

    signed_payload = str(timestamp).encode("utf-8") + b"." + payload
    return hmac.new(secret.encode("utf-8"), signed_payload, hashlib.sha256).hexdigest()


def build_signature_header(payload: bytes, secret: str, timestamp: Optional[int] = None) -> str:
    """로컬 테스트/도구용 Stripe-Signature 헤더 생성"""

    ts = int(time.time()) if timestamp is None else int(timestamp)
    return f"t={ts},{SIGNATURE_SCHEME}={compute_signature(payload, secret, ts)}"


def parse_signature_header(header: str) -> Tuple[Optional[int], List[str]]:
    """헤더에서 타임스탬프와 v1 서명 후보 목록을 추출"""

    timestamp: Optional[int] = None
    candidates: List[str] = []

    for chunk in header.split(","):
        chunk = chunk.strip()
        if not chunk or "=" not in chunk:
            continue
        key, value = chunk.split("=", 1)
        key = key.strip()
        value = value.strip()
        if key == "t":
            try:
                timestamp = int(value)
            except ValueError:
                return None, []
        elif key == SIGNATURE_SCHEME and value:
            candidates.append(value)

    return timestamp, candidates


def parse_event(raw_payload: bytes) -> StripeEvent:
    """원본 바이트를 StripeEvent 로 변환 (검증 여부와 무관하게 항상 수행)"""

    try:
        decoded: Any = json.loads(raw_payload.decode("utf-8"))
    except UnicodeDecodeError as exc:
        raise MalformedPayloadError("payload is not valid utf-8") from exc
    except json.JSONDecodeError as exc:
        raise MalformedPayloadError(f"invalid json: {exc.msg}") from exc

    if not isinstance(decoded, dict):
        raise MalformedPayloadError("payload must be a json object")

    event_id = decoded.get("id")
    event_type = decoded.get("type")
    data = decoded.get("data")

    if not isinstance(event_id, str) or not event_id:
        raise MalformedPayloadError("missing event id")
    if not isinstance(event_type, str) or not event_type:
        raise MalformedPayloadError("missing event type")
    if not isinstance(data, dict):
        raise MalformedPayloadError("missing event data")

    payload = data.get("object", data)
    if not isinstance(payload, dict):
        raise MalformedPayloadError("event data.object must be a json object")

    created = decoded.get("created")
    return StripeEvent(
        id=event_id,
        type=event_type,
        payload=payload,
        created=created if isinstance(created, int) else None,
        livemode=bool(decoded.get("livemode", False)),
        api_version=decoded.get("api_version") if isinstance(decoded.get("api_version"), str) else None,
    )


class StripeEventVerifier:
    """웹훅 페이로드 인증 후 타입이 지정된 이벤트를 생성"""

    def __init__(
        self,
        secret: Optional[str] = None,
        *,
        verify_signature: bool = True,
        tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
    ) -> None:
        self.secret = (secret or "").strip() or None
        self.verify_signature = verify_signature
        self.tolerance_seconds = max(0, int(tolerance_seconds))

        if not self.verify_signature:
            logger.warning("[STRIPE] webhook signature verification DISABLED (insecure mode)")
        elif not self.secret:
            logger.warning("[STRIPE] no webhook secret configured; signatures will not be verified")

    @property
    def enforcing(self) -> bool:
        return self.verify_signature and bool(self.secret)

    def verify(
        self,
        raw_payload: bytes,
        signature_header: Optional[str],
        secret: Optional[str] = None,
        *,
        now: Optional[float] = None,
    ) -> StripeEvent:
        """서명 검증 후 이벤트 반환. 실패 시 WebhookVerificationError 계열 예외"""

        effective_secret = (secret or "").strip() or self.secret

        if self.verify_signature and effective_secret:
            self._check_signature(raw_payload, signature_header, effective_secret, now)
            event = parse_event(raw_payload)
            logger.info("[STRIPE] verified webhook signature: type=%s id=%s", event.type, event.id)
            return event

        event = parse_event(raw_payload)
        logger.warning("[STRIPE] webhook accepted WITHOUT signature verification: type=%s id=%s", event.type, event.id)
        return event

    def _check_signature(
        self,
        raw_payload: bytes,
        signature_header: Optional[str],
        secret: str,
        now: Optional[float],
    ) -> None:
        if not signature_header:
            raise SignatureInvalidError("missing Stripe-Signature header")

        timestamp, candidates = parse_signature_header(signature_header)
        logger.debug(
            "[STRIPE] signature header parsed: has_timestamp=%s candidates=%s",
            timestamp is not None,
            len(candidates),
        )

        if timestamp is None:
            raise SignatureInvalidError("signature header missing timestamp")
        if not candidates:
            raise SignatureInvalidError(f"signature header has no {SIGNATURE_SCHEME} signature")

        expected = compute_signature(raw_payload, secret, timestamp)
        if not any(hmac.compare_digest(expected, candidate) for candidate in candidates):
            raise SignatureInvalidError("no signatures found matching the expected signature for payload")

        current = time.time() if now is None else now
        if abs(current - timestamp) > self.tolerance_seconds:
            raise SignatureInvalidError(
                f"timestamp outside the tolerance zone ({self.tolerance_seconds}s)"
            )

    def describe(self) -> Dict[str, Any]:
        """진단용 상태 (비밀값 미포함)"""

        return {
            "verify_signature": self.verify_signature,
            "secret_configured": bool(self.secret),
            "tolerance_seconds": self.tolerance_seconds,
        }
