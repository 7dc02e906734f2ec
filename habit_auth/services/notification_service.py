"""
Challenge code delivery.

Runs after the issuing transaction has committed (as a FastAPI background
task). Delivery is best-effort: one attempt, failures are logged and never
reach the caller that requested the code.
"""
import logging

import httpx

from habit_auth.core.config import get_settings

logger = logging.getLogger(__name__)


def _sms_body(code: str, minutes: int) -> str:
    return f"Your login code is {code}. It expires in {minutes} minutes."


def send_challenge_sms(phone: str, code: str) -> bool:
    settings = get_settings()
    if not settings.sms_webhook_url:
        logger.info(f"[SMS] Delivery not configured, skipping send to {phone}")
        logger.debug(f"[SMS] {phone}: {code}")
        return False

    try:
        response = httpx.post(
            settings.sms_webhook_url,
            json={"to": phone, "body": _sms_body(code, settings.max_code_age_seconds // 60)},
            timeout=settings.sms_timeout_seconds,
        )
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.error(f"[SMS] Delivery to {phone} failed: {e}")
        return False

    logger.info(f"[SMS] Sent challenge to {phone} (status {response.status_code})")
    return True
