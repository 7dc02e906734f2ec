import httpx

from habit_auth.core.config import Settings
from habit_auth.services import notification_service


def test_send_without_webhook_only_logs(monkeypatch):
    monkeypatch.setattr(notification_service, "get_settings", lambda: Settings(sms_webhook_url=""))

    def fail(*args, **kwargs):
        raise AssertionError("no HTTP call expected")

    monkeypatch.setattr(notification_service.httpx, "post", fail)
    assert notification_service.send_challenge_sms("+15550100", "123456") is False


def test_send_posts_to_webhook(monkeypatch):
    url = "http://sms.test/send"
    monkeypatch.setattr(notification_service, "get_settings", lambda: Settings(sms_webhook_url=url))
    calls = []

    def fake_post(target, json, timeout):
        calls.append((target, json))
        return httpx.Response(202, request=httpx.Request("POST", target))

    monkeypatch.setattr(notification_service.httpx, "post", fake_post)

    assert notification_service.send_challenge_sms("+15550100", "123456") is True
    assert calls[0][0] == url
    assert calls[0][1]["to"] == "+15550100"
    assert "123456" in calls[0][1]["body"]


def test_delivery_failure_is_not_raised(monkeypatch):
    url = "http://sms.test/send"
    monkeypatch.setattr(notification_service, "get_settings", lambda: Settings(sms_webhook_url=url))

    def fake_post(target, json, timeout):
        raise httpx.ConnectError("connection refused", request=httpx.Request("POST", target))

    monkeypatch.setattr(notification_service.httpx, "post", fake_post)
    assert notification_service.send_challenge_sms("+15550100", "123456") is False


def test_provider_error_status_is_a_failed_send(monkeypatch):
    url = "http://sms.test/send"
    monkeypatch.setattr(notification_service, "get_settings", lambda: Settings(sms_webhook_url=url))
    monkeypatch.setattr(
        notification_service.httpx,
        "post",
        lambda target, json, timeout: httpx.Response(500, request=httpx.Request("POST", target)),
    )
    assert notification_service.send_challenge_sms("+15550100", "123456") is False
