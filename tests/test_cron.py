import requests

from cron import main as cron


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body
        self.text = str(body)

    def json(self):
        return self._body


def test_triggers_generation_then_reconciliation(monkeypatch):
    calls = []

    def fake_post(url, params=None, timeout=None):
        calls.append(url)
        if url.endswith("/generate-slots"):
            return FakeResponse(200, {"success": True, "summary": {"professionals": 2, "slotsCreated": 216, "days": 1}})
        return FakeResponse(200, {"success": True, "summary": {"professionals": 2, "booked": 0, "freed": 0}})

    monkeypatch.setattr(cron.requests, "post", fake_post)
    monkeypatch.delenv("SLOT_HORIZON_DAYS", raising=False)

    assert cron.main() == 0
    assert [c.rsplit("/api", 1)[1] for c in calls] == ["/appointments/generate-slots", "/timeslots/reconcile"]


def test_reports_failure_when_api_unreachable(monkeypatch):
    def refuse(url, params=None, timeout=None):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(cron.requests, "post", refuse)
    assert cron.main() == 1


def test_reports_failure_on_error_status(monkeypatch):
    monkeypatch.setattr(cron.requests, "post", lambda url, params=None, timeout=None: FakeResponse(500, {}))
    assert cron.generate_slots(3) is None
