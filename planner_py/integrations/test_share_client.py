import datetime as dt

import pytest
import requests

from planner_py.integrations.share_client import ShareClient, ShareError
from planner_py.scheduler.domain import TaskDraft
from planner_py.scheduler.errors import ValidationError
from planner_py.scheduler.planner import Planner

DAY = "2025-01-01"


class FakeResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self._body = body
        self.text = "" if body is None else str(body)

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class FakeSession:
    def __init__(self):
        self.calls = []
        self.delete_response = FakeResponse(204)
        self.created = 0

    def post(self, url, json=None, timeout=None):
        self.calls.append(("POST", url, json))
        self.created += 1
        sid = f"share{self.created:027d}"
        return FakeResponse(201, {"id": sid, "url": f"https://plan.example/share/{sid}"})

    def get(self, url, timeout=None):
        self.calls.append(("GET", url, None))
        return FakeResponse(404, {"code": "NOT_FOUND"})

    def delete(self, url, timeout=None):
        self.calls.append(("DELETE", url, None))
        if isinstance(self.delete_response, Exception):
            raise self.delete_response
        return self.delete_response


@pytest.fixture
def planner():
    p = Planner()
    p.store.add_task(DAY, TaskDraft(name="Review", start_time="10:00", duration=30))
    return p


def test_share_day_records_link(planner):
    session = FakeSession()
    link = ShareClient("https://plan.example/", session=session).share_day(planner, DAY)

    method, url, payload = session.calls[0]
    assert (method, url) == ("POST", "https://plan.example/api/share")
    assert payload["items"][0]["name"] == "Review"
    assert "id" not in payload["items"][0]
    assert planner.get_shared_link(DAY) == link
    assert link.url.endswith(link.share_id)
    assert not planner.has_schedule_changed(DAY)


def test_reshare_deletes_old_link_first(planner):
    session = FakeSession()
    client = ShareClient("https://plan.example", session=session)
    old = client.share_day(planner, DAY)
    new = client.share_day(planner, DAY)

    assert [c[0] for c in session.calls] == ["POST", "DELETE", "POST"]
    assert session.calls[1][1].endswith(old.share_id)
    assert planner.get_shared_link(DAY).share_id == new.share_id != old.share_id


@pytest.mark.parametrize(
    "failure",
    [FakeResponse(500, {"code": "INTERNAL_ERROR"}), requests.ConnectionError("down"), FakeResponse(404)],
)
def test_old_link_delete_failure_does_not_block(planner, failure):
    session = FakeSession()
    client = ShareClient("https://plan.example", session=session)
    client.share_day(planner, DAY)

    session.delete_response = failure
    link = client.share_day(planner, DAY)
    assert planner.get_shared_link(DAY) == link
    assert session.created == 2


def test_nothing_to_share():
    session = FakeSession()
    with pytest.raises(ValidationError):
        ShareClient("https://plan.example", session=session).share_day(Planner(), DAY)
    assert session.calls == []


def test_create_error_and_fetch_missing():
    session = FakeSession()
    session.post = lambda url, json=None, timeout=None: FakeResponse(429, {"code": "RATE_LIMIT_EXCEEDED"})
    client = ShareClient("https://plan.example", session=session)

    with pytest.raises(ShareError) as exc:
        client.create({"dateKey": DAY, "items": [], "config": {}})
    assert exc.value.status == 429
    assert client.fetch("x" * 32) is None


def test_link_expiry_and_staleness(planner):
    link = ShareClient("https://plan.example", session=FakeSession()).share_day(planner, DAY)
    assert not link.is_likely_expired(link.created_at + dt.timedelta(hours=24))
    assert link.is_likely_expired(link.created_at + dt.timedelta(hours=26))

    planner.store.add_task(DAY, TaskDraft(name="Follow-up", start_time="11:00", duration=15))
    assert planner.has_schedule_changed(DAY)
