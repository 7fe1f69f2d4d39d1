# planner_py/integrations/share_client.py
"""
HTTP client for the share API.

share_day() replaces a day's link: it deletes the old snapshot first and then
creates the new one. The delete is best-effort; a failure is logged and never
blocks the new link.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from planner_py.services.share_snapshot import build_share_payload

logger = logging.getLogger("planner.share_client")


class ShareError(RuntimeError):
    def __init__(self, status: Optional[int], body: Any, message: str = "Share request failed"):
        self.status = status
        self.body = body
        super().__init__(f"{message}: {status} {body}")


def _body(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return resp.text


class ShareClient:
    def __init__(self, base_url: str, session: Optional[requests.Session] = None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # ---------- low level ----------
    def create(self, payload: dict) -> dict:
        try:
            r = self.session.post(f"{self.base_url}/api/share", json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise ShareError(None, str(e), "Network error creating share") from e
        if r.status_code != 201:
            raise ShareError(r.status_code, _body(r))
        data = r.json()
        return {"id": data["id"], "url": data["url"]}

    def fetch(self, share_id: str) -> Optional[dict]:
        """Stored snapshot, or None when missing/expired."""
        try:
            r = self.session.get(f"{self.base_url}/api/share/{share_id}", timeout=self.timeout)
        except requests.RequestException as e:
            raise ShareError(None, str(e), "Network error fetching share") from e
        if r.status_code == 404:
            return None
        if not r.ok:
            raise ShareError(r.status_code, _body(r))
        return r.json()

    def delete(self, share_id: str) -> bool:
        try:
            r = self.session.delete(f"{self.base_url}/api/share/{share_id}", timeout=self.timeout)
        except requests.RequestException as e:
            raise ShareError(None, str(e), "Network error deleting share") from e
        if r.status_code == 404:
            return False
        if not r.ok:
            raise ShareError(r.status_code, _body(r))
        return True

    # ---------- planner flow ----------
    def share_day(self, planner, date_key: str):
        """Publish `date_key` and record the new link on the planner. Returns the SharedLink."""
        payload = build_share_payload(planner, date_key)

        existing = planner.get_shared_link(date_key)
        if existing is not None:
            try:
                if not self.delete(existing.share_id):
                    logger.warning({"event": "old_share_missing", "date": date_key})
            except ShareError as e:
                # continue: never block the new link on cleanup
                logger.warning({"event": "old_share_delete_failed", "date": date_key, "error": str(e)})
            planner.remove_shared_link(date_key)

        created = self.create(payload)
        link = planner.set_shared_link(date_key, created["id"], created["url"])
        logger.info({"event": "shared", "date": date_key, "items": len(payload["items"])})
        return link
