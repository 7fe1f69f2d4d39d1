# planner_py/routes/share_routes.py
"""
Read-only day sharing.

  POST   /share        {dateKey, items, config} -> 201 {id, url}
  GET    /share/{id}   -> stored snapshot, 404 once expired
  DELETE /share/{id}   -> 204

Snapshots live in the ShareKV under share:day:{id} with a TTL. The id is a
capability: whoever holds it can read (and delete) the snapshot. POST and
DELETE are rate limited per client address.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import json
import logging
from functools import lru_cache
from typing import List, Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from starlette.concurrency import run_in_threadpool

from planner_py.db.share_kv import ShareKV, share_key
from planner_py.scheduler.domain import DESCRIPTION_MAX, INTERVAL_MAX, INTERVAL_MIN, NAME_MAX, Color
from planner_py.services.rate_limit import RateLimitResult, SlidingWindowRateLimiter
from planner_py.services.security import (
    SECURITY_HEADERS,
    generate_share_id,
    is_same_origin,
    is_valid_share_id,
    sanitize_text,
)
from planner_py.settings import Settings, get_settings
from planner_py.utils.time_utils import is_valid_date_key, is_valid_time, time_to_minutes

logger = logging.getLogger("planner.share")

router = APIRouter(tags=["share"])


# ---------- Schemas ----------
class ShareItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1, max_length=NAME_MAX)
    description: Optional[str] = Field("", max_length=DESCRIPTION_MAX)
    startTime: str
    endTime: str
    duration: int = Field(..., ge=1)
    color: Color = Color.BLUE

    @field_validator("startTime", "endTime")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        if not is_valid_time(v):
            raise ValueError("expected HH:MM")
        return v

    @model_validator(mode="after")
    def _consistent(self):
        if not self.name.strip():
            raise ValueError("name is required")
        if time_to_minutes(self.endTime) - time_to_minutes(self.startTime) != self.duration:
            raise ValueError("duration must equal endTime - startTime")
        return self


class ShareConfig(BaseModel):
    startTime: str
    endTime: str
    interval: int = Field(..., ge=INTERVAL_MIN, le=INTERVAL_MAX)

    @field_validator("startTime", "endTime")
    @classmethod
    def _hhmm(cls, v: str) -> str:
        if not is_valid_time(v):
            raise ValueError("expected HH:MM")
        return v

    @model_validator(mode="after")
    def _ordered(self):
        if time_to_minutes(self.endTime) <= time_to_minutes(self.startTime):
            raise ValueError("endTime must be after startTime")
        return self


class ShareRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    dateKey: str
    items: List[ShareItem] = Field(..., min_length=1)
    config: ShareConfig

    @field_validator("dateKey")
    @classmethod
    def _date(cls, v: str) -> str:
        if not is_valid_date_key(v):
            raise ValueError("expected YYYY-MM-DD")
        return v


class ShareResponse(BaseModel):
    id: str
    url: str


# ---------- Dependencies ----------
@lru_cache
def get_share_kv() -> ShareKV:
    return ShareKV()


@lru_cache
def get_rate_limiter() -> SlidingWindowRateLimiter:
    s = get_settings()
    return SlidingWindowRateLimiter(s.SHARE_RATE_LIMIT, s.SHARE_RATE_WINDOW_SECONDS)


# ---------- Helpers ----------
def _error(status: int, message: str, code: str, headers: dict, details: Optional[dict] = None) -> JSONResponse:
    body = {"error": message, "code": code}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status, content=body, headers=headers)


def client_ip(request: Request) -> str:
    fwd = request.headers.get("x-forwarded-for")
    if fwd:
        return fwd.split(",")[0].strip()
    real = request.headers.get("x-real-ip")
    if real:
        return real.strip()
    return request.client.host if request.client else "anonymous"


def _rate_limited(request: Request, limiter: SlidingWindowRateLimiter, headers: dict) -> RateLimitResult:
    result = limiter.check(client_ip(request))
    headers.update(result.headers())
    return result


def sanitize_share_request(req: ShareRequest) -> dict:
    return {
        "dateKey": req.dateKey,
        "items": [
            {
                "name": sanitize_text(i.name),
                "description": sanitize_text(i.description or ""),
                "startTime": i.startTime,
                "endTime": i.endTime,
                "duration": i.duration,
                "color": i.color.value,
            }
            for i in req.items
        ],
        "config": req.config.model_dump(),
    }


# ---------- Routes ----------
@router.post("/share", status_code=201, response_model=ShareResponse)
async def create_share(
    request: Request,
    kv: ShareKV = Depends(get_share_kv),
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
    settings: Settings = Depends(get_settings),
):
    headers = dict(SECURITY_HEADERS)
    max_bytes = settings.SHARE_MAX_BODY_BYTES
    try:
        declared = request.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > max_bytes:
            return _error(413, "Request too large", "REQUEST_TOO_LARGE", headers)

        if "application/json" not in (request.headers.get("content-type") or ""):
            return _error(400, "Invalid content type", "INVALID_CONTENT_TYPE", headers)

        if settings.ENV.lower() == "prod" and not is_same_origin(
            request.headers.get("origin"), request.headers.get("host")
        ):
            return _error(403, "Invalid origin", "INVALID_ORIGIN", headers)

        if not _rate_limited(request, limiter, headers).success:
            return _error(429, "Rate limit exceeded", "RATE_LIMIT_EXCEEDED", headers)

        raw = await request.body()
        if len(raw) > max_bytes:
            return _error(413, "Request too large", "REQUEST_TOO_LARGE", headers)
        try:
            payload = json.loads(raw)
        except (ValueError, UnicodeDecodeError):
            return _error(400, "Invalid JSON body", "INVALID_JSON", headers)

        try:
            req = ShareRequest.model_validate(payload)
        except ValidationError as e:
            errors = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]
            return _error(400, "Invalid request data", "VALIDATION_ERROR", headers, {"validationErrors": errors})

        if len(req.items) > settings.SHARE_MAX_ITEMS:
            return _error(400, "Too many items", "LIMIT_EXCEEDED", headers, {"maxItems": settings.SHARE_MAX_ITEMS})

        share_id = generate_share_id()
        data = {
            **sanitize_share_request(req),
            "createdAt": dt.datetime.now(dt.timezone.utc).isoformat().replace("+00:00", "Z"),
            "createdBy": hashlib.sha256(client_ip(request).encode("utf-8")).hexdigest()[:16],
            "version": 1,
        }
        await run_in_threadpool(kv.set, share_key(share_id), data, settings.SHARE_TTL_SECONDS)

        # without a public front end, link straight to this API's GET route
        if settings.PUBLIC_BASE_URL:
            url = f"{settings.PUBLIC_BASE_URL.rstrip('/')}/share/{share_id}"
        else:
            url = str(request.url_for("get_share", share_id=share_id))
        logger.info({"event": "share_created", "date": req.dateKey, "items": len(req.items)})
        return JSONResponse(
            status_code=201,
            content=ShareResponse(id=share_id, url=url).model_dump(),
            headers=headers,
        )
    except Exception:
        logger.exception({"event": "share_create_failed"})
        return _error(500, "Internal server error", "INTERNAL_ERROR", headers)


@router.get("/share/{share_id}")
def get_share(share_id: str, kv: ShareKV = Depends(get_share_kv)):
    headers = dict(SECURITY_HEADERS)
    if not is_valid_share_id(share_id):
        return _error(400, "Malformed share id", "INVALID_ID", headers)
    data = kv.get(share_key(share_id))
    if data is None:
        return _error(404, "Not found", "NOT_FOUND", headers)
    return JSONResponse(content=data, headers=headers)


@router.delete("/share/{share_id}", status_code=204)
def delete_share(
    share_id: str,
    request: Request,
    kv: ShareKV = Depends(get_share_kv),
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
):
    headers = dict(SECURITY_HEADERS)
    if not is_valid_share_id(share_id):
        return _error(400, "Malformed share id", "INVALID_ID", headers)
    if not _rate_limited(request, limiter, headers).success:
        return _error(429, "Rate limit exceeded", "RATE_LIMIT_EXCEEDED", headers)
    if not kv.delete(share_key(share_id)):
        return _error(404, "Not found", "NOT_FOUND", headers)
    logger.info({"event": "share_deleted"})
    return Response(status_code=204, headers=headers)
