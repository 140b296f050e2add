from __future__ import annotations

import base64
import hashlib
import hmac
import logging
from datetime import date, datetime, timezone
from typing import Any
from urllib import parse

import httpx

from tourdesk import config


logger = logging.getLogger("tourdesk.bokun")

UNLIMITED_SPOTS = 999


class BokunAPIError(ValueError):
    pass


def format_bokun_date(now: datetime | None = None) -> str:
    current = now or datetime.now(timezone.utc)
    return current.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def sign_request(
    *,
    bokun_date: str,
    access_key: str,
    method: str,
    path: str,
    secret_key: str,
) -> str:
    message = f"{bokun_date}{access_key}{method.upper()}{path}"
    digest = hmac.new(secret_key.encode("utf-8"), message.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


class BokunClient:
    def __init__(
        self,
        access_key: str,
        secret_key: str,
        base_url: str = "https://api.bokun.io",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not access_key or not secret_key:
            raise ValueError("Bokun credentials are required.")
        self._access_key = access_key
        self._secret_key = secret_key
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "BokunClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def get_availabilities(
        self, activity_id: str, start: date, end: date
    ) -> list[dict[str, Any]]:
        query = parse.urlencode(
            {"start": start.isoformat(), "end": end.isoformat(), "currency": "USD"}
        )
        activity_path = parse.quote(str(activity_id).strip(), safe="")
        payload = await self._request("GET", f"/activity.json/{activity_path}/availabilities?{query}")
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict) and isinstance(payload.get("availabilities"), list):
            return payload["availabilities"]
        raise BokunAPIError("Bokun availabilities response had an unexpected shape.")

    async def get_bookings(self, product_id: str, start: date, end: date) -> list[dict[str, Any]]:
        query = parse.urlencode(
            {"productId": product_id, "startDate": start.isoformat(), "endDate": end.isoformat()}
        )
        payload = await self._request("GET", f"/bookings?{query}")
        if isinstance(payload, dict) and isinstance(payload.get("results"), list):
            return payload["results"]
        if isinstance(payload, list):
            return payload
        raise BokunAPIError("Bokun bookings response had an unexpected shape.")

    async def _request(self, method: str, path: str) -> Any:
        bokun_date = format_bokun_date()
        signature = sign_request(
            bokun_date=bokun_date,
            access_key=self._access_key,
            method=method,
            path=path,
            secret_key=self._secret_key,
        )
        headers = {
            "X-Bokun-Date": bokun_date,
            "X-Bokun-AccessKey": self._access_key,
            "X-Bokun-Signature": signature,
            "Accept": "application/json",
        }
        try:
            response = await self._http.request(method, path, headers=headers)
        except httpx.HTTPError as exc:
            raise BokunAPIError(f"Bokun request failed: {method} {path}") from exc

        if not response.is_success:
            logger.warning(
                "Bokun API error. method=%s path=%s status=%s", method, path, response.status_code
            )
            raise BokunAPIError(f"Bokun API error: {response.status_code}")

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise BokunAPIError("Bokun response was invalid JSON.") from exc


def normalize_availability_slots(availabilities: list[dict[str, Any]]) -> list[dict[str, Any]]:
    slots: list[dict[str, Any]] = []
    for item in availabilities:
        if not isinstance(item, dict) or item.get("soldOut"):
            continue
        start_time = item.get("startTime")
        if not isinstance(start_time, str) or not start_time.strip():
            continue
        unlimited = bool(item.get("unlimitedAvailability"))
        try:
            count = int(item.get("availabilityCount") or 0)
        except (TypeError, ValueError):
            count = 0
        if not unlimited and count <= 0:
            continue
        slots.append(
            {
                "time": start_time.strip(),
                "available_spots": UNLIMITED_SPOTS if unlimited else count,
            }
        )
    return slots


def build_bokun_client() -> BokunClient | None:
    if not config.BOKUN_ACCESS_KEY or not config.BOKUN_SECRET_KEY:
        return None
    return BokunClient(
        access_key=config.BOKUN_ACCESS_KEY,
        secret_key=config.BOKUN_SECRET_KEY,
        base_url=config.BOKUN_API_URL,
        timeout=config.BOKUN_TIMEOUT_SECONDS,
    )
