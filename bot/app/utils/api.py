"""
bot/app/utils/api.py

HTTP-клиент бота к backend.

Никогда не бросает исключений: при ошибке транспорта возвращает None/[],
а для операций бронирования — ApiResult со статусом, чтобы flow мог
отличить «слот занят» от «backend недоступен».
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

import httpx

from bot.app.config import BACKEND_URL

logger = logging.getLogger(__name__)


# Статусы ApiResult
OK = "ok"
UNAVAILABLE = "unavailable"   # 409: слот занят / забронирован
NOT_FOUND = "not_found"       # 404
INVALID = "invalid"           # 422
ERROR = "error"               # транспорт / 5xx


@dataclass
class ApiResult:
    status: str
    data: Optional[dict] = None

    @property
    def ok(self) -> bool:
        return self.status == OK


def _status_from_code(code: int) -> str:
    if code < 400:
        return OK
    if code == 409:
        return UNAVAILABLE
    if code == 404:
        return NOT_FOUND
    if code == 422:
        return INVALID
    return ERROR


class ApiClient:
    """Асинхронный клиент backend API."""

    def __init__(self, base_url: str = BACKEND_URL):
        self.base_url = base_url.rstrip("/")

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        async with httpx.AsyncClient(timeout=10.0) as client:
            return await client.request(method, url, **kwargs)

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs
    ) -> Optional[dict | list]:
        """Базовый HTTP запрос: тело ответа или None."""
        try:
            resp = await self._send(method, path, **kwargs)
        except Exception as e:
            logger.error(f"API request failed: {method} {path} -> {e}")
            return None

        if resp.status_code == 204:
            return None

        if resp.status_code >= 400:
            logger.error(f"API error: {method} {path} -> {resp.status_code}")
            return None

        return resp.json()

    async def _request_result(self, method: str, path: str, **kwargs) -> ApiResult:
        """Запрос с разбором статуса для изменяющих операций."""
        try:
            resp = await self._send(method, path, **kwargs)
        except Exception as e:
            logger.error(f"API request failed: {method} {path} -> {e}")
            return ApiResult(ERROR)

        status = _status_from_code(resp.status_code)
        if status == ERROR:
            logger.error(f"API error: {method} {path} -> {resp.status_code}")
        elif status != OK:
            logger.info(f"API {method} {path} -> {resp.status_code}")

        try:
            data = resp.json()
        except ValueError:
            data = None
        return ApiResult(status, data if isinstance(data, dict) else None)

    # ------------------------------------------------------------------
    # Slots
    # ------------------------------------------------------------------

    async def get_slots(self, available_only: bool = True) -> list[dict]:
        """GET /slots — будущие слоты (по умолчанию только свободные)."""
        result = await self._request(
            "GET", "/slots", params={"available_only": str(available_only).lower()}
        )
        return result or []

    async def get_day_slots(self, day: date | str, available_only: bool = True) -> list[dict]:
        """GET /slots/day — слоты дня; для сегодня только ещё не начавшиеся."""
        result = await self._request(
            "GET",
            "/slots/day",
            params={"date": str(day), "available_only": str(available_only).lower()},
        )
        return result or []

    async def get_slot_dates(self, available_only: bool = True) -> list[str]:
        """GET /slots/dates — даты ('YYYY-MM-DD'), где есть (свободные) слоты."""
        result = await self._request(
            "GET", "/slots/dates", params={"available_only": str(available_only).lower()}
        )
        return (result or {}).get("dates", [])

    async def add_slot(self, day: date | str, time: str) -> ApiResult:
        """POST /slots"""
        return await self._request_result("POST", "/slots", json={"date": str(day), "time": time})

    async def add_slots(self, day: date | str, times: list[str]) -> ApiResult:
        """POST /slots/batch → {date, created, duplicates}"""
        return await self._request_result(
            "POST", "/slots/batch", json={"date": str(day), "times": times}
        )

    async def delete_slot(self, slot_id: int) -> ApiResult:
        """DELETE /slots/{id} — только свободный слот."""
        return await self._request_result("DELETE", f"/slots/{slot_id}")

    async def delete_slot_at(self, day: date | str, time: str) -> ApiResult:
        """DELETE /slots?date=&time="""
        return await self._request_result(
            "DELETE", "/slots", params={"date": str(day), "time": time}
        )

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    async def reserve(
        self,
        requester_id: int,
        day: date | str,
        time: str,
        requester_handle: Optional[str] = None,
        requester_name: Optional[str] = None,
    ) -> ApiResult:
        """POST /bookings — 409 означает, что слот уже занят."""
        data = {
            "requester_id": requester_id,
            "requester_handle": requester_handle,
            "requester_name": requester_name,
            "slot_date": str(day),
            "slot_time": time,
        }
        return await self._request_result("POST", "/bookings", json=data)

    async def cancel_booking(
        self,
        booking_id: int,
        requester_id: Optional[int] = None,
        as_admin: bool = False,
    ) -> ApiResult:
        """POST /bookings/{id}/cancel"""
        return await self._request_result(
            "POST",
            f"/bookings/{booking_id}/cancel",
            json={"requester_id": requester_id, "as_admin": as_admin},
        )

    async def get_booking(self, booking_id: int) -> Optional[dict]:
        """GET /bookings/{id}"""
        return await self._request("GET", f"/bookings/{booking_id}")

    async def get_bookings(self, date_from: date, date_to: date) -> list[dict]:
        """GET /bookings — подтверждённые записи за период."""
        result = await self._request(
            "GET",
            "/bookings",
            params={"date_from": str(date_from), "date_to": str(date_to)},
        )
        return result or []

    async def get_requester_bookings(self, requester_id: int) -> list[dict]:
        """GET /bookings/by-requester/{id} — активные будущие записи."""
        result = await self._request("GET", f"/bookings/by-requester/{requester_id}")
        return result or []

    async def mark_reminded(self, booking_id: int) -> bool:
        """POST /bookings/{id}/reminded"""
        result = await self._request("POST", f"/bookings/{booking_id}/reminded")
        return result is not None

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def get_stats(self) -> Optional[dict]:
        """GET /stats"""
        return await self._request("GET", "/stats")

    async def broadcast(self, text: str) -> Optional[int]:
        """POST /broadcast → число получателей (None при ошибке)."""
        result = await self._request("POST", "/broadcast", json={"text": text})
        if result is None:
            return None
        return result.get("recipients", 0)


# Singleton
api = ApiClient()
