import json
import logging
import time
import uuid
from datetime import date
from typing import Any, Awaitable, Callable

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from tourdesk import config
from tourdesk.admin.tours import (
    CreateTourArgs,
    UpdateTourArgs,
    create_tour,
    list_tours,
    serialize_tour,
    update_tour,
)
from tourdesk.availability.args import (
    map_validation_error,
    parse_availability_args,
    parse_calendar_args,
    parse_next_date_args,
    resolve_requested_date,
)
from tourdesk.availability.engine import ReconciliationEngine
from tourdesk.availability.service import build_engine, tour_now
from tourdesk.availability.tour_types import TourType, parse_tour_type
from tourdesk.db.session import SessionLocal
from tourdesk.integrations.bokun import build_bokun_client
from tourdesk.security.dependencies import require_admin_api_key


def configure_logging() -> logging.Logger:
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    return logging.getLogger("tourdesk.backend")


logger = configure_logging()
app = FastAPI(title="Tourdesk Backend")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    started = time.monotonic()

    response = await call_next(request)
    response.headers["x-request-id"] = request_id

    event = {
        "event": "request_completed",
        "request_id": request_id,
        "route": f"{request.method} {request.url.path}",
        "status": response.status_code,
        "elapsed_ms": int((time.monotonic() - started) * 1000),
    }
    log = logger.warning if response.status_code >= 500 else logger.info
    log(json.dumps(event))
    return response


@app.get("/health")
async def health():
    return JSONResponse(content={"ok": True})


@app.post("/v1/admin/tours", dependencies=[Depends(require_admin_api_key)])
async def admin_create_tour(payload: dict[str, Any]) -> JSONResponse:
    try:
        args = CreateTourArgs.model_validate(payload)
    except ValidationError as exc:
        return JSONResponse(content={"ok": False, **map_validation_error(exc)}, status_code=400)

    db = SessionLocal()
    try:
        tour = create_tour(db=db, args=args)
        return JSONResponse(content={"ok": True, "data": {"tour": serialize_tour(tour)}})
    except ValueError as exc:
        return JSONResponse(
            status_code=409,
            content={
                "ok": False,
                "error_code": "DUPLICATE_TOUR_TYPE",
                "human_message": str(exc),
            },
        )
    except Exception:
        logger.exception("Failed creating tour.")
        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "error_code": "SYSTEM_DOWN",
                "human_message": "Temporary issue creating tour.",
            },
        )
    finally:
        db.close()


@app.get("/v1/admin/tours", dependencies=[Depends(require_admin_api_key)])
async def admin_list_tours() -> JSONResponse:
    db = SessionLocal()
    try:
        tours = list_tours(db=db)
        return JSONResponse(
            content={"ok": True, "data": {"tours": [serialize_tour(item) for item in tours]}}
        )
    finally:
        db.close()


@app.patch("/v1/admin/tours/{tour_id}", dependencies=[Depends(require_admin_api_key)])
async def admin_update_tour(tour_id: int, payload: dict[str, Any]) -> JSONResponse:
    try:
        args = UpdateTourArgs.model_validate(payload)
    except ValidationError as exc:
        return JSONResponse(content={"ok": False, **map_validation_error(exc)}, status_code=400)

    db = SessionLocal()
    try:
        tour = update_tour(db=db, tour_id=tour_id, args=args)
        if tour is None:
            return JSONResponse(
                status_code=404,
                content={
                    "ok": False,
                    "error_code": "TOUR_NOT_FOUND",
                    "human_message": "Tour not found.",
                },
            )
        return JSONResponse(content={"ok": True, "data": {"tour": serialize_tour(tour)}})
    except Exception:
        logger.exception("Failed updating tour. tour_id=%s", tour_id)
        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "error_code": "SYSTEM_DOWN",
                "human_message": "Temporary issue updating tour.",
            },
        )
    finally:
        db.close()


@app.post("/v1/availability/times")
async def availability_times(payload: dict[str, Any]) -> JSONResponse:
    try:
        args = parse_availability_args(payload)
    except ValidationError as exc:
        return JSONResponse(content={"ok": False, **map_validation_error(exc)})

    tour_type = _parse_tour_or_none(args.tour)
    if tour_type is None:
        return _unknown_tour_response(args.tour)

    target_date = resolve_requested_date(args, config.TOUR_TIMEZONE, tour_now())
    if target_date is None:
        return _clarification_response()

    async def action(engine: ReconciliationEngine) -> dict[str, Any]:
        loaded = await engine.preload(target_date, target_date)
        day = loaded.get(target_date.isoformat())
        times = engine.get_available_times(target_date, args.party_size)
        return {
            "date": target_date.isoformat(),
            "result": "AVAILABLE" if times else "NO_AVAILABILITY",
            "available_times": times,
            "fallback": bool(day.fallback) if day else True,
        }

    return await _run_with_engine(tour_type, action)


@app.post("/v1/availability/date_full")
async def availability_date_full(payload: dict[str, Any]) -> JSONResponse:
    try:
        args = parse_availability_args(payload)
    except ValidationError as exc:
        return JSONResponse(content={"ok": False, **map_validation_error(exc)})

    tour_type = _parse_tour_or_none(args.tour)
    if tour_type is None:
        return _unknown_tour_response(args.tour)

    target_date = resolve_requested_date(args, config.TOUR_TIMEZONE, tour_now())
    if target_date is None:
        return _clarification_response()

    async def action(engine: ReconciliationEngine) -> dict[str, Any]:
        await engine.preload(target_date, target_date)
        return {
            "date": target_date.isoformat(),
            "is_full": engine.is_date_full(target_date, args.party_size),
        }

    return await _run_with_engine(tour_type, action)


@app.post("/v1/availability/calendar")
async def availability_calendar(payload: dict[str, Any]) -> JSONResponse:
    try:
        args = parse_calendar_args(payload)
    except ValidationError as exc:
        return JSONResponse(content={"ok": False, **map_validation_error(exc)})

    tour_type = _parse_tour_or_none(args.tour)
    if tour_type is None:
        return _unknown_tour_response(args.tour)

    async def action(engine: ReconciliationEngine) -> dict[str, Any]:
        loaded = await engine.preload(args.start_date, args.end_date)
        days = []
        for key in sorted(loaded):
            day = loaded[key]
            day_date = date.fromisoformat(key)
            days.append(
                {
                    "date": key,
                    "is_full": engine.is_date_full(day_date, args.party_size),
                    "disabled": engine.is_date_disabled(day_date, args.party_size),
                    "has_availability": day.has_availability,
                    "source": day.source,
                    "fallback": day.fallback,
                }
            )
        return {"days": days}

    return await _run_with_engine(tour_type, action)


@app.post("/v1/availability/next_date")
async def availability_next_date(payload: dict[str, Any]) -> JSONResponse:
    try:
        args = parse_next_date_args(payload)
    except ValidationError as exc:
        return JSONResponse(content={"ok": False, **map_validation_error(exc)})

    tour_type = _parse_tour_or_none(args.tour)
    if tour_type is None:
        return _unknown_tour_response(args.tour)

    async def action(engine: ReconciliationEngine) -> dict[str, Any]:
        next_date = await engine.find_next_available_date()
        return {"next_available_date": next_date.isoformat()}

    return await _run_with_engine(tour_type, action)


async def _run_with_engine(
    tour_type: TourType,
    action: Callable[[ReconciliationEngine], Awaitable[dict[str, Any]]],
) -> JSONResponse:
    db = SessionLocal()
    client = build_bokun_client()
    try:
        engine = await build_engine(db, tour_type, client)
        data = await action(engine)
        return JSONResponse(content={"ok": True, "data": data})
    except LookupError as exc:
        return JSONResponse(
            content={
                "ok": False,
                "error_code": "TOUR_NOT_CONFIGURED",
                "human_message": str(exc),
            }
        )
    except Exception:
        logger.exception("Availability request failed. tour=%s", tour_type.value)
        return JSONResponse(
            content={
                "ok": False,
                "error_code": "SYSTEM_DOWN",
                "human_message": "Temporary issue checking availability.",
            }
        )
    finally:
        if client is not None:
            await client.aclose()
        db.close()


def _parse_tour_or_none(raw: str) -> TourType | None:
    try:
        return parse_tour_type(raw)
    except ValueError:
        return None


def _unknown_tour_response(raw: str) -> JSONResponse:
    return JSONResponse(
        content={
            "ok": False,
            "error_code": "UNKNOWN_TOUR",
            "human_message": f"Unknown tour: {raw}",
        }
    )


def _clarification_response() -> JSONResponse:
    return JSONResponse(
        content={
            "ok": False,
            "error_code": "CLARIFICATION_REQUIRED",
            "human_message": (
                "I couldn't understand the requested date. "
                "Please give a clear day, for example 'next Friday' or '2026-11-03'."
            ),
        }
    )
