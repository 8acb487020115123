"""FastAPI adapter exposing logs and incident analysis."""

import time

from fastapi import APIRouter, HTTPException, Query, Response

from vigilpy.core.encoding.ndjson import encode_logs
from vigilpy.core.encoding.report import (
    encode_report,
    error_analysis_to_dict,
    journey_to_dict,
)
from vigilpy.core.errors import ValidationError
from vigilpy.core.incidents import IncidentCorrelationEngine
from vigilpy.core.models import LogFilters, LogLevel
from vigilpy.core.ports import LogStorePort
from vigilpy.core.time_range import TimeRange


def create_incident_router(
    engine: IncidentCorrelationEngine,
    log_store: LogStorePort,
) -> APIRouter:
    """Create a FastAPI router with read-only log and incident endpoints.

    Args:
        engine: Engine used for error analysis, journeys and reports.
        log_store: Store implementing LogStorePort, served by ``/logs``.

    Returns:
        APIRouter with ``/logs``, ``/incidents/errors``,
        ``/incidents/journeys/{user_id}`` and ``/incidents/report``.
    """
    router = APIRouter()

    @router.get("/logs")
    async def get_logs(
        start: float = Query(default=0),
        end: float | None = Query(default=None),
        user_id: str | None = None,
        workflow_id: str | None = None,
        request_id: str | None = None,
        component: str | None = None,
        level: LogLevel | None = None,
    ) -> Response:
        """Return logs in NDJSON format.

        Args:
            start: Unix timestamp, inclusive lower bound.
            end: Unix timestamp, inclusive upper bound. Defaults to now.
        """
        try:
            window = TimeRange.create(start, time.time() if end is None else end)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        filters = LogFilters(
            user_id=user_id,
            workflow_id=workflow_id,
            request_id=request_id,
            component=component,
            level=level,
        )
        entries = [e async for e in log_store.query(window, filters)]
        return Response(content=encode_logs(entries), media_type="application/x-ndjson")

    @router.get("/incidents/errors")
    async def get_error_analysis(
        at: float = Query(...),
        lookback_minutes: float = Query(default=60, ge=0),
    ) -> dict:
        analysis = await engine.analyze_error_pattern(at, lookback_minutes)
        return error_analysis_to_dict(analysis)

    @router.get("/incidents/journeys/{user_id}")
    async def get_user_journey(
        user_id: str,
        at: float = Query(...),
        lookback_minutes: float = Query(default=120, ge=0),
    ) -> dict:
        journey = await engine.trace_user_journey(user_id, at, lookback_minutes)
        return journey_to_dict(journey)

    @router.get("/incidents/report")
    async def get_incident_report(
        at: float = Query(...),
        description: str = Query(default="Reported incident"),
        users: list[str] | None = Query(default=None),
        workflows: list[str] | None = Query(default=None),
    ) -> Response:
        report = await engine.generate_incident_report(at, description, users, workflows)
        return Response(content=encode_report(report), media_type="application/json")

    return router
