"""Example FastAPI application with alerting and incident endpoints.

Run with:
    uvicorn examples.fastapi_example:app --reload

Endpoints:
    /checkout                      - Simulated checkout, fails now and then
    /metrics/cpu?value=<n>         - Feed a CPU reading through the alerts
    /logs                          - NDJSON logs captured from stdlib logging
    /incidents/errors?at=<ts>      - Error pattern before a point in time
    /incidents/journeys/<user>     - One user's activity before an incident
    /incidents/report?at=<ts>      - Full incident report as JSON

Instrumentation:
    Application logs are captured into the log store through
    VigilLogHandler, so they show up in incident reports.
"""

import logging
import random
import time

from fastapi import FastAPI

from vigilpy.adapters.frameworks.fastapi import create_incident_router
from vigilpy.adapters.logging import VigilLogHandler
from vigilpy.adapters.publishing import LoggingEventPublisher
from vigilpy.adapters.storage import (
    InMemoryAlertRepository,
    InMemoryMetricStore,
    RingBufferLogStore,
)
from vigilpy.core.incidents import IncidentCorrelationEngine
from vigilpy.core.logs import user_action, workflow_execution
from vigilpy.services.alerting import AlertService
from vigilpy.services.collection import MetricCollectionService

# Create storage instances
log_store = RingBufferLogStore(max_size=10_000)
metric_store = InMemoryMetricStore()

# Route application logs into the log store
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("shop.checkout")
logger.addHandler(VigilLogHandler(log_store, source="checkout"))

alerts = AlertService(InMemoryAlertRepository(), metric_store, LoggingEventPublisher())
collector = MetricCollectionService(metric_store)
engine = IncidentCorrelationEngine(log_store, metric_store)

app = FastAPI(title="Incident Example")
app.include_router(create_incident_router(engine, log_store))


@app.on_event("startup")
async def register_alerts() -> None:
    await alerts.create_system_health_alerts()


@app.get("/checkout")
async def checkout(user_id: str = "u-1") -> dict[str, str]:
    """Checkout endpoint that fails one time in five."""
    started = time.perf_counter()
    await log_store.write(user_action(user_id, "checkout"))
    failed = random.random() < 0.2
    if failed:
        logger.error(
            "DatabaseError: connection pool exhausted",
            extra={"user_id": user_id, "workflow_id": "checkout"},
        )
    else:
        logger.info("Checkout completed", extra={"user_id": user_id, "workflow_id": "checkout"})
    elapsed_ms = (time.perf_counter() - started) * 1000
    await log_store.write(
        workflow_execution("checkout", user_id, "failed" if failed else "completed", elapsed_ms)
    )
    await collector.record_workflow_metrics(
        "checkout", user_id, succeeded=not failed, execution_time_ms=elapsed_ms
    )
    return {"status": "failed" if failed else "ok"}


@app.get("/metrics/cpu")
async def record_cpu(value: float) -> dict[str, list[str]]:
    """Store a CPU reading and evaluate the alerts watching it."""
    [metric] = await collector.record_system_metrics("host-1", cpu_usage=value)
    fired = await alerts.evaluate_metric("cpu_usage", metric.value)
    return {"fired": [alert.name for alert in fired]}
