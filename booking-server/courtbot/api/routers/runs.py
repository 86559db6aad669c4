"""Run control endpoints: trigger, live stream and cancellation."""
import asyncio
import json
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse

from courtbot.api.deps import get_broadcaster, get_executor, get_job_service, get_registry
from courtbot.domain.jobs import JobService, StoreError
from courtbot.domain.runs import LogBroadcaster, RunConflictError, RunExecutor, RunNotFoundError, RunRegistry
from courtbot.schemas import ActiveRunsResponse, RunAccepted, RunCancelled

logger = logging.getLogger(__name__)

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post(
    "/run",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=RunAccepted,
    summary="Trigger an immediate booking run",
)
async def trigger_run(
    payload: dict[str, Any] = Body(...),
    jobs: JobService = Depends(get_job_service),
    executor: RunExecutor = Depends(get_executor),
) -> RunAccepted:
    run_id = payload.get("reservationId") or payload.get("id")
    if not run_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing reservation id.")
    run_id = str(run_id)

    parameters = await _run_parameters(jobs, run_id, payload)
    try:
        executor.start(run_id, parameters, job_id=run_id)
    except RunConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    logger.info("[RUN] Run %s accepted", run_id)
    return RunAccepted(run_id=run_id)


@router.get("/run-stream/{run_id}", summary="Stream live run events (Server-Sent Events)")
async def stream_run(
    run_id: str,
    request: Request,
    broadcaster: LogBroadcaster = Depends(get_broadcaster),
) -> StreamingResponse:
    subscription = broadcaster.subscribe(run_id)
    keepalive = request.app.state.container.settings.stream.keepalive_seconds

    async def generate():
        try:
            while True:
                try:
                    event = await subscription.get(timeout=keepalive)
                except asyncio.TimeoutError:
                    yield ": keep-alive\n\n"
                    continue
                if event is None:
                    break
                yield f"data: {json.dumps(event.to_payload(), ensure_ascii=False)}\n\n"
        except asyncio.CancelledError:
            logger.debug("Run %s stream cancelled", run_id)
            raise
        finally:
            broadcaster.unsubscribe(run_id, subscription)

    return StreamingResponse(generate(), media_type="text/event-stream", headers=SSE_HEADERS)


@router.post(
    "/cancel-run/{run_id}",
    response_model=RunCancelled,
    summary="Cancel an in-flight run",
)
async def cancel_run(
    run_id: str,
    executor: RunExecutor = Depends(get_executor),
) -> RunCancelled:
    try:
        executor.cancel(run_id)
    except RunNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active run found for this id.") from exc
    logger.info("[CANCEL] Run %s cancellation requested", run_id)
    return RunCancelled(run_id=run_id)


@router.get("/runs", response_model=ActiveRunsResponse, summary="List in-flight cancellable runs")
async def active_runs(registry: RunRegistry = Depends(get_registry)) -> ActiveRunsResponse:
    return ActiveRunsResponse(runs=registry.active_runs())


async def _run_parameters(jobs: JobService, run_id: str, payload: dict[str, Any]) -> dict[str, Any]:
    """Request payload, with gaps filled from the stored job when there is one."""
    parameters = {**payload, "reservationId": run_id}
    try:
        job = await jobs.get_job(run_id)
    except StoreError as exc:
        logger.warning("Could not load reservation %s for run parameters: %s", run_id, exc)
        return parameters
    if job is None:
        return parameters
    return {**job.to_worker_payload(), **parameters}
