"""Reservation job CRUD endpoints."""
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Path, status

from courtbot.api.deps import get_job_service
from courtbot.domain.jobs import JobNotFoundError, JobService, JobValidationError, StoreError

logger = logging.getLogger(__name__)

router = APIRouter()

NOT_FOUND = "Reservation not found."


@router.get("", summary="List all reservations")
async def list_jobs(service: JobService = Depends(get_job_service)) -> list[dict[str, Any]]:
    try:
        records = await service.list_records()
    except StoreError as exc:
        logger.error("Failed to read reservations: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to read reservations.") from exc
    return records


@router.get("/{job_id}", summary="Get a reservation by id")
async def get_job(
    job_id: str = Path(..., description="Reservation id"),
    service: JobService = Depends(get_job_service),
) -> dict[str, Any]:
    try:
        record = await service.get_record(job_id)
    except StoreError as exc:
        logger.error("Failed to read reservation %s: %s", job_id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to read reservations.") from exc
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND)
    return record


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a reservation")
async def create_job(
    payload: dict[str, Any] = Body(...),
    service: JobService = Depends(get_job_service),
) -> dict[str, Any]:
    try:
        job = await service.create_job(payload)
    except JobValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StoreError as exc:
        logger.error("Failed to create reservation: %s", exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create reservation.") from exc
    return job.to_document()


@router.put("/{job_id}", summary="Update a reservation")
async def update_job(
    job_id: str = Path(..., description="Reservation id"),
    changes: dict[str, Any] = Body(...),
    service: JobService = Depends(get_job_service),
) -> dict[str, Any]:
    try:
        job = await service.update_job(job_id, changes)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND) from exc
    except JobValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StoreError as exc:
        logger.error("Failed to update reservation %s: %s", job_id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update reservation.") from exc
    return job.to_document()


@router.delete("/{job_id}", summary="Delete a reservation")
async def delete_job(
    job_id: str = Path(..., description="Reservation id"),
    service: JobService = Depends(get_job_service),
) -> dict[str, Any]:
    try:
        record = await service.delete_job(job_id)
    except JobNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NOT_FOUND) from exc
    except StoreError as exc:
        logger.error("Failed to delete reservation %s: %s", job_id, exc)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete reservation.") from exc
    return record
