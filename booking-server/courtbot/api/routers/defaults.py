"""Reservation form defaults."""

from fastapi import APIRouter

from courtbot.domain.jobs.defaults import build_form_defaults
from courtbot.schemas import FormDefaultsResponse

router = APIRouter()


@router.get("", response_model=FormDefaultsResponse, summary="Default reservation form values")
async def form_defaults() -> FormDefaultsResponse:
    return FormDefaultsResponse.model_validate(build_form_defaults())
