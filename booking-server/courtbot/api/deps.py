"""Reusable FastAPI dependencies."""

from fastapi import Request

from courtbot.core.container import ApplicationContainer
from courtbot.domain.jobs import JobService
from courtbot.domain.runs import LogBroadcaster, RunExecutor, RunRegistry


def get_container(request: Request) -> ApplicationContainer:
    return request.app.state.container


def get_job_service(request: Request) -> JobService:
    return get_container(request).jobs


def get_executor(request: Request) -> RunExecutor:
    return get_container(request).executor


def get_registry(request: Request) -> RunRegistry:
    return get_container(request).registry


def get_broadcaster(request: Request) -> LogBroadcaster:
    return get_container(request).broadcaster


__all__ = [
    "get_broadcaster",
    "get_container",
    "get_executor",
    "get_job_service",
    "get_registry",
]
