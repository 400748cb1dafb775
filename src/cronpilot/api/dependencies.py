"""Shared dependencies for CronPilot API."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from cronpilot.chat import ChatService
from cronpilot.scheduler import SchedulerService
from cronpilot.services import Services


def get_services(request: Request) -> Services:
    """Get the wired services from app state."""
    services: Services = request.app.state.services
    return services


def get_scheduler(request: Request) -> SchedulerService:
    """Get the scheduler from app state."""
    scheduler: SchedulerService = request.app.state.scheduler
    return scheduler


def get_chat_service(request: Request) -> ChatService:
    """Get the chat service from app state."""
    chat_service: ChatService = request.app.state.chat_service
    return chat_service


# Type aliases for dependency injection
ServicesDep = Annotated[Services, Depends(get_services)]
SchedulerDep = Annotated[SchedulerService, Depends(get_scheduler)]
ChatServiceDep = Annotated[ChatService, Depends(get_chat_service)]
