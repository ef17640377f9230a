"""Notification service and its construction from configuration."""

from .builder import ServiceRuntime, build_service
from .models import InterviewDetails
from .service import (
    PRIORITY_BY_EVENT_TYPE,
    TEMPLATE_NOT_FOUND,
    NotificationService,
    priority_for,
)

__all__ = [
    "NotificationService",
    "InterviewDetails",
    "ServiceRuntime",
    "build_service",
    "priority_for",
    "PRIORITY_BY_EVENT_TYPE",
    "TEMPLATE_NOT_FOUND",
]
