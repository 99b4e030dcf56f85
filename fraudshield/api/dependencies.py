"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from fraudshield.infrastructure.clients.events import EventPublisher
from fraudshield.infrastructure.clients.notifications import NotificationClient
from fraudshield.infrastructure.database.session import get_db
from fraudshield.services.case_manager import CaseManager
from fraudshield.services.recorder import TransactionRecorder
from fraudshield.services.reporting import ReportingService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_notification_client() -> NotificationClient:
    """Provide notification relay client instance"""
    return NotificationClient()


def get_event_publisher() -> EventPublisher:
    """Provide outbound event publisher instance"""
    return EventPublisher()


def get_recorder(db: Session = Depends(get_db)) -> TransactionRecorder:
    return TransactionRecorder(db)


def get_case_manager(db: Session = Depends(get_db)) -> CaseManager:
    return CaseManager(db)


def get_reporting(db: Session = Depends(get_db)) -> ReportingService:
    return ReportingService(db)
