"""Notification filter and mailbox routes."""

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from job_notifier.domain.models import NotificationSettingInput
from job_notifier.logging import get_logger
from job_notifier.persistence import (
    CandidateRepository,
    MailboxRepository,
    NotificationSettingRepository,
    RecordNotFoundError,
)

from .dependencies import get_db
from .schemas import (
    FilterCreatedResponse,
    HealthResponse,
    MailboxResponse,
    MessageResponse,
    NotificationFiltersResponse,
)

logger = get_logger(__name__, component="api")

router = APIRouter(prefix="/candidates", tags=["notification-filters"])
health_router = APIRouter(tags=["health"])


@router.post(
    "/{candidate_id}/filter",
    response_model=FilterCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a notification filter",
)
def create_filter(
    candidate_id: str,
    criteria: NotificationSettingInput,
    session: Session = Depends(get_db),
):
    setting = NotificationSettingRepository(session).create(candidate_id, criteria)
    logger.info(
        f"Created notification filter {setting.id} for candidate {candidate_id}",
        extra={"event": "api.filter.created", "candidate_id": candidate_id, "filter_id": setting.id},
    )
    return FilterCreatedResponse(message="success", id=setting.id)


@router.get(
    "/{candidate_id}/filter",
    response_model=NotificationFiltersResponse,
    response_model_exclude_none=True,
    summary="List a candidate's notification filters",
)
def list_filters(candidate_id: str, session: Session = Depends(get_db)):
    candidate = CandidateRepository(session).require(candidate_id)
    return NotificationFiltersResponse(notification_filters=candidate.notification_settings)


@router.put(
    "/{candidate_id}/filters/{filter_id}",
    response_model=MessageResponse,
    summary="Replace a notification filter",
)
def replace_filter(
    candidate_id: str,
    filter_id: str,
    criteria: NotificationSettingInput,
    session: Session = Depends(get_db),
):
    NotificationSettingRepository(session).replace(candidate_id, filter_id, criteria)
    logger.info(
        f"Replaced notification filter {filter_id} for candidate {candidate_id}",
        extra={"event": "api.filter.replaced", "candidate_id": candidate_id, "filter_id": filter_id},
    )
    return MessageResponse(message="Success")


@router.delete(
    "/{candidate_id}/filters/{filter_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a notification filter",
)
def delete_filter(candidate_id: str, filter_id: str, session: Session = Depends(get_db)):
    NotificationSettingRepository(session).delete(candidate_id, filter_id)
    logger.info(
        f"Deleted notification filter {filter_id} for candidate {candidate_id}",
        extra={"event": "api.filter.deleted", "candidate_id": candidate_id, "filter_id": filter_id},
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{candidate_id}/notifications",
    response_model=MailboxResponse,
    summary="List a candidate's mailbox",
)
def list_notifications(candidate_id: str, session: Session = Depends(get_db)):
    if not CandidateRepository(session).exists(candidate_id):
        raise RecordNotFoundError(f"Candidate {candidate_id} not found")
    return MailboxResponse(emails=MailboxRepository(session).list_for_candidate(candidate_id))


@health_router.get("/health", response_model=HealthResponse)
def health(request: Request):
    runtime = getattr(request.app.state, "runtime", None)
    state = runtime.consumer_state if runtime is not None else None
    return HealthResponse(status="ok", consumer=state.value if state is not None else "disabled")
