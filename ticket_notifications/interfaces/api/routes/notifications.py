"""Endpoints and websocket handler for the notification feed."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)
from sqlalchemy.orm import Session

from ticket_notifications.application.use_cases.notifications import (
    acknowledge_notifications,
    count_unread_notifications,
    list_notifications as list_notifications_uc,
    mark_all_notifications_as_read,
    mark_notification_as_read,
)
from ticket_notifications.config import get_settings
from ticket_notifications.domain.exceptions import NotificationNotFoundError
from ticket_notifications.infrastructure.database import SessionLocal, get_db
from ticket_notifications.infrastructure.notifications import (
    notification_manager,
    serialize_notification,
)
from ticket_notifications.interfaces.api.dependencies import (
    get_current_user_id,
    resolve_current_user_id,
)
from ticket_notifications.interfaces.api.schemas import (
    MarkAllReadResult,
    NotificationRead,
    UnreadCountRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    limit: int | None = Query(None, ge=1, le=200),
    cursor: int | None = Query(
        None, description="Id of the oldest notification already held by the client"
    ),
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> list[NotificationRead]:
    """Return the caller's notifications, newest first."""

    try:
        notifications = list_notifications_uc(
            db,
            recipient_id=current_user_id,
            limit=limit or get_settings().notification_page_size,
            cursor=cursor,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return [NotificationRead.model_validate(notification) for notification in notifications]


@router.get("/unread-count", response_model=UnreadCountRead)
def read_unread_count(
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> UnreadCountRead:
    """Return how many of the caller's notifications are unread."""

    return UnreadCountRead(unread=count_unread_notifications(db, recipient_id=current_user_id))


@router.post("/read-all", response_model=MarkAllReadResult)
def mark_all_as_read(
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> MarkAllReadResult:
    """Mark every unread notification of the caller as read."""

    updated = mark_all_notifications_as_read(db, recipient_id=current_user_id)
    return MarkAllReadResult(updated=updated)


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user_id: str = Depends(get_current_user_id),
) -> Response:
    """Mark one of the caller's notifications as read."""

    try:
        mark_notification_as_read(
            db, recipient_id=current_user_id, notification_id=notification_id
        )
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams the caller's notification changes."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    try:
        user_id = resolve_current_user_id(token)
    except HTTPException:
        await websocket.close(code=1008)
        return

    await websocket.accept()

    async def push(message: dict[str, Any]) -> None:
        await websocket.send_json(message)

    # Subscribe before the backfill so rows created meanwhile are not lost.
    subscription = notification_manager.subscribe(user_id, push)
    try:
        session = SessionLocal()
        try:
            backfill = list_notifications_uc(
                session,
                recipient_id=user_id,
                limit=get_settings().notification_page_size,
            )
            unread = count_unread_notifications(session, recipient_id=user_id)
        finally:
            session.close()

        await websocket.send_json(
            {
                "type": "init",
                "unread": unread,
                "data": [serialize_notification(n) for n in backfill],
            }
        )
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except Exception:
                logger.debug("Ignoring unreadable frame from %s", user_id, exc_info=True)
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list) and ids:
                    ack_session = SessionLocal()
                    try:
                        acknowledge_notifications(
                            ack_session,
                            recipient_id=user_id,
                            notification_ids=[i for i in ids if isinstance(i, int)],
                        )
                    finally:
                        ack_session.close()
                continue
    except WebSocketDisconnect:
        logger.debug("Live notification channel closed for %s", user_id)
    finally:
        notification_manager.unsubscribe(subscription)
