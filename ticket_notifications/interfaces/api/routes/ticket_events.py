"""Ingestion endpoint for the ticket layer's lifecycle events."""

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from ticket_notifications.application.use_cases.notifications import (
    NotificationDispatcher,
    handle_ticket_event,
)
from ticket_notifications.interfaces.api.dependencies import (
    get_current_user_id,
    get_dispatcher,
)
from ticket_notifications.interfaces.api.schemas import TicketEventCreate

router = APIRouter(prefix="/ticket-events", tags=["ticket-events"])


@router.post("", status_code=status.HTTP_202_ACCEPTED)
def receive_ticket_event(
    event_in: TicketEventCreate,
    background_tasks: BackgroundTasks,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user_id: str = Depends(get_current_user_id),
) -> dict[str, str]:
    """Accept an event and notify its recipients after the response is sent.

    The event is forwarded with the session token of the user who acted, so
    an event may only be reported by its own actor.
    """

    if event_in.actor_id != current_user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Events can only be reported by the user who performed them",
        )
    background_tasks.add_task(handle_ticket_event, event_in.to_entity(), dispatcher=dispatcher)
    return {"status": "accepted"}
