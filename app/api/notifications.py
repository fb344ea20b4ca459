"""
Notifications API endpoints
Server-sent stream of moderation outcomes for the signed-in user
"""

import json
import logging

from fastapi import APIRouter, Depends
from sse_starlette.sse import EventSourceResponse

from app.middleware.auth import require_auth
from app.models.user import User
from app.services.notification_hub import ChannelFilter, describe_change, notification_hub

logger = logging.getLogger(__name__)

router = APIRouter()


def user_channel_filters(user: User) -> list:
    """Changes to the user's own payments, listings and agent registration"""
    return [
        ChannelFilter(table="payments", column="agent_id", value=str(user.id), event="UPDATE"),
        ChannelFilter(table="listings", column="agent_id", value=str(user.id), event="UPDATE"),
        ChannelFilter(table="agent_approvals", column="user_id", value=str(user.id), event="UPDATE"),
    ]


@router.get("/stream")
async def stream_notifications(user: User = Depends(require_auth)):
    stream = notification_hub.subscribe(*user_channel_filters(user))
    logger.info(f"Notification stream opened for {user.email}")

    async def event_generator():
        try:
            async for change in stream:
                notification = describe_change(change)
                if notification:
                    yield {"event": "notification", "data": json.dumps(notification)}
        finally:
            stream.close()
            logger.info(f"Notification stream closed for {user.email}")

    return EventSourceResponse(event_generator())
