from fastapi import Header, Request

from app.utils.logger import get_logger

logger = get_logger("actor")

MAX_ACTOR_NAME = 150


async def get_actor_name(
    request: Request,
    x_actor_name: str | None = Header(None),
) -> str | None:
    """
    Display name of the operator behind the request, taken from the
    X-Actor-Name header. Used for activity messages only, never for access
    decisions.
    """
    if x_actor_name is None:
        return None

    actor_name = x_actor_name.strip()[:MAX_ACTOR_NAME] or None
    request.state.actor_name = actor_name
    return actor_name
