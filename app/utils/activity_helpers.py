from app.core import db as db_module
from app.models.support.activity_models import ActivityLog
from app.constants.activity_templates import ACTIVITY_TEMPLATES
from app.constants.activity_codes import ActivityCode
from app.utils.logger import get_logger

logger = get_logger(__name__)

SYSTEM_ACTOR = "system"


def render_activity(code: ActivityCode, **context) -> str:
    template = ACTIVITY_TEMPLATES.get(code)
    if not template:
        raise ValueError(f"No activity template for code {code}")

    try:
        return template.format(**context)
    except KeyError as e:
        raise ValueError(
            f"Missing activity context key: {e.args[0]} for {code}"
        )


async def record_activity(
    *,
    code: ActivityCode,
    actor_name: str | None = None,
    target_type: str | None = None,
    target_id: int | None = None,
    **context,
) -> bool:
    """
    Append an activity row AFTER the business transaction has committed.

    Runs in its own session so it can never roll back the caller's work.
    A failure here is logged and dropped; returns False in that case.
    """
    actor = actor_name or SYSTEM_ACTOR
    message = render_activity(code, actor_name=actor, **context)

    try:
        async with db_module.AsyncSessionLocal() as session:
            session.add(
                ActivityLog(
                    code=code.value,
                    actor_name=actor,
                    message=message,
                    target_type=target_type,
                    target_id=target_id,
                    receipt_id=context.get("receipt_id"),
                )
            )
            await session.commit()
    except Exception:
        # NEVER break the request flow once the business change is committed
        logger.error(
            "Failed to record activity",
            extra={"code": code.value, "target_id": target_id},
            exc_info=True,
        )
        return False

    return True
