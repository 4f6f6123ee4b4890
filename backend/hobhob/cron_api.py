import hmac
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from .config import settings
from .dates import Clock
from .deps import get_clock, get_store
from .errors import HobHobError, unauthorized
from .notifications.daily_push import PushSender, run_daily_push
from .schemas import DailyPushResponse
from .store import UserStore


logger = logging.getLogger("hobhob-cron")

router = APIRouter(prefix="/api/cron", tags=["Cron"])


def verify_cron_secret(authorization: Optional[str]) -> None:
    secret = settings.CRON_SECRET
    if not secret:
        logger.error("CRON_SECRET is not configured")
        raise unauthorized("Unauthorized")
    expected = f"Bearer {secret}"
    if not authorization or not hmac.compare_digest(authorization.encode(), expected.encode()):
        raise unauthorized("Unauthorized")


def get_push_sender(request: Request) -> PushSender:
    sender = getattr(request.app.state, "push_sender", None)
    if sender is None:
        raise HobHobError(
            code="PUSH_NOT_CONFIGURED",
            message="Push delivery is not configured",
            status_code=500,
        )
    return sender


@router.get("/daily-push", response_model=DailyPushResponse)
async def daily_push(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    store: UserStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    """
    Hourly trigger: sends the daily summary to users whose local time is the
    configured push hour.
    """
    verify_cron_secret(authorization)
    sender = get_push_sender(request)

    job_run_id = str(uuid.uuid4())
    logger.info("DAILY_PUSH_START job_run_id=%s", job_run_id)
    stats = await run_daily_push(store, sender=sender, clock=clock, job_run_id=job_run_id)
    return DailyPushResponse(
        success=True,
        jobRunId=job_run_id,
        scanned=stats.total_scanned,
        sent=stats.sent,
        skipped=stats.skipped,
        errors=stats.failed,
    )
