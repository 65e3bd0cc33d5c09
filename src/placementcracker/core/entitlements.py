"""Per-user allowance checks run before any paid generation call.

Two policies sit behind the same ``check`` interface:

* ``CountingPolicy`` counts the user's generation requests for the feature in
  the current UTC calendar day and rejects once the daily limit is reached.
* ``BalancePolicy`` consumes one stored credit with a single conditional
  UPDATE. The credit is taken before generation and is not refunded when the
  provider call later fails.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session

from placementcracker.config import Settings, get_settings
from placementcracker.db.base import utcnow
from placementcracker.db.repositories import Repository
from placementcracker.errors import GateMisconfigured, QuotaExceeded
from placementcracker.types import Feature, GateDecision, RequestContext

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_day_bounds(now: datetime) -> tuple[datetime, datetime]:
    now = now.astimezone(UTC) if now.tzinfo else now.replace(tzinfo=UTC)
    start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


class EntitlementGate:
    policy_name = ""

    def check(self, ctx: RequestContext, feature: Feature) -> GateDecision:
        raise NotImplementedError


class CountingPolicy(EntitlementGate):
    policy_name = "counting"

    def __init__(self, session: Session, *, limit: int, clock: Clock = utcnow):
        self.repo = Repository(session)
        self.limit = limit
        self.clock = clock

    def check(self, ctx: RequestContext, feature: Feature) -> GateDecision:
        start, end = utc_day_bounds(self.clock())
        used = self.repo.count_requests_between(ctx.user_id, feature, start, end)
        if used >= self.limit:
            logger.info(
                "Daily limit reached trace=%s user=%s feature=%s used=%s limit=%s",
                ctx.trace_id,
                ctx.user_id,
                feature,
                used,
                self.limit,
            )
            raise QuotaExceeded(
                "Daily generation limit reached. Please try again tomorrow.",
                feature=feature,
                limit=self.limit,
                resets_at=end,
            )
        return GateDecision(feature=feature, policy="counting", remaining=self.limit - used - 1)


class BalancePolicy(EntitlementGate):
    policy_name = "balance"

    def __init__(self, session: Session):
        self.repo = Repository(session)

    def check(self, ctx: RequestContext, feature: Feature) -> GateDecision:
        if self.repo.get_usage_counter(ctx.user_id) is None:
            logger.error("No usage counter trace=%s user=%s", ctx.trace_id, ctx.user_id)
            raise GateMisconfigured("Could not verify usage credits.")

        if not self.repo.consume_credit(ctx.user_id, feature):
            logger.info(
                "Credits exhausted trace=%s user=%s feature=%s",
                ctx.trace_id,
                ctx.user_id,
                feature,
            )
            raise QuotaExceeded(
                "You have no credits left for this feature.",
                feature=feature,
                limit=0,
            )

        counter = self.repo.get_usage_counter(ctx.user_id)
        remaining = None
        if counter is not None:
            remaining = counter.cover_letter_credits if feature == "cover_letter" else counter.answer_credits
        return GateDecision(feature=feature, policy="balance", remaining=remaining)


def build_gate(
    feature: Feature,
    session: Session,
    settings: Settings | None = None,
    *,
    clock: Clock = utcnow,
) -> EntitlementGate:
    settings = settings or get_settings()
    if feature == "cover_letter":
        policy, limit = settings.cover_letter_limit_policy, settings.cover_letter_daily_limit
    else:
        policy, limit = settings.answer_limit_policy, settings.answer_daily_limit

    if policy == "balance":
        return BalancePolicy(session)
    return CountingPolicy(session, limit=limit, clock=clock)
