"""Billing service: plan catalog, subscriptions, quotas and Stripe passthrough."""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from burstlet.adapters.stripe import StripeClient
from burstlet.config import settings
from burstlet.db.models import GenerationJobModel, SubscriptionModel
from burstlet.domain.enums import JobStatus, JobType, SubscriptionPlan, SubscriptionStatus
from burstlet.domain.models import UsageStats
from burstlet.errors import ConfigurationError, InvalidRequestError, QuotaExceededError
from burstlet.logging import get_logger

logger = get_logger(__name__)

UNLIMITED = -1

# One credit is one cent of estimated provider cost
CREDIT_VALUE_USD = 0.01


def credits_for_cost(cost: float) -> int:
    """Credits charged for an estimated cost; any generation costs at least one."""
    return max(1, math.ceil(round(cost / CREDIT_VALUE_USD, 6)))


@dataclass(frozen=True)
class PlanDefinition:
    """A subscription plan and what it allows per billing period."""

    plan: SubscriptionPlan
    name: str
    description: str
    price_monthly: float
    limits: dict[JobType, int]
    monthly_credits: int
    features: list[str] = field(default_factory=list)

    def limit_for(self, job_type: JobType) -> int:
        return self.limits.get(job_type, UNLIMITED)

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan": str(self.plan),
            "name": self.name,
            "description": self.description,
            "price_monthly": self.price_monthly,
            "limits": {str(k): v for k, v in self.limits.items()},
            "monthly_credits": self.monthly_credits,
            "features": list(self.features),
        }


PLANS: dict[SubscriptionPlan, PlanDefinition] = {
    SubscriptionPlan.FREE: PlanDefinition(
        plan=SubscriptionPlan.FREE,
        name="Free",
        description="Get started with basic features",
        price_monthly=0.0,
        limits={JobType.VIDEO: 2, JobType.BLOG: 3, JobType.SOCIAL: 5},
        monthly_credits=100,
        features=["2 platforms", "7 days analytics history", "Community support"],
    ),
    SubscriptionPlan.STARTER: PlanDefinition(
        plan=SubscriptionPlan.STARTER,
        name="Starter",
        description="For content creators and influencers",
        price_monthly=29.0,
        limits={JobType.VIDEO: 20, JobType.BLOG: 30, JobType.SOCIAL: 50},
        monthly_credits=2_000,
        features=["All platforms", "90 days analytics history", "Priority support"],
    ),
    SubscriptionPlan.PROFESSIONAL: PlanDefinition(
        plan=SubscriptionPlan.PROFESSIONAL,
        name="Professional",
        description="For teams and agencies",
        price_monthly=99.0,
        limits={JobType.VIDEO: 100, JobType.BLOG: 150, JobType.SOCIAL: 250},
        monthly_credits=10_000,
        features=["All platforms", "Unlimited analytics history", "Up to 5 team members"],
    ),
    SubscriptionPlan.ENTERPRISE: PlanDefinition(
        plan=SubscriptionPlan.ENTERPRISE,
        name="Enterprise",
        description="Custom solutions for large organizations",
        price_monthly=499.0,
        limits={JobType.VIDEO: UNLIMITED, JobType.BLOG: UNLIMITED, JobType.SOCIAL: UNLIMITED},
        monthly_credits=UNLIMITED,
        features=["Unlimited generations", "Dedicated support", "SLA guarantee"],
    ),
}

# Jobs in these states count against the plan
_COUNTED_STATUSES = (JobStatus.PENDING, JobStatus.PROCESSING, JobStatus.COMPLETED)


def _month_start(now: datetime | None = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _price_id(plan: SubscriptionPlan) -> str | None:
    return {
        SubscriptionPlan.STARTER: settings.stripe_price_id_starter,
        SubscriptionPlan.PROFESSIONAL: settings.stripe_price_id_professional,
        SubscriptionPlan.ENTERPRISE: settings.stripe_price_id_enterprise,
    }.get(plan)


class BillingService:
    """Subscription and quota operations for one database session."""

    def __init__(self, session: Session, stripe: StripeClient | None = None) -> None:
        self.session = session
        self.stripe = stripe or StripeClient()

    # -------------------------------------------------------------------------
    # Plans and quotas
    # -------------------------------------------------------------------------

    def list_plans(self) -> list[PlanDefinition]:
        return list(PLANS.values())

    def get_subscription(self, user_id: str) -> SubscriptionModel | None:
        return self.session.execute(
            select(SubscriptionModel).where(SubscriptionModel.user_id == user_id)
        ).scalar_one_or_none()

    def current_plan(self, user_id: str) -> PlanDefinition:
        """The plan whose limits apply to ``user_id`` right now."""
        subscription = self.get_subscription(user_id)
        if subscription is None or subscription.status == SubscriptionStatus.CANCELED:
            return PLANS[SubscriptionPlan.FREE]
        return PLANS[SubscriptionPlan(subscription.plan)]

    def period_start(self, user_id: str) -> datetime:
        subscription = self.get_subscription(user_id)
        if subscription and subscription.current_period_start:
            return subscription.current_period_start
        return _month_start()

    def count_usage(self, user_id: str, since: datetime) -> dict[JobType, int]:
        """Jobs per type created since ``since`` that count against the plan."""
        rows = self.session.execute(
            select(GenerationJobModel.type, func.count())
            .where(
                GenerationJobModel.user_id == user_id,
                GenerationJobModel.created_at >= since,
                GenerationJobModel.status.in_([str(s) for s in _COUNTED_STATUSES]),
            )
            .group_by(GenerationJobModel.type)
        ).all()
        usage = {job_type: 0 for job_type in JobType}
        for job_type, count in rows:
            usage[JobType(job_type)] = count
        return usage

    def check_quota(self, user_id: str, job_type: JobType) -> None:
        """Raise QuotaExceededError if ``user_id`` cannot start another ``job_type`` job."""
        plan = self.current_plan(user_id)
        limit = plan.limit_for(job_type)
        if limit == UNLIMITED:
            return

        used = self.count_usage(user_id, self.period_start(user_id))[job_type]
        if used >= limit:
            logger.info(
                "quota_exceeded",
                user_id=user_id,
                job_type=str(job_type),
                plan=str(plan.plan),
                used=used,
                limit=limit,
            )
            raise QuotaExceededError(
                f"Monthly {job_type} generation quota exceeded for the {plan.name} plan",
                details={"plan": str(plan.plan), "type": str(job_type), "used": used, "limit": limit},
            )

    def usage_summary(self, user_id: str) -> UsageStats:
        plan = self.current_plan(user_id)
        since = self.period_start(user_id)
        used = self.count_usage(user_id, since)

        costs = self.session.execute(
            select(GenerationJobModel.cost_estimate).where(
                GenerationJobModel.user_id == user_id,
                GenerationJobModel.created_at >= since,
                GenerationJobModel.status == JobStatus.COMPLETED,
            )
        ).scalars().all()
        credits_used = sum(credits_for_cost(c or 0.0) for c in costs)

        if plan.monthly_credits == UNLIMITED:
            credits_remaining = UNLIMITED
        else:
            credits_remaining = max(0, plan.monthly_credits - credits_used)

        return UsageStats(
            plan=str(plan.plan),
            period_start=since,
            used={str(k): v for k, v in used.items()},
            limits={str(k): v for k, v in plan.limits.items()},
            credits_used=credits_used,
            credits_remaining=credits_remaining,
            cost_estimate=round(sum(c or 0.0 for c in costs), 4),
        )

    # -------------------------------------------------------------------------
    # Stripe-backed operations
    # -------------------------------------------------------------------------

    async def create_checkout(
        self,
        user_id: str,
        plan: SubscriptionPlan,
        success_url: str,
        cancel_url: str,
        email: str | None = None,
    ) -> dict[str, Any]:
        """Start a Stripe Checkout session for upgrading to ``plan``."""
        if plan == SubscriptionPlan.FREE:
            raise InvalidRequestError("The FREE plan does not require checkout")

        price_id = _price_id(plan)
        if not price_id:
            raise ConfigurationError(
                f"No Stripe price configured for the {plan} plan",
                details={"plan": str(plan)},
            )

        subscription = self.get_subscription(user_id)
        if subscription is None:
            subscription = SubscriptionModel(
                user_id=user_id,
                plan=str(SubscriptionPlan.FREE),
                status=str(SubscriptionStatus.ACTIVE),
            )
            self.session.add(subscription)

        if not subscription.stripe_customer_id:
            customer = await self.stripe.create_customer(user_id, email=email)
            subscription.stripe_customer_id = customer["id"]

        checkout = await self.stripe.create_checkout_session(
            customer_id=subscription.stripe_customer_id,
            price_id=price_id,
            success_url=success_url,
            cancel_url=cancel_url,
            metadata={"user_id": user_id, "plan": str(plan)},
        )
        self.session.commit()

        logger.info("checkout_session_created", user_id=user_id, plan=str(plan))
        return {"session_id": checkout["id"], "url": checkout.get("url")}

    async def cancel_subscription(self, user_id: str) -> SubscriptionModel:
        """Cancel the paid subscription at the end of its current period."""
        subscription = self.get_subscription(user_id)
        if (
            subscription is None
            or subscription.plan == SubscriptionPlan.FREE
            or subscription.status == SubscriptionStatus.CANCELED
        ):
            raise InvalidRequestError("No active paid subscription to cancel")

        if subscription.stripe_subscription_id:
            await self.stripe.cancel_subscription(subscription.stripe_subscription_id)

        subscription.cancel_at_period_end = True
        self.session.commit()
        self.session.refresh(subscription)

        logger.info("subscription_cancel_requested", user_id=user_id, plan=subscription.plan)
        return subscription

    async def list_invoices(self, user_id: str, limit: int = 10) -> list[dict[str, Any]]:
        subscription = self.get_subscription(user_id)
        if subscription is None or not subscription.stripe_customer_id:
            return []

        invoices = await self.stripe.list_invoices(subscription.stripe_customer_id, limit=limit)
        return [
            {
                "id": invoice["id"],
                "number": invoice.get("number"),
                "status": invoice.get("status"),
                "amount": (invoice.get("amount_paid") or 0) / 100,
                "currency": invoice.get("currency", "usd"),
                "created": datetime.fromtimestamp(invoice.get("created", 0), tz=timezone.utc),
                "hosted_invoice_url": invoice.get("hosted_invoice_url"),
                "pdf_url": invoice.get("invoice_pdf"),
            }
            for invoice in invoices
        ]

    async def list_payment_methods(self, user_id: str) -> list[dict[str, Any]]:
        subscription = self.get_subscription(user_id)
        if subscription is None or not subscription.stripe_customer_id:
            return []

        methods = await self.stripe.list_payment_methods(subscription.stripe_customer_id)
        results = []
        for method in methods:
            card = method.get("card") or {}
            results.append(
                {
                    "id": method["id"],
                    "brand": card.get("brand"),
                    "last4": card.get("last4"),
                    "exp_month": card.get("exp_month"),
                    "exp_year": card.get("exp_year"),
                }
            )
        return results
