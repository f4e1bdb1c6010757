"""Billing endpoints: plans, subscription, checkout and invoices."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel

from burstlet.api.deps import BillingServiceDep, UserIdDep
from burstlet.domain.enums import SubscriptionPlan, SubscriptionStatus
from burstlet.domain.models import UsageStats

router = APIRouter(prefix="/billing", tags=["Billing"])


# =============================================================================
# Request / Response Models
# =============================================================================


class PlansResponse(BaseModel):
    plans: list[dict[str, Any]]


class SubscriptionResponse(BaseModel):
    """The caller's subscription (FREE when none exists)."""

    plan: SubscriptionPlan
    status: SubscriptionStatus
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at_period_end: bool = False


class CheckoutRequest(BaseModel):
    plan: SubscriptionPlan
    success_url: str
    cancel_url: str
    email: str | None = None


class CheckoutResponse(BaseModel):
    session_id: str
    url: str | None = None


class InvoicesResponse(BaseModel):
    invoices: list[dict[str, Any]]


class PaymentMethodsResponse(BaseModel):
    payment_methods: list[dict[str, Any]]


def _subscription_response(subscription: Any) -> SubscriptionResponse:
    if subscription is None:
        return SubscriptionResponse(plan=SubscriptionPlan.FREE, status=SubscriptionStatus.ACTIVE)
    return SubscriptionResponse(
        plan=SubscriptionPlan(subscription.plan),
        status=SubscriptionStatus(subscription.status),
        current_period_start=subscription.current_period_start,
        current_period_end=subscription.current_period_end,
        cancel_at_period_end=subscription.cancel_at_period_end,
    )


# =============================================================================
# Endpoints
# =============================================================================


@router.get("/plans", response_model=PlansResponse, summary="List subscription plans")
async def list_plans(service: BillingServiceDep) -> PlansResponse:
    return PlansResponse(plans=[plan.to_dict() for plan in service.list_plans()])


@router.get("/subscription", response_model=SubscriptionResponse, summary="Current subscription")
async def get_subscription(service: BillingServiceDep, user_id: UserIdDep) -> SubscriptionResponse:
    return _subscription_response(service.get_subscription(user_id))


@router.post("/checkout", response_model=CheckoutResponse, summary="Start a checkout session")
async def create_checkout(
    request: CheckoutRequest,
    service: BillingServiceDep,
    user_id: UserIdDep,
) -> CheckoutResponse:
    result = await service.create_checkout(
        user_id,
        request.plan,
        success_url=request.success_url,
        cancel_url=request.cancel_url,
        email=request.email,
    )
    return CheckoutResponse(**result)


@router.post(
    "/subscription/cancel",
    response_model=SubscriptionResponse,
    summary="Cancel at the end of the current period",
)
async def cancel_subscription(service: BillingServiceDep, user_id: UserIdDep) -> SubscriptionResponse:
    return _subscription_response(await service.cancel_subscription(user_id))


@router.get("/usage", response_model=UsageStats, summary="Usage against plan limits")
async def get_usage(service: BillingServiceDep, user_id: UserIdDep) -> UsageStats:
    return service.usage_summary(user_id)


@router.get("/invoices", response_model=InvoicesResponse, summary="Recent invoices")
async def list_invoices(
    service: BillingServiceDep,
    user_id: UserIdDep,
    limit: int = Query(10, ge=1, le=100),
) -> InvoicesResponse:
    return InvoicesResponse(invoices=await service.list_invoices(user_id, limit=limit))


@router.get(
    "/payment-methods",
    response_model=PaymentMethodsResponse,
    summary="Saved payment methods",
)
async def list_payment_methods(service: BillingServiceDep, user_id: UserIdDep) -> PaymentMethodsResponse:
    return PaymentMethodsResponse(payment_methods=await service.list_payment_methods(user_id))
