from typing import Dict

from fastapi import APIRouter, Depends, Request, Response
from fastapi.exceptions import RequestValidationError

from newsletter.core.service_dependencies import (
    get_confirmation_service,
    get_subscription_service,
)
from newsletter.services.confirmation_service import ConfirmationService
from newsletter.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])

SUBSCRIPTION_FORM_FIELDS = ("name", "email")


async def subscription_form(request: Request) -> Dict[str, str]:
    """Read the subscription form body.

    Form(...) treats an empty value as missing; here only absent fields are a
    422, empty ones go on to validation and become a 400.
    """
    form = await request.form()
    missing = [field for field in SUBSCRIPTION_FORM_FIELDS if field not in form]
    if missing:
        raise RequestValidationError(
            [
                {"type": "missing", "loc": ("body", field), "msg": "Field required", "input": None}
                for field in missing
            ]
        )
    return {field: str(form[field]) for field in SUBSCRIPTION_FORM_FIELDS}


@router.post(
    "",
    summary="Subscribe to the newsletter",
    responses={
        200: {"description": "Subscriber stored and confirmation email sent"},
        400: {"description": "Invalid name or email"},
        422: {"description": "Missing form field"},
        500: {"description": "Database or email failure"},
    },
)
async def subscribe(
    form: Dict[str, str] = Depends(subscription_form),
    subscription_service: SubscriptionService = Depends(get_subscription_service),
):
    await subscription_service.subscribe(form["name"], form["email"])
    return Response(status_code=200)


@router.get(
    "/confirm",
    summary="Confirm a pending subscription",
    responses={
        200: {"description": "Subscription confirmed"},
        401: {"description": "Unknown subscription token"},
        500: {"description": "Database failure"},
    },
)
async def confirm(
    subscription_token: str,
    confirmation_service: ConfirmationService = Depends(get_confirmation_service),
):
    await confirmation_service.confirm(subscription_token)
    return Response(status_code=200)
