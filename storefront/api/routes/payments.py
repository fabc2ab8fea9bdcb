from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from fastapi.responses import JSONResponse

from storefront.api.dependencies import get_initiator, get_verifier
from storefront.api.schemas import (
    ErrorResponse,
    InitiatePaymentRequest,
    InitiatePaymentResponse,
    VerifyPaymentRequest,
    VerifyPaymentResponse,
)
from storefront.services.checkout import PaymentInitiator, PaymentVerifier

router = APIRouter(prefix="/api", tags=["payments"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post(
    "/initiate-payment",
    response_model=InitiatePaymentResponse,
    response_model_by_alias=True,
    responses=_ERROR_RESPONSES,
)
async def initiate_payment(
    body: InitiatePaymentRequest,
    initiator: PaymentInitiator = Depends(get_initiator),
) -> InitiatePaymentResponse:
    initiated = await initiator.initiate(body.amount, body.transaction_id, body.redirect_url)
    return InitiatePaymentResponse(url=initiated.url, payload=initiated.payload, x_verify=initiated.x_verify)


@router.post(
    "/verify-payment",
    response_model=VerifyPaymentResponse,
    responses=_ERROR_RESPONSES,
)
async def verify_payment(
    body: VerifyPaymentRequest,
    background_tasks: BackgroundTasks,
    verifier: PaymentVerifier = Depends(get_verifier),
) -> JSONResponse | VerifyPaymentResponse:
    outcome = await verifier.verify(
        body.transaction_id,
        body.user_email,
        body.order_details,
        background_tasks=background_tasks,
    )
    response = VerifyPaymentResponse(success=outcome.success, message=outcome.message)
    if not outcome.success:
        return JSONResponse(status_code=400, content=response.model_dump())
    return response
