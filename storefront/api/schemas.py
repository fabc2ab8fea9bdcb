from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class InitiatePaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Raw values; PaymentInitiator validates them.
    amount: Any = None
    transaction_id: Any = Field(default=None, alias="transactionId")
    redirect_url: Any = Field(default=None, alias="redirectUrl")


class InitiatePaymentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: str
    payload: str
    x_verify: str = Field(alias="xVerify")


class VerifyPaymentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    transaction_id: Any = Field(default=None, alias="transactionId")
    user_email: Any = Field(default=None, alias="userEmail")
    order_details: Any = Field(default=None, alias="orderDetails")


class VerifyPaymentResponse(BaseModel):
    success: bool
    message: str


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
