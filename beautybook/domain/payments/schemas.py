"""Payment domain schemas"""

from typing import Literal, Optional

from pydantic import BaseModel


class CheckoutRequest(BaseModel):
    appointmentId: str
    paymentType: Literal["full", "deposit"] = "full"


class CheckoutResponse(BaseModel):
    success: bool = True
    source: str  # "dodo" or "demo"
    checkoutUrl: str
    sessionId: Optional[str] = None
    amount: float
    message: Optional[str] = None


class PaymentStatusResponse(BaseModel):
    appointmentId: str
    paymentStatus: str
    status: str
    amount: float
    depositRequired: bool
    depositAmount: Optional[float] = None
    depositPaid: bool
