"""Dodo Payments service - Hosted checkout and refunds for appointments"""

import logging
from typing import Optional

from dodopayments import AsyncDodoPayments  # type: ignore

from ...config import (
    DODO_ADHOC_PRODUCT_ID,
    DODO_PAYMENTS_API_KEY,
    DODO_PAYMENTS_ENVIRONMENT,
)
from ...shared.errors import ExternalServiceError

logger = logging.getLogger(__name__)


def normalize_dodo_environment(env: Optional[str]) -> str:
    """Normalize Dodo environment value to expected format"""
    value = (env or "test_mode").strip().lower()
    if value in {"live", "production", "prod"}:
        return "live_mode"
    if value in {"test", "sandbox", "staging", "dev", "development"}:
        return "test_mode"
    if value in {"test_mode", "live_mode"}:
        return value
    logger.warning(f"Unknown DODO environment '{env}', defaulting to test_mode")
    return "test_mode"


def to_minor_units(amount: float) -> int:
    """Dollars to cents"""
    return int(round(amount * 100))


class DodoPaymentsService:
    """Service for Dodo Payments API operations"""

    def __init__(self):
        self.api_key = DODO_PAYMENTS_API_KEY
        self.product_id = DODO_ADHOC_PRODUCT_ID
        self.environment = normalize_dodo_environment(DODO_PAYMENTS_ENVIRONMENT)
        self.client = None

        if not self.api_key or not self.product_id:
            logger.warning("DODO_PAYMENTS_API_KEY or DODO_ADHOC_PRODUCT_ID not set; using demo checkout")
        else:
            self.client = AsyncDodoPayments(
                bearer_token=self.api_key,
                environment=self.environment,
            )
            logger.info(f"Dodo Payments client initialized (env={self.environment})")

    def is_available(self) -> bool:
        """Check if Dodo Payments client is available"""
        return self.client is not None

    async def create_checkout_session(
        self,
        amount: float,
        customer_email: str,
        customer_name: str,
        return_url: str,
        metadata: dict,
    ) -> dict:
        """
        Create a hosted checkout session for a one-off amount.

        Uses the pay-what-you-want adhoc product with the amount set per session.
        Returns a dict with checkout_url and session_id.
        """
        if not self.client:
            raise ExternalServiceError("Payment system not configured")

        try:
            session = await self.client.checkout_sessions.create(
                product_cart=[
                    {
                        "product_id": self.product_id,
                        "quantity": 1,
                        # Dynamic amount in lowest currency unit (e.g., cents)
                        "amount": to_minor_units(amount),
                    }
                ],
                customer={"email": customer_email, "name": customer_name},
                metadata={k: str(v) for k, v in metadata.items()},
                return_url=return_url,
            )
        except Exception as e:
            logger.error(f"Failed to create checkout session: {e}")
            raise ExternalServiceError("Failed to create checkout session") from e

        checkout_url = getattr(session, "checkout_url", None)
        session_id = getattr(session, "session_id", None)
        if not checkout_url:
            raise ExternalServiceError("Failed to create payment link")
        return {"checkout_url": checkout_url, "session_id": session_id}

    async def create_refund(self, payment_id: str, amount: float, reason: Optional[str] = None) -> Optional[str]:
        """
        Refund part or all of a payment.
        Returns the refund id.
        """
        if not self.client:
            raise ExternalServiceError("Payment system not configured")

        try:
            refund = await self.client.refunds.create(
                payment_id=payment_id,
                items=[{"item_id": self.product_id, "amount": to_minor_units(amount)}],
                reason=reason or "Appointment cancelled",
            )
        except Exception as e:
            logger.error(f"Failed to refund payment {payment_id}: {e}")
            raise ExternalServiceError("Failed to create refund") from e

        refund_id = getattr(refund, "refund_id", None)
        logger.info(f"💸 Refund created: {refund_id} amount=${amount:.2f}")
        return refund_id


_dodo_service: Optional[DodoPaymentsService] = None


def get_dodo_service() -> DodoPaymentsService:
    """Get or create the Dodo Payments service singleton"""
    global _dodo_service
    if _dodo_service is None:
        _dodo_service = DodoPaymentsService()
    return _dodo_service
