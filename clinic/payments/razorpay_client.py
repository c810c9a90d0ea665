"""
Adaptateur Razorpay: API REST Orders (httpx) + vérification de signature HMAC.

- Création: POST {RAZORPAY_API_URL}/orders, auth basique (key_id, key_secret),
  body {"amount": <minor units>, "currency": "INR", "receipt": "<order id>"}.
- Vérification du retour checkout: razorpay_signature doit valoir
  HMAC_SHA256(key_secret, "<razorpay_order_id>|<razorpay_payment_id>") en hexadécimal.
"""
import hashlib
import hmac
import logging
from typing import Any, Dict, Optional

import httpx

from clinic import config
from clinic.errors import GatewayError
from clinic.payments.gateway import PaymentGateway

logger = logging.getLogger(__name__)

# module clinic.payments.razorpay_client
def compute_signature(order_id: str, payment_id: str, secret: str) -> str:
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


class RazorpayGateway(PaymentGateway):
    name = "razorpay"

    def __init__(
        self,
        key_id: Optional[str] = None,
        key_secret: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.key_id = key_id if key_id is not None else config.RAZORPAY_KEY_ID
        self.key_secret = key_secret if key_secret is not None else config.RAZORPAY_KEY_SECRET
        self.api_url = (api_url or config.RAZORPAY_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else config.GATEWAY_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.api_url,
            auth=(self.key_id, self.key_secret),
            timeout=self.timeout,
            transport=self._transport,
        )

    def create_intent(self, amount_minor: int, currency: str, receipt: str) -> Dict[str, Any]:
        if not self.key_id or not self.key_secret:
            raise GatewayError("RAZORPAY_KEY_ID / RAZORPAY_KEY_SECRET missing")
        payload = {"amount": int(amount_minor), "currency": currency, "receipt": receipt[:40]}
        try:
            with self._client() as client:
                resp = client.post("/orders", json=payload)
        except httpx.HTTPError as e:
            logger.error("razorpay.create_intent network error receipt=%s: %s", receipt, e)
            raise GatewayError(f"Razorpay unreachable: {e}")

        if not (200 <= resp.status_code < 300):
            logger.error("razorpay.create_intent failed: status=%s body=%s", resp.status_code, resp.text)
            raise GatewayError(f"Razorpay error (status={resp.status_code})")
        try:
            data = resp.json()
        except ValueError:
            raise GatewayError("Razorpay returned an invalid response")
        intent_id = (data or {}).get("id")
        if not intent_id:
            raise GatewayError("Razorpay response without order id")
        return {"intent_id": intent_id, "status": data.get("status"), "raw": data}

    def verify_signature(self, intent_id: str, payment_id: str, signature: str) -> bool:
        if not (intent_id and payment_id and signature and self.key_secret):
            return False
        expected = compute_signature(intent_id, payment_id, self.key_secret)
        return hmac.compare_digest(expected, str(signature))

    def public_params(self) -> Dict[str, Any]:
        return {"key_id": self.key_id}
