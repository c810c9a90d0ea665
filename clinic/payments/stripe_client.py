"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.

- create_intent: PaymentIntent (montant en unités mineures, metadata.receipt = id commande).
- verify_signature: relit le PaymentIntent côté Stripe; exige l'id attendu et un client_secret
  identique à celui renvoyé par le navigateur, puis status 'succeeded' (PaymentPending sinon).
- parse_event: webhook signé (en-tête Stripe-Signature, HMAC vérifié par le SDK).
"""
import hmac
import logging
from typing import Any, Dict

import stripe
from fastapi import Request

from clinic import config
from clinic.errors import GatewayError, PaymentPending
from clinic.payments.gateway import PaymentGateway

logger = logging.getLogger(__name__)

# module clinic.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - GatewayError si STRIPE_SECRET_KEY est absent.
    """
    if not config.STRIPE_SECRET_KEY:
        raise GatewayError("STRIPE_SECRET_KEY missing")
    stripe.api_key = config.STRIPE_SECRET_KEY
    return stripe

def _field(obj: Any, name: str) -> Any:
    """Lecture tolérante d'un champ sur un objet Stripe ou un dict."""
    if isinstance(obj, dict):
        return obj.get(name)
    value = getattr(obj, name, None)
    if value is None:
        try:
            value = obj[name]
        except (KeyError, TypeError, IndexError):
            value = None
    return value

async def parse_event(request: Request) -> Any:
    """
    Parse et valide un événement Stripe signé (webhook).
    - Lit le body brut + en-tête Stripe-Signature
    - Valide la signature via Webhook.construct_event (STRIPE_WEBHOOK_SECRET)
    Lève GatewayError si le secret manque ou si la signature est invalide.
    """
    if not config.STRIPE_WEBHOOK_SECRET:
        raise GatewayError("STRIPE_WEBHOOK_SECRET missing")
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature") or ""
    try:
        return stripe.Webhook.construct_event(payload, sig_header, config.STRIPE_WEBHOOK_SECRET)
    except Exception as e:
        logger.warning("stripe.parse_event rejected: %s", e)
        raise GatewayError("Invalid Stripe webhook signature")

def event_summary(event: Any) -> Dict[str, Any]:
    """Réduit un événement Stripe à {type, intent_id, status}."""
    data = _field(event, "data") or {}
    obj = _field(data, "object") or {}
    return {
        "type": _field(event, "type") or "",
        "intent_id": _field(obj, "id") or "",
        "status": _field(obj, "status") or "",
    }


class StripeGateway(PaymentGateway):
    name = "stripe"

    def create_intent(self, amount_minor: int, currency: str, receipt: str) -> Dict[str, Any]:
        require_stripe()
        try:
            intent = stripe.PaymentIntent.create(
                amount=int(amount_minor),
                currency=currency.lower(),
                metadata={"receipt": receipt},
                automatic_payment_methods={"enabled": True},
            )
        except Exception as e:
            logger.error("stripe.create_intent failed receipt=%s: %s", receipt, e)
            raise GatewayError(f"Stripe error: {e}")
        intent_id = _field(intent, "id")
        if not intent_id:
            raise GatewayError("Stripe response without PaymentIntent id")
        return {
            "intent_id": intent_id,
            "status": _field(intent, "status"),
            "client_secret": _field(intent, "client_secret"),
        }

    def verify_signature(self, intent_id: str, payment_id: str, signature: str) -> bool:
        """
        Côté Stripe, le navigateur renvoie l'id du PaymentIntent (payment_id) et son
        client_secret (signature). On ne fait confiance qu'à la relecture serveur.
        """
        if not (intent_id and payment_id and signature) or payment_id != intent_id:
            return False
        require_stripe()
        try:
            intent = stripe.PaymentIntent.retrieve(intent_id)
        except Exception as e:
            logger.error("stripe.verify_signature retrieve failed id=%s: %s", intent_id, e)
            raise GatewayError(f"Stripe error: {e}")
        client_secret = str(_field(intent, "client_secret") or "")
        if not (client_secret and hmac.compare_digest(client_secret, str(signature))):
            return False
        status = _field(intent, "status")
        if status == "succeeded":
            return True
        if status == "canceled":
            return False
        # processing, requires_action...: ni succès ni échec pour l'instant
        logger.info("stripe.verify_signature intent not settled id=%s status=%s", intent_id, status)
        raise PaymentPending()

    def public_params(self) -> Dict[str, Any]:
        return {"publishable_key": config.STRIPE_PUBLIC_KEY}
