import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field

from clinic.errors import GatewayError
from clinic.payments import service as checkout_service
from clinic.payments import stripe_client
from clinic.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])

class CustomerInfo(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=30)

class CreateOrderRequest(BaseModel):
    product_id: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    customer: Optional[CustomerInfo] = None

class VerifyPaymentRequest(BaseModel):
    order_id: str = Field(min_length=1)
    payment_id: str = Field(min_length=1)
    signature: str = Field(min_length=1)

# module clinic.payments.views
@router.post("/orders", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_order(request: Request, req: Optional[CreateOrderRequest] = None) -> Dict[str, Any]:
    """
    Crée une commande 'created' + l'intention de paiement côté passerelle.
    - Sans product_id: achète le contenu du panier de session (vidé en cas de succès)
    - Avec product_id: achat direct ("Buy now"), le panier n'est pas touché
    - Erreurs: 400 EmptyCart, 404 InvalidProduct, 502 GatewayUnavailable
    """
    req = req or CreateOrderRequest()
    customer = req.customer.model_dump() if req.customer else None
    return checkout_service.create_order(
        request.session,
        product_id=req.product_id,
        quantity=req.quantity,
        customer=customer,
    )

@router.post("/verify", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
def verify_payment(req: VerifyPaymentRequest) -> Dict[str, Any]:
    """
    Retour navigateur après paiement: {order_id, payment_id, signature}.
    La commande n'est marquée 'paid' qu'après vérification de la signature.
    - 400 signature invalide (commande inchangée), 409 paiement pas encore réglé ou autre paiement
    """
    order = checkout_service.verify_payment(req.order_id, req.payment_id, req.signature)
    return {"ok": True, "order": checkout_service.to_public_order(order)}

@router.get("/orders/{order_id}")
def order_status(order_id: str) -> Dict[str, Any]:
    return checkout_service.to_public_order(checkout_service.get_order(order_id))

@router.post("/webhook", include_in_schema=False)
async def gateway_webhook(request: Request):
    """
    Webhook Stripe: payment_intent.succeeded / payment_intent.payment_failed.
    - Signature: stripe_client.parse_event (Stripe-Signature + STRIPE_WEBHOOK_SECRET), 400 si invalide
    - Réponses: {"status": "ok", "order_id": ...} ou {"status": "ignored"}
    """
    try:
        event = await stripe_client.parse_event(request)
    except GatewayError as e:
        raise HTTPException(status_code=400, detail=e.message)
    summary = stripe_client.event_summary(event)
    result = checkout_service.handle_gateway_event(summary)
    logger.info("checkout.webhook type=%s result=%s", summary.get("type"), result.get("status"))
    return JSONResponse(result)
