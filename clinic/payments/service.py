"""
Cas d'usage 'checkout': orchestre panier, catalogue, registre des commandes et passerelle.

Cycle de vie d'une tentative:
    INIT -> ORDER_CREATED (status 'created') -> VERIFIED ('paid') | FAILED ('failed')
    'failed' ne vient que de la passerelle; un succès authentifié ultérieur le remplace par 'paid'.

- create_order: fige les lignes (nom/prix au moment de la commande), crée l'intention
  de paiement distante, persiste la commande puis vide le panier d'origine.
  Si la passerelle échoue: GatewayUnavailable et aucune commande n'est persistée.
- verify_payment: vérifie la signature renvoyée par le navigateur (HMAC côté passerelle)
  avant de marquer la commande 'paid'; une signature invalide ne modifie rien.
- handle_gateway_event: notifications serveur à serveur (webhook Stripe signé).

Limites connues:
- Vidage du panier et création de commande sont deux écritures distinctes (pas de transaction).
- Pas de réconciliation: une commande abandonnée reste 'created'.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, MutableMapping, Optional
from uuid import uuid4
import logging

from clinic import config
from clinic.cart import service as cart_service
from clinic.errors import (
    EmptyCart,
    GatewayError,
    GatewayUnavailable,
    InvalidProduct,
    OrderAlreadyFinalized,
    OrderNotFound,
    PaymentVerificationFailed,
)
from clinic.orders import repository as orders_repo
from clinic.orders.repository import STATUS_CREATED, STATUS_FAILED, STATUS_PAID
from clinic.payments.gateway import PaymentGateway, get_gateway
from clinic.products import repository as products_repo
from clinic.products.service import is_available, price_of

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = ("name", "email", "phone")

# module clinic.payments.service
def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def build_snapshot(lines: List[Dict[str, Any]], products: Dict[str, dict]) -> List[Dict[str, Any]]:
    """
    Copie nom/prix de chaque produit au moment de la commande.
    InvalidProduct si un produit référencé a disparu ou est inactif.
    """
    items: List[Dict[str, Any]] = []
    for line in lines:
        product = products.get(line["product_id"])
        if not is_available(product):
            raise InvalidProduct(f"Product {line['product_id']} is not available")
        price = price_of(product)
        items.append({
            "product_id": line["product_id"],
            "name": product.get("name") or "",
            "price": price,
            "quantity": line["quantity"],
            "subtotal": price * line["quantity"],
        })
    return items

def _serialize_items(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{**it, "price": float(it["price"]), "subtotal": float(it["subtotal"])} for it in items]

def _customer_fields(customer: Optional[Dict[str, Any]]) -> Dict[str, str]:
    customer = customer or {}
    return {f"customer_{k}": str(customer.get(k) or "").strip() for k in CUSTOMER_FIELDS}

def create_order(
    session: MutableMapping[str, Any],
    product_id: Optional[str] = None,
    quantity: int = 1,
    customer: Optional[Dict[str, Any]] = None,
    gateway: Optional[PaymentGateway] = None,
) -> Dict[str, Any]:
    """
    Crée une commande 'created' et l'intention de paiement associée.
    - Source: le produit unique (product_id + quantity) s'il est fourni, sinon le panier de session.
    - EmptyCart si rien à acheter, InvalidProduct si un produit est manquant/inactif.
    Retour: {order_id, gateway, gateway_order_id, amount, amount_minor, currency, ...params publics}.
    """
    from_cart = not product_id
    if from_cart:
        lines = cart_service.get_lines(session)
    else:
        qty = cart_service.check_quantity(quantity, allow_zero=False)
        lines = [{"product_id": str(product_id).strip(), "quantity": qty}]
    if not lines:
        raise EmptyCart()

    products = products_repo.get_products_map(line["product_id"] for line in lines)
    items = build_snapshot(lines, products)
    total = sum((it["subtotal"] for it in items), Decimal("0"))
    amount_minor = to_minor_units(total)
    if amount_minor <= 0:
        raise EmptyCart("Order total must be greater than zero")

    gateway = gateway or get_gateway()
    order_id = str(uuid4())
    try:
        intent = gateway.create_intent(amount_minor, config.CURRENCY, order_id)
    except GatewayError as e:
        logger.error("checkout.create_order gateway failure order_id=%s: %s", order_id, e.message)
        raise GatewayUnavailable()

    order = {
        "id": order_id,
        "items": _serialize_items(items),
        **_customer_fields(customer),
        "amount": float(total),
        "amount_minor": amount_minor,
        "currency": config.CURRENCY,
        "status": STATUS_CREATED,
        "gateway": gateway.name,
        "gateway_order_id": intent["intent_id"],
        "gateway_payment_id": None,
        "gateway_signature": None,
        "failure_reason": None,
    }
    orders_repo.insert_order(order)
    logger.info(
        "checkout.create_order order_id=%s gateway_order_id=%s amount_minor=%s items=%s",
        order_id, intent["intent_id"], amount_minor, len(items),
    )

    if from_cart:
        cart_service.clear(session)

    result = {
        "order_id": order_id,
        "gateway": gateway.name,
        "gateway_order_id": intent["intent_id"],
        "amount": float(total),
        "amount_minor": amount_minor,
        "currency": config.CURRENCY,
    }
    result.update(gateway.public_params())
    if intent.get("client_secret"):
        result["client_secret"] = intent["client_secret"]
    return result

def get_order(order_id: str) -> Dict[str, Any]:
    order = orders_repo.get_order(order_id)
    if not order:
        raise OrderNotFound()
    return order

def to_public_order(order: Dict[str, Any]) -> Dict[str, Any]:
    """Vue client d'une commande (sans la signature passerelle)."""
    return {
        "id": order.get("id"),
        "status": order.get("status"),
        "items": order.get("items") or [],
        "amount": float(order.get("amount") or 0),
        "currency": order.get("currency"),
        "gateway": order.get("gateway"),
        "gateway_order_id": order.get("gateway_order_id"),
        "gateway_payment_id": order.get("gateway_payment_id"),
        "created_at": order.get("created_at"),
    }

def _finalized(order: Dict[str, Any], payment_id: str) -> Dict[str, Any]:
    """Commande déjà payée: idempotent pour le même paiement, conflit sinon."""
    if order.get("status") == STATUS_PAID and order.get("gateway_payment_id") == payment_id:
        return order
    raise OrderAlreadyFinalized()

def verify_payment(
    order_id: str,
    gateway_payment_id: str,
    gateway_signature: str,
    gateway: Optional[PaymentGateway] = None,
) -> Dict[str, Any]:
    """
    Finalise une commande après paiement côté passerelle.
    - OrderNotFound si la commande n'existe pas (aucune mutation).
    - Déjà 'paid' avec le même payment id: renvoie la commande telle quelle.
    - Signature invalide: PaymentVerificationFailed, commande inchangée.
    - Paiement pas encore réglé côté passerelle: PaymentPending, commande inchangée.
    - Une commande 'failed' (échec signalé par la passerelle) peut encore passer 'paid'.
    """
    order = orders_repo.get_order(order_id)
    if not order:
        raise OrderNotFound()
    status = order.get("status")
    if status not in (STATUS_CREATED, STATUS_FAILED):
        return _finalized(order, gateway_payment_id)

    gateway = gateway or get_gateway()
    if not gateway.verify_signature(order.get("gateway_order_id") or "", gateway_payment_id, gateway_signature):
        logger.warning("checkout.verify_payment signature mismatch order_id=%s payment_id=%s", order_id, gateway_payment_id)
        raise PaymentVerificationFailed()

    updated = orders_repo.update_order(
        order_id,
        {
            "status": STATUS_PAID,
            "gateway_payment_id": gateway_payment_id,
            "gateway_signature": gateway_signature,
            "failure_reason": None,
        },
        expected_status=status,
    )
    if not updated:
        # Transition concurrente (double soumission, webhook): relire l'état final
        current = get_order(order_id)
        return _finalized(current, gateway_payment_id)
    logger.info("checkout.verify_payment paid order_id=%s payment_id=%s", order_id, gateway_payment_id)
    return updated

def handle_gateway_event(summary: Dict[str, Any]) -> Dict[str, Any]:
    """
    Applique un événement passerelle déjà authentifié ({type, intent_id}).
    - payment_intent.succeeded -> 'paid' (depuis 'created' ou 'failed': nouvelle tentative sur la même intention)
    - payment_intent.payment_failed -> 'failed' (seulement depuis 'created')
    Retour: {"status": "ok"} si une commande a changé, {"status": "ignored"} sinon.
    """
    event_type = summary.get("type") or ""
    intent_id = summary.get("intent_id") or ""
    if event_type == "payment_intent.succeeded":
        changes = {"status": STATUS_PAID, "gateway_payment_id": intent_id, "gateway_signature": "webhook", "failure_reason": None}
        from_statuses = (STATUS_CREATED, STATUS_FAILED)
    elif event_type == "payment_intent.payment_failed":
        changes = {"status": STATUS_FAILED, "failure_reason": "gateway_reported_failure"}
        from_statuses = (STATUS_CREATED,)
    else:
        return {"status": "ignored"}

    order = orders_repo.get_order_by_gateway_order_id(intent_id)
    if not order or order.get("status") not in from_statuses:
        return {"status": "ignored"}
    updated = orders_repo.update_order(order["id"], changes, expected_status=order["status"])
    logger.info("checkout.webhook type=%s order_id=%s updated=%s", event_type, order["id"], bool(updated))
    return {"status": "ok" if updated else "ignored", "order_id": order["id"]}
