"""
Taxonomie des erreurs métier (panier, commandes, paiement, contact).

Chaque erreur porte:
- kind: identifiant stable renvoyé au client ({"error": kind, "detail": message})
- status_code: code HTTP utilisé par le handler enregistré dans app_setup.exceptions
Aucune n'est fatale: elles sont converties en réponse structurée à la frontière HTTP.
"""
from typing import Optional


class ShopError(Exception):
    kind = "shop_error"
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.kind, "detail": self.message}


class InvalidProduct(ShopError):
    kind = "invalid_product"
    status_code = 404
    default_message = "Product not found or unavailable"


class InvalidQuantity(ShopError):
    kind = "invalid_quantity"
    default_message = "Quantity must be a positive integer"


class NotInCart(ShopError):
    kind = "not_in_cart"
    status_code = 404
    default_message = "Product is not in the cart"


class EmptyCart(ShopError):
    kind = "empty_cart"
    default_message = "Cart is empty"


class GatewayError(ShopError):
    """Levée par les adaptateurs (réseau, authentification, réponse invalide)."""
    kind = "gateway_error"
    status_code = 502
    default_message = "Payment gateway error"


class GatewayUnavailable(GatewayError):
    """Levée par l'orchestrateur quand la création de l'intention de paiement échoue."""
    kind = "gateway_unavailable"
    default_message = "Payment gateway is unavailable, please try again"


class OrderNotFound(ShopError):
    kind = "order_not_found"
    status_code = 404
    default_message = "Order not found"


class OrderAlreadyFinalized(ShopError):
    kind = "order_already_finalized"
    status_code = 409
    default_message = "Order is already finalized"


class PaymentVerificationFailed(ShopError):
    kind = "payment_verification_failed"
    default_message = "Payment signature verification failed"


class PaymentPending(ShopError):
    """Paiement connu de la passerelle mais pas encore réglé (ex. Stripe 'processing')."""
    kind = "payment_pending"
    status_code = 409
    default_message = "Payment is not completed yet, please retry shortly"


class ContactValidationError(ShopError):
    kind = "invalid_contact"


class MailUnavailable(ShopError):
    kind = "mail_unavailable"
    status_code = 503
    default_message = "Sorry, email service is currently unavailable. Please try again later."
