"""
Contrat commun des adaptateurs de passerelle de paiement.

- create_intent(amount_minor, currency, receipt) -> {"intent_id": ..., ...}
  Lève GatewayError en cas d'échec réseau/authentification/réponse invalide.
- verify_signature(intent_id, payment_id, signature) -> bool
  Authentifie le retour navigateur avant de marquer une commande payée.
  Peut lever PaymentPending si le paiement existe mais n'est pas encore réglé.
- public_params(): paramètres exposés au front pour ouvrir le checkout (jamais de secret).
"""
from typing import Any, Dict, Optional

from clinic import config
from clinic.errors import GatewayError


class PaymentGateway:
    name = "base"

    def create_intent(self, amount_minor: int, currency: str, receipt: str) -> Dict[str, Any]:
        raise NotImplementedError

    def verify_signature(self, intent_id: str, payment_id: str, signature: str) -> bool:
        raise NotImplementedError

    def public_params(self) -> Dict[str, Any]:
        return {}


_gateway: Optional[PaymentGateway] = None

def get_gateway() -> PaymentGateway:
    """Adaptateur choisi par PAYMENT_GATEWAY (instance partagée, sans état)."""
    global _gateway
    if _gateway is None:
        if config.PAYMENT_GATEWAY == "razorpay":
            from clinic.payments.razorpay_client import RazorpayGateway
            _gateway = RazorpayGateway()
        elif config.PAYMENT_GATEWAY == "stripe":
            from clinic.payments.stripe_client import StripeGateway
            _gateway = StripeGateway()
        else:
            raise GatewayError(f"Unknown payment gateway: {config.PAYMENT_GATEWAY}")
    return _gateway

def set_gateway(gateway: Optional[PaymentGateway]) -> None:
    """Remplace l'adaptateur courant (None: re-sélection depuis la config au prochain appel)."""
    global _gateway
    _gateway = gateway
