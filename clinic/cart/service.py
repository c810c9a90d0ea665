"""
Panier de session (pas de DB pour le panier lui-même).

Le panier vit dans la session du visiteur (request.session, cookie signé):
    session["cart"] = [{"product_id": "<uuid>", "quantity": <int >= 1>}, ...]
Chaque opération reçoit explicitement la session de l'appelant.
Les produits ne sont référencés que par leur id: nom/prix/image sont relus
à chaque lecture (un produit peut être supprimé ou désactivé entre deux requêtes).
"""
from decimal import Decimal
from typing import Any, Dict, Iterator, List, MutableMapping, Optional
import logging

from clinic.errors import InvalidProduct, InvalidQuantity, NotInCart
from clinic.products import repository as products_repo
from clinic.products.service import is_available, price_of

logger = logging.getLogger(__name__)

CART_SESSION_KEY = "cart"

# module clinic.cart.service
def get_lines(session: MutableMapping[str, Any]) -> List[Dict[str, Any]]:
    """Lignes valides du panier (copie). Ignore les entrées corrompues du cookie."""
    lines: List[Dict[str, Any]] = []
    for it in session.get(CART_SESSION_KEY) or []:
        try:
            product_id = str(it.get("product_id") or "").strip()
            qty = int(it.get("quantity") or 0)
        except (AttributeError, TypeError, ValueError):
            continue
        if product_id and qty >= 1:
            lines.append({"product_id": product_id, "quantity": qty})
    return lines

def _save(session: MutableMapping[str, Any], lines: List[Dict[str, Any]]) -> None:
    session[CART_SESSION_KEY] = lines

def check_quantity(quantity: Any, allow_zero: bool) -> int:
    try:
        qty = int(quantity)
    except (TypeError, ValueError):
        raise InvalidQuantity()
    if isinstance(quantity, bool) or qty < (0 if allow_zero else 1) or qty != quantity:
        raise InvalidQuantity()
    return qty

def item_count(session: MutableMapping[str, Any]) -> int:
    return sum(line["quantity"] for line in get_lines(session))

def add(session: MutableMapping[str, Any], product_id: str, quantity: int = 1) -> int:
    """
    Ajoute un produit au panier.
    - InvalidQuantity si quantity < 1.
    - InvalidProduct si le produit n'existe pas ou est inactif (aucune mutation).
    - Fusionne avec une ligne existante (somme des quantités), sinon ajoute en fin.
    Retour: nombre total d'articles.
    """
    qty = check_quantity(quantity, allow_zero=False)
    product_id = str(product_id or "").strip()
    product = products_repo.get_product(product_id) if product_id else None
    if not is_available(product):
        raise InvalidProduct()

    lines = get_lines(session)
    for line in lines:
        if line["product_id"] == product_id:
            line["quantity"] += qty
            break
    else:
        lines.append({"product_id": product_id, "quantity": qty})
    _save(session, lines)
    logger.info("cart.add product_id=%s quantity=%s", product_id, qty)
    return sum(line["quantity"] for line in lines)

def update(session: MutableMapping[str, Any], product_id: str, quantity: int) -> int:
    """
    Fixe la quantité d'une ligne existante.
    - NotInCart si aucune ligne ne correspond.
    - quantity == 0 supprime la ligne.
    Retour: nombre total d'articles.
    """
    qty = check_quantity(quantity, allow_zero=True)
    product_id = str(product_id or "").strip()
    lines = get_lines(session)
    index = next((i for i, line in enumerate(lines) if line["product_id"] == product_id), None)
    if index is None:
        raise NotInCart()
    if qty == 0:
        lines.pop(index)
    else:
        lines[index]["quantity"] = qty
    _save(session, lines)
    return sum(line["quantity"] for line in lines)

def remove(session: MutableMapping[str, Any], product_id: str) -> int:
    return update(session, product_id, 0)

def clear(session: MutableMapping[str, Any]) -> None:
    """Vide le panier (idempotent)."""
    session.pop(CART_SESSION_KEY, None)


class CartView:
    """
    Vue enrichie du panier à un instant donné.
    - Itérable paresseux et ré-itérable: chaque itération rejoue les lignes
      avec les données produit chargées lors de view().
    - Les lignes dont le produit a disparu ou est inactif sont ignorées.
    """

    def __init__(self, lines: List[Dict[str, Any]], products: Dict[str, dict]):
        self._lines = lines
        self._products = products

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        for line in self._lines:
            product = self._products.get(line["product_id"])
            if not is_available(product):
                continue
            price = price_of(product)
            yield {
                "product_id": line["product_id"],
                "name": product.get("name") or "",
                "image": product.get("image") or "",
                "price": price,
                "quantity": line["quantity"],
                "subtotal": price * line["quantity"],
            }

    @property
    def total(self) -> Decimal:
        return sum((line["subtotal"] for line in self), Decimal("0"))

    @property
    def count(self) -> int:
        return sum(line["quantity"] for line in self)

    def is_empty(self) -> bool:
        return next(iter(self), None) is None

    def to_dict(self) -> Dict[str, Any]:
        items = [
            {**line, "price": float(line["price"]), "subtotal": float(line["subtotal"])}
            for line in self
        ]
        return {"items": items, "count": sum(i["quantity"] for i in items), "total": float(self.total)}

def view(session: MutableMapping[str, Any], products: Optional[Dict[str, dict]] = None) -> CartView:
    lines = get_lines(session)
    if products is None:
        products = products_repo.get_products_map(line["product_id"] for line in lines) if lines else {}
    return CartView(lines, products)
