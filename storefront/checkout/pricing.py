"""
Calcul des montants d'une commande (fonction pure, sans DB).

subtotal = somme prix x quantité
shipping = 0 si subtotal > 50.00, sinon 5.99 (forfait, indépendant de la devise)
tax      = subtotal x 8 %
total    = subtotal + shipping + tax
Tous les montants sont arrondis au centime (ROUND_HALF_UP); tax est arrondie
avant l'addition pour que total soit toujours la somme des montants affichés.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Tuple

FREE_SHIPPING_THRESHOLD = Decimal("50.00")
FLAT_SHIPPING_FEE = Decimal("5.99")
TAX_RATE = Decimal("0.08")

CENT = Decimal("0.01")

def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value if value is not None else 0))

def money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)

def subtotal_of(lines: Iterable[Tuple[Any, int]]) -> Decimal:
    total = Decimal("0")
    for unit_price, quantity in lines:
        total += to_decimal(unit_price) * int(quantity)
    return money(total)

def shipping_for(subtotal: Decimal) -> Decimal:
    return Decimal("0.00") if subtotal > FREE_SHIPPING_THRESHOLD else FLAT_SHIPPING_FEE

def compute_totals(lines: Iterable[Tuple[Any, int]]) -> Dict[str, Decimal]:
    """
    lines: [(prix_unitaire, quantité), ...] issues d'un snapshot de panier
    (les lignes dont le produit a disparu sont déjà exclues par l'appelant).
    Retourne {"subtotal", "shipping", "tax", "total"} en Decimal.
    """
    subtotal = subtotal_of(lines)
    shipping = shipping_for(subtotal)
    tax = money(subtotal * TAX_RATE)
    return {
        "subtotal": subtotal,
        "shipping": shipping,
        "tax": tax,
        "total": money(subtotal + shipping + tax),
    }

def totals_as_floats(totals: Dict[str, Decimal]) -> Dict[str, float]:
    """Forme JSON/persistance des montants."""
    return {k: float(v) for k, v in totals.items()}
