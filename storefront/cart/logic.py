"""
Logique panier pure (pas de DB, pas de paiement).
Une ligne de panier est un dict {"product_id": str, "quantity": int}.
Les fonctions ne modifient jamais la liste reçue: elles en renvoient une nouvelle.
"""
from typing import Any, Dict, List, Optional

from storefront.errors import NotFound

# module storefront.cart.logic
def normalize_lines(raw: Optional[List[Dict[str, Any]]]) -> List[Dict[str, Any]]:
    """
    Nettoie un panier brut lu en base.
    - Ignore les lignes invalides (product_id vide, quantity <= 0).
    - Conserve l'ordre d'insertion.
    """
    lines: List[Dict[str, Any]] = []
    for it in raw or []:
        if not isinstance(it, dict):
            continue
        product_id = str(it.get("product_id") or "").strip()
        try:
            qty = int(it.get("quantity") or 0)
        except (TypeError, ValueError):
            qty = 0
        if not product_id or qty <= 0:
            continue
        lines.append({"product_id": product_id, "quantity": qty})
    return lines

def find_line(lines: List[Dict[str, Any]], product_id: str) -> Optional[Dict[str, Any]]:
    for line in lines:
        if line["product_id"] == product_id:
            return line
    return None

def quantity_in_cart(lines: List[Dict[str, Any]], product_id: str) -> int:
    line = find_line(lines, product_id)
    return line["quantity"] if line else 0

def merge_line(lines: List[Dict[str, Any]], product_id: str, quantity: int) -> List[Dict[str, Any]]:
    """Additionne la quantité à la ligne existante, ou ajoute une ligne en fin de panier."""
    merged = [dict(line) for line in lines]
    line = find_line(merged, product_id)
    if line:
        line["quantity"] += quantity
    else:
        merged.append({"product_id": product_id, "quantity": quantity})
    return merged

def set_line_quantity(lines: List[Dict[str, Any]], product_id: str, quantity: int) -> List[Dict[str, Any]]:
    updated = [dict(line) for line in lines]
    line = find_line(updated, product_id)
    if not line:
        raise NotFound("Article absent du panier")
    line["quantity"] = quantity
    return updated

def remove_line(lines: List[Dict[str, Any]], product_id: str) -> List[Dict[str, Any]]:
    """Idempotent: retirer une ligne absente ne change rien."""
    return [dict(line) for line in lines if line["product_id"] != product_id]

def populate_cart(lines: List[Dict[str, Any]], products_by_id: Dict[str, Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Projection « peuplée » du panier pour le client: chaque ligne porte le produit
    courant (prix du catalogue actuel). Les lignes dont le produit n'existe plus
    (ou est désactivé) sont écartées.
    """
    populated: List[Dict[str, Any]] = []
    for line in lines:
        product = products_by_id.get(line["product_id"])
        if not product or product.get("is_active", True) is False:
            continue
        populated.append({
            "product_id": line["product_id"],
            "quantity": line["quantity"],
            "product": product,
        })
    return populated
