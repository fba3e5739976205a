# module storefront.orders.models
"""Statuts de commande et transitions autorisées.
- Pending -> Paid -> Shipped -> Delivered
- Cancelled uniquement depuis Pending ou Paid
Seul le statut évolue après création: lignes et prix capturés sont figés.
"""
from enum import Enum
from typing import Dict, FrozenSet

from storefront.errors import InvalidTransition, ValidationError


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

CANCELLABLE = frozenset({OrderStatus.PENDING, OrderStatus.PAID})

def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value)
    except ValueError:
        raise ValidationError(f"Statut invalide: {value}")

def check_transition(current: str, target: str) -> OrderStatus:
    """Retourne le statut cible si la transition est permise, sinon InvalidTransition."""
    src = parse_status(current)
    dst = parse_status(target)
    if dst not in TRANSITIONS[src]:
        raise InvalidTransition(f"Transition {src.value} -> {dst.value} interdite")
    return dst

def check_cancellable(current: str) -> None:
    if parse_status(current) not in CANCELLABLE:
        raise InvalidTransition("Impossible d'annuler une commande expédiée ou livrée")
