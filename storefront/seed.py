"""
Peuple le catalogue avec des produits de démonstration.

Usage:
    python -m storefront.seed            # ajoute les produits absents (par nom)
    python -m storefront.seed --reset    # vide la table products avant insertion
"""
import argparse
import logging
from typing import Any, Dict, List

import storefront.infra.supabase_client as supabase_client
from storefront.products import repository as products_repository
from storefront.products import service as products_service

logger = logging.getLogger(__name__)

SAMPLE_PRODUCTS: List[Dict[str, Any]] = [
    {"name": "Wireless Headphones", "description": "Noise-cancelling over-ear headphones, 20h battery.", "category": "electronics", "price": 199.99, "stock": 50},
    {"name": "Smartphone", "description": "5G smartphone, 128GB storage, OLED display.", "category": "electronics", "price": 699.99, "stock": 30},
    {"name": "Coffee Maker", "description": "Drip coffee maker with programmable timer.", "category": "home appliances", "price": 89.99, "stock": 20},
    {"name": "Running Shoes", "description": "Lightweight running shoes with breathable mesh.", "category": "footwear", "price": 59.99, "stock": 35},
    {"name": "Leather Handbag", "description": "Leather handbag with spacious compartments.", "category": "accessories", "price": 120.00, "stock": 15},
    {"name": "Wireless Earbuds", "description": "Bluetooth earbuds, 24h playtime.", "category": "electronics", "price": 79.99, "stock": 50},
    {"name": "Chocolate Gift Box", "description": "Assorted premium chocolates.", "category": "food & gifts", "price": 24.99, "stock": 40},
    {"name": "Smart Watch", "description": "Fitness tracking with heart rate monitor.", "category": "electronics", "price": 149.99, "stock": 25},
    {"name": "Yoga Mat", "description": "Non-slip mat, 6mm.", "category": "sports", "price": 19.99, "stock": 60},
    {"name": "Desk Lamp", "description": "LED lamp with adjustable brightness.", "category": "home appliances", "price": 34.50, "stock": 1},
]

def reset_products() -> None:
    # PostgREST refuse un DELETE sans filtre
    supabase_client.get_service_supabase().table(products_repository.TABLE).delete().not_.is_("id", "null").execute()

def seed(reset: bool = False) -> int:
    """Insère les produits manquants; retourne le nombre de produits créés."""
    if reset:
        reset_products()
        existing = set()
    else:
        existing = {p.get("name") for p in products_repository.list_products(include_inactive=True)}
    created = 0
    for data in SAMPLE_PRODUCTS:
        if data["name"] in existing:
            continue
        products_service.create_product(dict(data))
        created += 1
    logger.info("seed created=%s reset=%s", created, reset)
    return created

def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Peuple la table products")
    parser.add_argument("--reset", action="store_true", help="supprime les produits existants avant insertion")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    created = seed(reset=args.reset)
    print(f"{created} produit(s) inséré(s)")

if __name__ == "__main__":
    main()
