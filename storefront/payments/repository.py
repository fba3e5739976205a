"""
Accès aux données pour la feature 'payments' (journal d'audit des échecs).
"""
from typing import Any, Optional
import json
import logging

import storefront.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

def record_payment_failure(*, user_id: Optional[str], provider_order_id: Optional[str], error: Any) -> bool:
    """
    Insère une ligne 'payment_failures' (service-role).
    Retourne False en cas d'erreur, sans lever.
    """
    detail = error if isinstance(error, str) else json.dumps(error, default=str)
    try:
        (
            supabase_client.get_service_supabase()
            .table("payment_failures")
            .insert({"user_id": user_id, "provider_order_id": provider_order_id, "error": detail[:2000]})
            .execute()
        )
        return True
    except Exception:
        logger.exception("payments.repository.record_payment_failure failed order_id=%s", provider_order_id)
        return False
