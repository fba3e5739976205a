"""
Code d'inscription admin: seul son hash bcrypt est configuré (ADMIN_SECRET_HASH).

Générer le hash à placer dans .env:
    python -m storefront.auth.admin_code "<code secret>"
"""
import logging
import sys
from typing import Optional

import bcrypt

logger = logging.getLogger(__name__)

def hash_code(code: str) -> str:
    # Hash bcrypt avec salt auto
    return bcrypt.hashpw(code.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

def check_code(code: Optional[str], code_hash: Optional[str]) -> bool:
    """True si code correspond à code_hash; False si l'un manque ou si le hash est invalide."""
    if not (isinstance(code, str) and code and isinstance(code_hash, str) and code_hash):
        return False
    try:
        return bcrypt.checkpw(code.encode("utf-8"), code_hash.encode("utf-8"))
    except ValueError:
        logger.warning("ADMIN_SECRET_HASH n'est pas un hash bcrypt valide")
        return False

if __name__ == "__main__":
    if len(sys.argv) != 2:
        sys.exit("usage: python -m storefront.auth.admin_code <code>")
    print(hash_code(sys.argv[1]))
