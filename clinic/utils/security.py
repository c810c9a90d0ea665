"""
Session admin et secrets.
- Connexion admin: drapeau dans la session signée (SessionMiddleware), pas de cookie dédié.
- Mots de passe: hash bcrypt (ADMIN_PASS_HASH); mot de passe en clair accepté en développement uniquement.
"""
from typing import Any, Dict, MutableMapping, Optional
import hmac

import bcrypt
from fastapi import HTTPException, Request

from clinic import config

ADMIN_SESSION_KEY = "admin"

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

def check_password(password: str, hashed: Optional[str]) -> bool:
    if not (password and hashed):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Hash mal formé dans l'environnement
        return False

def verify_admin_credentials(username: str, password: str) -> bool:
    if not config.ADMIN_USER or not hmac.compare_digest(str(username or ""), config.ADMIN_USER):
        return False
    if config.ADMIN_PASS_HASH:
        return check_password(password, config.ADMIN_PASS_HASH)
    if config.ADMIN_PASS and not config.IS_PRODUCTION:
        return hmac.compare_digest(str(password or ""), config.ADMIN_PASS)
    return False

def login_admin(session: MutableMapping[str, Any], username: str) -> None:
    session[ADMIN_SESSION_KEY] = {"username": username}

def logout_admin(session: MutableMapping[str, Any]) -> None:
    session.pop(ADMIN_SESSION_KEY, None)

def current_admin(request: Request) -> Optional[Dict[str, Any]]:
    admin = request.session.get(ADMIN_SESSION_KEY)
    return admin if isinstance(admin, dict) and admin.get("username") else None

def require_admin(request: Request) -> Dict[str, Any]:
    admin = current_admin(request)
    if not admin:
        raise HTTPException(status_code=401, detail="Non authentifié")
    return admin
