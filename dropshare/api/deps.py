import hmac
import logging
from typing import Optional

from fastapi import Header, HTTPException, Request

from dropshare.core.config import Settings
from dropshare.services.filestore import FileStore

logger = logging.getLogger(__name__)

def get_store(request: Request) -> FileStore:
    return request.app.state.store

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def check_admin_password(given: Optional[str], expected: str) -> bool:
    """
    Plain shared-secret check: no sessions, tokens or rate limiting.
    An unset secret never matches, including an empty credential.
    """
    if not expected or given is None:
        return False
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))

def require_admin(request: Request, x_admin_password: Optional[str] = Header(None)) -> None:
    if not check_admin_password(x_admin_password, get_settings(request).ADMIN_PASSWORD):
        logger.warning(f"Rejected admin request to {request.url.path} from {request.client.host if request.client else 'unknown'}")
        raise HTTPException(status_code=401, detail="Unauthorized: Invalid admin password")
