"""
Caller authentication

The API is called by the product backend, not by end users. The backend
presents one of the shared keys in API_KEYS as a Bearer token and is then
trusted to name the acting user in the path.
"""
import hashlib
import hmac
import logging
import os
from typing import Optional

from fastapi import HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

logger = logging.getLogger(__name__)

security = HTTPBearer()


def load_api_keys() -> list[str]:
    """Keys accepted right now; read per request so they can be rotated without a restart"""
    return [key.strip() for key in os.getenv("API_KEYS", "").split(",") if key.strip()]


def key_fingerprint(api_key: str) -> str:
    """Short stable id for a key, safe to log"""
    return hashlib.sha256(api_key.encode()).hexdigest()[:12]


def find_matching_key(candidate: str, keys: list[str]) -> Optional[str]:
    """
    Constant-time lookup of candidate among keys

    Every configured key is compared, whatever matches first.
    """
    match = None
    for key in keys:
        if hmac.compare_digest(candidate.encode(), key.encode()):
            match = key
    return match


async def verify_api_key(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """
    Authenticate the calling backend

    Stores the key's fingerprint on request.state.caller for logging and
    rate limiting.

    Returns:
        The matched API key

    Raises:
        HTTPException: 503 when no keys are configured, 401 for an unknown key
    """
    keys = load_api_keys()
    if not keys:
        logger.error("API_KEYS is empty, refusing all authenticated requests")
        raise HTTPException(status_code=503, detail="API authentication not configured")

    fingerprint = key_fingerprint(credentials.credentials)
    api_key = find_matching_key(credentials.credentials, keys)
    if api_key is None:
        logger.warning(f"Rejected API key {fingerprint} on {request.url.path}")
        raise HTTPException(status_code=401, detail="Invalid API key")

    request.state.caller = fingerprint
    return api_key
