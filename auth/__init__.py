"""Authentication module binding API sessions to chain accounts.

This module provides:
1. JWT session tokens for the unlocked accounts of the local chain
2. Single active session per address
3. A FastAPI dependency resolving the calling address
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable
from fastapi import Request, HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError, ExpiredSignatureError

from chain import to_address

# Configure logging
logger = logging.getLogger(__name__)

# Constants
SESSION_EXPIRY_DAYS = 30
JWT_ALGORITHM = "HS256"

class AuthError(Exception):
    """Base exception for authentication errors."""
    pass

class UnknownAccountError(AuthError):
    """Raised when logging in with an account the chain does not hold."""
    pass

class SessionExpiredError(AuthError):
    """Raised when a session has expired."""
    pass

class SessionRevokedError(AuthError):
    """Raised when a session has been replaced or logged out."""
    pass

class AuthManager:
    """Manages session tokens for chain accounts."""

    def __init__(
        self,
        accounts: Callable[[], Iterable[str]],
        secret: str = '',
        expiry_days: int = SESSION_EXPIRY_DAYS
    ):
        """Initialize auth manager.

        Args:
            accounts: Callable returning the addresses allowed to log in
            secret: JWT signing secret. A random one is generated when empty.
            expiry_days: Session lifetime in days
        """
        self.accounts = accounts
        self.secret = secret or secrets.token_urlsafe(32)
        self.expiry_days = expiry_days
        self._sessions: Dict[str, str] = {}

    def login(self, address: str) -> Dict[str, str]:
        """Create a session for an account, revoking any previous one.

        Returns:
            Dict containing the token, address and expiry timestamp

        Raises:
            UnknownAccountError: If the address is not an unlocked account
        """
        try:
            address = to_address(address)
        except ValueError as e:
            raise UnknownAccountError(str(e))
        if address not in set(self.accounts()):
            raise UnknownAccountError(f"Account {address} is not available on this chain")

        session_id = secrets.token_hex(16)
        expires_at = datetime.now(timezone.utc) + timedelta(days=self.expiry_days)
        token = jwt.encode(
            {
                'sub': address,
                'sid': session_id,
                'exp': int(expires_at.timestamp())
            },
            self.secret,
            algorithm=JWT_ALGORITHM
        )
        self._sessions[address] = session_id
        logger.info(f"Created session for {address}")

        return {
            'token': token,
            'address': address,
            'expires_at': expires_at.isoformat()
        }

    def verify_session(self, token: str) -> str:
        """Verify a session token.

        Returns:
            The authenticated address

        Raises:
            SessionExpiredError: If the token has expired
            SessionRevokedError: If the session was replaced or logged out
            AuthError: If the token is invalid
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[JWT_ALGORITHM])
        except ExpiredSignatureError:
            raise SessionExpiredError("Session has expired")
        except JWTError as e:
            raise AuthError(f"Invalid token: {e}")

        address = payload.get('sub')
        if not address or self._sessions.get(address) != payload.get('sid'):
            raise SessionRevokedError("Session is no longer active")
        return address

    def logout(self, address: str) -> None:
        """Revoke the active session of an address."""
        self._sessions.pop(address, None)
        logger.info(f"Revoked session for {address}")

# FastAPI security scheme
auth_scheme = HTTPBearer(
    auto_error=True,  # Return 401 automatically if token is missing
    description="JWT Bearer token required"
)

async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(auth_scheme)
) -> str:
    """FastAPI dependency for getting the calling address.

    Raises:
        HTTPException: If authentication fails
    """
    manager: AuthManager = request.app.state.auth_manager
    try:
        return manager.verify_session(credentials.credentials)
    except SessionExpiredError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session has expired"
        )
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e)
        )

# Export public interface
__all__ = [
    'AuthManager',
    'auth_scheme',
    'get_current_user',
    'AuthError',
    'UnknownAccountError',
    'SessionExpiredError',
    'SessionRevokedError'
]
