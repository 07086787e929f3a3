"""Authentication API endpoints."""

from fastapi import APIRouter, HTTPException, Request, status, Security
from pydantic import BaseModel

from auth import get_current_user, AuthError

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)

class LoginRequest(BaseModel):
    """Request model for logging in as a chain account."""
    address: str

class LoginResponse(BaseModel):
    """Response model for login."""
    token: str
    address: str
    expires_at: str

@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest, request: Request):
    """Create a session for an unlocked chain account."""
    try:
        return request.app.state.auth_manager.login(body.address)
    except AuthError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

@router.post("/logout")
async def logout(request: Request, address: str = Security(get_current_user)):
    """Log out the current user by revoking their session."""
    request.app.state.auth_manager.logout(address)
    return {"success": True}

@router.get("/verify")
async def verify_token(address: str = Security(get_current_user)):
    """Verify the current session token."""
    return {
        "valid": True,
        "address": address
    }

# Export the router
__all__ = ['router']
