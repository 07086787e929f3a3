"""BasicNft API endpoints."""

from fastapi import APIRouter, Request, Security
from pydantic import BaseModel

from auth import get_current_user
from ..common import get_basic_nft, transact, call

router = APIRouter(
    prefix="/nft",
    tags=["NFT"]
)

class ApproveRequest(BaseModel):
    """Request model for approving an operator for a token."""
    spender: str

@router.post("/mint")
async def mint_nft(request: Request, address: str = Security(get_current_user)):
    """Mint a new token to the caller."""
    receipt = transact(request, address, get_basic_nft(request), 'mint_nft')
    result = receipt.to_dict()
    result['token_id'] = receipt.return_value
    return result

@router.post("/{token_id}/approve")
async def approve(
    token_id: int,
    body: ApproveRequest,
    request: Request,
    address: str = Security(get_current_user)
):
    """Approve an address to transfer one of the caller's tokens."""
    receipt = transact(request, address, get_basic_nft(request), 'approve', body.spender, token_id)
    return receipt.to_dict()

@router.get("/{token_id}")
async def get_token(token_id: int, request: Request):
    """Get the owner, approval and metadata URI of a token."""
    nft = get_basic_nft(request)
    return {
        'nft_address': nft.address,
        'token_id': token_id,
        'owner': call(request, nft, 'owner_of', token_id),
        'approved': call(request, nft, 'get_approved', token_id),
        'token_uri': call(request, nft, 'token_uri', token_id)
    }

__all__ = ['router']
