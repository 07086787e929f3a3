"""Listings API endpoints."""

from fastapi import APIRouter, HTTPException, Request, Security, status
from pydantic import BaseModel, Field

from auth import get_current_user
from ..common import get_marketplace, transact, call

router = APIRouter(
    prefix="/listings",
    tags=["Listings"]
)

# Model definitions
class ListItemRequest(BaseModel):
    """Request model for listing a token."""
    nft_address: str
    token_id: int = Field(..., ge=0)
    price: int = Field(..., description="Price in wei")

class UpdateListingRequest(BaseModel):
    """Request model for changing a listing's price."""
    price: int = Field(..., description="New price in wei")

class BuyItemRequest(BaseModel):
    """Request model for buying a token."""
    value: int = Field(0, ge=0, description="Wei attached to the purchase")

def listing_response(nft_address: str, token_id: int, listing) -> dict:
    return {
        'nft_address': nft_address.lower(),
        'token_id': token_id,
        'seller': listing.seller,
        'price': str(listing.price),
        'listed': listing.price > 0
    }

@router.post("")
async def list_item(
    body: ListItemRequest,
    request: Request,
    address: str = Security(get_current_user)
):
    """List a token owned by the caller."""
    receipt = transact(
        request, address, get_marketplace(request), 'list_item',
        body.nft_address, body.token_id, body.price
    )
    return receipt.to_dict()

@router.get("/active")
async def get_active_items(request: Request):
    """Get active listings from the event index."""
    indexer = getattr(request.app.state, 'indexer', None)
    if indexer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Event indexer is not running"
        )
    return await indexer.get_active_items()

@router.get("/{nft_address}/{token_id}")
async def get_listing(nft_address: str, token_id: int, request: Request):
    """Get the listing of a token. A price of 0 means not listed."""
    listing = call(request, get_marketplace(request), 'get_listing', nft_address, token_id)
    return listing_response(nft_address, token_id, listing)

@router.put("/{nft_address}/{token_id}")
async def update_listing(
    nft_address: str,
    token_id: int,
    body: UpdateListingRequest,
    request: Request,
    address: str = Security(get_current_user)
):
    """Change the price of the caller's listing."""
    receipt = transact(
        request, address, get_marketplace(request), 'update_listing',
        nft_address, token_id, body.price
    )
    return receipt.to_dict()

@router.delete("/{nft_address}/{token_id}")
async def cancel_listing(
    nft_address: str,
    token_id: int,
    request: Request,
    address: str = Security(get_current_user)
):
    """Cancel the caller's listing."""
    receipt = transact(
        request, address, get_marketplace(request), 'cancel_listing',
        nft_address, token_id
    )
    return receipt.to_dict()

@router.post("/{nft_address}/{token_id}/buy")
async def buy_item(
    nft_address: str,
    token_id: int,
    body: BuyItemRequest,
    request: Request,
    address: str = Security(get_current_user)
):
    """Buy a listed token, attaching exactly its price."""
    receipt = transact(
        request, address, get_marketplace(request), 'buy_item',
        nft_address, token_id,
        value=body.value
    )
    return receipt.to_dict()

# Export the router
__all__ = ['router']
