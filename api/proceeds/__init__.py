"""Proceeds API endpoints."""

from fastapi import APIRouter, Request, Security

from auth import get_current_user
from ..common import get_marketplace, transact, call

router = APIRouter(
    prefix="/proceeds",
    tags=["Proceeds"]
)

@router.get("/{address}")
async def get_proceeds(address: str, request: Request):
    """Get the withdrawable proceeds of a seller."""
    proceeds = call(request, get_marketplace(request), 'get_proceeds', address)
    return {'address': address.lower(), 'proceeds': str(proceeds)}

@router.post("/withdraw")
async def withdraw_proceeds(request: Request, address: str = Security(get_current_user)):
    """Send the caller's proceeds to their account."""
    receipt = transact(request, address, get_marketplace(request), 'withdraw_proceeds')
    result = receipt.to_dict()
    result['amount'] = str(receipt.return_value)
    return result

__all__ = ['router']
