"""Chain inspection endpoints."""

from fastapi import APIRouter, HTTPException, Request, status

from chain import format_ether
from ..common import get_chain

router = APIRouter(
    prefix="/chain",
    tags=["Chain"]
)

@router.get("")
async def get_chain_info(request: Request):
    """Get chain id, block number and gas price."""
    chain = get_chain(request)
    return {
        'chain_id': chain.chain_id,
        'block_number': chain.block_number,
        'gas_price': str(chain.gas_price)
    }

@router.get("/contracts")
async def get_contracts(request: Request):
    """Get the addresses of the deployed contracts by name."""
    chain = get_chain(request)
    return {name: contract.address for name, contract in chain.deployments.items()}

@router.get("/accounts")
async def get_accounts(request: Request):
    """Get the unlocked accounts and their balances."""
    chain = get_chain(request)
    return [{
        'address': address,
        'balance': str(chain.get_balance(address)),
        'balance_eth': format_ether(chain.get_balance(address))
    } for address in chain.accounts]

@router.get("/accounts/{address}")
async def get_account(address: str, request: Request):
    """Get the balance and nonce of an address."""
    chain = get_chain(request)
    try:
        balance = chain.get_balance(address)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    return {
        'address': address.lower(),
        'balance': str(balance),
        'balance_eth': format_ether(balance),
        'nonce': chain.get_nonce(address)
    }

__all__ = ['router']
