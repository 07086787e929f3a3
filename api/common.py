"""Shared helpers for executing contract calls from API endpoints."""

import logging
from typing import Any, Dict

from fastapi import HTTPException, Request, status

from chain import Chain, Contract, Revert, InsufficientFunds, Receipt

logger = logging.getLogger(__name__)

def get_chain(request: Request) -> Chain:
    return request.app.state.chain

def get_marketplace(request: Request) -> Contract:
    return request.app.state.marketplace

def get_basic_nft(request: Request) -> Contract:
    return request.app.state.basic_nft

def revert_detail(error: Revert) -> Dict[str, Any]:
    return {'error': error.reason, 'message': str(error)}

def invalid_address(error: ValueError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={'error': 'InvalidAddress', 'message': str(error)}
    )

def transact(
    request: Request,
    sender: str,
    contract: Contract,
    method: str,
    *args: Any,
    value: int = 0
) -> Receipt:
    """Send a transaction, translating reverts into HTTP errors.

    Raises:
        HTTPException: 400 if the call reverts, the sender cannot pay or an
            address argument is malformed
    """
    try:
        return get_chain(request).transact(sender, contract, method, *args, value=value)
    except Revert as e:
        logger.info(f"{method} from {sender} reverted: {e.reason}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=revert_detail(e)
        )
    except InsufficientFunds as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={'error': 'InsufficientFunds', 'message': str(e)}
        )
    except ValueError as e:
        raise invalid_address(e)

def call(request: Request, contract: Contract, method: str, *args: Any) -> Any:
    """Run a read-only call, translating reverts into HTTP errors."""
    try:
        return get_chain(request).call(contract, method, *args)
    except Revert as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=revert_detail(e)
        )
    except ValueError as e:
        raise invalid_address(e)
