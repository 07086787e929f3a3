"""REST API module for the NFT marketplace.

This module provides HTTP endpoints for:
- Logging in as an unlocked chain account
- Minting and approving tokens
- Listing, updating, cancelling and buying tokens
- Checking and withdrawing proceeds
- Inspecting accounts and deployed contracts
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import AuthManager
from chain import Chain
from config import settings_conf
from marketplace import NftMarketplace
from nft import BasicNft

logger = logging.getLogger(__name__)

def deploy_contracts(chain: Chain, deployer: Optional[str] = None) -> Dict[str, Any]:
    """Deploy the marketplace and token contracts. Neither takes constructor arguments."""
    deployer = deployer or chain.accounts[0]
    return {
        'marketplace': chain.deploy(NftMarketplace, deployer),
        'basic_nft': chain.deploy(BasicNft, deployer),
    }

def create_app(chain: Optional[Chain] = None, settings: Optional[Dict[str, Any]] = None) -> FastAPI:
    """Create the API application.

    Args:
        chain: Chain to serve. A new one is created from settings if not provided.
        settings: Settings to use instead of the loaded settings.conf

    Returns:
        The FastAPI application with the chain, contracts and auth manager in its state
    """
    settings = settings or settings_conf
    chain = chain or Chain.from_settings(settings)
    contracts = deploy_contracts(chain)

    app = FastAPI(
        title="NFT Marketplace API",
        description="REST API for listing, buying and selling NFTs",
        version="1.0.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, replace with specific origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.chain = chain
    app.state.marketplace = contracts['marketplace']
    app.state.basic_nft = contracts['basic_nft']
    app.state.indexer = None
    app.state.auth_manager = AuthManager(
        accounts=lambda: chain.accounts,
        secret=settings.get('jwt_secret', ''),
        expiry_days=int(settings.get('session_expiry_days', 30))
    )

    # Import and include all routers
    from .auth import router as auth_router
    from .accounts import router as accounts_router
    from .tokens import router as tokens_router
    from .listings import router as listings_router
    from .proceeds import router as proceeds_router

    app.include_router(auth_router)
    app.include_router(accounts_router)
    app.include_router(tokens_router)
    app.include_router(listings_router)
    app.include_router(proceeds_router)

    @app.get("/")
    async def root():
        return {
            "name": "NFT Marketplace API",
            "version": "1.0.0",
            "status": "running",
            "chain_id": chain.chain_id
        }

    logger.info(
        f"API ready: NftMarketplace at {app.state.marketplace.address}, "
        f"BasicNft at {app.state.basic_nft.address}"
    )
    return app

app = create_app()
