"""Shared fixtures for the marketplace tests."""

import pytest

from chain import Chain, parse_ether
from marketplace import NftMarketplace
from nft import BasicNft

PRICE = parse_ether("0.1")
TOKEN_ID = 0

@pytest.fixture
def chain():
    """Create a fresh local chain."""
    return Chain()

@pytest.fixture
def deployer(chain):
    return chain.accounts[0]

@pytest.fixture
def user(chain):
    return chain.accounts[1]

@pytest.fixture
def marketplace(chain, deployer):
    """Deploy the marketplace contract."""
    return chain.deploy(NftMarketplace, deployer)

@pytest.fixture
def basic_nft(chain, deployer, marketplace):
    """Deploy BasicNft, mint token 0 to the deployer and approve the marketplace."""
    nft = chain.deploy(BasicNft, deployer)
    chain.transact(deployer, nft, 'mint_nft')
    chain.transact(deployer, nft, 'approve', marketplace.address, TOKEN_ID)
    return nft

@pytest.fixture
def listed(chain, deployer, marketplace, basic_nft):
    """List token 0 at PRICE as the deployer."""
    return chain.transact(deployer, marketplace, 'list_item', basic_nft.address, TOKEN_ID, PRICE)
