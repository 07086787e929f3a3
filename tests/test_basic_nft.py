"""Tests for the BasicNft token contract."""

import pytest

from chain import ZERO_ADDRESS
from nft import BasicNft, ERC721Error, TOKEN_NAME, TOKEN_SYMBOL, TOKEN_URI

@pytest.fixture
def nft(chain, deployer):
    return chain.deploy(BasicNft, deployer)

def test_initial_state(chain, nft):
    assert chain.call(nft, 'name') == TOKEN_NAME
    assert chain.call(nft, 'symbol') == TOKEN_SYMBOL
    assert chain.call(nft, 'get_token_counter') == 0

def test_mint_assigns_sequential_ids(chain, deployer, user, nft):
    """Test that each mint returns the next id to the caller."""
    first = chain.transact(deployer, nft, 'mint_nft')
    second = chain.transact(user, nft, 'mint_nft')

    assert first.return_value == 0
    assert second.return_value == 1
    assert chain.call(nft, 'owner_of', 0) == deployer
    assert chain.call(nft, 'owner_of', 1) == user
    assert chain.call(nft, 'balance_of', deployer) == 1
    assert chain.call(nft, 'get_token_counter') == 2
    assert chain.call(nft, 'token_uri', 0) == TOKEN_URI

    transfer = first.get_events('Transfer')[0]
    assert transfer.from_address == ZERO_ADDRESS
    assert transfer.to_address == deployer

def test_owner_of_unminted_token(chain, nft):
    with pytest.raises(ERC721Error) as exc:
        chain.call(nft, 'owner_of', 5)
    assert exc.value.reason == 'ERC721: invalid token ID'

def test_approve_and_transfer(chain, deployer, user, nft):
    """Test that an approved spender can move the token once."""
    chain.transact(deployer, nft, 'mint_nft')
    receipt = chain.transact(deployer, nft, 'approve', user, 0)
    assert receipt.get_events('Approval')[0].approved == user
    assert chain.call(nft, 'get_approved', 0) == user

    chain.transact(user, nft, 'transfer_from', deployer, user, 0)

    assert chain.call(nft, 'owner_of', 0) == user
    assert chain.call(nft, 'get_approved', 0) == ZERO_ADDRESS
    assert chain.call(nft, 'balance_of', deployer) == 0

def test_approve_requires_owner(chain, deployer, user, nft):
    chain.transact(deployer, nft, 'mint_nft')

    with pytest.raises(ERC721Error):
        chain.transact(user, nft, 'approve', user, 0)

def test_transfer_requires_approval(chain, deployer, user, nft):
    chain.transact(deployer, nft, 'mint_nft')

    with pytest.raises(ERC721Error) as exc:
        chain.transact(user, nft, 'transfer_from', deployer, user, 0)
    assert 'not token owner or approved' in exc.value.reason

def test_operator_can_transfer(chain, deployer, user, nft):
    chain.transact(deployer, nft, 'mint_nft')
    chain.transact(deployer, nft, 'set_approval_for_all', user, True)

    assert chain.call(nft, 'is_approved_for_all', deployer, user)
    chain.transact(user, nft, 'transfer_from', deployer, chain.accounts[2], 0)
    assert chain.call(nft, 'owner_of', 0) == chain.accounts[2]

def test_transfer_from_wrong_owner(chain, deployer, user, nft):
    chain.transact(deployer, nft, 'mint_nft')

    with pytest.raises(ERC721Error) as exc:
        chain.transact(deployer, nft, 'transfer_from', user, deployer, 0)
    assert exc.value.reason == 'ERC721: transfer from incorrect owner'
