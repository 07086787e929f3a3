"""Tests for the NftMarketplace contract."""

import pytest

from chain import Contract, Revert, ZERO_ADDRESS, parse_ether, public, payable
from marketplace import (
    Listing,
    PriceMustBeAboveZero,
    NotApprovedForMarketPlace,
    AlreadyListed,
    NotOwner,
    NotListed,
    PriceNotMet,
    NoProceeds,
)
from nft import ERC721Error

# Test data
PRICE = parse_ether("0.1")
TOKEN_ID = 0

# Listing

def test_list_item_emits_event(chain, deployer, marketplace, basic_nft):
    """Test that listing a token emits ItemListed."""
    receipt = chain.transact(deployer, marketplace, 'list_item', basic_nft.address, TOKEN_ID, PRICE)

    events = receipt.get_events('ItemListed')
    assert len(events) == 1
    assert events[0].seller == deployer
    assert events[0].nft_address == basic_nft.address
    assert events[0].token_id == TOKEN_ID
    assert events[0].price == PRICE

def test_list_item_requires_marketplace_approval(chain, deployer, marketplace, basic_nft):
    """Test that listing reverts when another address holds the approval."""
    chain.transact(deployer, basic_nft, 'approve', chain.accounts[2], TOKEN_ID)

    with pytest.raises(NotApprovedForMarketPlace) as exc:
        chain.transact(deployer, marketplace, 'list_item', basic_nft.address, TOKEN_ID, PRICE)
    assert exc.value.reason == 'NftMarketplace__NotApprovedForMarketPlace'

def test_list_item_rejects_zero_price(chain, deployer, marketplace, basic_nft):
    with pytest.raises(PriceMustBeAboveZero):
        chain.transact(deployer, marketplace, 'list_item', basic_nft.address, TOKEN_ID, 0)

def test_zero_price_checked_before_ownership_and_approval(chain, user, marketplace, basic_nft):
    """Test that a zero price fails the same way for a caller who owns nothing."""
    with pytest.raises(PriceMustBeAboveZero):
        chain.transact(user, marketplace, 'list_item', basic_nft.address, TOKEN_ID, 0)

def test_list_item_rejects_negative_price(chain, deployer, marketplace, basic_nft):
    with pytest.raises(PriceMustBeAboveZero):
        chain.transact(deployer, marketplace, 'list_item', basic_nft.address, TOKEN_ID, -1)

def test_list_item_requires_token_owner(chain, deployer, user, marketplace, basic_nft):
    """Test that a caller who does not own the token cannot list it."""
    chain.transact(deployer, basic_nft, 'approve', user, TOKEN_ID)

    with pytest.raises(NotOwner) as exc:
        chain.transact(user, marketplace, 'list_item', basic_nft.address, TOKEN_ID, PRICE)
    assert exc.value.reason == 'NftMarketplace__NotOwner'

def test_list_item_stores_seller_and_price(chain, deployer, marketplace, basic_nft, listed):
    listing = chain.call(marketplace, 'get_listing', basic_nft.address, TOKEN_ID)

    assert listing == Listing(seller=deployer, price=PRICE)

def test_list_item_twice_reverts(chain, deployer, marketplace, basic_nft, listed):
    """Test that the same token cannot be listed twice."""
    with pytest.raises(AlreadyListed) as exc:
        chain.transact(deployer, marketplace, 'list_item', basic_nft.address, TOKEN_ID, PRICE)

    assert exc.value.nft_address == basic_nft.address
    assert exc.value.token_id == TOKEN_ID
    assert exc.value.reason == 'NftMarketplace__AlreadyListed'

def test_list_item_rejects_attached_value(chain, deployer, marketplace, basic_nft):
    with pytest.raises(Revert) as exc:
        chain.transact(deployer, marketplace, 'list_item', basic_nft.address, TOKEN_ID, PRICE, value=1)
    assert exc.value.reason == 'NonPayable'

def test_list_item_unknown_token(chain, deployer, marketplace, basic_nft):
    with pytest.raises(ERC721Error):
        chain.transact(deployer, marketplace, 'list_item', basic_nft.address, 42, PRICE)

# Cancelling

def test_cancel_listing_removes_listing_and_emits_event(chain, deployer, marketplace, basic_nft, listed):
    receipt = chain.transact(deployer, marketplace, 'cancel_listing', basic_nft.address, TOKEN_ID)

    events = receipt.get_events('ItemDeleted')
    assert len(events) == 1
    assert events[0].seller == deployer
    listing = chain.call(marketplace, 'get_listing', basic_nft.address, TOKEN_ID)
    assert listing.price == 0
    assert listing.seller == ZERO_ADDRESS

def test_cancel_listing_requires_listing(chain, deployer, marketplace, basic_nft):
    with pytest.raises(NotListed):
        chain.transact(deployer, marketplace, 'cancel_listing', basic_nft.address, TOKEN_ID)

def test_cancel_listing_only_by_seller(chain, user, marketplace, basic_nft, listed):
    with pytest.raises(NotOwner):
        chain.transact(user, marketplace, 'cancel_listing', basic_nft.address, TOKEN_ID)

def test_relist_after_cancel(chain, deployer, marketplace, basic_nft, listed):
    chain.transact(deployer, marketplace, 'cancel_listing', basic_nft.address, TOKEN_ID)
    chain.transact(deployer, marketplace, 'list_item', basic_nft.address, TOKEN_ID, PRICE * 2)

    assert chain.call(marketplace, 'get_listing', basic_nft.address, TOKEN_ID).price == PRICE * 2

# Buying

def test_buy_item_emits_event_and_transfers_token(chain, user, marketplace, basic_nft, listed):
    receipt = chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=PRICE)

    events = receipt.get_events('ItemBought')
    assert len(events) == 1
    assert events[0].buyer == user
    assert events[0].price == PRICE
    assert chain.call(basic_nft, 'owner_of', TOKEN_ID) == user

def test_buy_item_requires_listing(chain, deployer, marketplace, basic_nft):
    with pytest.raises(NotListed):
        chain.transact(deployer, marketplace, 'buy_item', basic_nft.address, TOKEN_ID)

def test_buy_item_deletes_listing(chain, user, marketplace, basic_nft, listed):
    chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=PRICE)

    assert chain.call(marketplace, 'get_listing', basic_nft.address, TOKEN_ID).price == 0

@pytest.mark.parametrize('value', [parse_ether("0.01"), PRICE + 1])
def test_buy_item_requires_exact_price(chain, deployer, user, marketplace, basic_nft, listed, value):
    """Test that under- and over-payment are both rejected without side effects."""
    balance_before = chain.get_balance(user)

    with pytest.raises(PriceNotMet) as exc:
        chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=value)

    assert exc.value.price == PRICE
    assert chain.get_balance(user) == balance_before
    assert chain.call(marketplace, 'get_listing', basic_nft.address, TOKEN_ID).price == PRICE
    assert chain.call(basic_nft, 'owner_of', TOKEN_ID) == deployer

def test_buy_item_moves_funds(chain, deployer, user, marketplace, basic_nft, listed):
    """Test that the buyer pays the price plus gas and the marketplace holds the price."""
    buyer_before = chain.get_balance(user)

    receipt = chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=PRICE)

    assert chain.get_balance(user) == buyer_before - PRICE - receipt.gas_cost
    assert marketplace.balance == PRICE

def test_buy_item_credits_proceeds(chain, deployer, user, marketplace, basic_nft, listed):
    assert chain.call(marketplace, 'get_proceeds', deployer) == 0

    chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=PRICE)

    assert chain.call(marketplace, 'get_proceeds', deployer) == PRICE
    assert chain.call(basic_nft, 'owner_of', TOKEN_ID) == user

def test_buy_item_rolls_back_when_transfer_fails(chain, deployer, user, marketplace, basic_nft, listed):
    """Test that a sale whose token transfer fails leaves no trace."""
    # The seller moves the token away, which also clears the marketplace approval
    other = chain.accounts[2]
    chain.transact(deployer, basic_nft, 'transfer_from', deployer, other, TOKEN_ID)
    buyer_before = chain.get_balance(user)
    logs_before = len(chain.logs)

    with pytest.raises(ERC721Error):
        chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=PRICE)

    assert chain.call(marketplace, 'get_proceeds', deployer) == 0
    assert chain.call(marketplace, 'get_listing', basic_nft.address, TOKEN_ID).price == PRICE
    assert chain.get_balance(user) == buyer_before
    assert marketplace.balance == 0
    assert len(chain.logs) == logs_before

@pytest.mark.parametrize('ended_by', ['buy_item', 'cancel_listing'])
@pytest.mark.parametrize('method', ['buy_item', 'cancel_listing', 'update_listing'])
def test_ended_listing_is_not_listed(chain, deployer, user, marketplace, basic_nft, listed, ended_by, method):
    """Test that a sold or cancelled token behaves as never listed."""
    if ended_by == 'buy_item':
        chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=PRICE)
    else:
        chain.transact(deployer, marketplace, 'cancel_listing', basic_nft.address, TOKEN_ID)
    seller = chain.call(basic_nft, 'owner_of', TOKEN_ID)

    with pytest.raises(NotListed) as exc:
        if method == 'buy_item':
            chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=PRICE)
        elif method == 'update_listing':
            chain.transact(seller, marketplace, 'update_listing', basic_nft.address, TOKEN_ID, PRICE * 2)
        else:
            chain.transact(seller, marketplace, 'cancel_listing', basic_nft.address, TOKEN_ID)

    assert exc.value.reason == 'NftMarketplace__NotListed'
    assert chain.call(marketplace, 'get_listing', basic_nft.address, TOKEN_ID).price == 0

def test_new_owner_can_relist(chain, deployer, user, marketplace, basic_nft, listed):
    chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=PRICE)
    chain.transact(user, basic_nft, 'approve', marketplace.address, TOKEN_ID)

    chain.transact(user, marketplace, 'list_item', basic_nft.address, TOKEN_ID, PRICE * 3)

    assert chain.call(marketplace, 'get_listing', basic_nft.address, TOKEN_ID) == Listing(seller=user, price=PRICE * 3)

# Updating

def test_update_listing_requires_listing(chain, deployer, marketplace, basic_nft):
    with pytest.raises(NotListed):
        chain.transact(deployer, marketplace, 'update_listing', basic_nft.address, TOKEN_ID, parse_ether("1"))

def test_update_listing_only_by_seller(chain, user, marketplace, basic_nft, listed):
    with pytest.raises(NotOwner):
        chain.transact(user, marketplace, 'update_listing', basic_nft.address, TOKEN_ID, PRICE)

def test_update_listing_emits_event_and_updates_price(chain, deployer, marketplace, basic_nft, listed):
    new_price = parse_ether("1")

    receipt = chain.transact(deployer, marketplace, 'update_listing', basic_nft.address, TOKEN_ID, new_price)

    events = receipt.get_events('ItemListed')
    assert len(events) == 1
    assert events[0].price == new_price
    assert chain.call(marketplace, 'get_listing', basic_nft.address, TOKEN_ID).price == new_price

def test_update_listing_rejects_zero_price(chain, deployer, marketplace, basic_nft, listed):
    with pytest.raises(PriceMustBeAboveZero):
        chain.transact(deployer, marketplace, 'update_listing', basic_nft.address, TOKEN_ID, 0)
    assert chain.call(marketplace, 'get_listing', basic_nft.address, TOKEN_ID).price == PRICE

# Withdrawing

def test_withdraw_requires_proceeds(chain, deployer, marketplace):
    with pytest.raises(NoProceeds) as exc:
        chain.transact(deployer, marketplace, 'withdraw_proceeds')
    assert exc.value.reason == 'NftMarketplace__NoProceeds'

def test_withdraw_proceeds(chain, deployer, user, marketplace, basic_nft, listed):
    """Test that the seller receives exactly their proceeds, less gas."""
    chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=PRICE)
    proceeds_before = chain.call(marketplace, 'get_proceeds', deployer)
    balance_before = chain.get_balance(deployer)

    receipt = chain.transact(deployer, marketplace, 'withdraw_proceeds')

    assert receipt.return_value == PRICE
    assert chain.get_balance(deployer) + receipt.gas_cost == balance_before + proceeds_before
    assert chain.call(marketplace, 'get_proceeds', deployer) == 0
    assert marketplace.balance == 0

    with pytest.raises(NoProceeds):
        chain.transact(deployer, marketplace, 'withdraw_proceeds')

def test_proceeds_accumulate_across_sales(chain, deployer, user, marketplace, basic_nft, listed):
    chain.transact(deployer, basic_nft, 'mint_nft')
    chain.transact(deployer, basic_nft, 'approve', marketplace.address, 1)
    chain.transact(deployer, marketplace, 'list_item', basic_nft.address, 1, PRICE * 2)

    chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=PRICE)
    chain.transact(chain.accounts[2], marketplace, 'buy_item', basic_nft.address, 1, value=PRICE * 2)

    assert chain.call(marketplace, 'get_proceeds', deployer) == PRICE * 3
    assert marketplace.balance == PRICE * 3

def test_sale_scenario(chain, deployer, user, marketplace, basic_nft, listed):
    """List at 0.1, fail a 0.01 purchase, buy at 0.1, then withdraw."""
    with pytest.raises(PriceNotMet):
        chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=parse_ether("0.01"))

    chain.transact(user, marketplace, 'buy_item', basic_nft.address, TOKEN_ID, value=parse_ether("0.1"))
    assert chain.call(marketplace, 'get_listing', basic_nft.address, TOKEN_ID).price == 0
    assert chain.call(marketplace, 'get_proceeds', deployer) == parse_ether("0.1")
    assert chain.call(basic_nft, 'owner_of', TOKEN_ID) == user

    balance_before = chain.get_balance(deployer)
    receipt = chain.transact(deployer, marketplace, 'withdraw_proceeds')
    assert chain.get_balance(deployer) == balance_before + parse_ether("0.1") - receipt.gas_cost
    assert chain.call(marketplace, 'get_proceeds', deployer) == 0

# Reentrancy and failed payouts

class ProceedsAttacker(Contract):
    """Seller contract that tries to withdraw again while being paid."""

    def __init__(self):
        super().__init__()
        self.marketplace = None
        self.reentry_error = None
        self.received = 0

    @public
    def setup(self, marketplace: str, nft: str, price: int) -> None:
        self.marketplace = marketplace
        token_id = self.chain.call_contract(nft, 'mint_nft')
        self.chain.call_contract(nft, 'approve', marketplace, token_id)
        self.chain.call_contract(marketplace, 'list_item', nft, token_id, price)

    @public
    def attack(self) -> None:
        self.chain.call_contract(self.marketplace, 'withdraw_proceeds')

    @payable
    def receive(self) -> None:
        self.received += self.msg_value
        try:
            self.chain.call_contract(self.marketplace, 'withdraw_proceeds')
        except NoProceeds as e:
            self.reentry_error = e.reason

class RejectingSeller(Contract):
    """Seller contract that refuses incoming payments."""

    @public
    def setup(self, marketplace: str, nft: str, price: int) -> None:
        token_id = self.chain.call_contract(nft, 'mint_nft')
        self.chain.call_contract(nft, 'approve', marketplace, token_id)
        self.chain.call_contract(marketplace, 'list_item', nft, token_id, price)

    @public
    def withdraw(self) -> None:
        self.chain.call_contract(self.chain.get_contract('NftMarketplace'), 'withdraw_proceeds')

    @payable
    def receive(self) -> None:
        raise Revert("Rejected")

def test_reentrant_withdraw_pays_once(chain, deployer, user, marketplace, basic_nft):
    attacker = chain.deploy(ProceedsAttacker, deployer)
    chain.transact(deployer, attacker, 'setup', marketplace.address, basic_nft.address, PRICE)
    chain.transact(user, marketplace, 'buy_item', basic_nft.address, 1, value=PRICE)

    chain.transact(deployer, attacker, 'attack')

    assert attacker.balance == PRICE
    assert attacker.received == PRICE
    assert attacker.reentry_error == 'NftMarketplace__NoProceeds'
    assert marketplace.balance == 0
    assert chain.call(marketplace, 'get_proceeds', attacker.address) == 0

def test_failed_payout_restores_proceeds(chain, deployer, user, marketplace, basic_nft):
    """Test that a rejected payment aborts the withdrawal and keeps the balance."""
    seller = chain.deploy(RejectingSeller, deployer)
    chain.transact(deployer, seller, 'setup', marketplace.address, basic_nft.address, PRICE)
    chain.transact(user, marketplace, 'buy_item', basic_nft.address, 1, value=PRICE)

    with pytest.raises(Revert) as exc:
        chain.transact(deployer, seller, 'withdraw')

    assert exc.value.reason == 'TransferFailed'
    assert chain.call(marketplace, 'get_proceeds', seller.address) == PRICE
    assert marketplace.balance == PRICE
    assert seller.balance == 0
