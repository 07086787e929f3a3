"""NftMarketplace: escrow-style listing registry for ERC-721 style tokens.

This module provides:
- A listing registry keyed by (token contract address, token id)
- A proceeds ledger of withdrawable sale revenue per seller
- Ownership and approval checks against the token contract on every call

Calls follow checks-effects-interactions ordering: preconditions are
validated, local state is updated, and only then are token transfers or
value transfers made.
"""

import logging
from typing import Dict, Tuple

from pydantic import BaseModel, ConfigDict

from chain import Contract, ZERO_ADDRESS, public, view, payable, to_address
from .errors import (
    MarketplaceError,
    PriceMustBeAboveZero,
    NotApprovedForMarketPlace,
    AlreadyListed,
    NotOwner,
    NotListed,
    PriceNotMet,
    NoProceeds,
)
from .events import ItemListed, ItemDeleted, ItemBought

logger = logging.getLogger(__name__)


class Listing(BaseModel):
    """A token offered for sale. A price of 0 means not listed."""
    model_config = ConfigDict(frozen=True)

    seller: str = ZERO_ADDRESS
    price: int = 0


EMPTY_LISTING = Listing()


class NftMarketplace(Contract):
    """Marketplace contract. Constructed with no arguments."""

    def __init__(self):
        super().__init__()
        self.listings: Dict[Tuple[str, int], Listing] = {}
        self.proceeds: Dict[str, int] = {}

    # -------------------------------------------
    # Guards
    # -------------------------------------------

    def _require_listed(self, nft_address: str, token_id: int) -> Listing:
        listing = self.listings.get((nft_address, token_id), EMPTY_LISTING)
        if listing.price <= 0:
            raise NotListed(nft_address, token_id)
        return listing

    def _require_not_listed(self, nft_address: str, token_id: int) -> None:
        listing = self.listings.get((nft_address, token_id), EMPTY_LISTING)
        if listing.price > 0:
            raise AlreadyListed(nft_address, token_id)

    def _require_token_owner(self, nft_address: str, token_id: int, spender: str) -> None:
        owner = self.chain.call_contract(nft_address, 'owner_of', token_id)
        if spender != owner:
            raise NotOwner(f"{spender} does not own token {token_id}")

    def _require_seller(self, listing: Listing, spender: str) -> None:
        if spender != listing.seller:
            raise NotOwner(f"{spender} is not the seller")

    # -------------------------------------------
    # Listing registry
    # -------------------------------------------

    @public
    def list_item(self, nft_address: str, token_id: int, price: int) -> None:
        """List a token for sale.

        The caller keeps the token; the marketplace must be its approved
        operator so it can transfer the token when it is bought.

        Args:
            nft_address: Token contract address
            token_id: Token id
            price: Sale price in wei

        Raises:
            PriceMustBeAboveZero: If price is not positive
            NotOwner: If the caller does not own the token
            NotApprovedForMarketPlace: If the marketplace is not approved for the token
            AlreadyListed: If the token is already listed
        """
        nft_address = to_address(nft_address)
        seller = self.msg_sender
        if price <= 0:
            raise PriceMustBeAboveZero()
        self._require_token_owner(nft_address, token_id, seller)
        approved = self.chain.call_contract(nft_address, 'get_approved', token_id)
        if approved != self.address:
            raise NotApprovedForMarketPlace(f"marketplace is not approved for token {token_id}")
        self._require_not_listed(nft_address, token_id)

        self.listings[(nft_address, token_id)] = Listing(seller=seller, price=price)
        self.emit(ItemListed(seller=seller, nft_address=nft_address, token_id=token_id, price=price))
        logger.info(f"Listed token {token_id} of {nft_address} at {price} wei by {seller}")

    @public
    def cancel_listing(self, nft_address: str, token_id: int) -> None:
        """Remove a listing. Only the seller may cancel.

        Raises:
            NotListed: If the token is not listed
            NotOwner: If the caller is not the seller
        """
        nft_address = to_address(nft_address)
        listing = self._require_listed(nft_address, token_id)
        self._require_seller(listing, self.msg_sender)

        del self.listings[(nft_address, token_id)]
        self.emit(ItemDeleted(seller=listing.seller, nft_address=nft_address, token_id=token_id))
        logger.info(f"Cancelled listing of token {token_id} of {nft_address}")

    @public
    def update_listing(self, nft_address: str, token_id: int, new_price: int) -> None:
        """Change the price of a listing. Emits ItemListed again.

        Raises:
            NotListed: If the token is not listed
            NotOwner: If the caller is not the seller
            PriceMustBeAboveZero: If the new price is not positive
        """
        nft_address = to_address(nft_address)
        listing = self._require_listed(nft_address, token_id)
        self._require_seller(listing, self.msg_sender)
        # 0 is the not-listed sentinel
        if new_price <= 0:
            raise PriceMustBeAboveZero()

        self.listings[(nft_address, token_id)] = Listing(seller=listing.seller, price=new_price)
        self.emit(ItemListed(
            seller=listing.seller, nft_address=nft_address, token_id=token_id, price=new_price
        ))
        logger.info(f"Updated listing of token {token_id} of {nft_address} to {new_price} wei")

    @payable
    def buy_item(self, nft_address: str, token_id: int) -> None:
        """Buy a listed token by attaching exactly its price.

        The seller is credited and the listing removed before the token is
        transferred.

        Raises:
            NotListed: If the token is not listed
            PriceNotMet: If the attached value differs from the price
        """
        nft_address = to_address(nft_address)
        listing = self._require_listed(nft_address, token_id)
        buyer = self.msg_sender
        value = self.msg_value
        if value != listing.price:
            raise PriceNotMet(nft_address, token_id, listing.price)

        self.proceeds[listing.seller] = self.proceeds.get(listing.seller, 0) + value
        del self.listings[(nft_address, token_id)]

        self.chain.call_contract(nft_address, 'transfer_from', listing.seller, buyer, token_id)
        self.emit(ItemBought(buyer=buyer, nft_address=nft_address, token_id=token_id, price=listing.price))
        logger.info(f"Token {token_id} of {nft_address} bought by {buyer} for {value} wei")

    # -------------------------------------------
    # Proceeds ledger
    # -------------------------------------------

    @public
    def withdraw_proceeds(self) -> int:
        """Send the caller's accumulated proceeds to them.

        Returns:
            Amount withdrawn in wei

        Raises:
            NoProceeds: If the caller has nothing to withdraw
            TransferFailed: If the payment fails; the balance is restored
        """
        seller = self.msg_sender
        amount = self.proceeds.get(seller, 0)
        if amount <= 0:
            raise NoProceeds()

        self.proceeds[seller] = 0
        self.chain.send_value(seller, amount)
        logger.info(f"Withdrew {amount} wei of proceeds to {seller}")
        return amount

    # -------------------------------------------
    # Reads
    # -------------------------------------------

    @view
    def get_listing(self, nft_address: str, token_id: int) -> Listing:
        return self.listings.get((to_address(nft_address), token_id), EMPTY_LISTING)

    @view
    def get_proceeds(self, seller: str) -> int:
        return self.proceeds.get(to_address(seller), 0)


__all__ = [
    'NftMarketplace', 'Listing', 'EMPTY_LISTING',
    'ItemListed', 'ItemDeleted', 'ItemBought',
    'MarketplaceError', 'PriceMustBeAboveZero', 'NotApprovedForMarketPlace',
    'AlreadyListed', 'NotOwner', 'NotListed', 'PriceNotMet', 'NoProceeds',
]
