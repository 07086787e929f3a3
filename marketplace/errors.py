"""Errors raised by the marketplace contract.

Each error reverts the whole call. ``reason`` carries the name reported to
clients, e.g. ``NftMarketplace__PriceNotMet``.
"""

from chain import Revert

REASON_PREFIX = 'NftMarketplace__'


class MarketplaceError(Revert):
    """Base class for marketplace reverts."""

    def __init__(self, message: str = ''):
        reason = REASON_PREFIX + type(self).__name__
        super().__init__(reason, f"{reason}: {message}" if message else reason)


class PriceMustBeAboveZero(MarketplaceError):
    pass


class NotApprovedForMarketPlace(MarketplaceError):
    pass


class AlreadyListed(MarketplaceError):
    def __init__(self, nft_address: str, token_id: int):
        self.nft_address = nft_address
        self.token_id = token_id
        super().__init__(f"token {token_id} of {nft_address} is already listed")


class NotOwner(MarketplaceError):
    pass


class NotListed(MarketplaceError):
    def __init__(self, nft_address: str, token_id: int):
        self.nft_address = nft_address
        self.token_id = token_id
        super().__init__(f"token {token_id} of {nft_address} is not listed")


class PriceNotMet(MarketplaceError):
    def __init__(self, nft_address: str, token_id: int, price: int):
        self.nft_address = nft_address
        self.token_id = token_id
        self.price = price
        super().__init__(f"token {token_id} of {nft_address} costs exactly {price} wei")


class NoProceeds(MarketplaceError):
    pass
