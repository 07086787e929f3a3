"""Events emitted by the marketplace contract."""

from typing import ClassVar

from chain import Event


class ItemListed(Event):
    """Emitted when an item is listed or its price is updated."""
    name: ClassVar[str] = 'ItemListed'
    seller: str
    nft_address: str
    token_id: int
    price: int


class ItemDeleted(Event):
    """Emitted when a seller cancels a listing."""
    name: ClassVar[str] = 'ItemDeleted'
    seller: str
    nft_address: str
    token_id: int


class ItemBought(Event):
    name: ClassVar[str] = 'ItemBought'
    buyer: str
    nft_address: str
    token_id: int
    price: int
