"""Events emitted by the BasicNft contract."""

from typing import ClassVar

from chain import Event


class Transfer(Event):
    name: ClassVar[str] = 'Transfer'
    from_address: str
    to_address: str
    token_id: int


class Approval(Event):
    name: ClassVar[str] = 'Approval'
    owner: str
    approved: str
    token_id: int


class ApprovalForAll(Event):
    name: ClassVar[str] = 'ApprovalForAll'
    owner: str
    operator: str
    approved: bool
