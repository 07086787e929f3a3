"""BasicNft: a minimal ERC-721 style token contract.

Every mint produces the same dog image metadata; token ids start at 0 and
increase by one per mint.
"""

import logging
from typing import Dict, Optional

from chain import Contract, Revert, ZERO_ADDRESS, public, view, to_address
from .events import Transfer, Approval, ApprovalForAll

logger = logging.getLogger(__name__)

TOKEN_NAME = 'Dogie'
TOKEN_SYMBOL = 'DOG'
TOKEN_URI = (
    'ipfs://bafybeig37ioir76s7mg5oobetncojcm3c3hxasyd4rvid4jqhy4gkaheg4/'
    '?filename=0-PUG.json'
)


class ERC721Error(Revert):
    """Raised when a token operation is rejected."""

    def __init__(self, message: str):
        super().__init__(f"ERC721: {message}")


class BasicNft(Contract):
    """Token contract queried and mutated by the marketplace."""

    def __init__(self):
        super().__init__()
        self.token_counter = 0
        self.owners: Dict[int, str] = {}
        self.balances: Dict[str, int] = {}
        self.token_approvals: Dict[int, str] = {}
        self.operator_approvals: Dict[str, Dict[str, bool]] = {}

    @view
    def name(self) -> str:
        return TOKEN_NAME

    @view
    def symbol(self) -> str:
        return TOKEN_SYMBOL

    @view
    def token_uri(self, token_id: int) -> str:
        self._require_minted(token_id)
        return TOKEN_URI

    @view
    def get_token_counter(self) -> int:
        return self.token_counter

    @view
    def balance_of(self, owner: str) -> int:
        owner = to_address(owner)
        if owner == ZERO_ADDRESS:
            raise ERC721Error("address zero is not a valid owner")
        return self.balances.get(owner, 0)

    @view
    def owner_of(self, token_id: int) -> str:
        self._require_minted(token_id)
        return self.owners[token_id]

    @view
    def get_approved(self, token_id: int) -> str:
        self._require_minted(token_id)
        return self.token_approvals.get(token_id, ZERO_ADDRESS)

    @view
    def is_approved_for_all(self, owner: str, operator: str) -> bool:
        return self.operator_approvals.get(to_address(owner), {}).get(to_address(operator), False)

    @public
    def mint_nft(self) -> int:
        """Mint the next token to the caller.

        Returns:
            The new token id
        """
        token_id = self.token_counter
        to = self.msg_sender
        self.owners[token_id] = to
        self.balances[to] = self.balances.get(to, 0) + 1
        self.token_counter += 1
        self.emit(Transfer(from_address=ZERO_ADDRESS, to_address=to, token_id=token_id))
        logger.debug(f"Minted token {token_id} to {to}")
        return token_id

    @public
    def approve(self, to: str, token_id: int) -> None:
        to = to_address(to)
        owner = self.owner_of(token_id)
        if to == owner:
            raise ERC721Error("approval to current owner")
        caller = self.msg_sender
        if caller != owner and not self.is_approved_for_all(owner, caller):
            raise ERC721Error("approve caller is not token owner or approved for all")
        self.token_approvals[token_id] = to
        self.emit(Approval(owner=owner, approved=to, token_id=token_id))

    @public
    def set_approval_for_all(self, operator: str, approved: bool) -> None:
        operator = to_address(operator)
        owner = self.msg_sender
        if operator == owner:
            raise ERC721Error("approve to caller")
        self.operator_approvals.setdefault(owner, {})[operator] = bool(approved)
        self.emit(ApprovalForAll(owner=owner, operator=operator, approved=bool(approved)))

    @public
    def transfer_from(self, from_address: str, to: str, token_id: int) -> None:
        """Move a token. The caller must own it or be approved for it."""
        from_address = to_address(from_address)
        to = to_address(to)
        owner = self.owner_of(token_id)
        if not self._is_approved_or_owner(self.msg_sender, token_id):
            raise ERC721Error("caller is not token owner or approved")
        if owner != from_address:
            raise ERC721Error("transfer from incorrect owner")
        if to == ZERO_ADDRESS:
            raise ERC721Error("transfer to the zero address")

        self.token_approvals.pop(token_id, None)
        self.balances[from_address] -= 1
        self.balances[to] = self.balances.get(to, 0) + 1
        self.owners[token_id] = to
        self.emit(Transfer(from_address=from_address, to_address=to, token_id=token_id))

    def _is_approved_or_owner(self, spender: str, token_id: int) -> bool:
        owner = self.owners[token_id]
        return (
            spender == owner
            or self.is_approved_for_all(owner, spender)
            or self.token_approvals.get(token_id) == spender
        )

    def _require_minted(self, token_id: int) -> None:
        if token_id not in self.owners:
            raise ERC721Error("invalid token ID")


__all__ = ['BasicNft', 'ERC721Error', 'Transfer', 'Approval', 'ApprovalForAll']
