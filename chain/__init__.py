"""Local chain runtime hosting the marketplace contracts.

This module provides:
- Native balances for a fixed set of unlocked development accounts
- Contract deployment and address derivation
- Serialized, all-or-nothing transaction execution with gas accounting
- Cross-contract calls and outbound value transfers with per-frame rollback
- A committed event log with synchronous subscribers
"""

import copy
import hashlib
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Optional, Type, Union

from pydantic import BaseModel

from .exceptions import (
    ChainError,
    Revert,
    InsufficientFunds,
    TransferFailed,
    UnknownContract,
    UnknownMethod,
)
from .units import parse_ether, parse_gwei, format_ether, WEI_PER_ETHER

logger = logging.getLogger(__name__)

ZERO_ADDRESS = '0x' + '0' * 40

# Gas schedule
BASE_TX_GAS = 21000
CALL_GAS = 2600
LOG_GAS = 375

DEFAULT_CHAIN_ID = 31337
DEFAULT_ACCOUNTS = 20
DEFAULT_INITIAL_BALANCE = 10000 * WEI_PER_ETHER
DEFAULT_GAS_PRICE = parse_gwei(1)


def to_address(value: Any) -> str:
    """Normalize an address to lower-case 0x-prefixed hex.

    Raises:
        ValueError: If the value is not a 20-byte hex address
    """
    if isinstance(value, Contract):
        value = value.address
    if not isinstance(value, str):
        raise ValueError(f"Invalid address: {value!r}")
    address = value.lower()
    if not address.startswith('0x') or len(address) != 42:
        raise ValueError(f"Invalid address: {value}")
    try:
        int(address[2:], 16)
    except ValueError:
        raise ValueError(f"Invalid address: {value}")
    return address


def _derive_address(seed: str) -> str:
    return '0x' + hashlib.sha3_256(seed.encode()).hexdigest()[-40:]


def public(fn: Callable) -> Callable:
    """Mark a contract method as callable in a transaction."""
    fn.__public__ = True
    return fn


def view(fn: Callable) -> Callable:
    """Mark a contract method as a read-only entry point."""
    fn.__public__ = True
    fn.__view__ = True
    return fn


def payable(fn: Callable) -> Callable:
    """Mark a contract method as accepting attached value."""
    fn.__public__ = True
    fn.__payable__ = True
    return fn


def _is_view(fn: Callable) -> bool:
    return getattr(fn, '__view__', False)


class Event(BaseModel):
    """Base class for events emitted by contracts."""
    name: ClassVar[str] = 'Event'


@dataclass
class Log:
    """A committed event."""
    address: str
    event: Event
    block_number: int
    tx_hash: str
    log_index: int

    @property
    def name(self) -> str:
        return self.event.name

    def to_dict(self) -> Dict[str, Any]:
        return {
            'address': self.address,
            'event': self.event.name,
            'args': self.event.model_dump(),
            'block_number': self.block_number,
            'tx_hash': self.tx_hash,
            'log_index': self.log_index,
        }


@dataclass
class Receipt:
    """Result of a mined transaction."""
    tx_hash: str
    block_number: int
    sender: str
    to: str
    method: str
    value: int
    gas_used: int
    effective_gas_price: int
    return_value: Any = None
    logs: List[Log] = field(default_factory=list)

    @property
    def gas_cost(self) -> int:
        return self.gas_used * self.effective_gas_price

    def get_events(self, name: str) -> List[Event]:
        """Get the events with the given name emitted by this transaction."""
        return [log.event for log in self.logs if log.name == name]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tx_hash': self.tx_hash,
            'block_number': self.block_number,
            'from': self.sender,
            'to': self.to,
            'method': self.method,
            'value': str(self.value),
            'gas_used': self.gas_used,
            'effective_gas_price': str(self.effective_gas_price),
            'return_value': self.return_value,
            'logs': [log.to_dict() for log in self.logs],
        }


@dataclass
class _Frame:
    contract: 'Contract'
    sender: str
    value: int


class Contract:
    """Base class for contracts hosted by a Chain.

    Contract state lives in plain instance attributes. The chain snapshots
    them before every call frame and restores them if the frame fails.
    """

    _RUNTIME_FIELDS = ('chain', 'address')

    def __init__(self):
        self.chain: Optional['Chain'] = None
        self.address: Optional[str] = None

    def bind(self, chain: 'Chain', address: str) -> None:
        self.chain = chain
        self.address = address

    @property
    def msg_sender(self) -> str:
        return self.chain.msg_sender

    @property
    def msg_value(self) -> int:
        return self.chain.msg_value

    @property
    def balance(self) -> int:
        return self.chain.get_balance(self.address)

    def emit(self, event: Event) -> None:
        self.chain.emit(self.address, event)

    def __deepcopy__(self, memo):
        # Contracts are referenced by identity; each one snapshots its own state
        return self

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy({
            key: value for key, value in vars(self).items()
            if key not in self._RUNTIME_FIELDS
        })

    def restore(self, state: Dict[str, Any]) -> None:
        for key in [k for k in vars(self) if k not in self._RUNTIME_FIELDS]:
            if key not in state:
                delattr(self, key)
        self.__dict__.update(state)


class Chain:
    """In-process ledger executing contract transactions one at a time."""

    def __init__(
        self,
        chain_id: int = DEFAULT_CHAIN_ID,
        accounts: int = DEFAULT_ACCOUNTS,
        initial_balance: int = DEFAULT_INITIAL_BALANCE,
        gas_price: int = DEFAULT_GAS_PRICE
    ):
        """Initialize the chain.

        Args:
            chain_id: Chain identifier reported to clients
            accounts: Number of unlocked development accounts to create
            initial_balance: Starting balance of every account in wei
            gas_price: Price per unit of gas in wei
        """
        self.chain_id = chain_id
        self.gas_price = gas_price
        self.block_number = 0
        self.accounts: List[str] = [_derive_address(f"account:{i}") for i in range(accounts)]
        self.balances: Dict[str, int] = {a: initial_balance for a in self.accounts}
        self.nonces: Dict[str, int] = {}
        self.contracts: Dict[str, Contract] = {}
        self.deployments: Dict[str, Contract] = {}
        self.logs: List[Log] = []
        self.receipts: Dict[str, Receipt] = {}

        self._lock = threading.RLock()
        self._frames: List[_Frame] = []
        self._pending_logs: List[tuple] = []
        self._gas_used = 0
        self._subscribers: List[Callable[[Log], None]] = []

    @classmethod
    def from_settings(cls, settings: Dict[str, Any]) -> 'Chain':
        """Create a chain from loaded settings."""
        return cls(
            chain_id=int(settings['chain_id']),
            accounts=int(settings['accounts']),
            initial_balance=parse_ether(settings['initial_balance']),
            gas_price=parse_gwei(settings['gas_price_gwei'])
        )

    # -------------------------------------------
    # Execution context
    # -------------------------------------------

    @property
    def msg_sender(self) -> str:
        if not self._frames:
            raise ChainError("No call in progress")
        return self._frames[-1].sender

    @property
    def msg_value(self) -> int:
        if not self._frames:
            raise ChainError("No call in progress")
        return self._frames[-1].value

    @property
    def current_contract(self) -> Contract:
        if not self._frames:
            raise ChainError("No call in progress")
        return self._frames[-1].contract

    # -------------------------------------------
    # Accounts and contracts
    # -------------------------------------------

    def get_balance(self, address: Union[str, Contract]) -> int:
        return self.balances.get(to_address(address), 0)

    def get_nonce(self, address: str) -> int:
        return self.nonces.get(to_address(address), 0)

    def get_contract(self, name_or_address: str) -> Contract:
        """Get a deployed contract by name or address.

        Raises:
            UnknownContract: If nothing is deployed under that name or address
        """
        if name_or_address in self.deployments:
            return self.deployments[name_or_address]
        try:
            return self.contracts[to_address(name_or_address)]
        except (KeyError, ValueError):
            raise UnknownContract(f"No contract deployed at {name_or_address}")

    def is_contract(self, address: str) -> bool:
        return to_address(address) in self.contracts

    def deploy(self, contract_cls: Type[Contract], sender: Optional[str] = None) -> Contract:
        """Deploy a contract. Constructors take no arguments.

        Args:
            contract_cls: Contract class to instantiate
            sender: Deploying account, defaults to the first account

        Returns:
            The deployed contract, bound to this chain
        """
        with self._lock:
            sender = to_address(sender or self.accounts[0])
            nonce = self.get_nonce(sender)
            address = _derive_address(f"{sender}:{nonce}")

            contract = contract_cls()
            contract.bind(self, address)
            self.contracts[address] = contract
            self.deployments[contract_cls.__name__] = contract
            self.balances.setdefault(address, 0)
            self.nonces[sender] = nonce + 1
            self.block_number += 1

            logger.info(f"Deployed {contract_cls.__name__} at {address} (block {self.block_number})")
            return contract

    def subscribe(self, callback: Callable[[Log], None]) -> None:
        """Register a callback invoked with each committed log."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[Log], None]) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    # -------------------------------------------
    # Transactions
    # -------------------------------------------

    def transact(
        self,
        sender: str,
        contract: Union[str, Contract],
        method: str,
        *args: Any,
        value: int = 0
    ) -> Receipt:
        """Execute a state-changing call as one transaction.

        Either every state change and event of the call is committed, or the
        exception propagates and nothing is.

        Args:
            sender: Calling account
            contract: Target contract or its address
            method: Public method name
            *args: Method arguments
            value: Wei attached to the call

        Returns:
            Receipt of the mined transaction

        Raises:
            InsufficientFunds: If the sender cannot pay value plus gas
            Revert: If the contract call aborts
        """
        with self._lock:
            sender = to_address(sender)
            target = contract if isinstance(contract, Contract) else self.get_contract(contract)
            fn = self._get_method(target, method)
            if value < 0:
                raise ValueError("Value must not be negative")
            self._require_payable(target, method, fn, value)

            available = self.get_balance(sender)
            if available < value + BASE_TX_GAS * self.gas_price:
                raise InsufficientFunds(sender, available, value + BASE_TX_GAS * self.gas_price)

            checkpoint = self._snapshot()
            self._pending_logs = []
            self._gas_used = BASE_TX_GAS
            try:
                self._move_value(sender, target.address, value)
                result = self._enter(target, fn, sender, value, args)

                gas_cost = self._gas_used * self.gas_price
                if self.balances[sender] < gas_cost:
                    raise InsufficientFunds(sender, self.balances[sender], gas_cost)
                self.balances[sender] -= gas_cost
            except Exception as e:
                self._restore(checkpoint)
                self._pending_logs = []
                logger.debug(f"Transaction {method} from {sender} reverted: {e}")
                raise

            nonce = self.get_nonce(sender)
            self.nonces[sender] = nonce + 1
            self.block_number += 1
            tx_hash = '0x' + hashlib.sha3_256(
                f"{self.chain_id}:{sender}:{nonce}:{self.block_number}".encode()
            ).hexdigest()

            logs = [
                Log(
                    address=address,
                    event=event,
                    block_number=self.block_number,
                    tx_hash=tx_hash,
                    log_index=index
                )
                for index, (address, event) in enumerate(self._pending_logs)
            ]
            self._pending_logs = []
            self.logs.extend(logs)

            receipt = Receipt(
                tx_hash=tx_hash,
                block_number=self.block_number,
                sender=sender,
                to=target.address,
                method=method,
                value=value,
                gas_used=self._gas_used,
                effective_gas_price=self.gas_price,
                return_value=result,
                logs=logs
            )
            self.receipts[tx_hash] = receipt
            logger.debug(f"Mined {method} in block {self.block_number} ({tx_hash})")

            self._notify(logs)
            return receipt

    def call(
        self,
        contract: Union[str, Contract],
        method: str,
        *args: Any,
        sender: Optional[str] = None
    ) -> Any:
        """Invoke a method without committing anything."""
        with self._lock:
            target = contract if isinstance(contract, Contract) else self.get_contract(contract)
            fn = self._get_method(target, method)
            sender = to_address(sender) if sender else ZERO_ADDRESS

            pending, gas_used = self._pending_logs, self._gas_used
            if _is_view(fn):
                try:
                    return self._enter(target, fn, sender, 0, args)
                finally:
                    self._gas_used = gas_used

            checkpoint = self._snapshot()
            try:
                return self._enter(target, fn, sender, 0, args)
            finally:
                self._restore(checkpoint)
                self._pending_logs, self._gas_used = pending, gas_used

    def call_contract(
        self,
        contract: Union[str, Contract],
        method: str,
        *args: Any,
        value: int = 0
    ) -> Any:
        """Call another contract from the executing contract.

        A failing sub-call rolls back only its own effects, then re-raises.
        """
        caller = self.current_contract
        target = contract if isinstance(contract, Contract) else self.get_contract(contract)
        fn = self._get_method(target, method)
        self._require_payable(target, method, fn, value)
        if _is_view(fn):
            return self._enter(target, fn, caller.address, 0, args)

        checkpoint = self._snapshot()
        try:
            if value:
                if self.get_balance(caller.address) < value:
                    raise Revert("InsufficientBalance", f"{caller.address} cannot send {value} wei")
                self._move_value(caller.address, target.address, value)
            return self._enter(target, fn, caller.address, value, args)
        except Exception:
            self._restore(checkpoint)
            raise

    def send_value(self, to: str, amount: int) -> None:
        """Send wei from the executing contract.

        Contract recipients get their ``receive`` hook invoked.

        Raises:
            TransferFailed: If the balance is short or the recipient aborts
        """
        caller = self.current_contract
        to = to_address(to)
        if self.get_balance(caller.address) < amount:
            raise TransferFailed(to, amount)

        checkpoint = self._snapshot()
        try:
            self._move_value(caller.address, to, amount)
            recipient = self.contracts.get(to)
            if recipient is not None:
                hook = getattr(recipient, 'receive', None)
                if hook is None:
                    raise Revert("NoReceive", f"Contract {to} cannot receive value")
                self._enter(recipient, hook, caller.address, amount, ())
        except Exception as e:
            self._restore(checkpoint)
            raise TransferFailed(to, amount, e) from e

    def emit(self, address: str, event: Event) -> None:
        self._gas_used += LOG_GAS
        self._pending_logs.append((address, event))

    # -------------------------------------------
    # Internals
    # -------------------------------------------

    def _get_method(self, contract: Contract, method: str) -> Callable:
        fn = getattr(contract, method, None)
        if fn is None or not getattr(fn, '__public__', False):
            raise UnknownMethod(f"{type(contract).__name__} has no public method {method}")
        return fn

    def _require_payable(self, contract: Contract, method: str, fn: Callable, value: int) -> None:
        if value and not getattr(fn, '__payable__', False):
            raise Revert("NonPayable", f"{type(contract).__name__}.{method} does not accept value")

    def _enter(self, contract: Contract, fn: Callable, sender: str, value: int, args: tuple) -> Any:
        self._gas_used += CALL_GAS
        self._frames.append(_Frame(contract=contract, sender=sender, value=value))
        try:
            return fn(*args)
        finally:
            self._frames.pop()

    def _move_value(self, from_address: str, to_address_: str, amount: int) -> None:
        if not amount:
            return
        self.balances[from_address] = self.balances.get(from_address, 0) - amount
        self.balances[to_address_] = self.balances.get(to_address_, 0) + amount

    def _snapshot(self) -> Dict[str, Any]:
        return {
            'balances': dict(self.balances),
            'contracts': {addr: c.snapshot() for addr, c in self.contracts.items()},
            'logs': len(self._pending_logs),
        }

    def _restore(self, checkpoint: Dict[str, Any]) -> None:
        self.balances = checkpoint['balances']
        for addr, state in checkpoint['contracts'].items():
            self.contracts[addr].restore(state)
        del self._pending_logs[checkpoint['logs']:]

    def _notify(self, logs: List[Log]) -> None:
        for log in logs:
            for callback in list(self._subscribers):
                try:
                    callback(log)
                except Exception as e:
                    logger.error(f"Log subscriber failed on {log.name}: {e}")


__all__ = [
    'Chain', 'Contract', 'Event', 'Log', 'Receipt', 'public', 'view', 'payable',
    'to_address', 'ZERO_ADDRESS', 'parse_ether', 'parse_gwei', 'format_ether',
    'ChainError', 'Revert', 'InsufficientFunds', 'TransferFailed',
    'UnknownContract', 'UnknownMethod',
]
