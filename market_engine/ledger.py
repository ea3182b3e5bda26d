from __future__ import annotations

"""In-process token contracts used as external collaborators.

These stand in for deployed ERC-20 / ERC-721 / ERC-1155 contracts when the
engine runs locally (tests, the local settlement script). Transfers go through
the engine as operator, so owners must approve it first, the same as on chain.
Every contract can join a ``Transaction`` via ``snapshot`` / ``restore``; the
snapshot covers balances or owners together with operator approvals.
"""

import copy
from collections import defaultdict
from typing import Any, Callable, Dict, Optional, Set, Tuple

from . import config
from .errors import TransferFailed
from .utils import normalize_address


# (operator, sender, token_id, amount) を受け取るフック。例外を投げれば受け取り拒否
ReceiverHook = Callable[[str, str, int, int], None]


class InMemoryERC20:
    def __init__(self, address: str, symbol: str = "TOKEN") -> None:
        self.address = normalize_address(address)
        self.symbol = symbol
        self.balances: Dict[str, int] = defaultdict(int)
        self.allowances: Dict[Tuple[str, str], int] = defaultdict(int)

    def mint(self, owner: str, amount: int) -> None:
        self.balances[normalize_address(owner)] += amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        self.allowances[(normalize_address(owner), normalize_address(spender))] = amount

    def balance_of(self, owner: str) -> int:
        return self.balances.get(normalize_address(owner), 0)

    def transfer_from(self, operator: str, sender: str, recipient: str, amount: int) -> None:
        operator, sender, recipient = (normalize_address(a) for a in (operator, sender, recipient))
        allowed = self.allowances.get((sender, operator), 0)
        if allowed < amount:
            raise TransferFailed(f"{self.symbol}: allowance {allowed} < {amount}")
        if self.balances.get(sender, 0) < amount:
            raise TransferFailed(f"{self.symbol}: insufficient balance of {sender}")
        self.allowances[(sender, operator)] = allowed - amount
        self.balances[sender] -= amount
        self.balances[recipient] += amount

    def snapshot(self) -> Any:
        return copy.deepcopy((self.balances, self.allowances))

    def restore(self, state: Any) -> None:
        self.balances, self.allowances = state


class _OperatorApprovals:
    def __init__(self) -> None:
        self.operators: Dict[str, Set[str]] = defaultdict(set)
        self.receivers: Dict[str, ReceiverHook] = {}

    def set_approval_for_all(self, owner: str, operator: str, approved: bool = True) -> None:
        ops = self.operators[normalize_address(owner)]
        if approved:
            ops.add(normalize_address(operator))
        else:
            ops.discard(normalize_address(operator))

    def set_receiver(self, holder: str, hook: ReceiverHook) -> None:
        self.receivers[normalize_address(holder)] = hook

    def _require_operator(self, operator: str, sender: str) -> None:
        if operator != sender and operator not in self.operators.get(sender, set()):
            raise TransferFailed(f"{operator} is not approved by {sender}")

    def _notify(self, operator: str, sender: str, recipient: str, token_id: int, amount: int) -> None:
        hook = self.receivers.get(recipient)
        if hook is not None:
            hook(operator, sender, token_id, amount)


class InMemoryERC721(_OperatorApprovals):
    interfaces = (config.INTERFACE_ID_ERC165, config.INTERFACE_ID_ERC721)

    def __init__(self, address: str) -> None:
        super().__init__()
        self.address = normalize_address(address)
        self.owners: Dict[int, str] = {}

    def mint(self, owner: str, token_id: int) -> None:
        if token_id in self.owners:
            raise ValueError(f"token {token_id} already minted")
        self.owners[token_id] = normalize_address(owner)

    def owner_of(self, token_id: int) -> Optional[str]:
        return self.owners.get(token_id)

    def safe_transfer_from(self, operator: str, sender: str, recipient: str, token_id: int) -> None:
        operator, sender, recipient = (normalize_address(a) for a in (operator, sender, recipient))
        if self.owners.get(token_id) != sender:
            raise TransferFailed(f"{sender} does not own token {token_id}")
        self._require_operator(operator, sender)
        self.owners[token_id] = recipient
        self._notify(operator, sender, recipient, token_id, 1)

    def snapshot(self) -> Any:
        return dict(self.owners), copy.deepcopy(self.operators)

    def restore(self, state: Any) -> None:
        self.owners, self.operators = state


class InMemoryERC1155(_OperatorApprovals):
    interfaces = (config.INTERFACE_ID_ERC165, config.INTERFACE_ID_ERC1155)

    def __init__(self, address: str) -> None:
        super().__init__()
        self.address = normalize_address(address)
        self.balances: Dict[Tuple[str, int], int] = defaultdict(int)

    def mint(self, owner: str, token_id: int, amount: int) -> None:
        self.balances[(normalize_address(owner), token_id)] += amount

    def balance_of(self, owner: str, token_id: int) -> int:
        return self.balances.get((normalize_address(owner), token_id), 0)

    def safe_transfer_from(self, operator: str, sender: str, recipient: str, token_id: int, amount: int) -> None:
        operator, sender, recipient = (normalize_address(a) for a in (operator, sender, recipient))
        self._require_operator(operator, sender)
        if self.balances.get((sender, token_id), 0) < amount:
            raise TransferFailed(f"{sender} holds fewer than {amount} of token {token_id}")
        self.balances[(sender, token_id)] -= amount
        self.balances[(recipient, token_id)] += amount
        self._notify(operator, sender, recipient, token_id, amount)

    def snapshot(self) -> Any:
        return copy.deepcopy((self.balances, self.operators))

    def restore(self, state: Any) -> None:
        self.balances, self.operators = state


class TokenRegistry:
    """Routes engine calls to the in-process contracts by address.

    Implements the currency gateway, the asset gateway and the capability
    probe, always calling as ``operator`` (the engine address). Also a
    transaction participant covering every deployed contract.
    """

    def __init__(self, operator: str) -> None:
        self.operator = normalize_address(operator)
        self.contracts: Dict[str, Any] = {}
        # 任意のインタフェースを名乗らせたい場合の上書き（誤申告コントラクトの再現用）
        self.declared: Dict[str, Set[str]] = {}

    def deploy(self, contract: Any) -> Any:
        self.contracts[contract.address] = contract
        return contract

    def declare_interfaces(self, address: str, *interface_ids: str) -> None:
        self.declared[normalize_address(address)] = {i.lower() for i in interface_ids}

    def _get(self, address: str) -> Any:
        contract = self.contracts.get(normalize_address(address))
        if contract is None:
            raise TransferFailed(f"no contract at {address}")
        return contract

    def supports_interface(self, contract: str, interface_id: str) -> bool:
        addr = normalize_address(contract)
        if addr in self.declared:
            return interface_id.lower() in self.declared[addr]
        target = self.contracts.get(addr)
        return target is not None and interface_id.lower() in getattr(target, "interfaces", ())

    def transfer_from(self, currency: str, sender: str, recipient: str, amount: int) -> None:
        self._get(currency).transfer_from(self.operator, sender, recipient, amount)

    def safe_transfer_erc721(self, collection: str, sender: str, recipient: str, token_id: int) -> None:
        self._get(collection).safe_transfer_from(self.operator, sender, recipient, token_id)

    def safe_transfer_erc1155(self, collection: str, sender: str, recipient: str, token_id: int, amount: int) -> None:
        self._get(collection).safe_transfer_from(self.operator, sender, recipient, token_id, amount)

    def snapshot(self) -> Any:
        return {addr: c.snapshot() for addr, c in self.contracts.items()}

    def restore(self, state: Any) -> None:
        for addr, saved in state.items():
            self.contracts[addr].restore(saved)
