"""Action Executor for EtherBlink.

Drives one transaction per page view through:

    idle -> awaiting_wallet_confirmation -> awaiting_chain_confirmation -> confirmed
                                  \\                           \\
                                   +-> failed                    +-> failed

``confirmed`` and ``failed`` are terminal. A new executor (new page view)
is required to try again.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from etherblink.observability.metrics import TRANSACTION_DURATION, TRANSACTIONS

from .errors import ActionValidationError, UnknownActionTypeError, WalletRejectionError
from .models import ActionDescription, NftSaleAction, TipAction
from .session import WalletSession

logger = logging.getLogger(__name__)

MAX_ERROR_LENGTH = 160


class ExecutionState(str, Enum):
    """Transaction state for one page view."""

    IDLE = "idle"
    AWAITING_WALLET_CONFIRMATION = "awaiting_wallet_confirmation"
    AWAITING_CHAIN_CONFIRMATION = "awaiting_chain_confirmation"
    CONFIRMED = "confirmed"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (ExecutionState.CONFIRMED, ExecutionState.FAILED)

    @property
    def in_flight(self) -> bool:
        return self in (
            ExecutionState.AWAITING_WALLET_CONFIRMATION,
            ExecutionState.AWAITING_CHAIN_CONFIRMATION,
        )


def summarize_error(error: BaseException) -> str:
    """First line of an error's text, truncated for display."""
    text = str(error).strip()
    line = text.splitlines()[0] if text else type(error).__name__
    if len(line) > MAX_ERROR_LENGTH:
        line = line[: MAX_ERROR_LENGTH - 3] + "..."
    return line


@dataclass(frozen=True)
class TransactionPlan:
    """The transaction an action turns into."""

    action_type: str
    to: str
    value: Decimal
    function: str | None = None
    token_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        result: dict[str, Any] = {
            "action_type": self.action_type,
            "to": self.to,
            "value": str(self.value),
        }
        if self.function:
            result["function"] = self.function
            result["token_id"] = self.token_id
        return result


def plan_transaction(action: ActionDescription) -> TransactionPlan:
    """Translate an action into transfer or contract-call parameters.

    Raises
    ------
    ActionValidationError
        If an amount or token id cannot be parsed.
    """
    if isinstance(action, TipAction):
        try:
            value = Decimal(action.tip_amount_eth)
        except InvalidOperation:
            raise ActionValidationError(
                "tip_amount_eth", f"Invalid amount: {action.tip_amount_eth}"
            ) from None
        return TransactionPlan(action_type="tip", to=action.recipient_address, value=value)

    if isinstance(action, NftSaleAction):
        try:
            value = Decimal(action.price)
        except InvalidOperation:
            raise ActionValidationError("price", f"Invalid price: {action.price}") from None
        try:
            token_id = int(action.token_id)
        except ValueError:
            raise ActionValidationError(
                "token_id", f"Invalid token ID: {action.token_id}"
            ) from None
        return TransactionPlan(
            action_type="nft_sale",
            to=action.contract_address,
            value=value,
            function="buy(uint256)",
            token_id=token_id,
        )

    raise UnknownActionTypeError(getattr(action, "action_type", None))


class ActionExecutor:
    """Submits a resolved action through the session's wallet.

    Parameters
    ----------
    action : ActionDescription
        The action to execute.
    session : WalletSession
        Wallet connection for this page view.
    on_transition : Callable[[ExecutionState, ActionExecutor], None] | None
        Called after every state change.
    """

    def __init__(
        self,
        action: ActionDescription,
        session: WalletSession,
        on_transition: "Callable[[ExecutionState, ActionExecutor], None] | None" = None,
    ):
        self._action = action
        self._session = session
        self._on_transition = on_transition
        self._state = ExecutionState.IDLE
        self._error: WalletRejectionError | None = None
        self._tx_hash: str | None = None

    @property
    def action(self) -> ActionDescription:
        return self._action

    @property
    def state(self) -> ExecutionState:
        return self._state

    @property
    def error(self) -> WalletRejectionError | None:
        return self._error

    @property
    def error_message(self) -> str | None:
        return str(self._error) if self._error else None

    @property
    def tx_hash(self) -> str | None:
        return self._tx_hash

    @property
    def tx_url(self) -> str | None:
        """Explorer link for the submitted transaction, if any."""
        if self._tx_hash is None:
            return None
        return self._session.network.get_tx_url(self._tx_hash)

    @property
    def can_execute(self) -> bool:
        """Whether the execute action should be offered."""
        return self._session.connected and self._state == ExecutionState.IDLE

    def _transition(self, state: ExecutionState) -> None:
        if self._state.terminal:
            return
        previous = self._state
        self._state = state
        logger.debug(
            "Executor transition",
            extra={"from": previous.value, "to": state.value, "tx_hash": self._tx_hash},
        )
        if self._on_transition is not None:
            self._on_transition(state, self)

    def _fail(self, cause: BaseException) -> None:
        self._error = WalletRejectionError(summarize_error(cause))
        logger.warning(
            "Action execution failed",
            extra={
                "action_type": self._action.action_type,
                "tx_hash": self._tx_hash,
                "error": str(self._error),
            },
        )
        self._transition(ExecutionState.FAILED)
        TRANSACTIONS.labels(action_type=self._action.action_type, status="failed").inc()

    def _submit(self) -> str:
        client = self._session.client
        plan = plan_transaction(self._action)
        if plan.function is None:
            return client.transfer_native(plan.to, plan.value)
        return client.buy_nft(plan.to, plan.token_id, plan.value)

    async def execute(self) -> ExecutionState:
        """Submit the action and wait for confirmation.

        Does nothing unless the executor is idle and a wallet is connected.
        Errors never propagate; they move the executor to ``failed``.

        Returns
        -------
        ExecutionState
            The state after this call.
        """
        if not self.can_execute:
            logger.debug(
                "Execute ignored",
                extra={"state": self._state.value, "connected": self._session.connected},
            )
            return self._state

        self._transition(ExecutionState.AWAITING_WALLET_CONFIRMATION)
        started = time.monotonic()

        try:
            self._tx_hash = await asyncio.to_thread(self._submit)
        except Exception as e:
            self._fail(e)
            return self._state

        self._transition(ExecutionState.AWAITING_CHAIN_CONFIRMATION)

        try:
            receipt = await asyncio.to_thread(
                self._session.client.wait_for_receipt,
                self._tx_hash,
                self._session.receipt_timeout,
            )
        except Exception as e:
            self._fail(e)
            return self._state

        if receipt.get("status") == 0:
            self._fail(RuntimeError("Transaction reverted"))
            return self._state

        TRANSACTION_DURATION.labels(action_type=self._action.action_type).observe(
            time.monotonic() - started
        )
        TRANSACTIONS.labels(action_type=self._action.action_type, status="confirmed").inc()
        logger.info(
            "Action confirmed",
            extra={"action_type": self._action.action_type, "tx_hash": self._tx_hash},
        )
        self._transition(ExecutionState.CONFIRMED)
        return self._state
