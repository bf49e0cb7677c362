"""Tests for the action executor state machine."""

import asyncio
import threading
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from etherblink.core.errors import ActionValidationError, WalletRejectionError
from etherblink.core.executor import (
    ActionExecutor,
    ExecutionState,
    TransactionPlan,
    plan_transaction,
    summarize_error,
)
from etherblink.core.models import NftSaleAction, TipAction
from etherblink.core.session import WalletSession

TIP_RECIPIENT = "0xABCD000000000000000000000000000000001234"
NFT_CONTRACT = "0x742d35Cc6634C0532925a3b844Bc9e7595f8fE00"
TX_HASH = "0x" + "ab" * 32


@pytest.fixture
def chain_client():
    """Mock ChainClient whose transactions confirm."""
    client = MagicMock()
    client.wallet_address = "0xFCAd0B19bB29D4674531d6f115237E16AfCE377c"
    client.transfer_native.return_value = TX_HASH
    client.buy_nft.return_value = TX_HASH
    client.wait_for_receipt.return_value = {"status": 1}
    return client


@pytest.fixture
def session(network, chain_client):
    return WalletSession(network=network, client=chain_client, receipt_timeout=30)


@pytest.fixture
def tip():
    return TipAction(recipient_address=TIP_RECIPIENT, tip_amount_eth="0.05")


@pytest.fixture
def nft():
    return NftSaleAction(contract_address=NFT_CONTRACT, token_id="42", price="1.5")


def _recorder():
    states: list[ExecutionState] = []

    def on_transition(state, _executor):
        states.append(state)

    return states, on_transition


class TestSummarizeError:
    """Tests for summarize_error."""

    def test_first_line_only(self):
        """Multi-line errors are cut to their first line."""
        error = RuntimeError("User rejected the request.\n\nDetails: code 4001\nVersion: 2")

        assert summarize_error(error) == "User rejected the request."

    def test_truncates_long_lines(self):
        """Long messages are shortened with an ellipsis."""
        message = summarize_error(RuntimeError("x" * 500))

        assert len(message) == 160
        assert message.endswith("...")

    def test_empty_message_uses_type(self):
        """Errors without text fall back to their class name."""
        assert summarize_error(TimeoutError()) == "TimeoutError"


class TestPlanTransaction:
    """Tests for plan_transaction."""

    def test_tip_is_plain_transfer(self, tip):
        """Tips become a value transfer to the recipient."""
        plan = plan_transaction(tip)

        assert plan == TransactionPlan(
            action_type="tip", to=TIP_RECIPIENT, value=Decimal("0.05")
        )
        assert plan.to_dict() == {"action_type": "tip", "to": TIP_RECIPIENT, "value": "0.05"}

    def test_nft_is_buy_call(self, nft):
        """NFT sales become a payable buy(token_id) call."""
        plan = plan_transaction(nft)

        assert plan.to == NFT_CONTRACT
        assert plan.value == Decimal("1.5")
        assert plan.function == "buy(uint256)"
        assert plan.token_id == 42
        assert plan.to_dict()["token_id"] == 42

    def test_unparsable_amount(self):
        """Amounts that are not numbers cannot be planned."""
        with pytest.raises(ActionValidationError):
            plan_transaction(TipAction(recipient_address=TIP_RECIPIENT, tip_amount_eth="lots"))

    def test_unparsable_token_id(self):
        """Token ids that are not integers cannot be planned."""
        with pytest.raises(ActionValidationError) as exc_info:
            plan_transaction(
                NftSaleAction(contract_address=NFT_CONTRACT, token_id="abc", price="1")
            )

        assert exc_info.value.field == "token_id"


class TestExecutionState:
    """Tests for ExecutionState helpers."""

    def test_terminal_states(self):
        """Only confirmed and failed are terminal."""
        assert {s for s in ExecutionState if s.terminal} == {
            ExecutionState.CONFIRMED,
            ExecutionState.FAILED,
        }

    def test_in_flight_states(self):
        """Both awaiting states are in flight."""
        assert {s for s in ExecutionState if s.in_flight} == {
            ExecutionState.AWAITING_WALLET_CONFIRMATION,
            ExecutionState.AWAITING_CHAIN_CONFIRMATION,
        }


class TestActionExecutor:
    """Tests for ActionExecutor."""

    def test_initial_state(self, tip, session):
        """New executors are idle and can execute when connected."""
        executor = ActionExecutor(tip, session)

        assert executor.state == ExecutionState.IDLE
        assert executor.can_execute is True
        assert executor.tx_hash is None
        assert executor.tx_url is None
        assert executor.error is None

    @pytest.mark.asyncio
    async def test_tip_confirms(self, tip, session, chain_client):
        """A tip transfers the amount and ends confirmed."""
        states, on_transition = _recorder()
        executor = ActionExecutor(tip, session, on_transition=on_transition)

        result = await executor.execute()

        assert result == ExecutionState.CONFIRMED
        chain_client.transfer_native.assert_called_once_with(TIP_RECIPIENT, Decimal("0.05"))
        chain_client.wait_for_receipt.assert_called_once_with(TX_HASH, 30)
        assert states == [
            ExecutionState.AWAITING_WALLET_CONFIRMATION,
            ExecutionState.AWAITING_CHAIN_CONFIRMATION,
            ExecutionState.CONFIRMED,
        ]
        assert executor.tx_hash == TX_HASH
        assert executor.tx_url == f"https://explorer.example.com/tx/{TX_HASH}"

    @pytest.mark.asyncio
    async def test_nft_purchase_confirms(self, nft, session, chain_client):
        """Buying an NFT calls buy(42) with 1.5 attached."""
        states, on_transition = _recorder()
        executor = ActionExecutor(nft, session, on_transition=on_transition)

        result = await executor.execute()

        assert result == ExecutionState.CONFIRMED
        chain_client.buy_nft.assert_called_once_with(NFT_CONTRACT, 42, Decimal("1.5"))
        chain_client.transfer_native.assert_not_called()
        assert states[-1] == ExecutionState.CONFIRMED

    @pytest.mark.asyncio
    async def test_wallet_rejection(self, tip, session, chain_client):
        """A rejected signature fails with the first line of the error."""
        chain_client.transfer_native.side_effect = RuntimeError(
            "User rejected the request.\nRequest Arguments: ..."
        )
        states, on_transition = _recorder()
        executor = ActionExecutor(tip, session, on_transition=on_transition)

        result = await executor.execute()

        assert result == ExecutionState.FAILED
        assert states == [
            ExecutionState.AWAITING_WALLET_CONFIRMATION,
            ExecutionState.FAILED,
        ]
        assert isinstance(executor.error, WalletRejectionError)
        assert executor.error_message == "User rejected the request."
        assert executor.tx_hash is None
        chain_client.wait_for_receipt.assert_not_called()

    @pytest.mark.asyncio
    async def test_receipt_timeout(self, tip, session, chain_client):
        """Errors while waiting for the receipt fail after submission."""
        chain_client.wait_for_receipt.side_effect = TimeoutError("Transaction not mined in 30s")
        states, on_transition = _recorder()
        executor = ActionExecutor(tip, session, on_transition=on_transition)

        result = await executor.execute()

        assert result == ExecutionState.FAILED
        assert states[-2:] == [ExecutionState.AWAITING_CHAIN_CONFIRMATION, ExecutionState.FAILED]
        assert executor.tx_hash == TX_HASH
        assert executor.error_message == "Transaction not mined in 30s"

    @pytest.mark.asyncio
    async def test_reverted_transaction(self, nft, session, chain_client):
        """A mined but reverted transaction is a failure."""
        chain_client.wait_for_receipt.return_value = {"status": 0}
        executor = ActionExecutor(nft, session)

        result = await executor.execute()

        assert result == ExecutionState.FAILED
        assert executor.error_message == "Transaction reverted"

    @pytest.mark.asyncio
    async def test_disconnected_does_nothing(self, tip, network):
        """Without a wallet the executor stays idle."""
        executor = ActionExecutor(tip, WalletSession(network=network))

        assert executor.can_execute is False
        assert await executor.execute() == ExecutionState.IDLE

    @pytest.mark.asyncio
    async def test_terminal_state_is_sticky(self, tip, session, chain_client):
        """A second execute after confirmation submits nothing."""
        executor = ActionExecutor(tip, session)
        await executor.execute()

        assert executor.can_execute is False
        assert await executor.execute() == ExecutionState.CONFIRMED
        chain_client.transfer_native.assert_called_once()

    @pytest.mark.asyncio
    async def test_failed_state_is_sticky(self, tip, session, chain_client):
        """A failed executor does not retry."""
        chain_client.transfer_native.side_effect = RuntimeError("rejected")
        executor = ActionExecutor(tip, session)
        await executor.execute()

        assert await executor.execute() == ExecutionState.FAILED
        chain_client.transfer_native.assert_called_once()

    @pytest.mark.asyncio
    async def test_execute_while_in_flight_is_ignored(self, tip, session, chain_client):
        """Concurrent execute calls submit a single transaction."""
        release = threading.Event()

        def slow_transfer(to, amount):
            release.wait(timeout=5)
            return TX_HASH

        chain_client.transfer_native.side_effect = slow_transfer
        executor = ActionExecutor(tip, session)

        first = asyncio.create_task(executor.execute())
        await asyncio.sleep(0.05)
        assert executor.state == ExecutionState.AWAITING_WALLET_CONFIRMATION
        assert executor.can_execute is False

        second = await executor.execute()
        release.set()
        final = await first

        assert second == ExecutionState.AWAITING_WALLET_CONFIRMATION
        assert final == ExecutionState.CONFIRMED
        chain_client.transfer_native.assert_called_once()


class TestWalletSession:
    """Tests for WalletSession."""

    def test_connect_and_disconnect(self, network, chain_client):
        """Sessions report the wallet address only while connected."""
        session = WalletSession(network=network)
        assert session.connected is False
        assert session.address is None

        session.connect(chain_client)
        assert session.connected is True
        assert session.address == chain_client.wallet_address

        session.disconnect()
        assert session.connected is False
