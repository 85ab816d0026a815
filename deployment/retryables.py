import time
from enum import IntEnum
from typing import Any, Callable, Dict, List, NamedTuple, Optional

import rlp
from eth_abi import decode, encode
from eth_utils import (
    function_signature_to_4byte_selector,
    keccak,
    to_canonical_address,
    to_checksum_address,
)
from hexbytes import HexBytes
from web3.exceptions import ContractLogicError, TransactionNotFound

from deployment.abis import (
    ARB_RETRYABLE_TX_ABI,
    INBOX_MESSAGE_DELIVERED_SIGNATURE,
    MESSAGE_DELIVERED_DATA_TYPES,
    MESSAGE_DELIVERED_SIGNATURE,
    REDEEM_SCHEDULED_SIGNATURE,
)
from deployment.constants import (
    ARB_RETRYABLE_TX_ADDRESS,
    ARBITRUM_SUBMIT_RETRY_TX_TYPE,
    L1_MESSAGE_TYPE_SUBMIT_RETRYABLE_TX,
)
from deployment.errors import CrossChainTimeoutError, DecodeError

ZERO_ADDRESS_BYTES = b"\x00" * 20
WORD_SIZE = 32


class RetryableStatus(IntEnum):
    NOT_YET_CREATED = 1
    CREATION_FAILED = 2
    FUNDS_DEPOSITED_ON_L2 = 3
    REDEEMED = 4
    EXPIRED = 5


class RetryableMessage(NamedTuple):
    """An L1 -> L2 retryable ticket submitted through an Arbitrum inbox."""

    chain_id: int
    sender: str
    message_number: int
    l1_base_fee: int
    destination: str
    l2_call_value: int
    l1_value: int
    max_submission_fee: int
    excess_fee_refund_address: str
    call_value_refund_address: str
    gas_limit: int
    max_fee_per_gas: int
    data: bytes

    @property
    def retryable_creation_id(self) -> HexBytes:
        return retryable_ticket_id(self)


def event_topic(signature: str) -> HexBytes:
    return HexBytes(keccak(text=signature))


def calldata_length(signature: str, types: List[str], args: List[Any]) -> int:
    """Length in bytes of the calldata for a function call."""
    return len(function_signature_to_4byte_selector(signature)) + len(encode(types, args))


def _word(data: bytes, index: int) -> int:
    return int.from_bytes(data[index * WORD_SIZE : (index + 1) * WORD_SIZE], "big")


def _address_from_word(value: int) -> str:
    return to_checksum_address(value.to_bytes(20, "big"))


def _topic_int(topic: Any) -> int:
    return int.from_bytes(HexBytes(topic), "big")


def _address_bytes(address: str) -> bytes:
    canonical = to_canonical_address(address)
    return b"" if canonical == ZERO_ADDRESS_BYTES else canonical


def retryable_ticket_id(message: RetryableMessage) -> HexBytes:
    """Hash of the ArbitrumSubmitRetryableTx created on L2 for this message."""
    fields = [
        message.chain_id,
        message.message_number.to_bytes(32, "big"),
        to_canonical_address(message.sender),
        message.l1_base_fee,
        message.l1_value,
        message.max_fee_per_gas,
        message.gas_limit,
        _address_bytes(message.destination),
        message.l2_call_value,
        to_canonical_address(message.call_value_refund_address),
        message.max_submission_fee,
        to_canonical_address(message.excess_fee_refund_address),
        bytes(message.data),
    ]
    encoded = bytes([ARBITRUM_SUBMIT_RETRY_TX_TYPE]) + rlp.encode(fields)
    return HexBytes(keccak(encoded))


def parse_submit_retryable_data(data: bytes) -> Dict[str, Any]:
    """Parses the packed payload of an inbox ``submitRetryableTx`` message."""
    data = bytes(data)
    if len(data) < 9 * WORD_SIZE:
        raise DecodeError("Retryable message payload is too short")
    data_length = _word(data, 8)
    call_data = data[9 * WORD_SIZE : 9 * WORD_SIZE + data_length]
    if len(call_data) != data_length:
        raise DecodeError("Retryable message payload is truncated")
    return dict(
        destination=_address_from_word(_word(data, 0)),
        l2_call_value=_word(data, 1),
        l1_value=_word(data, 2),
        max_submission_fee=_word(data, 3),
        excess_fee_refund_address=_address_from_word(_word(data, 4)),
        call_value_refund_address=_address_from_word(_word(data, 5)),
        gas_limit=_word(data, 6),
        max_fee_per_gas=_word(data, 7),
        data=call_data,
    )


def _raw_logs(receipt: Any) -> List[Dict[str, Any]]:
    logs = receipt.logs if hasattr(receipt, "logs") else receipt["logs"]
    return list(logs)


def messages_from_receipt(receipt: Any, l2_chain_id: int) -> List[RetryableMessage]:
    """
    Pairs the bridge ``MessageDelivered`` and inbox ``InboxMessageDelivered``
    logs of an L1 transaction into retryable messages, in emission order.
    """
    bridge_topic = event_topic(MESSAGE_DELIVERED_SIGNATURE)
    inbox_topic = event_topic(INBOX_MESSAGE_DELIVERED_SIGNATURE)

    bridge_events = dict()
    inbox_events = dict()
    for log in _raw_logs(receipt):
        topics = [HexBytes(topic) for topic in log["topics"]]
        if not topics:
            continue
        if topics[0] == bridge_topic:
            inbox, kind, sender, _, base_fee, _ = decode(
                MESSAGE_DELIVERED_DATA_TYPES, HexBytes(log["data"])
            )
            bridge_events[_topic_int(topics[1])] = dict(kind=kind, sender=sender, base_fee=base_fee)
        elif topics[0] == inbox_topic:
            (data,) = decode(["bytes"], HexBytes(log["data"]))
            inbox_events[_topic_int(topics[1])] = data

    messages = list()
    for message_number, bridge_event in bridge_events.items():
        if bridge_event["kind"] != L1_MESSAGE_TYPE_SUBMIT_RETRYABLE_TX:
            continue
        if message_number not in inbox_events:
            raise DecodeError(f"No inbox message data for message #{message_number}")
        fields = parse_submit_retryable_data(inbox_events[message_number])
        messages.append(
            RetryableMessage(
                chain_id=l2_chain_id,
                sender=to_checksum_address(bridge_event["sender"]),
                message_number=message_number,
                l1_base_fee=bridge_event["base_fee"],
                **fields,
            )
        )
    return messages


class RetryableTracker:
    """Follows retryable tickets on the destination chain."""

    def __init__(
        self,
        get_web3: Callable[[], Any],
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.get_web3 = get_web3
        self.sleep = sleep
        self.clock = clock

    def _get_receipt(self, w3: Any, txn_hash: HexBytes) -> Optional[Any]:
        try:
            return w3.eth.get_transaction_receipt(txn_hash)
        except TransactionNotFound:
            return None

    def _auto_redeem_succeeded(self, w3: Any, creation_receipt: Any) -> bool:
        redeem_topic = event_topic(REDEEM_SCHEDULED_SIGNATURE)
        precompile = ARB_RETRYABLE_TX_ADDRESS.lower()
        for log in creation_receipt["logs"]:
            topics = [HexBytes(topic) for topic in log["topics"]]
            if str(log["address"]).lower() != precompile or not topics:
                continue
            if topics[0] != redeem_topic:
                continue
            redeem_receipt = self._get_receipt(w3, topics[2])
            if redeem_receipt is not None and redeem_receipt["status"] == 1:
                return True
        return False

    def _ticket_alive(self, w3: Any, ticket_id: HexBytes) -> bool:
        arb_retryable_tx = w3.eth.contract(
            address=to_checksum_address(ARB_RETRYABLE_TX_ADDRESS), abi=ARB_RETRYABLE_TX_ABI
        )
        try:
            arb_retryable_tx.functions.getTimeout(bytes(ticket_id)).call()
        except ContractLogicError:
            return False
        return True

    def status(self, message: RetryableMessage) -> RetryableStatus:
        w3 = self.get_web3()
        ticket_id = message.retryable_creation_id
        creation_receipt = self._get_receipt(w3, ticket_id)
        if creation_receipt is None:
            return RetryableStatus.NOT_YET_CREATED
        if creation_receipt["status"] != 1:
            return RetryableStatus.CREATION_FAILED
        if self._auto_redeem_succeeded(w3, creation_receipt):
            return RetryableStatus.REDEEMED
        if self._ticket_alive(w3, ticket_id):
            return RetryableStatus.FUNDS_DEPOSITED_ON_L2
        return RetryableStatus.EXPIRED

    def wait_for_status(
        self,
        message: RetryableMessage,
        poll_interval: float,
        timeout: Optional[float] = None,
    ) -> RetryableStatus:
        """Polls until the ticket has been created on L2 and returns its status."""
        deadline = None if timeout is None else self.clock() + timeout
        while True:
            status = self.status(message)
            if status != RetryableStatus.NOT_YET_CREATED:
                return status
            if deadline is not None and self.clock() >= deadline:
                raise CrossChainTimeoutError(
                    f"Retryable #{message.message_number} not created on L2 "
                    f"after {timeout} seconds. Status: {status.name}",
                    status=status,
                )
            print(
                f"Retryable #{message.message_number} not yet created on L2, "
                f"sleeping {poll_interval} sec"
            )
            self.sleep(poll_interval)

    def require_redeemed(self, message: RetryableMessage, description: str, **kwargs) -> None:
        status = self.wait_for_status(message, **kwargs)
        if status != RetryableStatus.REDEEMED:
            raise CrossChainTimeoutError(
                f"{description} L1 to L2 message not redeemed. Status: {status.name}",
                status=status,
            )
        print(f"(i) {description} L1 to L2 message redeemed")
