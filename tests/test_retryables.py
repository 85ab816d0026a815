import pytest
import rlp
from eth_abi import encode
from eth_utils import keccak, to_canonical_address
from hexbytes import HexBytes
from web3.exceptions import ContractLogicError, TransactionNotFound

from deployment.abis import (
    INBOX_MESSAGE_DELIVERED_SIGNATURE,
    MESSAGE_DELIVERED_SIGNATURE,
    REDEEM_SCHEDULED_SIGNATURE,
    REGISTER_TOKEN_FROM_L1_SIGNATURE,
)
from deployment.constants import ARB_RETRYABLE_TX_ADDRESS
from deployment.errors import CrossChainTimeoutError, DecodeError
from deployment.retryables import (
    RetryableMessage,
    RetryableStatus,
    RetryableTracker,
    calldata_length,
    event_topic,
    messages_from_receipt,
    parse_submit_retryable_data,
)
from tests.conftest import FakeReceipt

NOVA_CHAIN_ID = 42170
SENDER = "0x" + "51" * 20
DESTINATION = "0x" + "d1" * 20
REFUND = "0x" + "52" * 20
INBOX = "0x" + "1b" * 20
CALL_DATA = bytes.fromhex("deadbeef") + b"\x01" * 40


def word(value):
    if isinstance(value, str):
        value = int(value, 16)
    return value.to_bytes(32, "big")


def submit_retryable_payload(call_data=CALL_DATA, destination=DESTINATION):
    return b"".join(
        [
            word(destination),
            word(0),  # l2 call value
            word(5_000_000),  # l1 value
            word(1_000),  # max submission fee
            word(REFUND),  # excess fee refund address
            word(REFUND),  # call value refund address
            word(1_000_000),  # gas limit
            word(200_000_000),  # max fee per gas
            word(len(call_data)),
            call_data,
        ]
    )


def message_delivered_log(message_number, kind=9, base_fee=30_000_000_000):
    return {
        "address": "0x" + "b0" * 20,
        "topics": [
            event_topic(MESSAGE_DELIVERED_SIGNATURE),
            HexBytes(word(message_number)),
            HexBytes(b"\x00" * 32),
        ],
        "data": encode(
            ["address", "uint8", "address", "bytes32", "uint256", "uint64"],
            [INBOX, kind, SENDER, b"\x00" * 32, base_fee, 1_700_000_000],
        ),
    }


def inbox_message_log(message_number, payload):
    return {
        "address": INBOX,
        "topics": [event_topic(INBOX_MESSAGE_DELIVERED_SIGNATURE), HexBytes(word(message_number))],
        "data": encode(["bytes"], [payload]),
    }


def make_message(**overrides):
    fields = dict(
        chain_id=NOVA_CHAIN_ID,
        sender=SENDER,
        message_number=7,
        l1_base_fee=30_000_000_000,
        **parse_submit_retryable_data(submit_retryable_payload()),
    )
    fields.update(overrides)
    return RetryableMessage(**fields)


def test_parse_submit_retryable_data():
    fields = parse_submit_retryable_data(submit_retryable_payload())
    assert DESTINATION == fields["destination"].lower()
    assert 0 == fields["l2_call_value"]
    assert 5_000_000 == fields["l1_value"]
    assert 1_000 == fields["max_submission_fee"]
    assert REFUND == fields["excess_fee_refund_address"].lower()
    assert REFUND == fields["call_value_refund_address"].lower()
    assert 1_000_000 == fields["gas_limit"]
    assert 200_000_000 == fields["max_fee_per_gas"]
    assert CALL_DATA == fields["data"]


def test_parse_short_payloads():
    with pytest.raises(DecodeError):
        parse_submit_retryable_data(b"\x00" * 100)
    with pytest.raises(DecodeError):
        parse_submit_retryable_data(submit_retryable_payload()[:-1])


def test_retryable_ticket_id_encoding():
    message = make_message()
    expected = keccak(
        b"\x69"
        + rlp.encode(
            [
                NOVA_CHAIN_ID,
                word(7),
                to_canonical_address(SENDER),
                30_000_000_000,
                5_000_000,
                200_000_000,
                1_000_000,
                to_canonical_address(DESTINATION),
                0,
                to_canonical_address(REFUND),
                1_000,
                to_canonical_address(REFUND),
                CALL_DATA,
            ]
        )
    )
    assert HexBytes(expected) == message.retryable_creation_id
    assert message.retryable_creation_id != make_message(message_number=8).retryable_creation_id


def test_zero_destination_is_encoded_empty():
    message = make_message(destination="0x" + "00" * 20)
    fields = [
        NOVA_CHAIN_ID,
        word(7),
        to_canonical_address(SENDER),
        30_000_000_000,
        5_000_000,
        200_000_000,
        1_000_000,
        b"",
        0,
        to_canonical_address(REFUND),
        1_000,
        to_canonical_address(REFUND),
        CALL_DATA,
    ]
    assert HexBytes(keccak(b"\x69" + rlp.encode(fields))) == message.retryable_creation_id


def test_calldata_length():
    args = [["0x" + "01" * 20], ["0x" + "02" * 20]]
    # selector + two offsets + two (length, element) pairs
    assert 4 + 6 * 32 == calldata_length(
        REGISTER_TOKEN_FROM_L1_SIGNATURE, ["address[]", "address[]"], args
    )


def test_messages_from_receipt():
    payload_1 = submit_retryable_payload()
    payload_2 = submit_retryable_payload(call_data=b"\x02" * 10)
    receipt = FakeReceipt(
        logs=[
            {"address": "0x" + "cc" * 20, "topics": [HexBytes(b"\x01" * 32)], "data": b""},
            message_delivered_log(10),
            inbox_message_log(10, payload_1),
            message_delivered_log(11),
            inbox_message_log(11, payload_2),
            # not a retryable submission
            message_delivered_log(12, kind=3),
        ]
    )

    messages = messages_from_receipt(receipt, l2_chain_id=NOVA_CHAIN_ID)
    assert [10, 11] == [message.message_number for message in messages]
    assert [CALL_DATA, b"\x02" * 10] == [message.data for message in messages]
    assert SENDER == messages[0].sender.lower()
    assert NOVA_CHAIN_ID == messages[0].chain_id
    assert 30_000_000_000 == messages[0].l1_base_fee


def test_messages_from_receipt_without_inbox_data():
    receipt = FakeReceipt(logs=[message_delivered_log(10)])
    with pytest.raises(DecodeError):
        messages_from_receipt(receipt, l2_chain_id=NOVA_CHAIN_ID)


class FakeEth:
    def __init__(self, receipts, alive):
        self.receipts = {HexBytes(key): value for key, value in receipts.items()}
        self.alive = alive

    def get_transaction_receipt(self, txn_hash):
        try:
            return self.receipts[HexBytes(txn_hash)]
        except KeyError:
            raise TransactionNotFound(f"Transaction {HexBytes(txn_hash).hex()} not found")

    def contract(self, address, abi):
        assert ARB_RETRYABLE_TX_ADDRESS.lower() == address.lower()
        eth = self

        class Call:
            def __init__(self, ticket_id):
                self.ticket_id = ticket_id

            def call(self):
                if not eth.alive:
                    raise ContractLogicError("execution reverted: NoTicketWithID")
                return 1_800_000_000

        class Functions:
            getTimeout = Call

        class ArbRetryableTx:
            functions = Functions

        return ArbRetryableTx()


class FakeWeb3:
    def __init__(self, receipts=None, alive=True):
        self.eth = FakeEth(receipts or {}, alive)


def redeem_scheduled_log(ticket_id, retry_txn_hash):
    return {
        "address": ARB_RETRYABLE_TX_ADDRESS,
        "topics": [
            event_topic(REDEEM_SCHEDULED_SIGNATURE),
            HexBytes(ticket_id),
            HexBytes(retry_txn_hash),
            HexBytes(word(0)),
        ],
        "data": b"",
    }


RETRY_TXN_HASH = b"\x77" * 32


@pytest.mark.parametrize(
    "creation_status,retry_status,alive,expected",
    [
        (0, None, True, RetryableStatus.CREATION_FAILED),
        (1, 1, True, RetryableStatus.REDEEMED),
        (1, 0, True, RetryableStatus.FUNDS_DEPOSITED_ON_L2),
        (1, None, True, RetryableStatus.FUNDS_DEPOSITED_ON_L2),
        (1, 0, False, RetryableStatus.EXPIRED),
    ],
)
def test_status(creation_status, retry_status, alive, expected):
    message = make_message()
    ticket_id = message.retryable_creation_id
    receipts = {
        ticket_id: {
            "status": creation_status,
            "logs": [redeem_scheduled_log(ticket_id, RETRY_TXN_HASH)],
        }
    }
    if retry_status is not None:
        receipts[RETRY_TXN_HASH] = {"status": retry_status, "logs": []}

    tracker = RetryableTracker(get_web3=lambda: FakeWeb3(receipts, alive=alive))
    assert expected == tracker.status(message)


def test_status_not_yet_created():
    tracker = RetryableTracker(get_web3=lambda: FakeWeb3())
    assert RetryableStatus.NOT_YET_CREATED == tracker.status(make_message())


def test_wait_for_status(clock):
    statuses = [
        RetryableStatus.NOT_YET_CREATED,
        RetryableStatus.NOT_YET_CREATED,
        RetryableStatus.REDEEMED,
    ]
    tracker = RetryableTracker(get_web3=lambda: None, sleep=clock.sleep, clock=clock)
    tracker.status = lambda message: statuses.pop(0)

    assert RetryableStatus.REDEEMED == tracker.wait_for_status(make_message(), poll_interval=15)
    assert [15, 15] == clock.sleeps


def test_wait_for_status_timeout(clock):
    tracker = RetryableTracker(get_web3=lambda: None, sleep=clock.sleep, clock=clock)
    tracker.status = lambda message: RetryableStatus.NOT_YET_CREATED

    with pytest.raises(CrossChainTimeoutError) as exc_info:
        tracker.wait_for_status(make_message(), poll_interval=10, timeout=30)
    assert RetryableStatus.NOT_YET_CREATED == exc_info.value.status
    assert [10, 10, 10] == clock.sleeps


def test_require_redeemed(clock):
    tracker = RetryableTracker(get_web3=lambda: None, sleep=clock.sleep, clock=clock)
    tracker.status = lambda message: RetryableStatus.REDEEMED
    tracker.require_redeemed(make_message(), "Register token", poll_interval=10)

    tracker.status = lambda message: RetryableStatus.EXPIRED
    with pytest.raises(CrossChainTimeoutError, match="Set gateway .* Status: EXPIRED") as exc_info:
        tracker.require_redeemed(make_message(), "Set gateway", poll_interval=10)
    assert RetryableStatus.EXPIRED == exc_info.value.status
