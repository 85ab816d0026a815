from typing import Any, Iterator, List, NamedTuple, Type, TypeVar

from eth_utils import is_address, to_checksum_address

from deployment.errors import DecodeError

Record = TypeVar("Record", bound=tuple)


class L2Deployment(NamedTuple):
    """Addresses announced by the L2 governance factory's ``Deployed`` event."""

    coreGoverner: str
    coreTimelock: str
    executor: str
    proxyAdmin: str
    token: str
    treasuryGoverner: str
    arbTreasury: str
    arbitrumDAOConstitution: str


class L1Deployment(NamedTuple):
    """Addresses announced by the L1 governance factory's ``Deployed`` event."""

    executor: str
    proxyAdmin: str
    timelock: str


def _event_name(event: Any) -> str:
    return getattr(event, "name", None) or str(event)


def record_from_log(log: Any, record_type: Type[Record]) -> Record:
    arguments = log.event_arguments
    values = dict()
    for field in record_type._fields:
        if field not in arguments:
            raise DecodeError(f"'{field}' missing from {log.event_name} event arguments")
        value = arguments[field]
        values[field] = to_checksum_address(value) if is_address(value) else value
    return record_type(**values)


def decode_event(receipt: Any, event: Any, record_type: Type[Record]) -> Record:
    """
    Extracts a typed record from the first ``event`` log of a confirmed receipt.
    Raises DecodeError if the receipt does not contain the event.
    """
    logs = list(receipt.decode_logs(event))
    if not logs:
        raise DecodeError(
            f"No {_event_name(event)} event found in transaction {receipt.txn_hash}"
        )
    return record_from_log(logs[0], record_type)


def iter_block_ranges(start_block: int, stop_block: int, block_range: int) -> Iterator[tuple]:
    """Splits [start_block, stop_block] into inclusive chunks of at most block_range blocks."""
    if block_range <= 0:
        raise ValueError(f"Block range must be positive, got {block_range}")
    chunk_start = start_block
    while chunk_start <= stop_block:
        chunk_stop = min(chunk_start + block_range - 1, stop_block)
        yield chunk_start, chunk_stop
        chunk_start = chunk_stop + 1


def find_event_logs(event: Any, start_block: int, stop_block: int, block_range: int) -> List[Any]:
    """Collects ``event`` logs between two blocks (inclusive), one eth_getLogs chunk at a time."""
    logs = list()
    seen = set()
    for chunk_start, chunk_stop in iter_block_ranges(start_block, stop_block, block_range):
        for log in event.range(chunk_start, chunk_stop + 1):
            log_id = (str(log.transaction_hash), log.log_index)
            if log_id in seen:
                continue
            seen.add(log_id)
            logs.append(log)
    return logs
