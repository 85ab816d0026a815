from typing import Any, Callable, Iterator, List, NamedTuple, Optional, Sequence

from deployment.utils import format_ether, format_gwei


class Batch(NamedTuple):
    index: int
    start: int
    stop: int

    @property
    def size(self) -> int:
        return self.stop - self.start


def count_batches(total: int, batch_size: int) -> int:
    """Number of full-size batches; a remainder, if any, is one extra batch after these."""
    return total // batch_size


def iter_batches(total: int, batch_size: int, start_batch: int = 0) -> Iterator[Batch]:
    """
    Yields the batches from ``start_batch`` onwards.

    Indices run from ``start_batch`` through ``total // batch_size`` inclusive; the
    terminal index covers the remainder and is not yielded when there is none.
    """
    if batch_size <= 0:
        raise ValueError(f"Batch size must be positive, got {batch_size}")
    if start_batch < 0:
        raise ValueError(f"Start batch must not be negative, got {start_batch}")

    num_batches = count_batches(total, batch_size)
    for index in range(start_batch, num_batches + 1):
        start = index * batch_size
        if index < num_batches:
            yield Batch(index=index, start=start, stop=start + batch_size)
        elif total > start:
            yield Batch(index=index, start=start, stop=total)


def print_batch_stats(batch: Batch, num_batches: int, receipt: Any) -> None:
    gas_used = receipt.gas_used
    gas_price = receipt.gas_price
    print(f"---- Batch {batch.index}/{num_batches} ({batch.size} recipients)")
    print(f"Gas used: {gas_used}")
    print(f"Gas price in gwei: {format_gwei(gas_price)}")
    print(f"Gas cost in ETH: {format_ether(gas_used * gas_price)}")


def run_batches(
    recipients: Sequence[str],
    amounts: Sequence[int],
    batch_size: int,
    start_batch: int,
    submit: Callable[[List[str], List[int]], Any],
    before_batch: Optional[Callable[[Batch], Any]] = None,
    on_confirmed: Optional[Callable[[Batch, Any], None]] = None,
    is_submitted: Optional[Callable[[List[str]], bool]] = None,
) -> List[Batch]:
    """
    Submits recipient batches sequentially, starting at ``start_batch``.

    ``submit`` must return only once the batch is confirmed; ``on_confirmed``
    is called with the receipt before the next batch is considered, which is
    where the caller persists its cursor. A batch for which ``is_submitted``
    returns True is already on chain: it is not submitted again and
    ``on_confirmed`` gets ``None`` as its receipt. Returns the submitted batches.
    """
    if len(recipients) != len(amounts):
        raise ValueError(
            f"Recipients and amounts length mismatch ({len(recipients)} != {len(amounts)})"
        )

    num_batches = count_batches(len(recipients), batch_size)
    submitted = list()
    for batch in iter_batches(len(recipients), batch_size, start_batch):
        batch_recipients = list(recipients[batch.start : batch.stop])
        if is_submitted is not None and is_submitted(batch_recipients):
            print(f"---- Batch {batch.index}/{num_batches} already registered, skipping")
            if on_confirmed is not None:
                on_confirmed(batch, None)
            continue

        if before_batch is not None:
            before_batch(batch)

        receipt = submit(batch_recipients, list(amounts[batch.start : batch.stop]))
        print_batch_stats(batch, num_batches, receipt)

        if on_confirmed is not None:
            on_confirmed(batch, receipt)
        submitted.append(batch)

    return submitted
