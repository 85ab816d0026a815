import time
from typing import Callable, Optional

from deployment.batches import Batch
from deployment.errors import GasPriceTimeoutError
from deployment.utils import format_gwei

Sampler = Callable[[], int]


def await_acceptable_price(
    sampler: Sampler,
    ceiling: int,
    base_price: int,
    poll_interval: float,
    sleep: Callable[[float], None] = time.sleep,
    timeout: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """
    Blocks while the sampled gas price is above ``ceiling``.

    Once the price has been seen above the ceiling, submission resumes only
    when a sample is exactly ``base_price``. Returns the last observed price.
    """
    gas_price = sampler()
    if gas_price <= ceiling:
        return gas_price

    deadline = None if timeout is None else clock() + timeout
    while True:
        print(f"Gas price too high: {format_gwei(gas_price)} gwei")
        if deadline is not None and clock() + poll_interval > deadline:
            raise GasPriceTimeoutError(
                f"Gas price did not return to {format_gwei(base_price)} gwei "
                f"within {timeout} seconds (last seen {format_gwei(gas_price)} gwei)"
            )
        print(f"Sleeping {poll_interval} sec")
        sleep(poll_interval)

        gas_price = sampler()
        if gas_price == base_price:
            return gas_price


class GasGuard:
    """Throttles batch submission on the gas price of a chain."""

    def __init__(
        self,
        sampler: Sampler,
        ceiling: int,
        base_price: int,
        poll_interval: float,
        smoothing_delay: float = 1.0,
        timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.sampler = sampler
        self.ceiling = ceiling
        self.base_price = base_price
        self.poll_interval = poll_interval
        self.smoothing_delay = smoothing_delay
        self.timeout = timeout
        self.sleep = sleep

    def wait(self, _batch: Optional[Batch] = None) -> int:
        """
        Waits for an acceptable gas price, then applies the smoothing delay.

        Takes the upcoming batch so it can be passed to ``run_batches`` as its
        ``before_batch`` hook; the price check does not depend on it.
        """
        gas_price = await_acceptable_price(
            sampler=self.sampler,
            ceiling=self.ceiling,
            base_price=self.base_price,
            poll_interval=self.poll_interval,
            sleep=self.sleep,
            timeout=self.timeout,
        )
        # keep TX fees from going up
        if self.smoothing_delay:
            self.sleep(self.smoothing_delay)
        return gas_price
