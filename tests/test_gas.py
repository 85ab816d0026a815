import pytest

from deployment.batches import run_batches
from deployment.constants import GWEI
from deployment.errors import GasPriceTimeoutError
from deployment.gas import GasGuard, await_acceptable_price
from tests.conftest import FakeReceipt

CEILING = 120_000_000  # 0.12 gwei
BASE = 100_000_000  # 0.1 gwei


def sampler_of(prices):
    prices = list(prices)
    samples = list()

    def sample():
        price = prices.pop(0)
        samples.append(price)
        return price

    sample.samples = samples
    return sample


def test_acceptable_price_returns_immediately(clock):
    sampler = sampler_of([BASE + 1])
    price = await_acceptable_price(sampler, CEILING, BASE, poll_interval=30, sleep=clock.sleep)
    assert BASE + 1 == price
    assert [] == clock.sleeps


def test_price_at_ceiling_is_acceptable(clock):
    sampler = sampler_of([CEILING])
    assert CEILING == await_acceptable_price(
        sampler, CEILING, BASE, poll_interval=30, sleep=clock.sleep
    )
    assert [] == clock.sleeps


def test_waits_for_exact_base_price(clock, capsys):
    # below the ceiling but not equal to the base price does not resume
    sampler = sampler_of([2 * GWEI, 110_000_000, 90_000_000, BASE, 1])
    price = await_acceptable_price(sampler, CEILING, BASE, poll_interval=30, sleep=clock.sleep)

    assert BASE == price
    assert [30, 30, 30] == clock.sleeps
    assert [2 * GWEI, 110_000_000, 90_000_000, BASE] == sampler.samples

    output = capsys.readouterr().out
    assert "Gas price too high: 2 gwei" in output
    assert "Gas price too high: 0.11 gwei" in output
    assert "Sleeping 30 sec" in output


def test_timeout(clock):
    sampler = sampler_of([CEILING + 1] * 10)
    with pytest.raises(GasPriceTimeoutError):
        await_acceptable_price(
            sampler,
            CEILING,
            BASE,
            poll_interval=30,
            sleep=clock.sleep,
            timeout=90,
            clock=clock,
        )
    assert [30, 30, 30] == clock.sleeps


def test_timeout_not_reached(clock):
    sampler = sampler_of([CEILING + 1, CEILING + 1, BASE])
    price = await_acceptable_price(
        sampler, CEILING, BASE, poll_interval=30, sleep=clock.sleep, timeout=90, clock=clock
    )
    assert BASE == price
    assert [30, 30] == clock.sleeps


def test_guard_applies_smoothing_delay_every_time(clock):
    sampler = sampler_of([BASE, CEILING + 1, BASE])
    guard = GasGuard(
        sampler=sampler,
        ceiling=CEILING,
        base_price=BASE,
        poll_interval=30,
        smoothing_delay=1.0,
        sleep=clock.sleep,
    )
    assert BASE == guard.wait()
    assert [1.0] == clock.sleeps

    assert BASE == guard.wait()
    assert [1.0, 30, 1.0] == clock.sleeps


def test_guard_throttles_batch_submission(clock):
    sampler = sampler_of([CEILING + 1, BASE, BASE])
    guard = GasGuard(
        sampler=sampler,
        ceiling=CEILING,
        base_price=BASE,
        poll_interval=30,
        smoothing_delay=1.0,
        sleep=clock.sleep,
    )
    submitted = list()

    def submit(accounts, amounts):
        submitted.append((list(clock.sleeps), accounts))
        return FakeReceipt()

    run_batches(
        recipients=["a", "b", "c"],
        amounts=[1, 2, 3],
        batch_size=2,
        start_batch=0,
        submit=submit,
        before_batch=guard.wait,
    )
    assert [([30, 1.0], ["a", "b"]), ([30, 1.0, 1.0], ["c"])] == submitted
