from typing import Callable, Iterable, List, NamedTuple, Sequence

from deployment.progress import ProgressStore


class Step(NamedTuple):
    """
    One unit of the deployment plan.

    ``keys`` are the progress keys whose presence marks the step as done;
    ``action`` names the deployer method that performs it.
    """

    title: str
    keys: Sequence[str]
    action: str

    def is_done(self, store: ProgressStore) -> bool:
        return all(store.has(key) for key in self.keys)


def pending_steps(store: ProgressStore, steps: Iterable[Step]) -> List[Step]:
    return [step for step in steps if not step.is_done(store)]


def run_steps(
    store: ProgressStore,
    steps: Sequence[Step],
    resolve: Callable[[str], Callable[[], None]],
) -> List[Step]:
    """
    Executes the steps in order, skipping the ones already recorded in the store.
    Returns the steps that were executed in this run.
    """
    executed = list()
    for number, step in enumerate(steps, start=1):
        if step.is_done(store):
            print(f"Skipping step {number}: {step.title} (already done)")
            continue
        print(f"\n---- Step {number}/{len(steps)}: {step.title}")
        action = resolve(step.action)
        action()
        executed.append(step)
    return executed
