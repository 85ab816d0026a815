import sys
from typing import Any, Sequence

from ape.utils import ZERO_ADDRESS


def _abort() -> None:
    print("Aborting deployment!")
    sys.exit(-1)


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_zero_address() -> None:
    answer = input("Zero Address detected for deployment parameter; Continue? Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_deployment(chain_name: str, contract_name: str, args: Sequence[Any]) -> None:
    """Asks the user to confirm the deployment of a single contract on a chain."""
    if args:
        print(f"\nConstructor parameters for {contract_name} on {chain_name}")
        for position, value in enumerate(args):
            print(f"\t[{position}]={value}")
    else:
        print(f"\n(i) No constructor parameters for {contract_name} on {chain_name}")

    answer = input(f"Deploy {contract_name} Y/N? ")
    if answer.lower().strip() == "n":
        _abort()
    if any(value == ZERO_ADDRESS for value in args):
        _confirm_zero_address()


def _confirm_resume(completed_keys: Sequence[str]) -> None:
    """Asks the user to confirm resuming a partially completed deployment."""
    print(f"\n(i) Resuming deployment with {len(completed_keys)} recorded artifact(s):")
    for key in completed_keys:
        print(f"\t{key}")
    _continue()
