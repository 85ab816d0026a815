import json
from decimal import Decimal
from pathlib import Path
from typing import Union

from ape import project
from ape.contracts import ContractContainer
from web3 import Web3

from deployment.constants import GWEI


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    with open(filepath, "r") as file:
        return json.load(file)


def to_token_units(amount: Union[int, str, Decimal]) -> int:
    """Converts a whole-token amount (18 decimals) to base units."""
    return Web3.to_wei(Decimal(str(amount)), "ether")


def format_gwei(wei: int) -> str:
    return f"{Decimal(wei) / GWEI:f}"


def format_ether(wei: int) -> str:
    return f"{Web3.from_wei(wei, 'ether'):f}"


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
        except AttributeError:
            continue
    raise ValueError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container
