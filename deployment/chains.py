from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from ape import Contract, accounts, chain, networks
from ape.api import AccountAPI, ReceiptAPI
from ape.contracts import ContractInstance
from ape.contracts.base import ContractTransactionHandler
from ape.exceptions import ApeException
from eth_utils import to_checksum_address

from deployment.confirm import _confirm_deployment, _continue
from deployment.errors import ChainCallError
from deployment.networks import validate_chain_id
from deployment.utils import format_gwei, get_contract_container


def get_account(alias: Optional[str], local_deployment: bool, index: int = 0) -> AccountAPI:
    """Loads a deployer account by alias, or a test account for local deployments."""
    if alias is not None:
        return accounts.load(alias)
    if not local_deployment:
        raise ValueError("Must specify account alias when deploying to production networks")
    return accounts.test_accounts[index]


def _format_args(method: ContractTransactionHandler, args: tuple) -> List[str]:
    abis = [abi for abi in getattr(method, "abis", []) if len(abi.inputs) == len(args)]
    if not abis:
        return [f"{value}" for value in args]
    return [f"{abi_input.name}={value}" for abi_input, value in zip(abis[0].inputs, args)]


class ChainDeployer:
    """
    Represents an ape account on one of the deployment chains plus
    annotated, optionally confirmed, deployments and transactions.
    """

    def __init__(
        self,
        name: str,
        network_choice: str,
        account: AccountAPI,
        autosign: bool = False,
    ):
        self.name = name
        self.network_choice = network_choice
        self._account = account
        self._autosign = autosign
        if autosign:
            print(
                f"WARNING: Autosign is enabled on {name}. "
                "Transactions will be signed automatically."
            )
            if hasattr(account, "set_autosign"):
                account.set_autosign(True)

    @property
    def account(self) -> AccountAPI:
        return self._account

    @property
    def address(self) -> str:
        return self._account.address

    @contextmanager
    def connected(self) -> Iterator[Any]:
        """Activates this chain's provider for the duration of the block."""
        with networks.parse_network_choice(self.network_choice) as provider:
            yield provider

    @property
    def web3(self) -> Any:
        return networks.provider.web3

    def chain_id(self) -> int:
        return networks.provider.chain_id

    def gas_price(self) -> int:
        return networks.provider.gas_price

    def block_number(self) -> int:
        return chain.blocks.height

    def get_storage_at(self, address: str, slot: int) -> bytes:
        return bytes(self.web3.eth.get_storage_at(to_checksum_address(address), slot))

    def validate(self, local_deployment: bool) -> None:
        with self.connected():
            validate_chain_id(self.name, self.chain_id(), local_deployment)

    def at(self, contract_name: str, address: str) -> ContractInstance:
        return get_contract_container(contract_name).at(address)

    def contract(self, address: str, abi: list) -> ContractInstance:
        return Contract(address, abi=abi)

    def deploy(self, contract_name: str, *args, **kwargs) -> ContractInstance:
        container = get_contract_container(contract_name)
        if not self._autosign:
            _confirm_deployment(self.name, contract_name, args)
        print(f"\nDeploying {contract_name} on {self.name}...")
        try:
            instance = self._account.deploy(container, *args, publish=False, **kwargs)
        except ApeException as e:
            raise ChainCallError(f"Deployment of {contract_name} on {self.name} failed: {e}") from e
        print(f"(i) {contract_name} deployed to {instance.address} on {self.name}")
        return instance

    def transact(self, method: ContractTransactionHandler, *args, **kwargs) -> ReceiptAPI:
        base_message = (
            f"\nTransacting {method.contract.contract_type.name}"
            f"[{method.contract.address[:10]}].{method.abis[0].name} on {self.name}"
        )
        formatted_args = _format_args(method, args)
        if formatted_args:
            pretty_args = "\n\t".join(formatted_args)
            message = f"{base_message} with arguments:\n\t{pretty_args}"
        else:
            message = f"{base_message} with no arguments"
        print(message)
        if not self._autosign:
            _continue()

        try:
            receipt = method(*args, sender=self._account, **kwargs)
        except ApeException as e:
            raise ChainCallError(f"Transaction on {self.name} failed: {e}") from e
        if receipt.failed:
            raise ChainCallError(f"Transaction {receipt.txn_hash} on {self.name} reverted")
        return receipt

    def print_info(self) -> None:
        with self.connected():
            print(
                f"{self.name} Account: {self.address}",
                f"{self.name} Network: {networks.provider.network.name}",
                f"{self.name} Chain ID: {self.chain_id()}",
                f"{self.name} Gas Price: {format_gwei(self.gas_price())} gwei",
                sep="\n",
            )
