import json
from contextlib import contextmanager
from itertools import count

import pytest
from eth_utils import to_checksum_address

from deployment.config import DeployerConfig
from deployment.constants import GWEI
from deployment.progress import ProgressStore

# Common constants
DEPLOYER = "0x" + "de" * 20
FOUNDATION = "0x" + "12" * 20
TEAM = "0x" + "13" * 20
DAO_ESCROW = "0x" + "14" * 20
INVESTORS_ESCROW = "0x" + "15" * 20

BASE_L2_GAS_PRICE = GWEI // 10  # 0.1 gwei

DEPLOYER_CONFIG = {
    "L1_TIMELOCK_DELAY": 259200,
    "L1_9_OF_12_SECURITY_COUNCIL": "0x" + "11" * 20,
    "L1_ARB_INBOX": "0x" + "22" * 20,
    "L1_ARB_GATEWAY": "0x" + "33" * 20,
    "L1_NOVA_ROUTER": "0x" + "44" * 20,
    "L1_NOVA_GATEWAY": "0x" + "55" * 20,
    "L2_TIMELOCK_DELAY": 259200,
    "L2_9_OF_12_SECURITY_COUNCIL": "0x" + "66" * 20,
    "L2_7_OF_12_SECURITY_COUNCIL": "0x" + "77" * 20,
    "L2_CORE_QUORUM_THRESHOLD": 5,
    "L2_TREASURY_QUORUM_THRESHOLD": 3,
    "L2_PROPOSAL_THRESHOLD": "5000000",
    "L2_VOTING_DELAY": 21600,
    "L2_VOTING_PERIOD": 100800,
    "L2_MIN_PERIOD_AFTER_QUORUM": 14400,
    "L2_TREASURY_TIMELOCK_DELAY": 259200,
    "ARBITRUM_DAO_CONSTITUTION_HASH": "0x" + "ab" * 32,
    "NOVA_9_OF_12_SECURITY_COUNCIL": "0x" + "88" * 20,
    "NOVA_TOKEN_NAME": "Arbitrum",
    "NOVA_TOKEN_SYMBOL": "ARB",
    "NOVA_TOKEN_DECIMALS": 18,
    "NOVA_TOKEN_GATEWAY": "0x" + "99" * 20,
    "L2_TOKEN_INITIAL_SUPPLY": "10000000000",
    "L2_NUM_OF_TOKENS_FOR_TREASURY": "3500000000",
    "L2_ADDRESS_FOR_FOUNDATION": FOUNDATION,
    "L2_NUM_OF_TOKENS_FOR_FOUNDATION": "1000000000",
    "L2_ADDRESS_FOR_TEAM": TEAM,
    "L2_NUM_OF_TOKENS_FOR_TEAM": "2000000000",
    "L2_ADDRESS_FOR_DAO_RECIPIENTS": DAO_ESCROW,
    "L2_NUM_OF_TOKENS_FOR_DAO_RECIPIENTS": "100000000",
    "L2_ADDRESS_FOR_INVESTORS": INVESTORS_ESCROW,
    "L2_NUM_OF_TOKENS_FOR_INVESTORS": "1000000000",
    "L2_NUM_OF_TOKENS_FOR_CLAIMING": "1000000000",
    "L2_CLAIM_PERIOD_START": 16890400,
    "L2_CLAIM_PERIOD_END": 17890400,
    "RECIPIENTS_BATCH_SIZE": 2,
    "BASE_L2_GAS_PRICE_LIMIT": BASE_L2_GAS_PRICE,
    "BASE_L1_GAS_PRICE_LIMIT": 30 * GWEI,
    "GET_LOGS_BLOCK_RANGE": 1000,
    "SLEEP_TIME_BETWEEN_RECIPIENT_BATCHES_IN_MS": 1000,
}


def address(n: int) -> str:
    return to_checksum_address(n.to_bytes(20, "big"))


# Fakes
class FakeReceipt:
    def __init__(self, block_number=1, gas_used=21000, gas_price=BASE_L2_GAS_PRICE, logs=None):
        self.block_number = block_number
        self.gas_used = gas_used
        self.gas_price = gas_price
        self.logs = logs or []
        self.txn_hash = "0x" + "00" * 32
        self.failed = False


# view results for contracts with nothing preset
DEFAULT_VIEWS = {"balanceOf": 0, "claimableTokens": 0}


class FakeMethod:
    def __init__(self, contract, name):
        self.contract = contract
        self.name = name

    def __call__(self, *args):
        value = self.contract.chain.views.get(
            (self.contract.address, self.name), DEFAULT_VIEWS.get(self.name)
        )
        # a callable view answers per argument, e.g. balanceOf(account)
        return value(*args) if callable(value) else value


class FakeContract:
    def __init__(self, chain, contract_name, address):
        self.chain = chain
        self.contract_name = contract_name
        self.address = address

    def __getattr__(self, name):
        return FakeMethod(self, name)


class FakeChain:
    """Stands in for a ChainDeployer; records deployments and transactions."""

    def __init__(self, name, deployer=DEPLOYER, gas_prices=None):
        self.name = name
        self.address = to_checksum_address(deployer)
        self.height = 100
        self.views = dict()
        self.storage = dict()
        self.deployments = list()
        self.transactions = list()
        self.gas_prices = list(gas_prices or [])
        self._addresses = count(1)

    @contextmanager
    def connected(self):
        yield self

    def block_number(self):
        return self.height

    def gas_price(self):
        if len(self.gas_prices) > 1:
            return self.gas_prices.pop(0)
        return self.gas_prices[0] if self.gas_prices else BASE_L2_GAS_PRICE

    def chain_id(self):
        return 1337

    def get_storage_at(self, address, slot):
        return self.storage.get((address, slot), b"\x00" * 32)

    def deploy(self, contract_name, *args, **kwargs):
        contract_address = address(1000 * (len(self.name)) + next(self._addresses))
        self.deployments.append((contract_name, args))
        return FakeContract(self, contract_name, contract_address)

    def at(self, contract_name, contract_address):
        return FakeContract(self, contract_name, contract_address)

    def transact(self, method, *args, **kwargs):
        self.height += 1
        self.transactions.append((method.contract.address, method.name, args))
        return FakeReceipt(block_number=self.height)

    def transaction_names(self):
        return [name for _, name, _ in self.transactions]


# Fixtures
@pytest.fixture
def deployer_config_data():
    return dict(DEPLOYER_CONFIG)


@pytest.fixture
def deployer_config(deployer_config_data):
    return DeployerConfig.from_dict(deployer_config_data)


@pytest.fixture
def progress_filepath(tmp_path):
    return tmp_path / "deployedContracts.json"


@pytest.fixture
def store(progress_filepath):
    return ProgressStore.load(progress_filepath)


@pytest.fixture
def write_json(tmp_path):
    def _write(filename, data):
        filepath = tmp_path / filename
        with open(filepath, "w") as file:
            json.dump(data, file)
        return filepath

    return _write


@pytest.fixture
def l1():
    return FakeChain("L1")


@pytest.fixture
def l2():
    return FakeChain("L2")


@pytest.fixture
def nova():
    return FakeChain("Nova")


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = list()

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()
