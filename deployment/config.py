import os
from pathlib import Path
from typing import Any, Mapping, NamedTuple, Optional

from eth_utils import is_address, is_hex, to_checksum_address

from deployment.constants import (
    DEFAULT_GAS_PRICE_POLL_INTERVAL,
    DEFAULT_GAS_PRICE_UNACCEPTABLE_LIMIT,
    DEFAULT_RETRYABLE_POLL_INTERVAL,
)
from deployment.errors import ConfigurationError
from deployment.utils import _load_json, to_token_units

#
# Environment
#

LOCAL_DEPLOYMENT_ENVVAR = "DEPLOY_TO_LOCAL_ENVIRONMENT"
DEPLOY_TO_NOVA_ENVVAR = "DEPLOY_GOVERNANCE_TO_NOVA"

REQUIRED_FILE_ENVVARS = {
    "deployer_config": "DEPLOY_CONFIG_FILE_LOCATION",
    "vested_recipients": "VESTED_RECIPIENTS_FILE_LOCATION",
    "dao_recipients": "DAO_RECIPIENTS_FILE_LOCATION",
    "claim_recipients": "CLAIM_RECIPIENTS_FILE_LOCATION",
}
PROGRESS_FILE_ENVVAR = "DEPLOYED_CONTRACTS_FILE_LOCATION"

NETWORK_ENVVARS = {"eth": "ETH_URL", "arb": "ARB_URL", "nova": "NOVA_URL"}
ACCOUNT_ENVVARS = {"eth": "ETH_ACCOUNT", "arb": "ARB_ACCOUNT", "nova": "NOVA_ACCOUNT"}


class Environment(NamedTuple):
    """Deployment settings read from environment variables."""

    local_deployment: bool
    deploy_to_nova: bool
    eth_network: str
    arb_network: str
    nova_network: str
    eth_account: Optional[str]
    arb_account: Optional[str]
    nova_account: Optional[str]
    deployer_config_filepath: Path
    vested_recipients_filepath: Path
    dao_recipients_filepath: Path
    claim_recipients_filepath: Path
    progress_filepath: Path

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "Environment":
        environ = os.environ if environ is None else environ

        def require(name: str) -> str:
            value = environ.get(name)
            if value is None or not value.strip():
                raise ConfigurationError(f"Missing {name} in env vars")
            return value.strip()

        local_deployment = require(LOCAL_DEPLOYMENT_ENVVAR).lower() != "false"
        deploy_to_nova = environ.get(DEPLOY_TO_NOVA_ENVVAR, "").strip().lower() == "true"

        network_choices = {chain: require(name) for chain, name in NETWORK_ENVVARS.items()}

        accounts = dict()
        for chain, name in ACCOUNT_ENVVARS.items():
            alias = environ.get(name, "").strip() or None
            if alias is None and not local_deployment:
                raise ConfigurationError(f"Missing {name} in env vars")
            accounts[chain] = alias

        filepaths = dict()
        for field, name in REQUIRED_FILE_ENVVARS.items():
            filepath = Path(require(name))
            if not filepath.exists():
                raise ConfigurationError(f"Missing file at {filepath} ({name})")
            filepaths[field] = filepath

        return cls(
            local_deployment=local_deployment,
            deploy_to_nova=deploy_to_nova,
            eth_network=network_choices["eth"],
            arb_network=network_choices["arb"],
            nova_network=network_choices["nova"],
            eth_account=accounts["eth"],
            arb_account=accounts["arb"],
            nova_account=accounts["nova"],
            deployer_config_filepath=filepaths["deployer_config"],
            vested_recipients_filepath=filepaths["vested_recipients"],
            dao_recipients_filepath=filepaths["dao_recipients"],
            claim_recipients_filepath=filepaths["claim_recipients"],
            progress_filepath=Path(require(PROGRESS_FILE_ENVVAR)),
        )


#
# Deployer config file
#


def _get(config: Mapping[str, Any], key: str, default: Any = ConfigurationError) -> Any:
    if key not in config or config[key] is None:
        if default is ConfigurationError:
            raise ConfigurationError(f"Missing '{key}' in deployer config.")
        return default
    return config[key]


def _int(config: Mapping[str, Any], key: str, default: Any = ConfigurationError) -> int:
    value = _get(config, key, default)
    if value is None:
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"'{key}' in deployer config must be an integer, got {value!r}")
    return value


def _seconds(config: Mapping[str, Any], key: str, default: Any) -> Optional[float]:
    value = _get(config, key, default)
    if value is None:
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigurationError(f"'{key}' in deployer config must be a number of seconds")
    return value


def _address(config: Mapping[str, Any], key: str, default: Any = ConfigurationError) -> str:
    value = _get(config, key, default)
    if value is None:
        return value
    if not is_address(value):
        raise ConfigurationError(f"'{key}' in deployer config is not a valid address: {value!r}")
    return to_checksum_address(value)


def _tokens(config: Mapping[str, Any], key: str, default: Any = ConfigurationError) -> int:
    value = _get(config, key, default)
    try:
        amount = to_token_units(value)
    except (ArithmeticError, TypeError, ValueError) as e:
        raise ConfigurationError(
            f"'{key}' in deployer config is not a token amount: {value!r}"
        ) from e
    if amount < 0:
        raise ConfigurationError(f"'{key}' in deployer config must not be negative")
    return amount


def _bytes32(config: Mapping[str, Any], key: str) -> str:
    value = _get(config, key)
    if not (isinstance(value, str) and is_hex(value) and len(value.replace("0x", "", 1)) == 64):
        raise ConfigurationError(f"'{key}' in deployer config must be a 32 byte hex string")
    return value


class DeployerConfig(NamedTuple):
    """Governance parameters consumed read-only by the deployment steps."""

    # L1
    l1_timelock_delay: int
    l1_9_of_12_security_council: str
    l1_arb_inbox: str
    l1_arb_gateway: str
    l1_nova_router: str
    l1_nova_gateway: str

    # L2
    l2_timelock_delay: int
    l2_9_of_12_security_council: str
    l2_7_of_12_security_council: str
    l2_core_quorum_threshold: int
    l2_treasury_quorum_threshold: int
    l2_proposal_threshold: int
    l2_voting_delay: int
    l2_voting_period: int
    l2_min_period_after_quorum: int
    l2_treasury_timelock_delay: int
    constitution_hash: str

    # Nova
    nova_9_of_12_security_council: str
    nova_token_name: str
    nova_token_symbol: str
    nova_token_decimals: int
    nova_token_gateway: str

    # L2 token
    l2_token_initial_supply: int
    l2_tokens_for_treasury: int
    l2_address_for_foundation: str
    l2_tokens_for_foundation: int
    l2_address_for_team: str
    l2_tokens_for_team: int
    l2_address_for_dao_recipients: str
    l2_tokens_for_dao_recipients: int
    l2_address_for_investors: str
    l2_tokens_for_investors: int
    l2_tokens_for_claiming: int
    l2_sweep_receiver: Optional[str]
    l2_claim_period_start: int
    l2_claim_period_end: int

    # Throttling
    recipients_batch_size: int
    base_l2_gas_price: int
    l2_gas_price_ceiling: int
    get_logs_block_range: int
    batch_sleep_seconds: float
    gas_price_poll_interval: float
    gas_price_timeout: Optional[float]
    retryable_poll_interval: float
    retryable_timeout: Optional[float]

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "DeployerConfig":
        if not isinstance(config, Mapping):
            raise ConfigurationError("Deployer config must be a JSON object.")

        deployer_config = cls(
            l1_timelock_delay=_int(config, "L1_TIMELOCK_DELAY"),
            l1_9_of_12_security_council=_address(config, "L1_9_OF_12_SECURITY_COUNCIL"),
            l1_arb_inbox=_address(config, "L1_ARB_INBOX"),
            l1_arb_gateway=_address(config, "L1_ARB_GATEWAY"),
            l1_nova_router=_address(config, "L1_NOVA_ROUTER"),
            l1_nova_gateway=_address(config, "L1_NOVA_GATEWAY"),
            l2_timelock_delay=_int(config, "L2_TIMELOCK_DELAY"),
            l2_9_of_12_security_council=_address(config, "L2_9_OF_12_SECURITY_COUNCIL"),
            l2_7_of_12_security_council=_address(config, "L2_7_OF_12_SECURITY_COUNCIL"),
            l2_core_quorum_threshold=_int(config, "L2_CORE_QUORUM_THRESHOLD"),
            l2_treasury_quorum_threshold=_int(config, "L2_TREASURY_QUORUM_THRESHOLD"),
            l2_proposal_threshold=_tokens(config, "L2_PROPOSAL_THRESHOLD"),
            l2_voting_delay=_int(config, "L2_VOTING_DELAY"),
            l2_voting_period=_int(config, "L2_VOTING_PERIOD"),
            l2_min_period_after_quorum=_int(config, "L2_MIN_PERIOD_AFTER_QUORUM"),
            l2_treasury_timelock_delay=_int(config, "L2_TREASURY_TIMELOCK_DELAY"),
            constitution_hash=_bytes32(config, "ARBITRUM_DAO_CONSTITUTION_HASH"),
            nova_9_of_12_security_council=_address(config, "NOVA_9_OF_12_SECURITY_COUNCIL"),
            nova_token_name=str(_get(config, "NOVA_TOKEN_NAME")),
            nova_token_symbol=str(_get(config, "NOVA_TOKEN_SYMBOL")),
            nova_token_decimals=_int(config, "NOVA_TOKEN_DECIMALS"),
            nova_token_gateway=_address(config, "NOVA_TOKEN_GATEWAY"),
            l2_token_initial_supply=_tokens(config, "L2_TOKEN_INITIAL_SUPPLY"),
            l2_tokens_for_treasury=_tokens(config, "L2_NUM_OF_TOKENS_FOR_TREASURY"),
            l2_address_for_foundation=_address(config, "L2_ADDRESS_FOR_FOUNDATION"),
            l2_tokens_for_foundation=_tokens(config, "L2_NUM_OF_TOKENS_FOR_FOUNDATION"),
            l2_address_for_team=_address(config, "L2_ADDRESS_FOR_TEAM"),
            l2_tokens_for_team=_tokens(config, "L2_NUM_OF_TOKENS_FOR_TEAM"),
            l2_address_for_dao_recipients=_address(config, "L2_ADDRESS_FOR_DAO_RECIPIENTS"),
            l2_tokens_for_dao_recipients=_tokens(config, "L2_NUM_OF_TOKENS_FOR_DAO_RECIPIENTS"),
            l2_address_for_investors=_address(config, "L2_ADDRESS_FOR_INVESTORS"),
            l2_tokens_for_investors=_tokens(config, "L2_NUM_OF_TOKENS_FOR_INVESTORS"),
            l2_tokens_for_claiming=_tokens(config, "L2_NUM_OF_TOKENS_FOR_CLAIMING"),
            l2_sweep_receiver=_address(config, "L2_SWEEP_RECEIVER", default=None),
            l2_claim_period_start=_int(config, "L2_CLAIM_PERIOD_START"),
            l2_claim_period_end=_int(config, "L2_CLAIM_PERIOD_END"),
            recipients_batch_size=_int(config, "RECIPIENTS_BATCH_SIZE"),
            base_l2_gas_price=_int(config, "BASE_L2_GAS_PRICE_LIMIT"),
            l2_gas_price_ceiling=_int(
                config,
                "L2_GAS_PRICE_UNACCEPTABLE_LIMIT",
                default=DEFAULT_GAS_PRICE_UNACCEPTABLE_LIMIT,
            ),
            get_logs_block_range=_int(config, "GET_LOGS_BLOCK_RANGE"),
            batch_sleep_seconds=_int(config, "SLEEP_TIME_BETWEEN_RECIPIENT_BATCHES_IN_MS") / 1000,
            gas_price_poll_interval=_seconds(
                config,
                "GAS_PRICE_POLL_INTERVAL_IN_SECONDS",
                default=DEFAULT_GAS_PRICE_POLL_INTERVAL,
            ),
            gas_price_timeout=_seconds(config, "GAS_PRICE_TIMEOUT_IN_SECONDS", default=None),
            retryable_poll_interval=_seconds(
                config,
                "RETRYABLE_POLL_INTERVAL_IN_SECONDS",
                default=DEFAULT_RETRYABLE_POLL_INTERVAL,
            ),
            retryable_timeout=_seconds(config, "RETRYABLE_TIMEOUT_IN_SECONDS", default=None),
        )
        deployer_config.validate()
        return deployer_config

    @classmethod
    def from_json(cls, filepath: Path) -> "DeployerConfig":
        print(f"Loading deployer config from {filepath}...")
        try:
            config = _load_json(filepath)
        except (OSError, ValueError) as e:
            raise ConfigurationError(f"Cannot read deployer config at {filepath}: {e}") from e
        return cls.from_dict(config)

    def validate(self) -> None:
        if self.recipients_batch_size <= 0:
            raise ConfigurationError("RECIPIENTS_BATCH_SIZE must be positive.")
        if self.get_logs_block_range <= 0:
            raise ConfigurationError("GET_LOGS_BLOCK_RANGE must be positive.")
        if self.l2_claim_period_start >= self.l2_claim_period_end:
            raise ConfigurationError("L2_CLAIM_PERIOD_START must precede L2_CLAIM_PERIOD_END.")
        if self.base_l2_gas_price > self.l2_gas_price_ceiling:
            raise ConfigurationError(
                "BASE_L2_GAS_PRICE_LIMIT must not exceed L2_GAS_PRICE_UNACCEPTABLE_LIMIT."
            )

        allocations = (
            self.l2_tokens_for_treasury
            + self.l2_tokens_for_foundation
            + self.l2_tokens_for_team
            + self.l2_tokens_for_dao_recipients
            + self.l2_tokens_for_investors
            + self.l2_tokens_for_claiming
        )
        if allocations > self.l2_token_initial_supply:
            raise ConfigurationError("Token allocations exceed L2_TOKEN_INITIAL_SUPPLY.")

        # allocation transfers are skipped when the recipient already holds its amount
        recipients = (
            self.l2_address_for_foundation,
            self.l2_address_for_team,
            self.l2_address_for_dao_recipients,
            self.l2_address_for_investors,
        )
        if len(set(recipients)) != len(recipients):
            raise ConfigurationError("Token allocation recipient addresses must be distinct.")
