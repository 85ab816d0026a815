import time
from typing import Any, Callable, List, Mapping, Optional, Type

from ape.utils import ZERO_ADDRESS
from eth_utils import to_checksum_address

from deployment.abis import (
    INBOX_ABI,
    L1_GATEWAY_ABI,
    REGISTER_TOKEN_FROM_L1_SIGNATURE,
    SET_GATEWAY_SIGNATURE,
)
from deployment.batches import Batch, run_batches
from deployment.chains import ChainDeployer
from deployment.config import DeployerConfig
from deployment.constants import (
    DISTRIBUTOR_KEYS,
    EIP1967_ADMIN_SLOT,
    EXECUTOR_ROLE_KEYS,
    L1_DEPLOYED_KEYS,
    L1_FACTORY_KEYS,
    L1_LOGIC_KEYS,
    L1_TOKEN_KEYS,
    L1_TOKEN_TASK_KEYS,
    L2_DEPLOYED_KEYS,
    L2_FACTORY_KEYS,
    L2_LOGIC_KEYS,
    L2_TOKEN_TASK_KEYS,
    NOVA_EXECUTOR_KEYS,
    NOVA_TOKEN_KEYS,
    PROXY_DEPLOY_GAS_LIMIT,
    REGISTER_TOKEN_GAS_LIMIT,
    RETRYABLE_EXTRA_VALUE,
    RETRYABLE_FEE_MULTIPLIER,
    RETRYABLE_MAX_GAS,
    SET_RECIPIENTS_GAS_LIMIT,
)
from deployment.errors import DecodeError, DeploymentError, ValidationError
from deployment.events import (
    L1Deployment,
    L2Deployment,
    Record,
    decode_event,
    find_event_logs,
    record_from_log,
)
from deployment.gas import GasGuard
from deployment.networks import apply_l1_to_l2_alias
from deployment.progress import ProgressStore
from deployment.recipients import Recipients, split_recipients, total_amount
from deployment.retryables import RetryableTracker, calldata_length, messages_from_receipt
from deployment.sequencer import Step, run_steps
from deployment.utils import format_ether

RECIPIENTS_CURSOR_KEY = "distributorRecipientsNextBatch"
RECIPIENTS_START_BLOCK_KEY = "distributorSetRecipientsStartBlock"
RECIPIENTS_END_BLOCK_KEY = "distributorSetRecipientsEndBlock"
RECIPIENTS_DONE_KEY = "distributorRecipientsSet"


def _same_address(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return to_checksum_address(a) == to_checksum_address(b)


def _admin_from_slot(value: bytes) -> str:
    return to_checksum_address(bytes(value)[-20:])


def governance_plan(nova: bool) -> List[Step]:
    """The fixed deployment plan; the Nova steps and keys are included only when enabled."""
    steps = [
        Step("Deploy L1 logic contracts", L1_LOGIC_KEYS, "deploy_l1_logic_contracts"),
        Step("Deploy L2 logic contracts", L2_LOGIC_KEYS, "deploy_l2_logic_contracts"),
        Step("Deploy L1 governance factory", L1_FACTORY_KEYS, "deploy_l1_governance_factory"),
        Step("Deploy L1 Arbitrum token", L1_TOKEN_KEYS, "deploy_l1_token"),
        Step("Deploy L2 governance factory", L2_FACTORY_KEYS, "deploy_l2_governance_factory"),
    ]
    if nova:
        steps.extend(
            [
                Step(
                    "Deploy UpgradeExecutor to Nova",
                    NOVA_EXECUTOR_KEYS,
                    "deploy_nova_upgrade_executor",
                ),
                Step("Deploy token to Nova", NOVA_TOKEN_KEYS, "deploy_nova_token"),
            ]
        )
    steps.extend(
        [
            Step("Init L2 governance", tuple(L2_DEPLOYED_KEYS.values()), "init_l2_governance"),
            Step("Init L1 governance", tuple(L1_DEPLOYED_KEYS.values()), "init_l1_governance"),
            Step(
                "Set executor roles",
                EXECUTOR_ROLE_KEYS if nova else EXECUTOR_ROLE_KEYS[:1],
                "set_executor_roles",
            ),
            Step(
                "Post deployment L1 token tasks",
                L1_TOKEN_TASK_KEYS if nova else L1_TOKEN_TASK_KEYS[:2],
                "post_deployment_l1_token_tasks",
            ),
            Step(
                "Post deployment L2 token tasks",
                L2_TOKEN_TASK_KEYS,
                "post_deployment_l2_token_tasks",
            ),
            Step(
                "Deploy and init TokenDistributor",
                DISTRIBUTOR_KEYS,
                "deploy_and_init_token_distributor",
            ),
        ]
    )
    return steps


class GovernanceDeployer:
    """
    Deploys and wires the governance contracts on L1, L2 and (optionally) Nova.

    Every confirmed deployment or transaction is recorded in the progress store,
    so an interrupted run can be restarted and continues with the first step
    that has not completed.
    """

    def __init__(
        self,
        store: ProgressStore,
        config: DeployerConfig,
        l1: ChainDeployer,
        l2: ChainDeployer,
        nova: Optional[ChainDeployer],
        claim_recipients: Recipients,
        deploy_to_nova: bool,
        dao_recipients: Optional[Recipients] = None,
        vested_recipients: Optional[Recipients] = None,
        start_batch: Optional[int] = None,
        gas_price_timeout: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        tracker: Optional[RetryableTracker] = None,
    ):
        if deploy_to_nova and nova is None:
            raise DeploymentError("A Nova chain is required when deploying governance to Nova")

        self.store = store
        self.config = config
        self.l1 = l1
        self.l2 = l2
        self.nova = nova
        self.claim_recipients = claim_recipients
        self.dao_recipients = dao_recipients
        self.vested_recipients = vested_recipients
        self.deploy_to_nova = deploy_to_nova
        self.start_batch = start_batch
        self.gas_price_timeout = gas_price_timeout
        self.sleep = sleep
        self.tracker = tracker

    #
    # Plan
    #

    def plan(self) -> List[Step]:
        return governance_plan(nova=self.deploy_to_nova)

    def validate(self) -> None:
        """Pre-flight checks of the recipient tables against the deployer config."""
        claim_total = total_amount(self.claim_recipients)
        if claim_total > self.config.l2_tokens_for_claiming:
            raise ValidationError(
                f"Claim recipients total {format_ether(claim_total)} exceeds "
                f"L2_NUM_OF_TOKENS_FOR_CLAIMING "
                f"({format_ether(self.config.l2_tokens_for_claiming)})"
            )
        if self.dao_recipients is not None:
            dao_total = total_amount(self.dao_recipients)
            if dao_total != self.config.l2_tokens_for_dao_recipients:
                raise ValidationError(
                    f"DAO recipients total {format_ether(dao_total)} does not match "
                    f"L2_NUM_OF_TOKENS_FOR_DAO_RECIPIENTS "
                    f"({format_ether(self.config.l2_tokens_for_dao_recipients)})"
                )
        print(
            f"(i) {len(self.claim_recipients)} claim recipients "
            f"({format_ether(claim_total)} tokens)"
        )
        if self.vested_recipients is not None:
            print(f"(i) {len(self.vested_recipients)} vested recipients")

    def run(self) -> List[Step]:
        self.validate()
        return run_steps(store=self.store, steps=self.plan(), resolve=self._resolve)

    def _resolve(self, action: str) -> Callable[[], None]:
        return getattr(self, action)

    #
    # Helpers
    #

    def _require(self, key: str) -> Any:
        value = self.store.get(key)
        if value is None:
            raise DeploymentError(
                f"'{key}' is missing from {self.store.filepath}; an earlier step did not complete"
            )
        return value

    def _deploy_once(
        self, chain: ChainDeployer, key: str, contract_name: str, *args, **kwargs
    ) -> str:
        address = self.store.get(key)
        if address is not None:
            print(f"(i) Using {contract_name} at {address} ({key})")
            return address
        instance = chain.deploy(contract_name, *args, **kwargs)
        self.store.set(key, instance.address)
        return instance.address

    def _deploy_factory(
        self, chain: ChainDeployer, key: str, block_key: str, contract_name: str, *args
    ) -> str:
        deploy_block = chain.block_number()
        address = self._deploy_once(chain, key, contract_name, *args)
        if not self.store.has(block_key):
            self.store.set(block_key, deploy_block)
        return address

    def _mark_done(self, key: str) -> None:
        self.store.set(key, True)

    def _deploy_step(
        self,
        chain: ChainDeployer,
        factory: Any,
        block_key: str,
        record_type: Type[Record],
        method: Any,
        *args,
    ) -> Record:
        """
        Calls a governance factory deploy step, unless its ``Deployed`` event
        is already on chain from a previous run.
        """
        logs = find_event_logs(
            event=factory.Deployed,
            start_block=self._require(block_key),
            stop_block=chain.block_number(),
            block_range=self.config.get_logs_block_range,
        )
        if logs:
            print(f"(i) Recovered Deployed event from block {logs[0].block_number} on {chain.name}")
            return record_from_log(logs[0], record_type)

        receipt = chain.transact(method, *args)
        return decode_event(receipt, factory.Deployed, record_type)

    def _record_deployment(self, record: tuple, keys: Mapping[str, str]) -> None:
        self.store.update({keys[field]: value for field, value in record._asdict().items()})
        for field, key in keys.items():
            print(f"(i) {key}: {getattr(record, field)}")

    #
    # Steps
    #

    def deploy_l1_logic_contracts(self) -> None:
        with self.l1.connected():
            self._deploy_once(self.l1, "l1UpgradeExecutorLogic", "UpgradeExecutor")

    def deploy_l2_logic_contracts(self) -> None:
        with self.l2.connected():
            self._deploy_once(self.l2, "l2TimelockLogic", "ArbitrumTimelock")
            self._deploy_once(self.l2, "l2GovernorLogic", "L2ArbitrumGovernor")
            self._deploy_once(self.l2, "l2FixedDelegateLogic", "FixedDelegateErc20Wallet")
            self._deploy_once(self.l2, "l2TokenLogic", "L2ArbitrumToken")
            self._deploy_once(self.l2, "l2UpgradeExecutorLogic", "UpgradeExecutor")

    def deploy_l1_governance_factory(self) -> None:
        with self.l1.connected():
            self._deploy_factory(
                self.l1, "l1GovernanceFactory", "l1GovernanceFactoryBlock", "L1GovernanceFactory"
            )

    def deploy_l1_token(self) -> None:
        with self.l1.connected():
            logic = self._deploy_once(self.l1, "l1TokenLogic", "L1ArbitrumToken")
            self._deploy_once(
                self.l1,
                "l1TokenProxy",
                "TransparentUpgradeableProxy",
                logic,
                self.l1.address,
                b"",
                gas_limit=PROXY_DEPLOY_GAS_LIMIT,
            )

    def deploy_l2_governance_factory(self) -> None:
        timelock_logic = self._require("l2TimelockLogic")
        governor_logic = self._require("l2GovernorLogic")
        with self.l2.connected():
            self._deploy_factory(
                self.l2,
                "l2GovernanceFactory",
                "l2GovernanceFactoryBlock",
                "L2GovernanceFactory",
                timelock_logic,
                governor_logic,
                timelock_logic,
                self._require("l2FixedDelegateLogic"),
                governor_logic,
                self._require("l2TokenLogic"),
                self._require("l2UpgradeExecutorLogic"),
            )

    def deploy_nova_upgrade_executor(self) -> None:
        with self.nova.connected():
            proxy_admin = self._deploy_once(self.nova, "novaProxyAdmin", "ProxyAdmin")
            logic = self._deploy_once(self.nova, "novaUpgradeExecutorLogic", "UpgradeExecutor")
            self._deploy_once(
                self.nova,
                "novaUpgradeExecutorProxy",
                "TransparentUpgradeableProxy",
                logic,
                proxy_admin,
                b"",
            )

    def deploy_nova_token(self) -> None:
        l1_token = self._require("l1TokenProxy")
        proxy_admin = self._require("novaProxyAdmin")
        with self.nova.connected():
            logic = self._deploy_once(self.nova, "novaTokenLogic", "L2CustomGatewayToken")
            proxy = self._deploy_once(
                self.nova,
                "novaTokenProxy",
                "TransparentUpgradeableProxy",
                logic,
                proxy_admin,
                b"",
            )

            nova_token = self.nova.at("L2CustomGatewayToken", proxy)
            if _same_address(nova_token.l1Address(), l1_token):
                print("(i) Nova token already initialized")
            else:
                self.nova.transact(
                    nova_token.initialize,
                    self.config.nova_token_name,
                    self.config.nova_token_symbol,
                    self.config.nova_token_decimals,
                    self.config.nova_token_gateway,
                    l1_token,
                )
            self._mark_done("novaTokenInitialized")

    def init_l2_governance(self) -> None:
        config = self.config
        settings = dict(
            _l2MinTimelockDelay=config.l2_timelock_delay,
            _l2TokenInitialSupply=config.l2_token_initial_supply,
            _upgradeProposer=config.l2_7_of_12_security_council,
            _coreQuorumThreshold=config.l2_core_quorum_threshold,
            _l1Token=self._require("l1TokenProxy"),
            _l2TreasuryMinTimelockDelay=config.l2_treasury_timelock_delay,
            _treasuryQuorumThreshold=config.l2_treasury_quorum_threshold,
            _proposalThreshold=config.l2_proposal_threshold,
            _votingDelay=config.l2_voting_delay,
            _votingPeriod=config.l2_voting_period,
            _minPeriodAfterQuorum=config.l2_min_period_after_quorum,
            _l2InitialSupplyRecipient=self.l2.address,
            _l2EmergencySecurityCouncil=config.l2_9_of_12_security_council,
            _constitutionHash=config.constitution_hash,
        )
        with self.l2.connected():
            factory = self.l2.at("L2GovernanceFactory", self._require("l2GovernanceFactory"))
            deployment = self._deploy_step(
                self.l2,
                factory,
                "l2GovernanceFactoryBlock",
                L2Deployment,
                factory.deployStep1,
                settings,
            )
        self._record_deployment(deployment, L2_DEPLOYED_KEYS)

    def init_l1_governance(self) -> None:
        with self.l1.connected():
            factory = self.l1.at("L1GovernanceFactory", self._require("l1GovernanceFactory"))
            deployment = self._deploy_step(
                self.l1,
                factory,
                "l1GovernanceFactoryBlock",
                L1Deployment,
                factory.deployStep2,
                self._require("l1UpgradeExecutorLogic"),
                self.config.l1_timelock_delay,
                self.config.l1_arb_inbox,
                self._require("l2CoreTimelock"),
                self.config.l1_9_of_12_security_council,
            )
        self._record_deployment(deployment, L1_DEPLOYED_KEYS)

    def set_executor_roles(self) -> None:
        l1_timelock_aliased = apply_l1_to_l2_alias(self._require("l1Timelock"))

        if not self.store.has("step3Executed"):
            with self.l2.connected():
                factory = self.l2.at("L2GovernanceFactory", self._require("l2GovernanceFactory"))
                self.l2.transact(factory.deployStep3, l1_timelock_aliased)
            self._mark_done("step3Executed")

        if not self.deploy_to_nova:
            return

        executor_address = self._require("novaUpgradeExecutorProxy")
        with self.nova.connected():
            executor = self.nova.at("UpgradeExecutor", executor_address)
            if not self.store.has("executorRolesSetOnNova1"):
                if executor.hasRole(executor.EXECUTOR_ROLE(), l1_timelock_aliased):
                    print("(i) Nova UpgradeExecutor already initialized")
                else:
                    self.nova.transact(
                        executor.initialize,
                        executor_address,
                        [l1_timelock_aliased, self.config.nova_9_of_12_security_council],
                    )
                self._mark_done("executorRolesSetOnNova1")

            if not self.store.has("executorRolesSetOnNova2"):
                proxy_admin = self.nova.at("ProxyAdmin", self._require("novaProxyAdmin"))
                if _same_address(proxy_admin.owner(), executor_address):
                    print("(i) Nova ProxyAdmin already owned by the UpgradeExecutor")
                else:
                    self.nova.transact(proxy_admin.transferOwnership, executor_address)
                self._mark_done("executorRolesSetOnNova2")

    def post_deployment_l1_token_tasks(self) -> None:
        token_address = self._require("l1TokenProxy")
        l1_proxy_admin = self._require("l1ProxyAdmin")

        with self.l1.connected():
            if not self.store.has("l1TokenAdminSet"):
                current_admin = _admin_from_slot(
                    self.l1.get_storage_at(token_address, EIP1967_ADMIN_SLOT)
                )
                if _same_address(current_admin, l1_proxy_admin):
                    print("(i) L1 token proxy admin already set")
                else:
                    proxy = self.l1.at("TransparentUpgradeableProxy", token_address)
                    self.l1.transact(proxy.changeAdmin, l1_proxy_admin)
                self._mark_done("l1TokenAdminSet")

            l1_token = self.l1.at("L1ArbitrumToken", token_address)
            if not self.store.has("l1TokenInitialized"):
                if l1_token.novaGateway() != ZERO_ADDRESS:
                    print("(i) L1 token already initialized")
                else:
                    self.l1.transact(
                        l1_token.initialize,
                        self.config.l1_arb_gateway,
                        self.config.l1_nova_router,
                        self.config.l1_nova_gateway,
                    )
                self._mark_done("l1TokenInitialized")

            if self.deploy_to_nova and not self.store.has("registerTokenNova"):
                self._register_token_on_nova(l1_token)
                self._mark_done("registerTokenNova")

    def _register_token_on_nova(self, l1_token: Any) -> None:
        nova_token = self._require("novaTokenProxy")
        with self.nova.connected():
            nova_gas_price = self.nova.gas_price() * RETRYABLE_FEE_MULTIPLIER
            nova_chain_id = self.nova.chain_id()

        nova_gateway = self.l1.contract(l1_token.novaGateway(), L1_GATEWAY_ABI)
        nova_inbox = self.l1.contract(nova_gateway.inbox(), INBOX_ABI)
        address_arrays = ["address[]", "address[]"]

        gateway_data_length = calldata_length(
            REGISTER_TOKEN_FROM_L1_SIGNATURE,
            address_arrays,
            [[l1_token.address], [nova_token]],
        )
        gateway_submission_fee = (
            nova_inbox.calculateRetryableSubmissionFee(gateway_data_length, 0)
            * RETRYABLE_FEE_MULTIPLIER
        )
        value_for_gateway = gateway_submission_fee + RETRYABLE_MAX_GAS * nova_gas_price

        router_data_length = calldata_length(
            SET_GATEWAY_SIGNATURE,
            address_arrays,
            [[l1_token.address], [nova_gateway.address]],
        )
        router_submission_fee = (
            nova_inbox.calculateRetryableSubmissionFee(router_data_length, 0)
            * RETRYABLE_FEE_MULTIPLIER
        )
        value_for_router = router_submission_fee + RETRYABLE_MAX_GAS * nova_gas_price

        registration = dict(
            l2TokenAddress=nova_token,
            maxSubmissionCostForCustomGateway=gateway_submission_fee,
            maxSubmissionCostForRouter=router_submission_fee,
            maxGasForCustomGateway=RETRYABLE_MAX_GAS,
            maxGasForRouter=RETRYABLE_MAX_GAS,
            gasPriceBid=nova_gas_price,
            valueForGateway=value_for_gateway,
            valueForRouter=value_for_router,
            creditBackAddress=self.l1.address,
        )
        receipt = self.l1.transact(
            l1_token.registerTokenOnL2,
            registration,
            value=value_for_gateway + value_for_router + RETRYABLE_EXTRA_VALUE,
            gas_limit=REGISTER_TOKEN_GAS_LIMIT,
        )

        messages = messages_from_receipt(receipt, l2_chain_id=nova_chain_id)
        if len(messages) < 2:
            raise DecodeError(
                f"Expected 2 retryable messages in {receipt.txn_hash}, found {len(messages)}"
            )

        tracker = self.tracker or RetryableTracker(
            get_web3=lambda: self.nova.web3, sleep=self.sleep
        )
        wait_kwargs = dict(
            poll_interval=self.config.retryable_poll_interval,
            timeout=self.config.retryable_timeout,
        )
        with self.nova.connected():
            tracker.require_redeemed(messages[0], "Register token", **wait_kwargs)
            tracker.require_redeemed(messages[1], "Set gateway", **wait_kwargs)

    def _transfer_once(self, token: Any, recipient: str, amount: int, label: str) -> None:
        """Transfers ``amount`` unless the recipient already holds it from an earlier run."""
        if token.balanceOf(recipient) >= amount:
            print(f"(i) The {label} ({recipient}) already holds {format_ether(amount)} tokens")
            return
        print(f"(i) Transferring {format_ether(amount)} tokens to the {label} ({recipient})")
        self.l2.transact(token.transfer, recipient, amount)

    def _transfer_allocation(self, token: Any, key: str, recipient: str, amount: int, label: str):
        if self.store.has(key):
            return
        if amount == 0:
            print(f"(i) No tokens allocated to the {label}")
        else:
            self._transfer_once(token, recipient, amount, label)
        self._mark_done(key)

    def post_deployment_l2_token_tasks(self) -> None:
        config = self.config
        executor = self._require("l2Executor")
        with self.l2.connected():
            token = self.l2.at("L2ArbitrumToken", self._require("l2Token"))

            if not self.store.has("l2TokenTask1"):
                if _same_address(token.owner(), executor):
                    print("(i) L2 token already owned by the UpgradeExecutor")
                else:
                    self.l2.transact(token.transferOwnership, executor)
                self._mark_done("l2TokenTask1")

            allocations = (
                (
                    "l2TokenTask2",
                    self._require("l2ArbTreasury"),
                    config.l2_tokens_for_treasury,
                    "treasury",
                ),
                (
                    "l2TokenTask3",
                    config.l2_address_for_foundation,
                    config.l2_tokens_for_foundation,
                    "foundation",
                ),
                ("l2TokenTask4", config.l2_address_for_team, config.l2_tokens_for_team, "team"),
                (
                    "l2TokenTask5",
                    config.l2_address_for_dao_recipients,
                    config.l2_tokens_for_dao_recipients,
                    "DAO recipients escrow",
                ),
                (
                    "l2TokenTask6",
                    config.l2_address_for_investors,
                    config.l2_tokens_for_investors,
                    "investors escrow",
                ),
            )
            for key, recipient, amount, label in allocations:
                self._transfer_allocation(token, key, recipient, amount, label)

    def deploy_and_init_token_distributor(self) -> None:
        config = self.config
        token_address = self._require("l2Token")
        executor = self._require("l2Executor")
        sweep_receiver = config.l2_sweep_receiver or self._require("l2ArbTreasury")

        with self.l2.connected():
            distributor_address = self._deploy_once(
                self.l2,
                "l2TokenDistributor",
                "TokenDistributor",
                token_address,
                sweep_receiver,
                self.l2.address,
                config.l2_claim_period_start,
                config.l2_claim_period_end,
            )
            distributor = self.l2.at("TokenDistributor", distributor_address)

            if not self.store.has("l2TokenTransferTokenDistributor"):
                token = self.l2.at("L2ArbitrumToken", token_address)
                self._transfer_once(
                    token, distributor_address, config.l2_tokens_for_claiming, "TokenDistributor"
                )
                self._mark_done("l2TokenTransferTokenDistributor")

            if not self.store.has(RECIPIENTS_DONE_KEY):
                self.set_claim_recipients(distributor)

            if not self.store.has("l2TokenTransferOwnership"):
                if _same_address(distributor.owner(), executor):
                    print("(i) TokenDistributor already owned by the UpgradeExecutor")
                else:
                    self.l2.transact(distributor.transferOwnership, executor)
                self._mark_done("l2TokenTransferOwnership")

    def set_claim_recipients(self, distributor: Any) -> List[Batch]:
        """
        Registers the claim recipients in batches. Each batch waits for an
        acceptable L2 gas price, and the cursor is persisted once it is confirmed.
        """
        config = self.config
        if self.start_batch is not None:
            start_batch = self.start_batch
        else:
            start_batch = self.store.get(RECIPIENTS_CURSOR_KEY, 0)
        if start_batch:
            print(f"(i) Resuming recipient registration at batch {start_batch}")

        if not self.store.has(RECIPIENTS_START_BLOCK_KEY):
            self.store.set(RECIPIENTS_START_BLOCK_KEY, self.l2.block_number())

        guard = GasGuard(
            sampler=self.l2.gas_price,
            ceiling=config.l2_gas_price_ceiling,
            base_price=config.base_l2_gas_price,
            poll_interval=config.gas_price_poll_interval,
            smoothing_delay=config.batch_sleep_seconds,
            timeout=self.gas_price_timeout or config.gas_price_timeout,
            sleep=self.sleep,
        )

        def submit(accounts: List[str], amounts: List[int]):
            return self.l2.transact(
                distributor.setRecipients, accounts, amounts, gas_limit=SET_RECIPIENTS_GAS_LIMIT
            )

        def is_registered(accounts: List[str]) -> bool:
            # setRecipients is atomic, so the first account stands for the whole batch
            return distributor.claimableTokens(accounts[0]) > 0

        def on_confirmed(batch: Batch, receipt: Any) -> None:
            # a batch found already on chain was mined at or before the current block
            end_block = self.l2.block_number() if receipt is None else receipt.block_number
            self.store.update(
                {RECIPIENTS_CURSOR_KEY: batch.index + 1, RECIPIENTS_END_BLOCK_KEY: end_block}
            )

        recipients, amounts = split_recipients(self.claim_recipients)
        batches = run_batches(
            recipients=recipients,
            amounts=amounts,
            batch_size=config.recipients_batch_size,
            start_batch=start_batch,
            submit=submit,
            before_batch=guard.wait,
            on_confirmed=on_confirmed,
            is_submitted=is_registered,
        )

        if not self.store.has(RECIPIENTS_CURSOR_KEY):
            self.store.set(RECIPIENTS_CURSOR_KEY, start_batch)
        if not self.store.has(RECIPIENTS_END_BLOCK_KEY):
            self.store.set(RECIPIENTS_END_BLOCK_KEY, self.l2.block_number())
        self._mark_done(RECIPIENTS_DONE_KEY)
        return batches
