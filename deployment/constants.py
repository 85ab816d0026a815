#
# Chains
#

L1 = "L1"
L2 = "L2"
NOVA = "Nova"

ETH_CHAIN_ID = 1
ARBITRUM_ONE_CHAIN_ID = 42161
ARBITRUM_NOVA_CHAIN_ID = 42170

PRODUCTION_CHAIN_IDS = {
    L1: ETH_CHAIN_ID,
    L2: ARBITRUM_ONE_CHAIN_ID,
    NOVA: ARBITRUM_NOVA_CHAIN_ID,
}

#
# Contracts
#

# EIP1967 Admin slot - https://eips.ethereum.org/EIPS/eip-1967#admin-address
EIP1967_ADMIN_SLOT = 0xB53127684A568B3173AE13B9F8A6016E243E63B6E8EE1178D6A717850B5D6103

# L1 -> L2 address aliasing offset
ADDRESS_ALIAS_OFFSET = 0x1111000000000000000000000000000000001111
ADDRESS_SPACE = 2**160

# ArbOS precompile
ARB_RETRYABLE_TX_ADDRESS = "0x000000000000000000000000000000000000006E"

# Inbox message kind for retryable submissions
L1_MESSAGE_TYPE_SUBMIT_RETRYABLE_TX = 9
ARBITRUM_SUBMIT_RETRY_TX_TYPE = 0x69

#
# Retryable registration of the L1 token on Nova
#

RETRYABLE_MAX_GAS = 1_000_000
RETRYABLE_FEE_MULTIPLIER = 2
RETRYABLE_EXTRA_VALUE = 1000
REGISTER_TOKEN_GAS_LIMIT = 3_000_000
PROXY_DEPLOY_GAS_LIMIT = 3_000_000

#
# Airdrop
#

# points -> claimable amount in whole tokens
POINTS_TO_TOKENS = {
    3: 3000,
    4: 4500,
    5: 6000,
    6: 9000,
    7: 10500,
    8: 12000,
    9: 12000,
    10: 12000,
    11: 12000,
    12: 12000,
    13: 12000,
    14: 12000,
    15: 12000,
}

SET_RECIPIENTS_GAS_LIMIT = 30_000_000

#
# Gas throttling defaults
#

GWEI = 10**9
DEFAULT_GAS_PRICE_UNACCEPTABLE_LIMIT = 120_000_000  # 0.12 gwei
DEFAULT_GAS_PRICE_POLL_INTERVAL = 30
DEFAULT_RETRYABLE_POLL_INTERVAL = 15

#
# Deploy progress cache keys
#

L1_LOGIC_KEYS = ("l1UpgradeExecutorLogic",)

L2_LOGIC_KEYS = (
    "l2TimelockLogic",
    "l2GovernorLogic",
    "l2FixedDelegateLogic",
    "l2TokenLogic",
    "l2UpgradeExecutorLogic",
)

L1_FACTORY_KEYS = ("l1GovernanceFactory", "l1GovernanceFactoryBlock")
L1_TOKEN_KEYS = ("l1TokenLogic", "l1TokenProxy")
L2_FACTORY_KEYS = ("l2GovernanceFactory", "l2GovernanceFactoryBlock")

NOVA_EXECUTOR_KEYS = ("novaProxyAdmin", "novaUpgradeExecutorLogic", "novaUpgradeExecutorProxy")
NOVA_TOKEN_KEYS = ("novaTokenLogic", "novaTokenProxy", "novaTokenInitialized")

# Deployed event field -> progress key
L2_DEPLOYED_KEYS = {
    "coreGoverner": "l2CoreGoverner",
    "coreTimelock": "l2CoreTimelock",
    "executor": "l2Executor",
    "proxyAdmin": "l2ProxyAdmin",
    "token": "l2Token",
    "treasuryGoverner": "l2TreasuryGoverner",
    "arbTreasury": "l2ArbTreasury",
    "arbitrumDAOConstitution": "arbitrumDAOConstitution",
}

L1_DEPLOYED_KEYS = {
    "executor": "l1Executor",
    "proxyAdmin": "l1ProxyAdmin",
    "timelock": "l1Timelock",
}

EXECUTOR_ROLE_KEYS = ("step3Executed", "executorRolesSetOnNova1", "executorRolesSetOnNova2")
L1_TOKEN_TASK_KEYS = ("l1TokenAdminSet", "l1TokenInitialized", "registerTokenNova")
L2_TOKEN_TASK_KEYS = (
    "l2TokenTask1",
    "l2TokenTask2",
    "l2TokenTask3",
    "l2TokenTask4",
    "l2TokenTask5",
    "l2TokenTask6",
)
DISTRIBUTOR_KEYS = (
    "l2TokenDistributor",
    "l2TokenTransferTokenDistributor",
    "distributorRecipientsNextBatch",
    "distributorSetRecipientsStartBlock",
    "distributorSetRecipientsEndBlock",
    "distributorRecipientsSet",
    "l2TokenTransferOwnership",
)

PROGRESS_KEY_CHAINS = {
    L1: (
        *L1_LOGIC_KEYS,
        *L1_FACTORY_KEYS,
        *L1_TOKEN_KEYS,
        *L1_DEPLOYED_KEYS.values(),
        "l1TokenAdminSet",
        "l1TokenInitialized",
        "registerTokenNova",
    ),
    L2: (
        *L2_LOGIC_KEYS,
        *L2_FACTORY_KEYS,
        *L2_DEPLOYED_KEYS.values(),
        "step3Executed",
        *L2_TOKEN_TASK_KEYS,
        *DISTRIBUTOR_KEYS,
    ),
    NOVA: (
        *NOVA_EXECUTOR_KEYS,
        *NOVA_TOKEN_KEYS,
        "executorRolesSetOnNova1",
        "executorRolesSetOnNova2",
    ),
}

PROGRESS_KEYS = frozenset(key for keys in PROGRESS_KEY_CHAINS.values() for key in keys)
