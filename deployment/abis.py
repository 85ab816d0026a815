"""Minimal ABIs of bridge-side contracts that are not part of the compiled project."""

INBOX_ABI = [
    {
        "type": "function",
        "name": "calculateRetryableSubmissionFee",
        "stateMutability": "view",
        "inputs": [
            {"name": "dataLength", "type": "uint256"},
            {"name": "baseFee", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "bridge",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "event",
        "name": "InboxMessageDelivered",
        "anonymous": False,
        "inputs": [
            {"name": "messageNum", "type": "uint256", "indexed": True},
            {"name": "data", "type": "bytes", "indexed": False},
        ],
    },
]

L1_GATEWAY_ABI = [
    {
        "type": "function",
        "name": "inbox",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
]

ARB_RETRYABLE_TX_ABI = [
    {
        "type": "function",
        "name": "getTimeout",
        "stateMutability": "view",
        "inputs": [{"name": "ticketId", "type": "bytes32"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "event",
        "name": "RedeemScheduled",
        "anonymous": False,
        "inputs": [
            {"name": "ticketId", "type": "bytes32", "indexed": True},
            {"name": "retryTxHash", "type": "bytes32", "indexed": True},
            {"name": "sequenceNum", "type": "uint64", "indexed": True},
            {"name": "donatedGas", "type": "uint64", "indexed": False},
            {"name": "gasDonor", "type": "address", "indexed": False},
            {"name": "maxRefund", "type": "uint256", "indexed": False},
            {"name": "submissionFeeRefund", "type": "uint256", "indexed": False},
        ],
    },
]

# Event signatures used when decoding raw logs
MESSAGE_DELIVERED_SIGNATURE = (
    "MessageDelivered(uint256,bytes32,address,uint8,address,bytes32,uint256,uint64)"
)
MESSAGE_DELIVERED_DATA_TYPES = ["address", "uint8", "address", "bytes32", "uint256", "uint64"]
INBOX_MESSAGE_DELIVERED_SIGNATURE = "InboxMessageDelivered(uint256,bytes)"
REDEEM_SCHEDULED_SIGNATURE = (
    "RedeemScheduled(bytes32,bytes32,uint64,uint64,address,uint256,uint256)"
)

# Function signatures of the L2 calls sent as retryables when registering the token on Nova
REGISTER_TOKEN_FROM_L1_SIGNATURE = "registerTokenFromL1(address[],address[])"
SET_GATEWAY_SIGNATURE = "setGateway(address[],address[])"
