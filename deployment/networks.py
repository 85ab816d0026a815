from eth_typing import ChecksumAddress
from eth_utils import to_canonical_address, to_checksum_address, to_int

from deployment.constants import ADDRESS_ALIAS_OFFSET, ADDRESS_SPACE, PRODUCTION_CHAIN_IDS
from deployment.errors import NetworkMismatchError


def apply_l1_to_l2_alias(address: str) -> ChecksumAddress:
    """Returns the address an L1 contract appears as when it sends a message to L2."""
    value = (to_int(to_canonical_address(address)) + ADDRESS_ALIAS_OFFSET) % ADDRESS_SPACE
    return to_checksum_address(value.to_bytes(20, "big"))


def undo_l1_to_l2_alias(address: str) -> ChecksumAddress:
    value = (to_int(to_canonical_address(address)) - ADDRESS_ALIAS_OFFSET) % ADDRESS_SPACE
    return to_checksum_address(value.to_bytes(20, "big"))


def validate_chain_id(chain_name: str, chain_id: int, local_deployment: bool) -> None:
    """
    Guards against deploying to the wrong network.

    Production deployments must use the production chain ID of each chain,
    while local deployments must never use one.
    """
    production_chain_id = PRODUCTION_CHAIN_IDS[chain_name]
    if local_deployment and chain_id == production_chain_id:
        raise NetworkMismatchError(f"Production chain ID used in test env for {chain_name}")
    if not local_deployment and chain_id != production_chain_id:
        raise NetworkMismatchError(
            f"Production chain ID should be used in production mode for {chain_name} "
            f"(expected {production_chain_id}, got {chain_id})"
        )
