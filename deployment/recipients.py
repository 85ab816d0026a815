from collections import OrderedDict
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Mapping, Tuple

from eth_utils import is_address, to_checksum_address

from deployment.constants import POINTS_TO_TOKENS
from deployment.errors import InvalidEntitlement, ValidationError
from deployment.utils import _load_json, to_token_units

Recipients = Dict[str, int]


def _points_of(entry: Any) -> Any:
    if isinstance(entry, Mapping):
        return entry.get("points")
    return None


def map_entitlements(raw: Mapping[str, Mapping[str, Any]]) -> Recipients:
    """
    Maps points-based eligibility records to claimable token amounts (in base units).

    Accounts are returned checksummed. Invalid addresses and accounts listed
    twice (in any letter case) are rejected outright; points violations are all
    collected before failing, so nothing is returned unless every account has
    a points value in the entitlement table.
    """
    entitlements = OrderedDict()
    violations = OrderedDict()
    seen = set()
    for raw_account, entry in raw.items():
        if not isinstance(raw_account, str) or not is_address(raw_account):
            raise ValidationError(f"Invalid claim recipient address '{raw_account}'")
        account = to_checksum_address(raw_account)
        if account in seen:
            raise ValidationError(f"Duplicate claim recipient {account}")
        seen.add(account)

        points = _points_of(entry)
        # bool is an int subclass but never a valid points value
        if isinstance(points, bool) or not isinstance(points, int):
            violations[account] = points
            continue
        tokens = POINTS_TO_TOKENS.get(points)
        if tokens is None:
            violations[account] = points
            continue
        entitlements[account] = to_token_units(tokens)

    if violations:
        raise InvalidEntitlement(violations)
    return entitlements


def split_recipients(recipients: Recipients) -> Tuple[list, list]:
    """Returns index-aligned account and amount lists."""
    accounts = list(recipients)
    amounts = [recipients[account] for account in accounts]
    return accounts, amounts


def total_amount(recipients: Recipients) -> int:
    return sum(recipients.values())


def load_claim_recipients(filepath: Path) -> Recipients:
    """Loads the claim recipients file (address -> {points}) and maps it to amounts."""
    data = _load_json(filepath)
    if not isinstance(data, dict):
        raise ValidationError(f"Claim recipients file {filepath} must contain a JSON object.")
    return map_entitlements(data)


def load_recipients(filepath: Path) -> Recipients:
    """Loads a recipients file (address -> amount in whole tokens) into base units."""
    data = _load_json(filepath)
    if not isinstance(data, dict):
        raise ValidationError(f"Recipients file {filepath} must contain a JSON object.")

    recipients = OrderedDict()
    for account, amount in data.items():
        if not is_address(account):
            raise ValidationError(f"Invalid recipient address '{account}' in {filepath}")
        if isinstance(amount, bool):
            raise ValidationError(f"Invalid amount {amount!r} for {account} in {filepath}")
        try:
            value = Decimal(str(amount))
        except InvalidOperation:
            raise ValidationError(f"Invalid amount {amount!r} for {account} in {filepath}")
        if not value.is_finite() or value <= 0:
            raise ValidationError(f"Amount for {account} in {filepath} must be positive")

        checksum_address = to_checksum_address(account)
        if checksum_address in recipients:
            raise ValidationError(f"Duplicate recipient {checksum_address} in {filepath}")
        recipients[checksum_address] = to_token_units(value)
    return recipients
