#!/usr/bin/python3

import click
from ape import networks
from dotenv import load_dotenv
from eth_utils import to_checksum_address

from deployment.config import DeployerConfig, Environment
from deployment.errors import DeploymentError
from deployment.events import find_event_logs
from deployment.options import env_file_option
from deployment.progress import ProgressStore
from deployment.recipients import load_claim_recipients
from deployment.utils import format_ether, get_contract_container


def compare_recipients(expected: dict, registered: dict) -> tuple:
    """Returns the (missing, mismatched, unexpected) recipients of the distributor."""
    missing = [account for account in expected if account not in registered]
    mismatched = [
        (account, expected[account], registered[account])
        for account in expected
        if account in registered and registered[account] != expected[account]
    ]
    unexpected = [account for account in registered if account not in expected]
    return missing, mismatched, unexpected


@click.command()
@env_file_option
def cli(env_file):
    """Check the TokenDistributor's registered recipients against the claim recipients file."""
    load_dotenv(dotenv_path=env_file)

    try:
        env = Environment.from_environ()
        config = DeployerConfig.from_json(env.deployer_config_filepath)
        store = ProgressStore.load(env.progress_filepath)
        expected = {
            to_checksum_address(account): amount
            for account, amount in load_claim_recipients(env.claim_recipients_filepath).items()
        }
        for key in (
            "l2TokenDistributor",
            "distributorSetRecipientsStartBlock",
            "distributorSetRecipientsEndBlock",
        ):
            if not store.has(key):
                raise DeploymentError(f"'{key}' has not been recorded in {env.progress_filepath}")

        with networks.parse_network_choice(env.arb_network):
            distributor = get_contract_container("TokenDistributor").at(store["l2TokenDistributor"])
            logs = find_event_logs(
                event=distributor.CanClaim,
                start_block=store["distributorSetRecipientsStartBlock"],
                stop_block=store["distributorSetRecipientsEndBlock"],
                block_range=config.get_logs_block_range,
            )
    except DeploymentError as e:
        raise click.ClickException(str(e)) from e

    registered = dict()
    for log in logs:
        registered[to_checksum_address(log.recipient)] = log.amount

    missing, mismatched, unexpected = compare_recipients(expected, registered)
    click.secho(f"(i) {len(registered)} of {len(expected)} recipients registered", fg="green")
    for account in missing:
        click.secho(f"Missing recipient {account}", fg="red")
    for account, expected_amount, amount in mismatched:
        click.secho(
            f"Wrong amount for {account}: {format_ether(amount)} "
            f"(expected {format_ether(expected_amount)})",
            fg="red",
        )
    for account in unexpected:
        click.secho(f"Unexpected recipient {account}", fg="yellow")

    if missing or mismatched:
        raise click.ClickException("Recipient verification failed")


if __name__ == "__main__":
    cli()
