#!/usr/bin/python3

import click
from dotenv import load_dotenv

from deployment.chains import ChainDeployer, get_account
from deployment.config import DeployerConfig, Environment
from deployment.confirm import _confirm_resume
from deployment.constants import L1, L2, NOVA
from deployment.errors import DeploymentError
from deployment.governance import GovernanceDeployer
from deployment.options import (
    autosign_option,
    env_file_option,
    gas_price_timeout_option,
    start_batch_option,
)
from deployment.progress import ProgressStore
from deployment.recipients import load_claim_recipients, load_recipients


def _get_deployers(env: Environment, autosign: bool):
    """Builds one deployer per chain and checks each is connected to the expected network."""
    l1 = ChainDeployer(
        name=L1,
        network_choice=env.eth_network,
        account=get_account(env.eth_account, env.local_deployment),
        autosign=autosign,
    )
    l2 = ChainDeployer(
        name=L2,
        network_choice=env.arb_network,
        account=get_account(env.arb_account, env.local_deployment),
        autosign=autosign,
    )
    nova = None
    if env.deploy_to_nova:
        nova = ChainDeployer(
            name=NOVA,
            network_choice=env.nova_network,
            account=get_account(env.nova_account, env.local_deployment),
            autosign=autosign,
        )

    for deployer in (l1, l2, nova):
        if deployer is None:
            continue
        deployer.validate(local_deployment=env.local_deployment)
        deployer.print_info()
    return l1, l2, nova


@click.command()
@env_file_option
@autosign_option
@start_batch_option
@gas_price_timeout_option
def cli(env_file, autosign, start_batch, gas_price_timeout):
    """Deploy the governance contracts on L1, L2 and optionally Nova."""
    load_dotenv(dotenv_path=env_file)

    try:
        env = Environment.from_environ()
        click.secho(f"Deploying to {'local' if env.local_deployment else 'production'}", fg="green")
        if not env.deploy_to_nova:
            click.secho("(i) Nova deployment disabled", fg="yellow")

        config = DeployerConfig.from_json(env.deployer_config_filepath)
        claim_recipients = load_claim_recipients(env.claim_recipients_filepath)
        dao_recipients = load_recipients(env.dao_recipients_filepath)
        vested_recipients = load_recipients(env.vested_recipients_filepath)

        store = ProgressStore.load(env.progress_filepath)
        if store.keys() and not autosign:
            _confirm_resume(list(store.keys()))

        l1, l2, nova = _get_deployers(env=env, autosign=autosign)
        deployer = GovernanceDeployer(
            store=store,
            config=config,
            l1=l1,
            l2=l2,
            nova=nova,
            claim_recipients=claim_recipients,
            deploy_to_nova=env.deploy_to_nova,
            dao_recipients=dao_recipients,
            vested_recipients=vested_recipients,
            start_batch=start_batch,
            gas_price_timeout=gas_price_timeout,
        )
        deployer.run()
    except DeploymentError as e:
        raise click.ClickException(str(e)) from e

    click.secho(f"(i) Deployment finished! Progress written to {env.progress_filepath}", fg="green")


if __name__ == "__main__":
    cli()
