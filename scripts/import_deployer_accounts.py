#!/usr/bin/env python3

import os

import click
from ape_accounts import import_account_from_private_key
from dotenv import load_dotenv

from deployment.options import env_file_option

# private key envvar -> account alias envvar
DEPLOYER_KEYS = {
    "ETH_KEY": "ETH_ACCOUNT",
    "ARB_KEY": "ARB_ACCOUNT",
    "NOVA_KEY": "NOVA_ACCOUNT",
}
PASSPHRASE_ENVVAR = "DEPLOYER_PASSPHRASE"


@click.command()
@env_file_option
def cli(env_file):
    """Import the deployer private keys into ape accounts."""
    load_dotenv(dotenv_path=env_file)

    passphrase = os.environ.get(PASSPHRASE_ENVVAR)
    if not passphrase:
        raise click.ClickException(f"Please set {PASSPHRASE_ENVVAR}.")

    imported = 0
    for key_envvar, alias_envvar in DEPLOYER_KEYS.items():
        private_key = os.environ.get(key_envvar)
        if not private_key:
            continue
        alias = os.environ.get(alias_envvar)
        if not alias:
            raise click.ClickException(
                f"There are missing environment variables. Please set {alias_envvar}."
            )
        account = import_account_from_private_key(alias, passphrase, private_key)
        print(f"Account imported as '{alias}': {account.address}")
        imported += 1

    if not imported:
        raise click.ClickException(
            f"No private keys found. Please set one of {', '.join(DEPLOYER_KEYS)}."
        )


if __name__ == "__main__":
    cli()
