import click

from deployment.types import MinInt, Seconds

env_file_option = click.option(
    "--env-file",
    "-e",
    help="Path to a .env file with the deployment environment variables.",
    type=click.Path(exists=True, dir_okay=False),
    required=False,
)

autosign_option = click.option(
    "--autosign/--no-autosign",
    help="Sign transactions automatically instead of confirming each one.",
    default=False,
)

start_batch_option = click.option(
    "--start-batch",
    "-sb",
    help="Index of the first recipient batch to register (overrides the recorded cursor).",
    type=MinInt(0),
    required=False,
)

gas_price_timeout_option = click.option(
    "--gas-price-timeout",
    "-gt",
    help="Give up if the L2 gas price stays too high for this many seconds.",
    type=Seconds(),
    required=False,
)
