#!/usr/bin/python3

from pathlib import Path
from typing import List, Optional

import click

from deployment.constants import PROGRESS_KEY_CHAINS
from deployment.governance import governance_plan
from deployment.progress import ProgressStore
from deployment.sequencer import Step, pending_steps


def next_step(store: ProgressStore, steps: List[Step]) -> Optional[Step]:
    pending = pending_steps(store, steps)
    return pending[0] if pending else None


def _display_progress(store: ProgressStore) -> None:
    """Display recorded progress grouped by chain."""
    for chain_name, keys in PROGRESS_KEY_CHAINS.items():
        recorded = [key for key in keys if store.has(key)]
        click.secho(f"\n{chain_name} ({len(recorded)}/{len(keys)})", fg="yellow")
        for index, key in enumerate(recorded, start=1):
            click.secho(f"    {index}. {key} {store[key]}", fg="cyan")


@click.command()
@click.option(
    "--progress-file",
    "-p",
    help="Filepath of the deployment progress file",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    envvar="DEPLOYED_CONTRACTS_FILE_LOCATION",
    required=True,
)
@click.option(
    "--nova/--no-nova",
    help="Whether the deployment includes Nova",
    default=False,
)
def cli(progress_file, nova):
    """List the recorded deployment progress and the next pending step."""
    store = ProgressStore.load(progress_file)
    _display_progress(store)

    step = next_step(store, governance_plan(nova=nova))
    if step is None:
        click.secho("\nDeployment complete", fg="green")
    else:
        click.secho(f"\nNext step: {step.title}", fg="green")


if __name__ == "__main__":
    cli()
