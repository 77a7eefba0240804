"""gitrelay translate command - show how a host path maps into WSL."""

import json

import click

from gitrelay.git.errors import TranslationError
from gitrelay.git.translation import TranslationContext


@click.command()
@click.argument("path")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def translate_command(path: str, as_json: bool) -> None:
    """Translate a \\\\wsl$\\ host PATH into its distro and guest path."""
    try:
        context = TranslationContext.from_host_path(path)
    except TranslationError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        click.echo(
            json.dumps(
                {
                    "distro": context.distro,
                    "prefix": context.prefix,
                    "working_dir": context.working_dir,
                }
            )
        )
        return

    click.echo(f"Distro: {context.distro}")
    click.echo(f"Path:   {context.working_dir}")
