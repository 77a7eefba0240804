"""gitrelay CLI - gitrelay command."""

import click

from gitrelay.cli.command_line import command_line_command
from gitrelay.cli.run import run_command
from gitrelay.cli.translate import translate_command
from gitrelay.core.logging import configure_logging


@click.group()
@click.version_option(version="0.1.0", prog_name="gitrelay")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """gitrelay - Run git for a working directory, natively or inside WSL."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    configure_logging(level="DEBUG" if verbose else "WARNING")


cli.add_command(run_command, name="run")
cli.add_command(translate_command, name="translate")
cli.add_command(command_line_command, name="command-line")


if __name__ == "__main__":
    cli()
