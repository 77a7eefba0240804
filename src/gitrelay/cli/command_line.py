"""gitrelay command-line command - print the invocation without running it."""

import click

from gitrelay.cli.utils import join_arguments, load_cli_config, resolve_directory
from gitrelay.git.runners import create_command_runner


@click.command(context_settings={"ignore_unknown_options": True})
@click.option("-C", "directory", default=None, help="Working directory (default: cwd)")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
def command_line_command(directory: str | None, args: tuple[str, ...]) -> None:
    """Print the full command line that `gitrelay run` would execute."""
    working_dir = resolve_directory(directory)
    config = load_cli_config(working_dir)
    runner = create_command_runner(working_dir, config)
    click.echo(runner.executable.command_line(join_arguments(args)))
