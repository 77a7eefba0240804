"""gitrelay run command - run git and stream its output.

Output lines go to stdout as they arrive; progress redraws on one status
line when stdout is a terminal. Ctrl-C aborts the run, killing the process
tree and releasing any index.lock it left behind.

Exit status: 0 on success, 1 on error, 130 when aborted.
"""

import click

from gitrelay.cli.utils import join_arguments, load_cli_config, resolve_directory
from gitrelay.core.logging import configure_logging, get_logger
from gitrelay.core.progress import ConsoleSink, status
from gitrelay.git.runners import create_command_runner
from gitrelay.process.context import QueueContext
from gitrelay.process.lifecycle import LifecycleController
from gitrelay.process.models import CommandInvocation

EXIT_ABORTED = 130

log = get_logger("cli.run")


@click.command(context_settings={"ignore_unknown_options": True})
@click.option("-C", "directory", default=None, help="Working directory (default: cwd)")
@click.option("--encoding", default=None, help="Output encoding (default: from config)")
@click.option("--show-command", is_flag=True, help="Echo the command line before running")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def run_command(
    ctx: click.Context,
    directory: str | None,
    encoding: str | None,
    show_command: bool,
    args: tuple[str, ...],
) -> None:
    """Run git ARGS in a working directory.

    Directories under \\\\wsl$\\<distro>\\ run git inside that distro.
    """
    working_dir = resolve_directory(directory)
    config = load_cli_config(working_dir)
    if not ctx.obj or not ctx.obj.get("verbose"):
        configure_logging(config=config.logging)

    runner = create_command_runner(working_dir, config)
    invocation = CommandInvocation.for_runner(runner, join_arguments(args), encoding=encoding)

    context = QueueContext()
    with ConsoleSink(show_command=show_command) as sink:
        controller = LifecycleController(
            invocation,
            sink=sink,
            context=context,
            config=config,
        )
        controller.start()
        try:
            context.run_until(controller.is_finalized)
        except KeyboardInterrupt:
            log.info("interrupted")
            controller.abort()
            context.run_until(controller.is_finalized, config.process.kill_timeout_sec)

    result = controller.result
    if result is None:
        status("git did not finish", style="error")
        raise SystemExit(1)
    if result.aborted:
        status("Aborted", style="warning")
        raise SystemExit(EXIT_ABORTED)
    if not result.success:
        raise SystemExit(1)
