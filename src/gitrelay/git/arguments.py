"""Argument filtering for git invocations routed through wsl.exe."""

from __future__ import annotations

from collections.abc import Callable

from gitrelay.config.constants import DIRECTORY_FLAG
from gitrelay.git.translation import TranslationContext

ArgumentsFilter = Callable[[str], str]


def split_arguments(arguments: str | None) -> list[str]:
    """Split on literal spaces, dropping empty tokens. No quote awareness."""
    if not arguments:
        return []
    return [token for token in arguments.split(" ") if token]


class WslArgumentFilter:
    """Rewrites a raw git argument string into a wsl.exe argument string.

    Output shape::

        -d <distro> -- <tool> -C '<guest working dir>' <translated args>

    Callable, so an instance can be used anywhere an ``ArgumentsFilter`` is
    expected.
    """

    def __init__(self, context: TranslationContext, *, tool: str = "git") -> None:
        self._context = context
        self._tool = tool

    @property
    def context(self) -> TranslationContext:
        return self._context

    def preamble(self) -> list[str]:
        return [
            "-d",
            self._context.distro,
            "--",
            self._tool,
            DIRECTORY_FLAG,
            "'" + self._context.working_dir + "'",
        ]

    def __call__(self, arguments: str | None) -> str:
        tokens = self.preamble()

        # The value after an explicit -C is forwarded verbatim; only the
        # exact short flag is recognized.
        pass_through_next = False
        for token in split_arguments(arguments):
            if pass_through_next:
                tokens.append(token)
                pass_through_next = False
                continue

            pass_through_next = token == DIRECTORY_FLAG
            tokens.append(self._context.translate_token(token))

        return " ".join(tokens)
