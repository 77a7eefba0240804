"""Quote normalization for arguments forwarded through wsl.exe.

wsl.exe hands the argument string to a POSIX shell inside the distro, so
values reach git only if they are single-quoted the way that shell expects.
"""

from __future__ import annotations

import re

from gitrelay.config.constants import LONG_ARGUMENT_PATTERN

_LONG_ARGUMENT_RE = re.compile(LONG_ARGUMENT_PATTERN)


def is_single_quoted(value: str) -> bool:
    """Return True if ``value`` is already in the form standardize_quotes emits.

    That form is ``'...'`` with no double quotes inside and every inner
    single quote escaped with a backslash.
    """
    if len(value) < 2 or value[0] != "'" or value[-1] != "'":
        return False
    inner = value[1:-1]
    if '"' in inner:
        return False
    return all(i > 0 and inner[i - 1] == "\\" for i, ch in enumerate(inner) if ch == "'")


def standardize_quotes(value: str) -> str:
    """Re-quote ``value`` with single quotes.

    A value fully wrapped in double quotes loses them together with any
    escaped ``\\"`` sequences. Inner single quotes are escaped and leftover
    double quotes dropped.
    """
    if is_single_quoted(value):
        return value

    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1].replace('\\"', "")

    return "'" + value.replace("'", "\\'").replace('"', "") + "'"


def normalize_long_option(argument: str) -> str:
    """Re-quote the value of a ``--key=value`` argument, leaving ``--key=`` intact.

    Arguments that are not long options are returned unchanged.
    """
    match = _LONG_ARGUMENT_RE.match(argument)
    if match is None:
        return argument

    key = match.group(0)
    return key + standardize_quotes(argument[len(key) :])
