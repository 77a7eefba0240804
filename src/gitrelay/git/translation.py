"""Host <-> WSL path translation.

A repository inside a WSL distro is visible from Windows as
``\\\\wsl$\\<distro>\\<rest>``. Inside the distro the same directory is
``/<rest>`` with forward slashes.
"""

from __future__ import annotations

from dataclasses import dataclass

from gitrelay.config.constants import MIN_DISTRO_NAME_LENGTH, WSL_EXPLORER_PREFIX
from gitrelay.git.errors import TranslationError
from gitrelay.git.quoting import normalize_long_option, standardize_quotes


def _has_prefix(text: str, prefix: str) -> bool:
    return text[: len(prefix)].casefold() == prefix.casefold()


def is_wsl_path(path: str | None) -> bool:
    """Return True if ``path`` starts with the ``\\\\wsl$\\`` marker."""
    return path is not None and _has_prefix(path, WSL_EXPLORER_PREFIX)


def _split_wsl_path(path: str | None) -> tuple[str, str]:
    """Split ``\\\\wsl$\\<distro>\\<rest>`` into ``(distro, rest)``.

    Raises:
        TranslationError: If the marker is missing, no separator follows the
            distro name, or the name is shorter than two characters.
    """
    if path is None:
        raise TranslationError(path, "no working directory")
    if not is_wsl_path(path):
        raise TranslationError(path, f"does not start with {WSL_EXPLORER_PREFIX}")

    start = len(WSL_EXPLORER_PREFIX)
    separator = path.find("\\", start)
    if separator < start + MIN_DISTRO_NAME_LENGTH:
        raise TranslationError(path, "distro name cannot be isolated")
    return path[start:separator], path[separator + 1 :]


def extract_identifier(path: str | None) -> str:
    """Return the distro name of a ``\\\\wsl$\\<distro>\\...`` path."""
    return _split_wsl_path(path)[0]


def translate_working_dir(path: str | None) -> str:
    """Convert a host-side WSL path to the path seen inside the distro."""
    remainder = _split_wsl_path(path)[1]
    return "/" + remainder.replace("\\", "/")


@dataclass(frozen=True, slots=True)
class TranslationContext:
    """Per-distro state needed to rewrite paths and arguments."""

    distro: str
    prefix: str
    host_working_dir: str
    working_dir: str

    @classmethod
    def from_host_path(cls, host_working_dir: str | None) -> TranslationContext:
        """Build a context for a working directory inside a distro.

        Raises:
            TranslationError: If the directory is not a WSL path.
        """
        distro, remainder = _split_wsl_path(host_working_dir)
        return cls(
            distro=distro,
            prefix=WSL_EXPLORER_PREFIX + distro + "\\",
            host_working_dir=str(host_working_dir),
            working_dir="/" + remainder.replace("\\", "/"),
        )

    @classmethod
    def try_from_host_path(cls, host_working_dir: str | None) -> TranslationContext | None:
        """Like from_host_path, but return None for non-WSL directories."""
        try:
            return cls.from_host_path(host_working_dir)
        except TranslationError:
            return None

    def translate_token(self, token: str) -> str:
        """Rewrite one argument for use inside the distro.

        Tokens naming a path in this distro (optionally single- or
        double-quoted) become guest paths; everything else goes through
        long-option normalization.
        """
        if token.startswith('"'):
            token = standardize_quotes(token)

        quote = "'" if token.startswith("'") else ""
        if not _has_prefix(token[len(quote) :], self.prefix):
            return normalize_long_option(token)

        remainder = token[len(quote) + len(self.prefix) :]
        return quote + "/" + remainder.replace("\\", "/")
