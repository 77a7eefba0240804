"""gitrelay - run git for a working directory, natively or inside WSL."""

__version__ = "0.1.0"
