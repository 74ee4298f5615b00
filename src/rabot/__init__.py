"""rabot: personal shell-scripting toolkit."""

__version__ = "0.1.0"
