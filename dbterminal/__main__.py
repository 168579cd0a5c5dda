"""
dbterminal/__main__.py

Package entry point for running DBTerminal as a module:

    python -m dbterminal [-db path] [-stardb path]

This is also the target of the `dbterminal` console script defined in
pyproject.toml.
"""

from __future__ import annotations

from dbterminal.repl import main

if __name__ == "__main__":
    raise SystemExit(main())
