"""Module entrypoint for running callgate as ``python -m callgate``."""

from __future__ import annotations

from callgate.cli import main


if __name__ == "__main__":
    main()
