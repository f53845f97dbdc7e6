"""Module execution support for ``python -m nameit``."""

from __future__ import annotations

from nameit.cli import main

if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
