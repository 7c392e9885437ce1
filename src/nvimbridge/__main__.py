"""Allow ``python -m nvimbridge``."""

from .app import main

if __name__ == "__main__":  # pragma: no cover - exercised via the console script
    raise SystemExit(main())
