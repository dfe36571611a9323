"""Console entrypoint.

The CLI is implemented in `linear_slack_dispatcher.dispatcher.main`.
"""

from __future__ import annotations

from linear_slack_dispatcher.dispatcher.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
