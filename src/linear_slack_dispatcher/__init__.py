"""Linear → Slack task dispatcher.

Picks the highest-priority unassigned Linear issue, hands it to an AI
assistant by mentioning it in a Slack channel, and marks the issue as
dispatched in Linear.
"""

__version__ = "0.1.0"

from linear_slack_dispatcher.dispatcher.config import ConfigurationError, DispatcherSettings

__all__ = ["__version__", "ConfigurationError", "DispatcherSettings"]
