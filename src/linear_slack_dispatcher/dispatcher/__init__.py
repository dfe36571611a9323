"""Dispatcher components.

- Settings loaded from the environment and `.env`
- Structured logging
- Linear and Slack API clients
- Task selection, message composition and the dispatch service
- A small CLI surface
"""
