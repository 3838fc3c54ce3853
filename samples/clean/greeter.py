"""Helpers for building greeting messages."""

import logging

logger = logging.getLogger(__name__)

DEFAULT_GREETING = "Hello"


class Greeter:
    """Build greetings for a named audience."""

    def __init__(self, greeting=DEFAULT_GREETING):
        self.greeting = greeting

    def greet(self, name):
        """Return a greeting addressed to ``name``."""
        if not name:
            raise ValueError("name must not be empty")
        logger.debug("greeting %s", name)
        return f"{self.greeting}, {name}!"


def shout(message):
    """Return ``message`` in upper case with emphasis."""
    return message.upper() + "!"
