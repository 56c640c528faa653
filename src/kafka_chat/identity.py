"""
Identity Resolver

Asks the user for the display name used to tag every message of the
session.
"""

import logging

from .errors import IdentityError

logger = logging.getLogger(__name__)

NAME_PROMPT = "Please enter your name: "


class IdentityResolver:
    """Prompts until a non-empty display name is entered."""

    def __init__(self, prompt: str = NAME_PROMPT):
        self.prompt = prompt

    async def resolve(self, reader, writer) -> str:
        """
        Prompt for a name, re-prompting on empty input.

        Args:
            reader: Line reader with an async ``readline()`` returning None
                    at end of input
            writer: Output with a ``write()`` method

        Returns:
            The first non-empty line entered

        Raises:
            IdentityError: If input closes before a name is entered
        """
        while True:
            writer.write(self.prompt)
            line = await reader.readline()
            if line is None:
                raise IdentityError(
                    "Input closed before a name was entered"
                )
            if not line:
                logger.debug("Empty name rejected")
                continue
            logger.info("Identity resolved: %s", line)
            return line
