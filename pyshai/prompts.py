"""Interactive prompts.

The sync engine only depends on the ``Prompter`` protocol, so it can be
driven by a terminal (``ClickPrompter``) or by a scripted double in tests.
"""

from typing import Optional, Protocol, Sequence

import click


class Prompter(Protocol):
    """Capability to ask the user questions."""

    def ask(self, question: str, default: Optional[str] = None) -> str: ...

    def ask_secret(self, question: str) -> str: ...

    def ask_yes_no(self, question: str, default: bool = False) -> bool: ...

    def select_one(
        self,
        question: str,
        options: Sequence[tuple[str, str]],
        default: Optional[str] = None,
    ) -> str: ...


class ClickPrompter:
    """Prompter reading answers from the controlling terminal via click."""

    def ask(self, question: str, default: Optional[str] = None) -> str:
        return click.prompt(question, default=default)

    def ask_secret(self, question: str) -> str:
        return click.prompt(question, hide_input=True)

    def ask_yes_no(self, question: str, default: bool = False) -> bool:
        return click.confirm(question, default=default)

    def select_one(
        self,
        question: str,
        options: Sequence[tuple[str, str]],
        default: Optional[str] = None,
    ) -> str:
        """Ask the user to pick one of several options.

        Args:
            question: Prompt text
            options: (value, label) pairs
            default: Value chosen on empty input

        Returns:
            The value of the chosen option
        """
        for index, (_, label) in enumerate(options, start=1):
            click.echo(f"  {index}) {label}")

        default_index = None
        if default is not None:
            for index, (value, _) in enumerate(options, start=1):
                if value == default:
                    default_index = index

        choice = click.prompt(
            question,
            type=click.IntRange(1, len(options)),
            default=default_index,
        )
        return options[choice - 1][0]
