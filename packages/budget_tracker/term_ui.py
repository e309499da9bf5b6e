"""Tiny terminal UI helpers (prompt_toolkit-based).

Kept apart from the CLI commands so the prompts can be driven from tests with
a pipe input and a dummy output.
"""

from __future__ import annotations

from collections.abc import Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.validation import ValidationError, Validator

_YES = {"y", "yes"}
_NO = {"n", "no"}


def _session_with(session: PromptSession | None, kb: KeyBindings) -> PromptSession:
    if session is None:
        return PromptSession(key_bindings=kb)
    return PromptSession(
        input=getattr(session, "input", None),
        output=getattr(session, "output", None),
        key_bindings=kb,
    )


def confirm(
    message: str,
    *,
    default: bool = False,
    session: PromptSession | None = None,
) -> bool:
    """Ask a yes/no question.

    Enter on an empty line returns ``default``. Esc or Ctrl+C answers no.
    Anything other than y/yes/n/no is rejected inline.
    """

    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result="n")

    @kb.add("c-c", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result="n")

    class _YesNo(Validator):
        def validate(self, document) -> None:
            text = document.text.strip().lower()
            if text and text not in _YES | _NO:
                raise ValidationError(message="Please answer y or n.")

    suffix = " [Y/n] " if default else " [y/N] "
    sess = _session_with(session, kb)
    answer = sess.prompt(message + suffix, validator=_YesNo(), validate_while_typing=False)
    text = (answer or "").strip().lower()
    if not text:
        return default
    return text in _YES


def prompt_choice(
    options: Sequence[str],
    *,
    message: str,
    default: str = "",
    session: PromptSession | None = None,
) -> str | None:
    """Pick one of ``options`` with completion; Esc cancels and returns ``None``.

    Matching is case-insensitive and the canonical option spelling is returned.
    """

    kb = KeyBindings()

    @kb.add("escape")
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    canonical = {o.lower(): o for o in options}
    completer = WordCompleter(list(options), ignore_case=True, match_middle=True, sentence=True)

    class _OneOf(Validator):
        def validate(self, document) -> None:
            if document.text.strip().lower() not in canonical:
                raise ValidationError(message="Choose one of the listed options.")

    sess = _session_with(session, kb)
    value = sess.prompt(
        message,
        default=default,
        completer=completer,
        validator=_OneOf(),
        validate_while_typing=False,
    )
    if value is None:
        return None
    return canonical.get(value.strip().lower(), value)


__all__ = ["confirm", "prompt_choice"]
