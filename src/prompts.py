"""Interactive confirmation prompts."""

from typing import Callable

InputFn = Callable[[str], str]


def prompt_yes(question: str, input_fn: InputFn = input, assume_yes: bool = False) -> bool:
    """Ask a [Y/n] question; an empty answer means yes.

    Args:
        question: Text shown before the [Y/n] marker.
        input_fn: Reads one line given the prompt (tests pass a stub).
        assume_yes: Answer yes without asking (--noconfirm).
    """
    if assume_yes:
        return True
    try:
        answer = input_fn(f"{question} [Y/n] ")
    except EOFError:
        return False
    answer = answer.strip().lower()
    return answer in ("", "y", "yes")
