import traceback
from typing import Iterator, List


def _causes(error: BaseException) -> Iterator[BaseException]:
    seen = {id(error)}
    current = error.__cause__ or (None if error.__suppress_context__ else error.__context__)
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or (None if current.__suppress_context__ else current.__context__)


def _describe(error: BaseException) -> str:
    return str(error) or type(error).__name__


def format_error(error: BaseException, show_traceback: bool = False) -> str:
    """
    Renders a fatal error for the terminal:

        error: <message>

        because:
        - <cause>
        - <cause of cause>
        traceback:
        <formatted traceback>
    """
    lines: List[str] = [f"error: {_describe(error)}"]

    for i, cause in enumerate(_causes(error)):
        if i == 0:
            lines.append("")
            lines.append("because:")
        lines.append(f"- {_describe(cause)}")

    if show_traceback and error.__traceback__ is not None:
        lines.append("traceback:")
        lines.append("".join(traceback.format_exception(type(error), error, error.__traceback__)).rstrip())

    return "\n".join(lines)
