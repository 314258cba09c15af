import logging
import re
from enum import Enum
from typing import Iterable, Iterator, List, NamedTuple, Optional, Set

from nvim_plugin_index.domain.models import RepositoryReference

logger = logging.getLogger(__name__)

# owner, a slash, then a name that stops at the next slash, whitespace or closing paren
REPOSITORY_PATTERN = re.compile(r"([^/\s]+)/([^/\s)]+)")


class EventKind(Enum):
    HEADING_START = "heading_start"
    TEXT = "text"
    LIST_START = "list_start"
    LIST_END = "list_end"
    ITEM_START = "item_start"
    ITEM_END = "item_end"


class MarkdownEvent(NamedTuple):
    """A structural event produced by a markdown parser. `text` is only set for TEXT events."""
    kind: EventKind
    text: str = ""


class _ExtractionState:
    def __init__(self):
        self.current_heading: Optional[str] = None
        self.awaiting_heading = False
        self.in_list = False
        self.collecting_item = False
        self.item_text: List[str] = []


def match_reference(text: str) -> Optional[RepositoryReference]:
    """Returns the first `owner/name` token in the text, if any."""
    if not text.strip():
        return None
    match = REPOSITORY_PATTERN.search(text)
    if match is None:
        return None
    return RepositoryReference(owner=match.group(1), name=match.group(2))


def iter_item_references(events: Iterable[MarkdownEvent]) -> Iterator[RepositoryReference]:
    """
    Walks a markdown event stream and yields one reference per list item whose
    text contains an `owner/name` token. Text outside list items is ignored.

    A single `in_list` flag is kept, so the end of a nested list ends list
    scoping for the enclosing one as well.
    """
    state = _ExtractionState()

    for event in events:
        kind = event.kind

        if kind is EventKind.HEADING_START:
            state.current_heading = None
            state.awaiting_heading = True
        elif kind is EventKind.TEXT and state.awaiting_heading:
            state.current_heading = event.text
            state.awaiting_heading = False
        elif kind is EventKind.LIST_START:
            state.in_list = True
        elif kind is EventKind.LIST_END:
            state.in_list = False
        elif kind is EventKind.ITEM_START and state.in_list:
            state.collecting_item = True
            state.item_text = []
        elif kind is EventKind.ITEM_END and state.collecting_item:
            reference = match_reference("".join(state.item_text))
            if reference is not None:
                logger.debug(f"Found {reference} under heading {state.current_heading!r}.")
                yield reference
            state.collecting_item = False
        elif kind is EventKind.TEXT and state.collecting_item:
            state.item_text.append(event.text)


def extract_references(events: Iterable[MarkdownEvent]) -> Set[RepositoryReference]:
    """Distinct references found in list items, used to avoid fetching a plugin twice."""
    return set(iter_item_references(events))


def extract_reference_list(events: Iterable[MarkdownEvent]) -> List[RepositoryReference]:
    """References in document order, duplicates kept."""
    return list(iter_item_references(events))
