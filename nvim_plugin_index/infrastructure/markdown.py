from typing import Any, Dict, Iterable, Iterator, List

import mistune

from nvim_plugin_index.domain.extractor import EventKind, MarkdownEvent

# mistune returns the token tree instead of HTML when no renderer is given.
parse_markdown = mistune.create_markdown(renderer=None, plugins=["strikethrough", "table"])

# Tokens whose `raw` text is emitted as TEXT. Inline code, HTML and breaks are not text.
TEXT_TOKENS = {"text", "block_code"}


def markdown_events(content: str) -> Iterator[MarkdownEvent]:
    """
    Parses markdown and yields the structural events the reference extractor consumes.
    """
    tokens: List[Dict[str, Any]] = parse_markdown(content)
    yield from _walk(tokens)


def _walk(tokens: Iterable[Dict[str, Any]]) -> Iterator[MarkdownEvent]:
    for token in tokens:
        token_type = token.get("type")
        children = token.get("children") or []

        if token_type in TEXT_TOKENS:
            yield MarkdownEvent(EventKind.TEXT, token.get("raw", ""))
        elif token_type == "heading":
            yield MarkdownEvent(EventKind.HEADING_START)
            yield from _walk(children)
        elif token_type == "list":
            yield MarkdownEvent(EventKind.LIST_START)
            yield from _walk(children)
            yield MarkdownEvent(EventKind.LIST_END)
        elif token_type == "list_item":
            yield MarkdownEvent(EventKind.ITEM_START)
            yield from _walk(children)
            yield MarkdownEvent(EventKind.ITEM_END)
        elif isinstance(children, list):
            yield from _walk(children)
