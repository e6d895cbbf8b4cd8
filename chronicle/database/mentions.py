#!/usr/bin/env python3
"""
mentions.py
--------------------
Parsing and rewriting of ``@{itemId}`` mention tokens in note content.

Mentions are soft foreign keys embedded in free text. Content is split
into an explicit sequence of text segments and mention tokens, each token
is mapped through a resolver, and the sequence is serialized back. A
token whose id the resolver does not know is stripped: the token goes,
the surrounding text stays.

Usage:
    from chronicle.database.mentions import parse_mentions, rewrite_mentions

    parse_mentions("Met @{a1} at @{b2}")
    # [Mention(item_id='a1', start=4, end=10), Mention(item_id='b2', ...)]

    rewrite_mentions("Met @{a1} at @{zz}", {"a1": "n1"}.get)
    # 'Met @{n1} at '
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Union

MENTION_PATTERN = re.compile(r"@\{([^}]+)\}")


@dataclass(frozen=True)
class Mention:
    """A mention token and its position in the source text."""

    item_id: str
    start: int
    end: int


Segment = Union[str, Mention]


def tokenize(content: str) -> List[Segment]:
    """
    Split content into text segments and Mention tokens, in order.

    Empty text segments are omitted. Mention ids are stripped of
    surrounding whitespace; each Mention keeps the start/end span of its
    raw token, so joining text segments with those spans reproduces the
    input.
    """
    segments: List[Segment] = []
    position = 0
    for match in MENTION_PATTERN.finditer(content or ""):
        if match.start() > position:
            segments.append(content[position : match.start()])
        segments.append(Mention(match.group(1).strip(), match.start(), match.end()))
        position = match.end()
    if content and position < len(content):
        segments.append(content[position:])
    return segments


def parse_mentions(content: str) -> List[Mention]:
    """Return every mention token in the content, in order of appearance."""
    return [seg for seg in tokenize(content) if isinstance(seg, Mention)]


def mentioned_ids(content: str) -> List[str]:
    """Return the distinct mentioned ids, in order of first appearance."""
    seen: List[str] = []
    for mention in parse_mentions(content):
        if mention.item_id and mention.item_id not in seen:
            seen.append(mention.item_id)
    return seen


def serialize(segments: List[Segment]) -> str:
    """Inverse of tokenize(), writing each mention in its canonical @{id} form."""
    return "".join(
        f"@{{{seg.item_id}}}" if isinstance(seg, Mention) else seg for seg in segments
    )


def rewrite_mentions(
    content: str, resolve: Callable[[str], Optional[str]]
) -> str:
    """
    Rewrite every mention token through ``resolve``.

    Args:
        content: Text containing ``@{id}`` tokens
        resolve: Maps an old id to its replacement, or None if unknown

    Returns:
        The content with resolved tokens rewritten and unknown tokens removed
    """
    rewritten: List[Segment] = []
    for segment in tokenize(content):
        if isinstance(segment, Mention):
            new_id = resolve(segment.item_id) if segment.item_id else None
            if new_id is None:
                continue
            segment = Mention(new_id, segment.start, segment.end)
        rewritten.append(segment)
    return serialize(rewritten)


def extract_snippet(
    content: str, start: int, end: int, words_around: int = 10
) -> str:
    """
    Return the text surrounding a mention: up to ``words_around`` words
    on each side, with an ellipsis where the text was cut.
    """
    words_before = content[:start].split()
    words_after = content[end:].split()

    parts: List[str] = []
    if len(words_before) > words_around:
        parts.append("...")
    snippet = " ".join(words_before[-words_around:]) if words_before else ""
    if snippet:
        snippet += " "
    snippet += content[start:end]
    if words_after:
        snippet += " " + " ".join(words_after[:words_around])
    parts.append(snippet)
    if len(words_after) > words_around:
        parts.append("...")
    return "".join(parts)
