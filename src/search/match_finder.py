"""
Locate every occurrence of a query inside a block of text.

Pure functions: no state is kept between calls, identical inputs always
produce the same spans in the same order.
"""

import re
from typing import List, Optional

from config import SEARCH_CONTEXT_CHARS
from .types import MatchSpan, SearchOptions, TargetKind


def extract_context(text: str, start: int, end: int, radius: int = SEARCH_CONTEXT_CHARS) -> str:
    """Return the match plus up to ``radius`` characters on each side, clamped to the text."""
    before = max(0, start - radius)
    after = min(len(text), end + radius)
    return text[before:after]


def compile_pattern(query: str, options: SearchOptions) -> re.Pattern:
    """
    Build the matching predicate for ``query``.

    In regex mode the query is used as-is; a pattern that does not compile
    falls back to a literal match of the same text. Whole-word mode only
    applies to literal queries.
    """
    flags = 0 if options.case_sensitive else re.IGNORECASE
    if options.use_regex:
        try:
            return re.compile(query, flags)
        except re.error as e:
            print(f"[MatchFinder] Invalid pattern {query!r} ({e}), using literal search")
            return re.compile(re.escape(query), flags)
    escaped = re.escape(query)
    if options.whole_word:
        return re.compile(r'\b' + escaped + r'\b', flags)
    return re.compile(escaped, flags)


def find(
    query: str,
    text: str,
    options: Optional[SearchOptions] = None,
    target: TargetKind = TargetKind.BUFFER,
    max_chars: Optional[int] = None,
) -> List[MatchSpan]:
    """
    Find all non-overlapping matches of ``query`` in ``text``.

    Parameters
    ----------
    query : str
        Literal text or regular expression, depending on ``options``.
    text : str
        The content to scan.
    options : Optional[SearchOptions]
        Match rules; defaults to case-insensitive literal matching.
    target : TargetKind
        Recorded on every span so merged result lists can be split per view.
    max_chars : Optional[int]
        If set, only the first ``max_chars`` characters are scanned.

    Returns
    -------
    List[MatchSpan]
        Spans in ascending ``start`` order.
    """
    if not query or not text:
        return []
    options = options or SearchOptions()
    pattern = compile_pattern(query, options)
    limit = len(text) if max_chars is None else min(len(text), max_chars)

    spans: List[MatchSpan] = []
    pos = 0
    while pos <= limit:
        match = pattern.search(text, pos, limit)
        if match is None:
            break
        start, end = match.span()
        if start == end:
            # Zero-width hits are not reportable spans; step past them.
            pos = start + 1
            continue
        spans.append(MatchSpan(
            start=start,
            end=end,
            matched_text=text[start:end],
            context=extract_context(text, start, end),
            target=target,
        ))
        pos = end
    return spans


def find_in_targets(query: str, targets, options: Optional[SearchOptions] = None,
                    max_chars: Optional[int] = None) -> List[MatchSpan]:
    """Run ``find`` over each target in order and concatenate the spans."""
    results: List[MatchSpan] = []
    for target in targets:
        results.extend(find(query, target.content, options, target=target.kind, max_chars=max_chars))
    return results
