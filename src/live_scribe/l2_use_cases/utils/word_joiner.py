"""Word joining for diarized transcripts — spaces between words, none inside CJK runs."""

from __future__ import annotations

# Han ideographs (incl. extension A/B and compatibility), Hiragana, Katakana (incl. phonetic extensions).
_CJK_RANGES = (
    (0x3400, 0x4DBF),
    (0x4E00, 0x9FFF),
    (0xF900, 0xFAFF),
    (0x20000, 0x2A6DF),
    (0x3040, 0x309F),
    (0x30A0, 0x30FF),
    (0x31F0, 0x31FF),
)

# CJK symbols and punctuation, halfwidth and fullwidth forms. Not words themselves, but a
# token edge carrying one (e.g. '好。') still continues a CJK run.
_CJK_PUNCTUATION_RANGES = (
    (0x3000, 0x303F),
    (0xFF00, 0xFFEF),
)


def _in_ranges(ch: str, ranges: tuple[tuple[int, int], ...]) -> bool:
    cp = ord(ch)
    return any(lo <= cp <= hi for lo, hi in ranges)


def is_cjk_char(ch: str) -> bool:
    return _in_ranges(ch, _CJK_RANGES)


def _is_cjk_edge(ch: str) -> bool:
    return is_cjk_char(ch) or _in_ranges(ch, _CJK_PUNCTUATION_RANGES)


def ends_with_cjk(token: str) -> bool:
    return bool(token) and _is_cjk_edge(token[-1])


def starts_with_cjk(token: str) -> bool:
    return bool(token) and _is_cjk_edge(token[0])


def join_words(tokens: list[str], cjk_flags: list[bool] | None = None) -> str:
    """Join tokens with single spaces, except between two adjacent CJK tokens.

    ``cjk_flags`` marks each token as CJK explicitly. When omitted, a token counts as CJK
    on its left edge if it starts with a CJK character and on its right edge if it ends with one;
    CJK punctuation and fullwidth forms count as CJK on either edge.
    """
    if cjk_flags is not None and len(cjk_flags) != len(tokens):
        raise ValueError(f'cjk_flags has {len(cjk_flags)} entries for {len(tokens)} tokens')

    parts: list[str] = []
    prev_cjk = False
    for i, token in enumerate(tokens):
        if cjk_flags is not None:
            head_cjk = tail_cjk = cjk_flags[i]
        else:
            head_cjk = starts_with_cjk(token)
            tail_cjk = ends_with_cjk(token)
        if parts and not (prev_cjk and head_cjk):
            parts.append(' ')
        parts.append(token)
        prev_cjk = tail_cjk
    return ''.join(parts)
