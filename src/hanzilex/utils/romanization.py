"""Romanization utilities for Chinese headwords.

Pinyin for headwords that no source supplied a pronunciation for is
generated with pypinyin instead of a hand-maintained character table.
"""

import logging

from pypinyin import Style, lazy_pinyin

logger = logging.getLogger(__name__)


def get_chinese_pinyin(text: str, tone_marks: bool = True) -> str:
    """Get pinyin romanization for Chinese text.

    Args:
        text: Chinese text (simplified or traditional)
        tone_marks: Include tone marks (default: True)

    Returns:
        Pinyin romanization with tone marks (e.g., "yínháng" for 银行)

    Example:
        >>> get_chinese_pinyin("银行")
        'yínháng'
        >>> get_chinese_pinyin("图书馆")
        'tú shū guǎn'
    """
    style = Style.TONE if tone_marks else Style.NORMAL
    pinyin_list = lazy_pinyin(text, style=style, errors="ignore")

    # Words join without spaces, longer phrases with spaces
    if len(text) <= 2:
        return "".join(pinyin_list)
    return " ".join(pinyin_list)


def clean_sense_marker(text: str) -> str:
    """Remove sense markers (trailing numbers) from Chinese vocabulary.

    Word lists number homographs (本1, 点1, 会2); the number is not part of
    the word.

    Example:
        >>> clean_sense_marker("本1")
        '本'
        >>> clean_sense_marker("学校")
        '学校'
    """
    return text.strip().rstrip("0123456789").strip()
