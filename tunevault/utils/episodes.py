"""Episode number parsing for audiobook chapter titles."""
import re

_CHINESE_DIGITS = {
    "零": 0, "〇": 0,
    "一": 1, "二": 2, "两": 2, "三": 3, "四": 4,
    "五": 5, "六": 6, "七": 7, "八": 8, "九": 9,
    "十": 10, "百": 100, "千": 1000, "万": 10000,
}

_ARABIC = re.compile(r"(\d{1,4})\s*(集|章|节|话)?")
_CHINESE = re.compile(r"第?([零〇一二三四五六七八九十百千万两]+)[集章节话]?")


def chinese_to_number(chinese: str) -> int:
    """Convert a Chinese numeral such as 二十三 to an int."""
    num = 0
    unit = 1
    last_unit = 1
    for char in reversed(chinese):
        value = _CHINESE_DIGITS.get(char)
        if value is None:
            continue
        if value >= 10:
            if value > last_unit:
                last_unit = value
                unit = value
            else:
                unit = unit * value
        else:
            num += value * unit
    # A leading unit ("十二") implies one of that unit
    if chinese and _CHINESE_DIGITS.get(chinese[0], 0) >= 10:
        num += unit
    return num


def extract_episode_number(title: str) -> int:
    """Episode number from a title like "第12集", "Chapter 3" or "第三章".

    Returns 0 when no number can be found.
    """
    if not title:
        return 0
    match = _ARABIC.search(title)
    if match:
        return int(match.group(1))
    match = _CHINESE.search(title)
    if match:
        return chinese_to_number(match.group(1))
    return 0
