# src/lektury2txt/utils/url_parser.py
from ..shared.constants import PATTERNS
from ..shared.exceptions import InvalidInputError

AUTHOR_URL_PATTERNS = (PATTERNS.AUTHOR_URL, PATTERNS.AUTHOR_API_URL)


def parse_author_identifier(input_str: str) -> str:
    """
    入力された文字列(スラッグ、カタログURL、API URL)を解析し、作者スラッグを返します。
    どのパターンにも一致しない場合は InvalidInputError を送出します。
    """
    candidate = input_str.strip()
    for pattern in AUTHOR_URL_PATTERNS:
        if match := pattern.search(candidate):
            return match.group(1)

    if PATTERNS.SLUG.match(candidate):
        return candidate

    raise InvalidInputError(f"対応していない、または無効な作者指定です: '{input_str}'")
