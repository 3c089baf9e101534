# src/lektury2txt/shared/constants.py
import re
from dataclasses import dataclass
from typing import Final


# --- 1. API Endpoints ---
# (infrastructure/client.py がこれを参照)
@dataclass(frozen=True)
class Endpoints:
    """
    Wolne Lektury APIのエンドポイント定義。
    ベースURLからの相対パスで、末尾のスラッシュはAPI側の仕様。
    """

    AUTHOR_BOOKS: str = 'authors/{author}/books/'
    BOOK_DETAIL: str = 'books/{slug}/'


ENDPOINTS: Final = Endpoints()


# --- 2. Timeouts ---
@dataclass(frozen=True)
class Timeouts:
    """リクエスト種別ごとのデフォルトタイムアウト(秒)。"""

    METADATA: float = 5.0  # 作品一覧・作品詳細
    DOWNLOAD: float = 30.0  # 本文テキスト


TIMEOUTS: Final = Timeouts()


# --- 3. Input Patterns ---
# (utils/url_parser.py がこれを参照)
@dataclass(frozen=True)
class Patterns:
    """
    入力解析用のコンパイル済み正規表現
    """

    AUTHOR_URL: re.Pattern = re.compile(
        r'wolnelektury\.pl/(?:katalog/)?autor/([a-z0-9][a-z0-9-]*)'
    )
    AUTHOR_API_URL: re.Pattern = re.compile(
        r'wolnelektury\.pl/api/authors/([a-z0-9][a-z0-9-]*)'
    )
    SLUG: re.Pattern = re.compile(r'^[a-z0-9][a-z0-9-]*$')


PATTERNS: Final = Patterns()


# --- 4. Filesystem ---
INVALID_PATH_CHARS_REGEX: Final = r'[\\/:*?"<>|]'
DEFAULT_TEXT_EXTENSION: Final = '.txt'
