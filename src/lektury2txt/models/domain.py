# FILE: src/lektury2txt/models/domain.py
"""
アプリケーションのドメイン(関心領域)における中心的なデータモデルを定義します。
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class FetchResponse:
    """
    1件の成功したリクエストの結果。
    bodyはメタデータ取得時はデコード済みJSON、本文ダウンロード時はテキスト。
    """

    url: str
    body: Any


@dataclass(frozen=True)
class TextDocument:
    """ダウンロード済みの作品本文と、その保存先ファイル名。"""

    source_url: str
    filename: str
    content: str
