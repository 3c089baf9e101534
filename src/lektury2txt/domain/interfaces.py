# FILE: src/lektury2txt/domain/interfaces.py

from pathlib import Path
from typing import Callable, Protocol, runtime_checkable

from ..models.domain import FetchResponse, TextDocument


@runtime_checkable
class IApiClient(Protocol):
    """タイムアウト付きリクエストを提供するHTTPクライアントの振る舞いを定義するプロトコル。"""

    def author_books_url(self, author: str) -> str: ...

    def book_url(self, slug: str) -> str: ...

    def get_json(self, url: str, timeout: float) -> FetchResponse:
        """URLにGETリクエストを送信し、デコード済みJSONをbodyに持つ応答を返します。"""
        ...

    def get_text(self, url: str, timeout: float) -> FetchResponse:
        """URLにGETリクエストを送信し、テキストをbodyに持つ応答を返します。"""
        ...


@runtime_checkable
class ITextRepository(Protocol):
    """出力ディレクトリへのファイル操作を抽象化するインターフェース。"""

    @property
    def root_path(self) -> Path: ...

    def exists(self) -> bool:
        """出力ディレクトリが既に存在するか(処理済みとみなすか)を返します。"""
        ...

    def prepare(self) -> None:
        """出力ディレクトリを(親ディレクトリを含めて)作成します。"""
        ...

    def deferred_write(self, document: TextDocument) -> Callable[[], Path]:
        """呼び出されたときに本文を書き込む関数を返します。書き込み自体は行いません。"""
        ...
