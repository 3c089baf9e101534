"""
テスト共通のフィクスチャとテストダブル。

外部APIには接続せず、URLごとに応答を定義したFakeApiClientを使用します。
"""

import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import pytest

from lektury2txt.models.domain import FetchResponse
from lektury2txt.shared.exceptions import ApiError
from lektury2txt.shared.settings import Settings

BASE_URL = 'https://wolnelektury.test/api'
TXT_BASE_URL = 'https://wolnelektury.test/media/book/txt'


def book_detail(
    slug: str,
    language: str = 'pol',
    children: list[Any] | None = None,
    txt: str | None = None,
) -> dict[str, Any]:
    """`books/{slug}/` 応答に相当する辞書を生成します。"""
    return {
        'title': slug.replace('-', ' ').title(),
        'language': language,
        'children': children or [],
        'txt': txt if txt is not None else f'{TXT_BASE_URL}/{slug}.txt',
        'epub': f'https://wolnelektury.test/media/book/epub/{slug}.epub',
    }


class FakeApiClient:
    """URLごとに定義された応答を返し、発行されたリクエストを記録するクライアント。"""

    def __init__(
        self,
        json_responses: dict[str, Any] | None = None,
        text_responses: dict[str, str] | None = None,
        failing_urls: set[str] | None = None,
    ):
        self.base_url = BASE_URL
        self.json_responses = json_responses or {}
        self.text_responses = text_responses or {}
        self.failing_urls = failing_urls or set()
        self.requests: list[tuple[str, float]] = []
        self.closed = False
        self._lock = threading.Lock()

    def author_books_url(self, author: str) -> str:
        return f'{self.base_url}/authors/{author}/books/'

    def book_url(self, slug: str) -> str:
        return f'{self.base_url}/books/{slug}/'

    def _record(self, url: str, timeout: float) -> None:
        with self._lock:
            self.requests.append((url, timeout))
        if url in self.failing_urls:
            raise ApiError('API呼び出しに失敗しました (HTTP 500)', url=url, status_code=500)

    def get_json(self, url: str, timeout: float) -> FetchResponse:
        self._record(url, timeout)
        return FetchResponse(url=url, body=self.json_responses[url])

    def get_text(self, url: str, timeout: float) -> FetchResponse:
        self._record(url, timeout)
        return FetchResponse(url=url, body=self.text_responses[url])

    def close(self) -> None:
        self.closed = True

    @property
    def requested_urls(self) -> list[str]:
        return [url for url, _ in self.requests]


class RecordingProgress:
    """フェーズごとの進捗コールバックの呼び出しを記録するプログレスファクトリ。"""

    def __init__(self) -> None:
        self.phases: list[tuple[str, int, list[int]]] = []

    @contextmanager
    def __call__(self, description: str, total: int) -> Iterator[Any]:
        increments: list[int] = []
        self.phases.append((description, total, increments))
        yield increments.append


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """.env や pyproject.toml、環境変数の影響を受けないようにします。"""
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith('LEKTURY2TXT_'):
            monkeypatch.delenv(key)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        api={'base_url': BASE_URL},
        target={'author': 'adam-mickiewicz', 'language': 'pol'},
        fetcher={'concurrency': 2, 'metadata_timeout': 5.0, 'download_timeout': 30.0},
        output={'directory': tmp_path / 'texts'},
    )


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture
def scenario_client() -> FakeApiClient:
    """
    作品a, b, cを持つ作者。bは子作品を1つ持つコレクションのため除外対象。
    """
    author_url = f'{BASE_URL}/authors/adam-mickiewicz/books/'
    return FakeApiClient(
        json_responses={
            author_url: [{'slug': 'a'}, {'slug': 'b'}, {'slug': 'c'}],
            f'{BASE_URL}/books/a/': book_detail('a', txt=f'{TXT_BASE_URL}/a.txt'),
            f'{BASE_URL}/books/b/': book_detail(
                'b', children=[{'slug': 'b-1', 'href': f'{BASE_URL}/books/b-1/'}]
            ),
            f'{BASE_URL}/books/c/': book_detail('c', txt=f'{TXT_BASE_URL}/c.txt'),
        },
        text_responses={
            f'{TXT_BASE_URL}/a.txt': 'Litwo! Ojczyzno moja! ty jesteś jak zdrowie.',
            f'{TXT_BASE_URL}/c.txt': 'Gdzie lubi, tam się zrywa.',
        },
    )
