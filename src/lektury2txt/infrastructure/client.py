# FILE: src/lektury2txt/infrastructure/client.py
from typing import Any, Callable

import requests
from loguru import logger
from requests.exceptions import RequestException, Timeout

from ..models.domain import FetchResponse
from ..shared.constants import ENDPOINTS
from ..shared.exceptions import ApiError
from ..shared.settings import ApiSettings


class WolneLekturyApiClient:
    """
    Wolne Lektury APIと通信するためのラッパークラス。
    リトライは行わず、失敗したリクエストは常にApiErrorとして送出します。
    """

    def __init__(
        self,
        settings: ApiSettings,
        session: requests.Session | None = None,
    ):
        self.base_url = settings.base_url
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                'User-Agent': settings.user_agent,
                'Accept': 'application/json, text/plain;q=0.9, */*;q=0.1',
            }
        )

    # --- URL生成メソッド ---

    def author_books_url(self, author: str) -> str:
        """作者の作品一覧エンドポイントのURLを返します。"""
        return f'{self.base_url}/{ENDPOINTS.AUTHOR_BOOKS.format(author=author)}'

    def book_url(self, slug: str) -> str:
        """単一作品の詳細エンドポイントのURLを返します。"""
        return f'{self.base_url}/{ENDPOINTS.BOOK_DETAIL.format(slug=slug)}'

    # --- リクエストメソッド ---

    def _get(self, url: str, timeout: float) -> requests.Response:
        """GETリクエストを送信し、成功ステータスの応答のみを返します。"""
        logger.debug('GET {} (timeout={}s)', url, timeout)
        try:
            response = self.session.get(url, timeout=timeout)
            response.raise_for_status()
        except Timeout as e:
            logger.bind(url=url, timeout=timeout, error=str(e)).error(
                'API呼び出しがタイムアウトしました。'
            )
            raise ApiError(
                f'リクエストがタイムアウトしました ({timeout}秒)', url=url
            ) from e
        except RequestException as e:
            status_code = getattr(getattr(e, 'response', None), 'status_code', None)
            logger.bind(url=url, status_code=status_code or 'N/A', error=str(e)).error(
                'API呼び出しに失敗しました。'
            )
            raise ApiError(
                f'API呼び出しに失敗しました (HTTP {status_code or "N/A"})',
                url=url,
                status_code=status_code,
            ) from e
        return response

    def _request(
        self,
        url: str,
        timeout: float,
        decode: Callable[[requests.Response], Any],
    ) -> FetchResponse:
        response = self._get(url, timeout)
        return FetchResponse(url=url, body=decode(response))

    def get_json(self, url: str, timeout: float) -> FetchResponse:
        """GETリクエストを送信し、JSONレスポンスを返します。"""
        return self._request(url, timeout, self._decode_json)

    def get_text(self, url: str, timeout: float) -> FetchResponse:
        """GETリクエストを送信し、本文テキストを返します。"""
        return self._request(url, timeout, self._decode_text)

    @staticmethod
    def _decode_json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                'レスポンスをJSONとしてデコードできませんでした', url=str(response.url)
            ) from e

    @staticmethod
    def _decode_text(response: requests.Response) -> str:
        # Content-Typeにcharsetが無い場合、requestsはISO-8859-1とみなすため補正する
        if not response.encoding or response.encoding.lower() == 'iso-8859-1':
            response.encoding = 'utf-8'
        return response.text

    def close(self) -> None:
        self.session.close()
