# FILE: src/lektury2txt/infrastructure/batch_fetcher.py
"""
同時実行数を制限したバッチ取得と、応答の畳み込み(reduce)を行います。

対象のリストを固定長のバッチに分割し、バッチ内のリクエストは並行に、
バッチ同士は厳密に逐次で処理します。すべてのバッチが完了した後、
応答をバッチ順に呼び出し元のreduce関数で蓄積リストへ畳み込みます。
"""

import concurrent.futures
from collections.abc import Sequence
from typing import Any, Callable, Generic, TypeVar

from loguru import logger

from ..models.domain import FetchResponse

T = TypeVar('T')

Reducer = Callable[[list[T], FetchResponse], list[T]]
FetchOne = Callable[[str], FetchResponse]


def partition(targets: Sequence[str], size: int) -> list[list[str]]:
    """targetsを先頭から長さsizeの連続したバッチに分割します。最後のバッチは短くなり得ます。"""
    if size <= 0:
        raise ValueError(f'バッチサイズは1以上である必要があります: {size}')
    return [list(targets[i : i + size]) for i in range(0, len(targets), size)]


def collect_bodies(accumulator: list[Any], response: FetchResponse) -> list[Any]:
    """reduce関数が指定されない場合の既定動作。応答の本文をそのまま蓄積します。"""
    accumulator.append(response.body)
    return accumulator


class BatchFetcher(Generic[T]):
    """
    同時実行数の上限付きでURL群を取得するクラス。

    fetch_oneはタイムアウトを束縛済みの単一リクエスト関数で、
    失敗時には例外を送出する必要があります。
    """

    def __init__(self, fetch_one: FetchOne, concurrency: int):
        if concurrency <= 0:
            raise ValueError(f'同時実行数は1以上である必要があります: {concurrency}')
        self.fetch_one = fetch_one
        self.concurrency = concurrency

    def fetch(
        self,
        targets: Sequence[str],
        reduce: Reducer[T] | None = None,
        on_progress: Callable[[int], None] | None = None,
        format_url: Callable[[str], str] | None = None,
    ) -> list[T]:
        """
        すべての対象を取得し、応答を畳み込んだ蓄積リストを返します。

        1件でもリクエストが失敗した場合、そのバッチの完了を待ってから例外を
        送出し、蓄積リストは返しません。

        Args:
            targets: リクエスト対象の識別子。
            reduce: (蓄積リスト, 応答) -> 蓄積リスト。省略時は本文をそのまま蓄積。
            on_progress: 各バッチ完了後に、そのバッチの件数で呼び出される。
            format_url: 識別子をURLに変換する。省略時は識別子をURLとして扱う。
        """
        if not targets:
            return []

        batches = partition(targets, self.concurrency)
        logger.bind(
            total=len(targets), batches=len(batches), concurrency=self.concurrency
        ).debug('バッチ取得を開始します。')

        responses: list[FetchResponse] = []
        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.concurrency
        ) as executor:
            for index, batch in enumerate(batches, 1):
                urls = [format_url(t) if format_url else t for t in batch]
                responses.extend(self._fetch_batch(executor, urls))
                logger.debug('バッチ {}/{} が完了しました。', index, len(batches))
                if on_progress:
                    on_progress(len(batch))

        reducer: Reducer[Any] = reduce or collect_bodies
        accumulator: list[Any] = []
        for response in responses:
            accumulator = reducer(accumulator, response)
        return accumulator

    def _fetch_batch(
        self,
        executor: concurrent.futures.ThreadPoolExecutor,
        urls: list[str],
    ) -> list[FetchResponse]:
        """バッチ内のリクエストを並行に発行し、すべて完了するまで待ちます。"""
        futures = [executor.submit(self.fetch_one, url) for url in urls]
        concurrent.futures.wait(futures)
        # 投入順に結果を取り出す。最初の失敗がそのまま送出される
        return [future.result() for future in futures]
