"""
BatchFetcherのテスト。

- バッチ分割(件数とサイズ)
- バッチ内の並行実行とバッチ間の逐次実行
- reduce関数の有無による蓄積結果
- 進捗コールバック
- 失敗時の中断
"""

import math
import threading
import time

import pytest

from lektury2txt.infrastructure.batch_fetcher import BatchFetcher, partition
from lektury2txt.models.domain import FetchResponse
from lektury2txt.shared.exceptions import ApiError


def echo(url: str) -> FetchResponse:
    return FetchResponse(url=url, body=f'body:{url}')


class TestPartition:
    """バッチ分割のテスト。"""

    @pytest.mark.parametrize(
        ('length', 'size'),
        [(1, 1), (5, 2), (6, 2), (7, 3), (10, 10), (100, 7)],
    )
    def test_batch_count_and_sizes(self, length, size):
        """バッチ数はceil(length / size)で、最後以外はちょうどsize件。"""
        targets = [f't{i}' for i in range(length)]

        batches = partition(targets, size)

        assert len(batches) == math.ceil(length / size)
        assert all(len(batch) == size for batch in batches[:-1])
        assert 0 < len(batches[-1]) <= size
        assert [t for batch in batches for t in batch] == targets

    @pytest.mark.parametrize('size', [3, 4, 50])
    def test_single_batch_when_size_covers_all(self, size):
        assert partition(['a', 'b', 'c'], size) == [['a', 'b', 'c']]

    def test_empty_targets(self):
        assert partition([], 3) == []

    @pytest.mark.parametrize('size', [0, -1])
    def test_rejects_non_positive_size(self, size):
        with pytest.raises(ValueError):
            partition(['a'], size)


class TestBatchFetcherResults:
    """蓄積結果のテスト。"""

    def test_empty_targets_issue_no_requests(self):
        calls: list[str] = []
        progress: list[int] = []

        def fetch_one(url: str) -> FetchResponse:
            calls.append(url)
            return echo(url)

        result = BatchFetcher(fetch_one, 3).fetch([], on_progress=progress.append)

        assert result == []
        assert calls == []
        assert progress == []

    def test_without_reduce_returns_bodies_in_target_order(self):
        """後のリクエストが先に完了しても、結果は投入順に並ぶ。"""
        targets = ['a', 'b', 'c', 'd', 'e']
        delays = {'a': 0.05, 'b': 0.0, 'c': 0.03, 'd': 0.0, 'e': 0.01}

        def fetch_one(url: str) -> FetchResponse:
            time.sleep(delays[url])
            return echo(url)

        result = BatchFetcher(fetch_one, 2).fetch(targets)

        assert result == [f'body:{t}' for t in targets]

    def test_format_url_is_applied_to_each_target(self):
        calls: list[str] = []
        lock = threading.Lock()

        def fetch_one(url: str) -> FetchResponse:
            with lock:
                calls.append(url)
            return echo(url)

        result = BatchFetcher(fetch_one, 2).fetch(
            ['x', 'y', 'z'], format_url=lambda slug: f'https://api.test/books/{slug}/'
        )

        assert sorted(calls) == [
            'https://api.test/books/x/',
            'https://api.test/books/y/',
            'https://api.test/books/z/',
        ]
        assert result[0] == 'body:https://api.test/books/x/'

    def test_filtering_reduce_excludes_rejected_entries(self):
        """reduce関数が除外した応答は蓄積されない。"""

        def fetch_one(url: str) -> FetchResponse:
            return FetchResponse(url=url, body={'keep': url != 'b', 'value': url})

        def keep_only(accumulator: list[str], response: FetchResponse) -> list[str]:
            if response.body['keep']:
                accumulator.append(response.body['value'])
            return accumulator

        result = BatchFetcher(fetch_one, 2).fetch(['a', 'b', 'c'], reduce=keep_only)

        assert result == ['a', 'c']

    def test_reduce_receives_responses_in_batch_major_order(self):
        seen: list[str] = []

        def record(accumulator: list[int], response: FetchResponse) -> list[int]:
            seen.append(response.url)
            accumulator.append(len(accumulator))
            return accumulator

        result = BatchFetcher(echo, 2).fetch(['a', 'b', 'c', 'd', 'e'], reduce=record)

        assert seen == ['a', 'b', 'c', 'd', 'e']
        assert result == [0, 1, 2, 3, 4]

    def test_each_call_starts_with_a_fresh_accumulator(self):
        fetcher = BatchFetcher(echo, 2)

        assert fetcher.fetch(['a']) == ['body:a']
        assert fetcher.fetch(['b']) == ['body:b']


class TestBatchFetcherScheduling:
    """並行実行とバッチ順序のテスト。"""

    def test_requests_within_batch_run_concurrently(self):
        """同一バッチの2件が同時に処理中でなければバリアを通過できない。"""
        barrier = threading.Barrier(2, timeout=5)

        def fetch_one(url: str) -> FetchResponse:
            barrier.wait()
            return echo(url)

        result = BatchFetcher(fetch_one, 2).fetch(['a', 'b', 'c', 'd'])

        assert len(result) == 4

    def test_in_flight_requests_never_exceed_concurrency(self):
        lock = threading.Lock()
        in_flight = 0
        max_in_flight = 0

        def fetch_one(url: str) -> FetchResponse:
            nonlocal in_flight, max_in_flight
            with lock:
                in_flight += 1
                max_in_flight = max(max_in_flight, in_flight)
            time.sleep(0.01)
            with lock:
                in_flight -= 1
            return echo(url)

        BatchFetcher(fetch_one, 3).fetch([f't{i}' for i in range(10)])

        assert max_in_flight <= 3

    def test_next_batch_starts_after_previous_batch_settles(self):
        lock = threading.Lock()
        events: list[tuple[str, str]] = []

        def fetch_one(url: str) -> FetchResponse:
            with lock:
                events.append(('start', url))
            time.sleep(0.02 if url in ('a', 'c') else 0.0)
            with lock:
                events.append(('end', url))
            return echo(url)

        BatchFetcher(fetch_one, 2).fetch(['a', 'b', 'c', 'd', 'e'])

        def index(kind: str, url: str) -> int:
            return events.index((kind, url))

        first_batch_end = max(index('end', 'a'), index('end', 'b'))
        second_batch_start = min(index('start', 'c'), index('start', 'd'))
        second_batch_end = max(index('end', 'c'), index('end', 'd'))
        assert first_batch_end < second_batch_start
        assert second_batch_end < index('start', 'e')


class TestBatchFetcherProgress:
    """進捗コールバックのテスト。"""

    def test_progress_called_once_per_batch(self):
        progress: list[int] = []

        BatchFetcher(echo, 2).fetch(
            ['a', 'b', 'c', 'd', 'e'], on_progress=progress.append
        )

        assert progress == [2, 2, 1]
        assert sum(progress) == 5

    def test_single_batch_reports_all_targets(self):
        progress: list[int] = []

        BatchFetcher(echo, 10).fetch(['a', 'b', 'c'], on_progress=progress.append)

        assert progress == [3]


class TestBatchFetcherFailures:
    """失敗時の挙動のテスト。"""

    def test_failing_request_aborts_whole_fetch(self):
        calls: list[str] = []
        lock = threading.Lock()
        reduced: list[str] = []
        progress: list[int] = []

        def fetch_one(url: str) -> FetchResponse:
            with lock:
                calls.append(url)
            if url == 'b':
                raise ApiError('API呼び出しに失敗しました (HTTP 503)', url=url)
            return echo(url)

        def reduce(accumulator: list[str], response: FetchResponse) -> list[str]:
            reduced.append(response.url)
            return accumulator

        with pytest.raises(ApiError):
            BatchFetcher(fetch_one, 2).fetch(
                ['a', 'b', 'c', 'd', 'e'], reduce=reduce, on_progress=progress.append
            )

        # 失敗したバッチ以降は開始されず、畳み込みも行われない
        assert sorted(calls) == ['a', 'b']
        assert reduced == []
        assert progress == []

    def test_failure_waits_for_rest_of_batch(self):
        finished: list[str] = []

        def fetch_one(url: str) -> FetchResponse:
            if url == 'a':
                raise ApiError('タイムアウト', url=url)
            time.sleep(0.05)
            finished.append(url)
            return echo(url)

        with pytest.raises(ApiError):
            BatchFetcher(fetch_one, 3).fetch(['a', 'b', 'c'])

        assert sorted(finished) == ['b', 'c']

    def test_failure_in_later_batch_discards_earlier_results(self):
        def fetch_one(url: str) -> FetchResponse:
            if url == 'e':
                raise ApiError('接続エラー', url=url)
            return echo(url)

        fetcher = BatchFetcher(fetch_one, 2)
        with pytest.raises(ApiError, match='接続エラー'):
            fetcher.fetch(['a', 'b', 'c', 'd', 'e'])

    @pytest.mark.parametrize('concurrency', [0, -3])
    def test_rejects_non_positive_concurrency(self, concurrency):
        with pytest.raises(ValueError):
            BatchFetcher(echo, concurrency)
