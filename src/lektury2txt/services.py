# FILE: src/lektury2txt/services.py
import concurrent.futures
from contextlib import AbstractContextManager
from functools import partial
from pathlib import Path
from typing import Callable

from loguru import logger

from .domain.interfaces import IApiClient, ITextRepository
from .domain.validation import Rejected, validate, validate_or_raise
from .infrastructure.batch_fetcher import BatchFetcher, Reducer
from .infrastructure.repositories.filesystem import FileSystemTextRepository
from .models.domain import FetchResponse, TextDocument
from .models.wolnelektury import LANGUAGE_CONTEXT_KEY, BookDetail, BookList
from .shared.exceptions import StorageError
from .shared.settings import Settings
from .utils.filesystem_sanitizer import filename_from_url
from .utils.progress import ProgressCallback, progress_bar

DeferredWrite = Callable[[], Path]
ProgressFactory = Callable[[str, int], AbstractContextManager[ProgressCallback]]
RepositoryFactory = Callable[[Path], ITextRepository]


class ApplicationService:
    """
    アプリケーションの全ユースケースを統括するサービスレイヤー。
    依存関係の構築(DI)はコンポジションルート(cli.py)で行われ、
    このクラスは注入された依存関係を利用して処理を実行する責務を持つ。
    """

    def __init__(
        self,
        settings: Settings,
        api_client: IApiClient,
        repository_factory: RepositoryFactory = FileSystemTextRepository,
        progress_factory: ProgressFactory = progress_bar,
    ):
        self.settings = settings
        self.api_client = api_client
        self.repository_factory = repository_factory
        self.progress_factory = progress_factory
        logger.debug('ApplicationService が初期化されました。')

    # --- ユースケース ---

    def list_slugs(self, author: str) -> list[str]:
        """作者の全作品のスラッグを取得します。"""
        response = self.api_client.get_json(
            self.api_client.author_books_url(author),
            timeout=self.settings.fetcher.metadata_timeout,
        )
        # 一覧が不正な場合、以降のすべての処理が信頼できないため中断する
        books = validate_or_raise(response.body, BookList, description='作品一覧')
        slugs = [book.slug for book in books]
        logger.bind(author=author, count=len(slugs)).info('作品一覧を取得しました。')
        return slugs

    def resolve_text_urls(self, author: str) -> list[str]:
        """作者の作品のうち、単一テキストとして取得可能なものの本文URLを返します。"""
        slugs = self.list_slugs(author)
        fetcher: BatchFetcher[str] = BatchFetcher(
            partial(
                self.api_client.get_json,
                timeout=self.settings.fetcher.metadata_timeout,
            ),
            self.settings.fetcher.concurrency,
        )
        with self.progress_factory('作品情報を取得中', len(slugs)) as on_progress:
            urls = fetcher.fetch(
                slugs,
                reduce=self._text_url_collector(),
                on_progress=on_progress,
                format_url=self.api_client.book_url,
            )

        logger.bind(
            author=author, accepted=len(urls), excluded=len(slugs) - len(urls)
        ).info('ダウンロード対象の作品を特定しました。')
        return urls

    def download_texts(self, author: str, output_dir: Path | None = None) -> list[Path]:
        """
        作者の単一作品の本文をすべてダウンロードし、出力ディレクトリに保存します。
        出力ディレクトリが既に存在する場合は処理済みとみなし、何も行いません。
        """
        root_path = output_dir or self.settings.output.directory / author
        repository = self.repository_factory(root_path)

        with logger.contextualize(
            author=author, output_path=str(repository.root_path)
        ):
            if repository.exists():
                logger.warning('出力ディレクトリが既に存在するため、処理をスキップします。')
                return []

            urls = self.resolve_text_urls(author)

            fetcher: BatchFetcher[DeferredWrite] = BatchFetcher(
                partial(
                    self.api_client.get_text,
                    timeout=self.settings.fetcher.download_timeout,
                ),
                self.settings.fetcher.concurrency,
            )
            with self.progress_factory('本文をダウンロード中', len(urls)) as on_progress:
                writes = fetcher.fetch(
                    urls,
                    reduce=self._deferred_write_collector(repository),
                    on_progress=on_progress,
                )

            repository.prepare()
            paths = self._run_deferred_writes(writes)
            logger.bind(count=len(paths)).success('本文の保存が完了しました。')
            return paths

    # --- reduce関数 ---

    def _text_url_collector(self) -> Reducer[str]:
        """作品詳細を検証し、単一テキスト作品の本文URLのみを蓄積するreduce関数を返します。"""
        context = {LANGUAGE_CONTEXT_KEY: self.settings.target.language}

        def collect(accumulator: list[str], response: FetchResponse) -> list[str]:
            result = validate(response.body, BookDetail, context=context)
            if isinstance(result, Rejected):
                logger.bind(url=response.url, reason=result.reason).debug(
                    '単一テキストとして扱えない作品を除外しました。'
                )
                return accumulator
            accumulator.append(result.value.txt_url)
            return accumulator

        return collect

    @staticmethod
    def _deferred_write_collector(
        repository: ITextRepository,
    ) -> Reducer[DeferredWrite]:
        """
        本文ごとに、ファイル書き込みを遅延実行する関数を蓄積するreduce関数を返します。
        ファイル名が重複する場合は、書き込みを始める前に中断します。
        """
        seen_urls: dict[str, str] = {}

        def collect(
            accumulator: list[DeferredWrite], response: FetchResponse
        ) -> list[DeferredWrite]:
            try:
                filename = filename_from_url(response.url)
            except ValueError as e:
                raise StorageError(str(e)) from e
            if filename in seen_urls:
                raise StorageError(
                    f'ファイル名が重複しています: {filename} '
                    f'({seen_urls[filename]}, {response.url})'
                )
            seen_urls[filename] = response.url
            document = TextDocument(
                source_url=response.url, filename=filename, content=response.body
            )
            accumulator.append(repository.deferred_write(document))
            return accumulator

        return collect

    @staticmethod
    def _run_deferred_writes(writes: list[DeferredWrite]) -> list[Path]:
        """
        遅延書き込みをすべて並行に実行します。
        ネットワークと異なり、ディスク書き込みの並行数は制限しません。
        """
        if not writes:
            return []
        with concurrent.futures.ThreadPoolExecutor(max_workers=len(writes)) as executor:
            futures = [executor.submit(write) for write in writes]
            concurrent.futures.wait(futures)
        return [future.result() for future in futures]
