# FILE: src/lektury2txt/entrypoints/cli.py
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from ..infrastructure.client import WolneLekturyApiClient
from ..services import ApplicationService
from ..shared.exceptions import Lektury2TxtError, SettingsError
from ..shared.settings import Settings
from ..utils.logging import setup_logging
from ..utils.url_parser import parse_author_identifier

app = typer.Typer(
    help='Wolne Lekturyから作者の作品本文をまとめてダウンロードし、テキストファイルとして保存するコマンドラインツールです。',
    rich_markup_mode='markdown',
)

AuthorArgument = Annotated[
    str | None,
    typer.Argument(
        help='作者のスラッグまたはWolne LekturyのURL。省略時は設定値を使用します。',
        metavar='AUTHOR',
        show_default=False,
    ),
]


def _initialize_settings(config_file: Path | None, log_level: str) -> Settings:
    """設定オブジェクトを初期化するヘルパー関数。"""
    try:
        return Settings(_config_file=config_file, log_level=log_level)
    except SettingsError as e:
        logger.bind(error=str(e)).error('❌ 設定エラーが発生しました。')
        raise typer.Exit(code=1) from e


def _resolve_author(app_service: ApplicationService, author: str | None) -> str:
    if author is None:
        return app_service.settings.target.author
    return parse_author_identifier(author)


@contextmanager
def _timed() -> Iterator[None]:
    """処理時間を計測し、完了時にログ出力します。"""
    start_time = time.perf_counter()
    yield
    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info('@ Done in: {:.2f} ms', elapsed_ms)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option(
            '-v',
            '--verbose',
            help='詳細なデバッグログを有効にします。',
            show_default=False,
        ),
    ] = False,
    config: Annotated[
        Path | None,
        typer.Option(
            '-c',
            '--config',
            help='カスタム設定TOMLファイルへのパス。',
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ] = None,
    log_file: Annotated[
        bool,
        typer.Option(
            '--log-file',
            help='ログをJSON形式でファイルに出力します。',
            show_default=False,
        ),
    ] = False,
) -> None:
    """
    Wolne Lektury Text Downloader
    """
    log_level = 'DEBUG' if verbose else 'INFO'
    setup_logging(log_level, serialize_to_file=log_file)

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        return

    settings = _initialize_settings(config, log_level)
    api_client = WolneLekturyApiClient(settings.api)
    ctx.call_on_close(api_client.close)
    ctx.obj = ApplicationService(settings=settings, api_client=api_client)


@app.command()
def slugs(ctx: typer.Context, author: AuthorArgument = None) -> None:
    """作者の全作品のスラッグを表示します。"""
    app_service: ApplicationService = ctx.obj
    with _timed():
        for slug in app_service.list_slugs(_resolve_author(app_service, author)):
            typer.echo(slug)


@app.command()
def urls(ctx: typer.Context, author: AuthorArgument = None) -> None:
    """作者の単一作品(コレクションを除く)の本文URLを表示します。"""
    app_service: ApplicationService = ctx.obj
    with _timed():
        for url in app_service.resolve_text_urls(_resolve_author(app_service, author)):
            typer.echo(url)


@app.command()
def download(
    ctx: typer.Context,
    author: AuthorArgument = None,
    output_dir: Annotated[
        Path | None,
        typer.Option(
            '-o',
            '--output',
            help='保存先ディレクトリ。既に存在する場合は何も行いません。',
            file_okay=False,
            dir_okay=True,
            resolve_path=True,
        ),
    ] = None,
) -> None:
    """作者の単一作品の本文をダウンロードし、テキストファイルとして保存します。"""
    app_service: ApplicationService = ctx.obj
    with _timed():
        paths = app_service.download_texts(
            _resolve_author(app_service, author), output_dir=output_dir
        )
    logger.bind(count=len(paths)).info('✅ すべての処理が完了しました。')


@logger.catch(exclude=Lektury2TxtError)
def run_app() -> None:
    """
    アプリケーション全体を@logger.catchでラップし、
    制御下の例外は個別処理、それ以外をLoguruに記録させるためのラッパー関数。
    """
    try:
        app()
    except Lektury2TxtError as e:
        logger.bind(error=str(e)).error('❌ 処理中にエラーが発生しました。')
        raise SystemExit(1) from e
