# FILE: src/lektury2txt/utils/logging.py
from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

# 標準出力は slugs / urls コマンドの結果専用。ログとプログレスバーは標準エラー出力へ。
console = Console(stderr=True)

LOG_FILE_PATTERN = 'logs/lektury2txt_{time}.log'


def setup_logging(level: str = 'INFO', serialize_to_file: bool = False) -> None:
    """
    LoguruをRichHandlerとJSONファイル出力用に設定します。
    コンソール出力はプログレスバーと同じConsoleを共有し、表示が崩れないようにします。
    """
    logger.remove()  # デフォルトハンドラの削除

    # コンソール用のハンドラ
    logger.add(
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            markup=False,  # URLやサーバー応答に含まれる角括弧をそのまま表示する
            log_time_format='[%X]',
        ),
        level=level.upper(),
        format='{message}',
        backtrace=False,
        diagnose=False,
    )

    # ファイル出力用のハンドラ (JSON形式、bindした作者・URLなどの構造化フィールドを含む)
    if serialize_to_file:
        logger.add(
            LOG_FILE_PATTERN,
            level='DEBUG',
            serialize=True,
            enqueue=True,  # 書き込みスレッドからのログも安全に直列化する
            rotation='10 MB',
            retention='7 days',
            backtrace=True,
            diagnose=False,
        )

    logger.debug(
        'ロガーが設定されました。レベル: {}, ファイル出力: {}',
        level.upper(),
        serialize_to_file,
    )
