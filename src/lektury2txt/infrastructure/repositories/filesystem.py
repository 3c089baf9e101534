# src/lektury2txt/infrastructure/repositories/filesystem.py

from pathlib import Path
from typing import Callable

from loguru import logger

from ...models.domain import TextDocument
from ...shared.exceptions import StorageError


class FileSystemTextRepository:
    """ファイルシステムを保存先として使用するテキストリポジトリ。"""

    def __init__(self, root_path: Path):
        self._root_path = root_path

    @property
    def root_path(self) -> Path:
        return self._root_path

    def exists(self) -> bool:
        return self._root_path.exists()

    def prepare(self) -> None:
        """出力ディレクトリを親ディレクトリを含めて作成します。"""
        try:
            self._root_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f'出力ディレクトリの作成に失敗しました: {self._root_path}'
            ) from e
        logger.bind(output_path=str(self._root_path)).debug(
            '出力ディレクトリを準備しました。'
        )

    def write(self, document: TextDocument) -> Path:
        """本文をUTF-8でファイルに書き込み、そのパスを返します。"""
        target_path = self._root_path / document.filename
        try:
            target_path.write_text(document.content, encoding='utf-8')
        except OSError as e:
            raise StorageError(f'ファイルの書き込みに失敗しました: {target_path}') from e
        logger.debug('保存しました: {} -> {}', document.source_url, target_path)
        return target_path

    def deferred_write(self, document: TextDocument) -> Callable[[], Path]:
        """書き込みを遅延させる関数を返します。"""
        return lambda: self.write(document)
