# FILE: src/lektury2txt/shared/exceptions.py

class Lektury2TxtError(Exception):
    """アプリケーションの基底例外クラス。"""

    pass


class SettingsError(Lektury2TxtError):
    """設定関連のエラー。"""

    pass


class InvalidInputError(Lektury2TxtError):
    """不正な作者スラッグやURLが入力された場合のエラー。"""

    pass


class ApiError(Lektury2TxtError):
    """
    API通信中のエラー（ネットワークエラー、非2xxステータス、タイムアウトなど）。
    リトライは行わず、常に処理全体を中断させます。
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ):
        if url:
            super().__init__(f'{message} ({url})')
        else:
            super().__init__(message)
        self.url = url
        self.status_code = status_code


class ShapeMismatchError(Lektury2TxtError):
    """APIレスポンスが期待される形式を満たさない場合のエラー。"""

    def __init__(self, message: str, reason: str | None = None):
        if reason:
            super().__init__(f'{message}:\n{reason}')
        else:
            super().__init__(message)
        self.reason = reason


class StorageError(Lektury2TxtError):
    """出力ディレクトリの作成やファイル書き込みに失敗した場合のエラー。"""

    pass
