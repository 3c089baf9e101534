# FILE: src/lektury2txt/shared/settings.py

import tomllib
from contextvars import ContextVar
from pathlib import Path
from typing import Any, cast

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    field_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import PATTERNS, TIMEOUTS
from .exceptions import SettingsError

# Settings.__init__ から settings_customise_sources へ --config のパスを受け渡す
_CONFIG_FILE: ContextVar[Path | None] = ContextVar('_CONFIG_FILE', default=None)


# --- TOMLファイル読み込みロジック ---
def load_toml_config(toml_file: Path) -> dict[str, Any]:
    """指定されたTOMLファイルを読み込みます。"""
    if not toml_file.is_file():
        return {}
    try:
        with toml_file.open('rb') as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise SettingsError(
            f"設定ファイル '{toml_file}' の解析に失敗しました: {e}"
        ) from e


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """ユーザー指定のTOML設定ファイルを読み込むためのカスタムソース。"""

    def __init__(self, settings_cls: type[BaseSettings], config_file: Path | None):
        super().__init__(settings_cls)
        self.config_file = config_file
        self._toml_config: dict[str, Any] = (
            load_toml_config(self.config_file) if self.config_file else {}
        )

    def get_field_value(self, field: object, field_name: str) -> tuple[Any, str, bool]:
        """このカスタムソースはフィールドごとの値取得をサポートしないため、__call__に処理を委ねます。"""
        # Pydanticの仕様に合わせ、(値, キー, 複合的か)のタプルを返す
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        """設定ファイル全体を辞書として一度に返します。"""
        return self._toml_config


class PyProjectTomlSource(PydanticBaseSettingsSource):
    """pyproject.tomlから[tool.lektury2txt]セクションを読み込むソース。"""

    def __init__(self, settings_cls: type[BaseSettings]):
        super().__init__(settings_cls)
        self._config = self._load_pyproject_toml()

    def _load_pyproject_toml(self) -> dict[str, Any]:
        pyproject_path = Path.cwd() / 'pyproject.toml'
        config = load_toml_config(pyproject_path)
        return cast(dict[str, Any], config.get('tool', {}).get('lektury2txt', {}))

    def get_field_value(self, field: object, field_name: str) -> tuple[Any, str, bool]:
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._config


# --- 設定モデル定義 ---


class ApiSettings(BaseModel):
    """Wolne Lektury APIへの接続設定。"""

    base_url: str = Field(
        default='https://wolnelektury.pl/api',
        description='APIのベースURL。',
    )
    user_agent: str = Field(
        default='lektury2txt/0.1.0',
        description='APIリクエストに使用するユーザーエージェント。',
    )

    @field_validator('base_url')
    @classmethod
    def normalize_base_url(cls, value: str) -> str:
        if not value.startswith(('http://', 'https://')):
            raise ValueError(f'base_urlはhttp(s)のURLである必要があります: {value}')
        return value.rstrip('/')


class TargetSettings(BaseModel):
    """取得対象の作者と言語に関する設定。"""

    author: str = Field(
        default='adam-mickiewicz',
        description='作品を取得する作者のスラッグ。',
    )
    language: str = Field(
        default='pol',
        description='取得対象とする作品の言語コード。一致しない作品は除外されます。',
    )

    @field_validator('author')
    @classmethod
    def validate_author_slug(cls, value: str) -> str:
        if not PATTERNS.SLUG.match(value):
            raise ValueError(f'無効な作者スラッグです: {value!r}')
        return value


class FetcherSettings(BaseModel):
    """バッチ取得処理に関する設定。"""

    concurrency: int = Field(
        default=10,
        gt=0,
        description='1バッチあたりの同時リクエスト数。',
    )
    metadata_timeout: float = Field(
        default=TIMEOUTS.METADATA,
        gt=0,
        description='作品一覧・作品詳細リクエストのタイムアウト(秒)。',
    )
    download_timeout: float = Field(
        default=TIMEOUTS.DOWNLOAD,
        gt=0,
        description='本文テキストのダウンロードのタイムアウト(秒)。',
    )


class OutputSettings(BaseModel):
    """出力先に関する設定。"""

    directory: Path = Field(
        default=Path('./texts'),
        description='テキストファイルの保存先ルートディレクトリ。作者ごとにサブディレクトリが作られます。',
    )


class Settings(BaseSettings):
    """
    アプリケーションの階層的設定管理クラス。
    以下の優先順位で設定を読み込みます:
    1. Pythonコードからの直接初期化
    2. --config で指定されたカスタムTOMLファイル
    3. 環境変数 (例: LEKTURY2TXT_FETCHER__CONCURRENCY=5)
    4. .env ファイル
    5. pyproject.toml内の [tool.lektury2txt] セクション
    6. モデルで定義されたデフォルト値
    """

    api: ApiSettings = Field(default_factory=ApiSettings)
    target: TargetSettings = Field(default_factory=TargetSettings)
    fetcher: FetcherSettings = Field(default_factory=FetcherSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    log_level: str = 'INFO'

    def __init__(self, **values: object):
        config_file_path = values.pop('_config_file', None)
        token = _CONFIG_FILE.set(
            Path(cast(Path | str, config_file_path)) if config_file_path else None
        )
        try:
            super().__init__(**values)  # type: ignore [arg-type]
        except (ValidationError, ValueError) as e:
            raise SettingsError(f'設定の検証に失敗しました:\n{e}') from e
        finally:
            _CONFIG_FILE.reset(token)

    model_config = SettingsConfigDict(
        env_nested_delimiter='__',
        env_prefix='LEKTURY2TXT_',
        env_file='.env',
        env_file_encoding='utf-8',
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # 初期化中の Settings.__init__ が設定したパスを参照する
        config_file_path = _CONFIG_FILE.get()

        return (
            init_settings,
            TomlConfigSettingsSource(settings_cls, config_file_path),
            env_settings,
            dotenv_settings,
            PyProjectTomlSource(settings_cls),
        )
