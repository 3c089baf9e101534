# FILE: src/lektury2txt/models/wolnelektury.py
"""
Wolne Lektury APIのJSONレスポンスを検証するためのPydanticデータモデル。
このモジュールは外部APIの仕様に依存します。

レスポンスの信頼性は保証されないため、利用するフィールドはすべて厳密に型検査し、
一部でも不一致があれば値全体を拒否します(strict=True)。
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

LANGUAGE_CONTEXT_KEY = 'language'


class WolneLekturyBaseModel(BaseModel):
    """すべてのWolne Lekturyモデルで共通の設定を持つ基底クラス。"""

    model_config = ConfigDict(
        extra='ignore',  # モデルにない余分なフィールドは無視する
        strict=True,  # 型の暗黙的な変換を行わない
        frozen=True,
    )


# --- `authors/{author}/books/` APIレスポンスモデル ---
class BookSummary(WolneLekturyBaseModel):
    """作者の作品一覧の1要素。"""

    slug: str


BookList = list[BookSummary]


# --- `books/{slug}/` APIレスポンスモデル ---
class BookDetail(WolneLekturyBaseModel):
    """
    単一作品の詳細。単一テキストとしてダウンロード可能な作品のみを受け付けます。

    - language: 検証コンテキストの 'language' と完全一致すること
    - children: 空であること(子作品を持つものはコレクション)
    - txt: 本文テキストのURL
    """

    language: str
    children: list[Any] = Field(max_length=0)
    txt_url: str = Field(alias='txt')

    @field_validator('language')
    @classmethod
    def language_must_match_context(cls, value: str, info: ValidationInfo) -> str:
        expected = (info.context or {}).get(LANGUAGE_CONTEXT_KEY)
        if expected is not None and value != expected:
            raise ValueError(f"言語コードが一致しません: '{value}' != '{expected}'")
        return value
