# FILE: src/lektury2txt/domain/validation.py
"""
型付けされていないAPIペイロードを、宣言的な形状契約(Pydanticモデル)で検証します。
I/Oを伴わない純粋な同期処理です。
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..shared.exceptions import ShapeMismatchError

T = TypeVar('T')


@dataclass(frozen=True)
class Valid(Generic[T]):
    """契約を満たした値。フィールドは型付きで参照できます。"""

    value: T


@dataclass(frozen=True)
class Rejected:
    """契約を満たさなかった値。部分的な結果は保持しません。"""

    reason: str


@lru_cache(maxsize=None)
def _adapter_for(contract: Any) -> TypeAdapter[Any]:
    return TypeAdapter(contract)


def validate(
    value: Any,
    contract: type[T],
    *,
    context: dict[str, Any] | None = None,
) -> Valid[T] | Rejected:
    """valueがcontractに完全に適合する場合のみValidを返します。"""
    try:
        typed = _adapter_for(contract).validate_python(value, context=context)
    except ValidationError as e:
        return Rejected(reason=str(e))
    return Valid(value=typed)


def validate_or_raise(
    value: Any,
    contract: type[T],
    *,
    context: dict[str, Any] | None = None,
    description: str = 'レスポンス',
) -> T:
    """validateの結果がRejectedの場合はShapeMismatchErrorを送出します。"""
    result = validate(value, contract, context=context)
    if isinstance(result, Rejected):
        raise ShapeMismatchError(
            f'{description}の形式が不正です', reason=result.reason
        )
    return result.value
