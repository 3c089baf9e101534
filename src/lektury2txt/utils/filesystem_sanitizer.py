# FILE: src/lektury2txt/utils/filesystem_sanitizer.py

import re
import urllib.parse
from pathlib import Path

from ..shared.constants import DEFAULT_TEXT_EXTENSION, INVALID_PATH_CHARS_REGEX


def sanitize_path_part(part: str, max_length: int = 255) -> str:
    """ファイル/ディレクトリ名として安全でない文字を'_'に置換し、長さを制限します。"""
    sanitized_part = re.sub(INVALID_PATH_CHARS_REGEX, '_', part).strip()

    if len(sanitized_part) <= max_length:
        return sanitized_part

    # pathlibを使用して拡張子を安全に分離
    p = Path(sanitized_part)
    stem = p.stem
    extension = p.suffix

    if extension:
        max_stem_length = max_length - len(extension)
        return f'{stem[:max_stem_length]}{extension}'
    return sanitized_part[:max_length]


def filename_from_url(url: str) -> str:
    """
    URLのパスの最後の(空でない)セグメントからファイル名を生成します。
    例: 'https://wolnelektury.pl/media/book/txt/pan-tadeusz.txt' -> 'pan-tadeusz.txt'
    """
    path = urllib.parse.urlparse(url).path
    segments = [segment for segment in path.split('/') if segment]
    if not segments:
        raise ValueError(f'URLからファイル名を決定できません: {url}')

    filename = sanitize_path_part(urllib.parse.unquote(segments[-1]))
    if filename in ('', '.', '..'):
        raise ValueError(f'URLからファイル名を決定できません: {url}')
    if not Path(filename).suffix:
        filename = f'{filename}{DEFAULT_TEXT_EXTENSION}'
    return filename
