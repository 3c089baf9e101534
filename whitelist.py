# whitelist.py
"""
このファイルは Vulture が検出した「デッドコード」の誤検知を
抑制するためのホワイトリストです。

Pydanticモデルのフィールドやバリデーター、Typerのコマンド、
Protocolのメソッド定義など、Vulture が静的解析で
「未使用」と判断してしまう項目をここで定義することで、
Vulture のレポートから除外します。
"""

# --- Pydanticモデルの設定・フィールド (wolnelektury.py, settings.py) ---
model_config
children
user_agent

# --- Pydanticバリデーター ---
language_must_match_context
normalize_base_url
validate_author_slug

# --- pydantic-settings のカスタムソース ---
settings_customise_sources
get_field_value

# --- Typerのコールバックとコマンド (cli.py) ---
main_callback
slugs
urls
download
