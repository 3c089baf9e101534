# FILE: src/lektury2txt/__main__.py
"""
パッケージを 'python -m lektury2txt' コマンドで実行可能にするための
エントリーポイントです。
"""

from .entrypoints.cli import run_app

if __name__ == '__main__':
    run_app()
