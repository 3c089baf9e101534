# FILE: src/lektury2txt/utils/progress.py
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Callable

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)

from .logging import console as default_console

ProgressCallback = Callable[[int], None]


@contextmanager
def progress_bar(
    description: str,
    total: int,
    console: Console | None = None,
) -> Iterator[ProgressCallback]:
    """
    richのプログレスバーを表示し、完了件数の増分を受け取るコールバックを返します。
    累積値の管理はプログレスバー側が行います。
    """
    with Progress(
        TextColumn('[bold blue]{task.description}'),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console or default_console,
        transient=True,
    ) as progress:
        task = progress.add_task(description, total=total)

        def advance(completed: int) -> None:
            progress.update(task, advance=completed)

        yield advance
