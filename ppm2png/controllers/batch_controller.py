"""Контроллер пакетной конвертации: перечисление каталога и запуск задач.

SOLID:
- SRP: класс решает, какие файлы и в каком режиме конвертировать, но не разбирает PPM.
- DIP: работа с одним файлом делегирована `ConvertService`.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from ppm2png.models.pixmap_model import (
    BatchConfig,
    BatchSummary,
    ConversionError,
    ConversionResult,
    ConversionStage,
    ConversionTask,
)
from ppm2png.services.convert_service import ConvertService

PPM_SUFFIX = ".ppm"
PNG_SUFFIX = ".png"


def destination_name(name: str) -> str:
    """Имя PNG для входного файла: буквальный хвост ".ppm" отрезается, ".png" добавляется.

    `a.ppm` -> `a.png`, `a.txt` -> `a.txt.png`.
    """
    if name.endswith(PPM_SUFFIX):
        name = name[: -len(PPM_SUFFIX)]
    return name + PNG_SUFFIX


@dataclass
class BatchController:
    """Собирает задачи из входного каталога и выполняет их.

    Ответственности:
    - Листинг каталога (ошибка листинга фатальна и пробрасывается как `OSError`).
    - Последовательный запуск в порядке листинга или параллельный через пул потоков.
    - Сбор результатов в `BatchSummary` в порядке листинга независимо от режима.
    """
    config: BatchConfig
    _convert_service: ConvertService = field(default_factory=ConvertService)

    def list_tasks(self) -> List[ConversionTask]:
        entries = sorted(self.config.input_dir.iterdir(), key=lambda p: p.name)
        return [
            ConversionTask(
                source=entry,
                destination=self.config.output_dir / destination_name(entry.name),
            )
            for entry in entries
            if not entry.is_dir()
        ]

    def _claim_destinations(self, tasks: List[ConversionTask]) -> Dict[int, ConversionResult]:
        """Отклоняет задачи, чьё имя PNG уже занято более ранним файлом (`a` и `a.ppm`)."""
        owners: Dict[Path, ConversionTask] = {}
        rejected: Dict[int, ConversionResult] = {}
        for index, task in enumerate(tasks):
            owner = owners.setdefault(task.destination, task)
            if owner is not task:
                err = ConversionError(
                    task.source,
                    ConversionStage.CREATE,
                    f"destination {task.destination.name} already used by {owner.source.name}",
                )
                rejected[index] = self._convert_service.reject(task, err)
        return rejected

    def run(self) -> BatchSummary:
        tasks = self.list_tasks()
        self.config.output_dir.mkdir(parents=True, exist_ok=True)

        results: Dict[int, ConversionResult] = self._claim_destinations(tasks)
        pending = [i for i in range(len(tasks)) if i not in results]

        if not self.config.parallel:
            for i in pending:
                results[i] = self._convert_service.convert(tasks[i])
        elif pending:
            workers = self.config.workers or len(pending)
            # leaving the with-block joins every submitted task
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {i: executor.submit(self._convert_service.convert, tasks[i]) for i in pending}
            for i, future in futures.items():
                results[i] = future.result()

        return BatchSummary(results=[results[i] for i in range(len(tasks))])
