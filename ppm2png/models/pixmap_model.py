"""Модели данных конвертера PPM -> PNG.

Принципы:
- SRP: только структуры данных, без логики разбора и кодирования.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

PPM_MAGIC = "P3"


@dataclass(frozen=True)
class PixmapHeader:
    """Заголовок ASCII PPM.

    Fields:
        magic: Сигнатура формата, всегда "P3".
        width: Ширина, px (> 0).
        height: Высота, px (> 0).
        max_value: Максимальное значение канала (> 0), используется как делитель.
    """
    magic: str
    width: int
    height: int
    max_value: int

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class ConversionTask:
    """Пара путей для одной конвертации."""
    source: Path
    destination: Path


class ConversionStage(str, Enum):
    """Этап конвертации, на котором произошла ошибка."""
    OPEN = "open"
    HEADER = "header"
    PIXELS = "pixels"
    CREATE = "create"
    ENCODE = "encode"


class ConversionError(Exception):
    """Ошибка конвертации одного файла: {file, stage, cause}.

    Не прерывает пакет: перехватывается на границе конвертера файла.
    """

    def __init__(self, file: Path | str, stage: ConversionStage, cause: str) -> None:
        super().__init__(f"{file}: [{stage.value}] {cause}")
        self.file = Path(file)
        self.stage = stage
        self.cause = cause


@dataclass(frozen=True)
class ConversionResult:
    task: ConversionTask
    error: Optional[ConversionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class BatchConfig:
    """Параметры пакетной конвертации, собранные из аргументов командной строки.

    Fields:
        input_dir: Каталог с исходными .ppm.
        output_dir: Каталог для .png.
        parallel: Конвертировать файлы параллельно.
        workers: Размер пула потоков; None означает по одному потоку на файл.
    """
    input_dir: Path
    output_dir: Path
    parallel: bool = False
    workers: Optional[int] = None


@dataclass
class BatchSummary:
    """Итог пакета; `results` всегда в порядке листинга каталога."""
    results: List[ConversionResult] = field(default_factory=list)

    @property
    def converted(self) -> List[ConversionResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> List[ConversionResult]:
        return [r for r in self.results if not r.ok]
