"""Конвертация одного файла PPM -> PNG.

Принципы:
- SRP: сервис связывает разбор (`ppm_service`) и кодирование PNG (Pillow).
- Ошибки одного файла не выходят за пределы `convert`: они печатаются
  и возвращаются в `ConversionResult`, пакет продолжается.
"""
from __future__ import annotations

import sys
from pathlib import Path
from typing import TextIO, Tuple

import numpy as np
from PIL import Image

from ppm2png.models.pixmap_model import (
    ConversionError,
    ConversionResult,
    ConversionStage,
    ConversionTask,
    PixmapHeader,
)
from ppm2png.services.ppm_service import allocate_buffer, decode_pixels, parse_header


class ConvertService:
    def __init__(self, stream: TextIO | None = None) -> None:
        # None -> текущий sys.stderr на момент печати
        self._stream = stream

    def _report(self, message: str) -> None:
        print(message, file=self._stream or sys.stderr, flush=True)

    def read_pixmap(self, path: Path) -> Tuple[PixmapHeader, np.ndarray]:
        """Читает PPM с диска в RGBA-буфер.

        Raises:
            ConversionError: этап OPEN, если файл не открыть/не прочитать,
                HEADER или PIXELS при ошибках формата.
        """
        try:
            # undecodable bytes become U+FFFD and fail as bad tokens
            with open(path, "r", encoding="ascii", errors="replace") as fh:
                lines = iter(fh)
                header = parse_header(lines, path)
                buffer = allocate_buffer(header, path)
                decode_pixels(lines, path, buffer, header.max_value)
        except OSError as exc:
            raise ConversionError(path, ConversionStage.OPEN, f"could not read file: {exc}") from exc
        return header, buffer

    def to_image(self, buffer: np.ndarray) -> Image.Image:
        """Оборачивает буфер (height, width, 4) uint8 в изображение RGBA."""
        return Image.fromarray(buffer)

    def write_png(self, image: Image.Image, destination: Path) -> None:
        """Создаёт файл назначения и кодирует в него PNG.

        При ошибке кодирования частично записанный файл удаляется.
        """
        try:
            fh = open(destination, "wb")
        except OSError as exc:
            raise ConversionError(
                destination, ConversionStage.CREATE, f"could not create file: {exc}"
            ) from exc
        try:
            with fh:
                image.save(fh, format="PNG")
        except (OSError, ValueError) as exc:
            destination.unlink(missing_ok=True)
            raise ConversionError(destination, ConversionStage.ENCODE, f"png encode failed: {exc}") from exc

    def reject(self, task: ConversionTask, error: ConversionError) -> ConversionResult:
        """Печатает ошибку и оформляет её как результат задачи."""
        self._report(f"Failed {error}")
        return ConversionResult(task=task, error=error)

    def convert(self, task: ConversionTask) -> ConversionResult:
        """Конвертирует один файл; никогда не бросает `ConversionError` наружу.

        Файл назначения создаётся только после полного разбора источника.
        """
        self._report(f"Converting {task.source} to {task.destination}")
        try:
            header, buffer = self.read_pixmap(task.source)
            self.write_png(self.to_image(buffer), task.destination)
        except ConversionError as err:
            return self.reject(task, err)
        self._report(f"Converted {task.source} to {task.destination} ({header.width}x{header.height})")
        return ConversionResult(task=task)
