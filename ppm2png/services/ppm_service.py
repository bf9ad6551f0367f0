"""Разбор ASCII PPM (P3): заголовок и построчное чтение пикселей.

Принципы:
- SRP: модуль только читает текст и заполняет RGBA-буфер; кодирование в PNG вне его.
- Ошибки формата сообщаются через `ConversionError` с этапом и причиной,
  а не через текст сообщения.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator, List

import numpy as np

from ppm2png.models.pixmap_model import (
    PPM_MAGIC,
    ConversionError,
    ConversionStage,
    PixmapHeader,
)

OPAQUE = 255

# decimal integers only: no "+", no "_" separators
_DECIMAL = re.compile(r"-?[0-9]+")


def scale_channel(value: int, max_value: int) -> int:
    """Линейно переводит значение канала из [0, max_value] в [0, 255].

    Деление целочисленное (с отбрасыванием): max_value=100, value=1 -> 2.
    """
    return (value * 255) // max_value


def _parse_positive(token: str, source: Path, name: str) -> int:
    if not _DECIMAL.fullmatch(token):
        raise ConversionError(source, ConversionStage.HEADER, f"bad {name}: {token!r}")
    value = int(token)
    if value <= 0:
        raise ConversionError(source, ConversionStage.HEADER, f"bad {name}: {value} is not positive")
    return value


def parse_header(lines: Iterator[str], source: Path) -> PixmapHeader:
    """Читает три строки заголовка: сигнатуру, размеры и максимум канала.

    Args:
        lines: Итератор строк файла; после вызова стоит на первой строке пикселей.
        source: Путь к файлу (для сообщений об ошибках).

    Returns:
        `PixmapHeader` с проверенными положительными размерами и максимумом.

    Raises:
        ConversionError: этап HEADER при любой ошибке структуры.
    """
    magic = next(lines, None)
    if magic is None or magic.strip() != PPM_MAGIC:
        raise ConversionError(source, ConversionStage.HEADER, "invalid magic, expected P3")

    dims = next(lines, None)
    if dims is None:
        raise ConversionError(source, ConversionStage.HEADER, "missing dimensions")
    values = dims.split()
    if len(values) != 2:
        raise ConversionError(source, ConversionStage.HEADER, f"bad dimensions: {dims.strip()!r}")
    width = _parse_positive(values[0], source, "width")
    height = _parse_positive(values[1], source, "height")

    max_line = next(lines, None)
    if max_line is None:
        raise ConversionError(source, ConversionStage.HEADER, "missing max value")
    max_value = _parse_positive(max_line.strip(), source, "max value")

    return PixmapHeader(magic=PPM_MAGIC, width=width, height=height, max_value=max_value)


def allocate_buffer(header: PixmapHeader, source: Path) -> np.ndarray:
    """Выделяет RGBA-буфер (height, width, 4) uint8 под размеры заголовка.

    Raises:
        ConversionError: этап HEADER, если размеры не помещаются в память.
    """
    try:
        return np.zeros((header.height, header.width, 4), dtype=np.uint8)
    except (MemoryError, OverflowError, ValueError) as exc:
        raise ConversionError(
            source,
            ConversionStage.HEADER,
            f"dimensions too large: {header.width}x{header.height}",
        ) from exc


def _parse_channel(token: str, max_value: int, source: Path, line_no: int) -> int:
    if not _DECIMAL.fullmatch(token):
        raise ConversionError(
            source, ConversionStage.PIXELS, f"invalid color at line {line_no}: {token!r}"
        )
    value = int(token)
    if not 0 <= value <= max_value:
        raise ConversionError(
            source, ConversionStage.PIXELS, f"color out of range at line {line_no}: {value}"
        )
    return scale_channel(value, max_value)


def decode_pixels(lines: Iterator[str], source: Path, buffer: np.ndarray, max_value: int) -> None:
    """Заполняет буфер пикселями из оставшихся строк, по одному пикселю на строку.

    Строка должна содержать ровно три целых R G B. Число строк должно точно
    совпадать с width*height из заголовка: лишние и недостающие строки являются
    ошибкой, буфер в этом случае отбрасывается вызывающим кодом.

    Raises:
        ConversionError: этап PIXELS.
    """
    flat = buffer.reshape(-1)
    capacity = flat.size
    cursor = 0
    # header occupies lines 1..3
    line_no = 3
    for line in lines:
        line_no += 1
        values: List[str] = line.split()
        if len(values) != 3:
            raise ConversionError(
                source, ConversionStage.PIXELS, f"invalid line {line_no}: {line.strip()!r}"
            )
        if cursor >= capacity:
            raise ConversionError(
                source, ConversionStage.PIXELS, f"more pixels than declared at line {line_no}"
            )
        r, g, b = (_parse_channel(v, max_value, source, line_no) for v in values)
        flat[cursor] = r
        flat[cursor + 1] = g
        flat[cursor + 2] = b
        flat[cursor + 3] = OPAQUE
        cursor += 4

    if cursor != capacity:
        raise ConversionError(
            source,
            ConversionStage.PIXELS,
            f"expected {capacity // 4} pixels, got {cursor // 4}",
        )
