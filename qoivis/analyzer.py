import logging
from enum import Enum
from itertools import groupby
from typing import Dict, Iterable, List, Tuple

import numpy as np

from .pixel import Color, Diff8, Diff16, Diff24, PixelDict, QoiPixel

logger = logging.getLogger(__name__)

QOI_HEADER_LEN = 14
QOI_PADDING_LEN = 4

RUN_8_MAX = 32
RUN_MAX = 33 + 0x1FFF


class QoiChunk(Enum):
    INDEX = 0
    RUN_8 = 1
    RUN_16 = 2
    DIFF_8 = 3
    DIFF_16 = 4
    DIFF_24 = 5
    COLOR_1 = 6  # QOI_COLOR with 1 component (same for the ones below)
    COLOR_2 = 7
    COLOR_3 = 8
    COLOR_4 = 9

    @property
    def label(self) -> str:
        """Human readable name of the chunk."""
        return _CHUNK_LABELS[self]


_CHUNK_LABELS = {
    QoiChunk.INDEX: "QOI_INDEX",
    QoiChunk.RUN_8: "QOI_RUN_8",
    QoiChunk.RUN_16: "QOI_RUN_16",
    QoiChunk.DIFF_8: "QOI_DIFF_8",
    QoiChunk.DIFF_16: "QOI_DIFF_16",
    QoiChunk.DIFF_24: "QOI_DIFF_24",
    QoiChunk.COLOR_1: "QOI_COLOR (2-Bytes)",
    QoiChunk.COLOR_2: "QOI_COLOR (3-Bytes)",
    QoiChunk.COLOR_3: "QOI_COLOR (4-Bytes)",
    QoiChunk.COLOR_4: "QOI_COLOR (5-Bytes)",
}

# Bytes per emitted chunk (a run chunk covers many pixels)
CHUNK_COST = {
    QoiChunk.INDEX: 1,
    QoiChunk.RUN_8: 1,
    QoiChunk.RUN_16: 2,
    QoiChunk.DIFF_8: 1,
    QoiChunk.DIFF_16: 2,
    QoiChunk.DIFF_24: 3,
    QoiChunk.COLOR_1: 2,
    QoiChunk.COLOR_2: 3,
    QoiChunk.COLOR_3: 4,
    QoiChunk.COLOR_4: 5,
}

_COLOR_CHUNKS = {
    1: QoiChunk.COLOR_1,
    2: QoiChunk.COLOR_2,
    3: QoiChunk.COLOR_3,
    4: QoiChunk.COLOR_4,
}


class QoiAnalyzer:
    """
    Walks a pixel stream and records which chunk the encoder would emit
    for every pixel, along with the resulting file size.
    """

    def __init__(self):
        self.filesize = QOI_HEADER_LEN + QOI_PADDING_LEN
        self.chunks: List[QoiChunk] = []
        self.px_prev = QoiPixel(0, 0, 0, 255)
        self.dict = PixelDict()
        self.run = 0
        self.finalized = False

    def update(self, px: QoiPixel) -> None:
        if self.finalized:
            raise RuntimeError("QOI.analyze: Analyzer already finalized")

        if px == self.px_prev:
            self.run += 1
            if self.run == RUN_MAX:
                self.flush_run()
            return

        self.flush_run()

        hash_pos = PixelDict.hash(px)

        if px == self.dict[hash_pos]:
            self.filesize += CHUNK_COST[QoiChunk.INDEX]
            self.chunks.append(QoiChunk.INDEX)
        else:
            diff = px.sub(self.px_prev)

            if isinstance(diff, Diff8):
                chunk = QoiChunk.DIFF_8
            elif isinstance(diff, Diff16):
                chunk = QoiChunk.DIFF_16
            elif isinstance(diff, Diff24):
                chunk = QoiChunk.DIFF_24
            elif isinstance(diff, Color):
                chunk = _COLOR_CHUNKS[diff.channel_count]
            else:
                raise TypeError(f"QOI.analyze: Unexpected pixel difference {diff!r}")

            self.filesize += diff.cost
            self.chunks.append(chunk)

            self.dict[hash_pos] = px

        self.px_prev = px

    def flush_run(self) -> None:
        if self.run == 0:
            return

        if self.run <= RUN_8_MAX:
            chunk = QoiChunk.RUN_8
        else:
            chunk = QoiChunk.RUN_16

        # One entry per pixel of the run, not one per chunk
        self.filesize += CHUNK_COST[chunk]
        self.chunks.extend([chunk] * self.run)
        self.run = 0

    def finalize(self) -> int:
        """Flush any pending run and return the total file size in bytes."""
        if self.finalized:
            raise RuntimeError("QOI.analyze: Analyzer already finalized")

        self.flush_run()
        self.finalized = True
        return self.filesize


def _iter_pixels(pixels) -> Iterable[QoiPixel]:
    if isinstance(pixels, np.ndarray):
        if not (
            (pixels.ndim == 3 and pixels.shape[2] == 4)
            or (pixels.ndim == 2 and pixels.shape[1] == 4)
        ):
            raise ValueError(
                f"QOI.analyze: Expected an array of shape (H, W, 4) or (N, 4), got {pixels.shape}"
            )

        if not np.issubdtype(pixels.dtype, np.integer):
            raise ValueError("QOI.analyze: Pixel array must hold integers")

        if pixels.size and (pixels.min() < 0 or pixels.max() > 255):
            raise ValueError("QOI.analyze: Channel value out of range 0..255")

        # tolist() hands back plain ints, much faster than indexing the array
        return (QoiPixel(*rgba) for rgba in pixels.reshape(-1, 4).tolist())

    return (QoiPixel.from_rgba(rgba) for rgba in pixels)


def analyze(pixels) -> Tuple[int, List[QoiChunk]]:
    """
    Simulate the encoder over a row-major pixel sequence.

    :param pixels: numpy array of shape (H, W, 4) / (N, 4), or any iterable of RGBA sequences.
    :return: (file size in bytes, one QoiChunk per input pixel)
    """
    analyzer = QoiAnalyzer()
    for px in _iter_pixels(pixels):
        analyzer.update(px)
    filesize = analyzer.finalize()

    logger.debug("analyzed %d pixels: %d bytes", len(analyzer.chunks), filesize)
    return filesize, analyzer.chunks


def histogram(chunks: Iterable[QoiChunk]) -> Dict[QoiChunk, int]:
    """Count the pixels encoded by each chunk kind."""
    counts = np.bincount(
        np.fromiter((chunk.value for chunk in chunks), dtype=np.intp),
        minlength=len(QoiChunk),
    )
    return {chunk: int(counts[chunk.value]) for chunk in QoiChunk}


def chunk_size(chunks: Iterable[QoiChunk]) -> int:
    """
    Recompute the file size implied by a per-pixel chunk sequence.

    Consecutive run entries of the same kind are folded back into chunks,
    QOI_RUN_16 stretches being split every RUN_MAX pixels.
    """
    total = QOI_HEADER_LEN + QOI_PADDING_LEN

    for chunk, group in groupby(chunks):
        count = sum(1 for _ in group)
        if chunk is QoiChunk.RUN_8:
            total += CHUNK_COST[chunk]
        elif chunk is QoiChunk.RUN_16:
            total += CHUNK_COST[chunk] * -(-count // RUN_MAX)
        else:
            total += CHUNK_COST[chunk] * count

    return total
