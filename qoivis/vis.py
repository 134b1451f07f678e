from typing import Iterable

import numpy as np
from PIL import Image

from .analyzer import QoiChunk
from .image import AnalyzedImage

# RGB color drawn for each chunk kind
CHUNK_COLORS = {
    QoiChunk.INDEX: (0xFF, 0xFF, 0x00),
    QoiChunk.RUN_8: (0xC0, 0xC0, 0xC0),
    QoiChunk.RUN_16: (0x80, 0x80, 0x80),
    QoiChunk.DIFF_8: (0x00, 0xFF, 0xFF),
    QoiChunk.DIFF_16: (0x00, 0xC0, 0xC0),
    QoiChunk.DIFF_24: (0x00, 0x80, 0x80),
    QoiChunk.COLOR_1: (0xFF, 0x00, 0x00),
    QoiChunk.COLOR_2: (0xC0, 0x00, 0x00),
    QoiChunk.COLOR_3: (0x80, 0x00, 0x00),
    QoiChunk.COLOR_4: (0x40, 0x00, 0x00),
}


def color_of_chunk(chunk: QoiChunk) -> tuple:
    return CHUNK_COLORS[chunk]


class VisConfig:
    """Which chunk kinds are drawn. Everything is visible by default."""

    def __init__(self, hidden: Iterable[QoiChunk] = ()):
        self.visibles = {chunk: True for chunk in QoiChunk}
        for chunk in hidden:
            self.visibles[chunk] = False

    def is_visible(self, chunk: QoiChunk) -> bool:
        return self.visibles[chunk]

    def toggle_visibility(self, chunk: QoiChunk) -> None:
        self.visibles[chunk] = not self.visibles[chunk]

    def make_all_visible(self) -> None:
        for chunk in self.visibles:
            self.visibles[chunk] = True

    def make_all_invisible(self) -> None:
        for chunk in self.visibles:
            self.visibles[chunk] = False

    def __eq__(self, other):
        if not isinstance(other, VisConfig):
            return NotImplemented
        return self.visibles == other.visibles

    def __repr__(self):
        hidden = [chunk.label for chunk, shown in self.visibles.items() if not shown]
        return f"VisConfig(hidden={hidden})"


def visualize(img: AnalyzedImage, config: VisConfig = None) -> np.ndarray:
    """
    Paint every pixel with the color of the chunk that encodes it.

    :param img: The analyzed image.
    :param config: Visibility of each chunk kind, hidden kinds are drawn black.
    :return: uint8 array of shape (height, width, 4), fully opaque.
    """
    if config is None:
        config = VisConfig()

    if len(img.chunks) != img.width * img.height:
        raise ValueError("QOI.visualize: Chunk count does not match image dimensions")

    # Lookup table indexed by chunk value
    palette = np.zeros((len(QoiChunk), 4), dtype=np.uint8)
    palette[:, 3] = 0xFF
    for chunk in QoiChunk:
        if config.is_visible(chunk):
            palette[chunk.value, :3] = color_of_chunk(chunk)

    indices = np.fromiter((chunk.value for chunk in img.chunks), dtype=np.intp)
    return palette[indices].reshape(img.height, img.width, 4)


def save_visualization(img: AnalyzedImage, path: str, config: VisConfig = None) -> None:
    Image.fromarray(visualize(img, config)).save(path)
