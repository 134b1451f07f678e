import logging
import os
from typing import Dict, Optional

import numpy as np
from PIL import Image

from .analyzer import QoiChunk, analyze, histogram

logger = logging.getLogger(__name__)

RAW_EXTENSIONS = ("dng", "cr2", "nef", "arw", "raw")


def load_image(filepath: str) -> tuple[np.ndarray, dict]:
    """Load an image and return RGBA pixel data as numpy array + description."""

    ext = filepath.lower().split(".")[-1]

    if ext in RAW_EXTENSIONS:
        # RAW formats - requires rawpy
        import rawpy

        with rawpy.imread(filepath) as raw:
            rgb = raw.postprocess()
        img = Image.fromarray(rgb)
    else:
        # Standard formats (PNG, JPEG, etc.)
        img = Image.open(filepath)

    # The analyzer always works on RGBA8
    if img.mode != "RGBA":
        img = img.convert("RGBA")

    return np.array(img), {
        "width": img.size[0],
        "height": img.size[1],
        "channels": 4,
        "colorspace": 0,
    }


class AnalyzedImage:
    """
    An image together with the result of the chunk analysis.

    The analysis runs once, on construction.
    """

    def __init__(
        self,
        name: str,
        pixels: np.ndarray,
        filesize_orig: Optional[int] = None,
    ):
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(
                f"QOI.analyze: Expected an array of shape (H, W, 4), got {pixels.shape}"
            )

        self.name = name
        self.height, self.width = pixels.shape[:2]
        self.filesize_orig = filesize_orig

        self.filesize_qoi, self.chunks = analyze(pixels)
        self.histogram = histogram(self.chunks)

        logger.debug(
            "%s: %dx%d, %s -> %d bytes",
            name,
            self.width,
            self.height,
            filesize_orig,
            self.filesize_qoi,
        )

    @classmethod
    def from_array(
        cls, name: str, pixels: np.ndarray, filesize_orig: Optional[int] = None
    ) -> "AnalyzedImage":
        return cls(name, np.asarray(pixels), filesize_orig)

    @classmethod
    def from_file(cls, filepath: str) -> "AnalyzedImage":
        pixels, _ = load_image(filepath)
        return cls(os.path.basename(filepath), pixels, os.path.getsize(filepath))

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    def compression_ratio(self) -> float:
        """Analyzed QOI size relative to the raw RGBA8 size."""
        raw_size = self.pixel_count * 4
        if raw_size == 0:
            return 0.0
        return self.filesize_qoi / raw_size

    def shares(self) -> Dict[QoiChunk, float]:
        """Fraction of pixels encoded by each chunk kind."""
        total = self.pixel_count or 1
        return {chunk: count / total for chunk, count in self.histogram.items()}
