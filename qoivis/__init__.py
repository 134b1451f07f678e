from .analyzer import QoiAnalyzer, QoiChunk, analyze, chunk_size, histogram
from .image import AnalyzedImage, load_image
from .pixel import Color, Diff8, Diff16, Diff24, PixelDict, QoiPixel
from .vis import VisConfig, color_of_chunk, save_visualization, visualize

__all__ = [
    "QoiPixel",
    "PixelDict",
    "Diff8",
    "Diff16",
    "Diff24",
    "Color",
    "QoiChunk",
    "QoiAnalyzer",
    "analyze",
    "histogram",
    "chunk_size",
    "AnalyzedImage",
    "load_image",
    "VisConfig",
    "color_of_chunk",
    "visualize",
    "save_visualization",
]
