import numpy as np
import pytest

from qoivis.analyzer import (
    QOI_HEADER_LEN,
    QOI_PADDING_LEN,
    RUN_MAX,
    QoiAnalyzer,
    QoiChunk,
    analyze,
    chunk_size,
    histogram,
)
from qoivis.pixel import PixelDict, QoiPixel

BLACK = (0, 0, 0, 255)
EMPTY_SIZE = QOI_HEADER_LEN + QOI_PADDING_LEN


def sample_pixels(seed: int = 0) -> np.ndarray:
    """Smooth random walk with repeats, alpha changes, a revisit and a long run."""
    rng = np.random.default_rng(seed)

    steps = rng.integers(-20, 21, size=(2000, 4))
    steps[:, 3] = np.where(rng.random(2000) < 0.1, steps[:, 3], 0)
    walk = (np.cumsum(steps, axis=0) % 256).astype(np.uint8)

    repeated = np.repeat(walk, rng.integers(1, 40, size=2000), axis=0)
    pair = np.array([[10, 20, 30, 255], [50, 60, 70, 255]], dtype=np.uint8)
    alternating = np.tile(pair, (50, 1))
    long_run = np.tile(walk[-1], (9000, 1))

    return np.concatenate([repeated, walk[:100], alternating, long_run])


def test_constants():
    assert EMPTY_SIZE == 18
    assert RUN_MAX == 8224


def test_chunk_labels():
    assert len(QoiChunk) == 10
    assert QoiChunk.INDEX.label == "QOI_INDEX"
    assert QoiChunk.RUN_16.label == "QOI_RUN_16"
    assert QoiChunk.DIFF_24.label == "QOI_DIFF_24"
    assert QoiChunk.COLOR_1.label == "QOI_COLOR (2-Bytes)"
    assert QoiChunk.COLOR_4.label == "QOI_COLOR (5-Bytes)"


def test_empty():
    assert analyze([]) == (EMPTY_SIZE, [])


def test_first_pixel_equal_to_initial_pixel_is_a_run():
    assert analyze([BLACK]) == (EMPTY_SIZE + 1, [QoiChunk.RUN_8])


@pytest.mark.parametrize(
    "length, size, chunks",
    [
        (32, 1, [QoiChunk.RUN_8] * 32),
        (33, 2, [QoiChunk.RUN_16] * 33),
        (RUN_MAX, 2, [QoiChunk.RUN_16] * RUN_MAX),
        (RUN_MAX + 1, 3, [QoiChunk.RUN_16] * RUN_MAX + [QoiChunk.RUN_8]),
        (RUN_MAX + 40, 4, [QoiChunk.RUN_16] * (RUN_MAX + 40)),
    ],
)
def test_runs(length, size, chunks):
    filesize, result = analyze([BLACK] * length)

    assert filesize == EMPTY_SIZE + size
    assert result == chunks


def test_run_flushed_by_next_pixel():
    pixels = [(5, 5, 5, 255)] * 3 + [(6, 5, 5, 255)]

    filesize, chunks = analyze(pixels)

    assert chunks == [QoiChunk.DIFF_16, QoiChunk.RUN_8, QoiChunk.RUN_8, QoiChunk.DIFF_8]
    assert filesize == EMPTY_SIZE + 2 + 1 + 1


def test_run_max_forces_flush():
    analyzer = QoiAnalyzer()
    for _ in range(RUN_MAX - 1):
        analyzer.update(QoiPixel(*BLACK))
    assert analyzer.run == RUN_MAX - 1
    assert analyzer.chunks == []

    analyzer.update(QoiPixel(*BLACK))
    assert analyzer.run == 0
    assert len(analyzer.chunks) == RUN_MAX
    assert analyzer.filesize == EMPTY_SIZE + 2


def test_cache_hit():
    pixels = [(10, 20, 30, 255), (50, 60, 70, 255), (10, 20, 30, 255)]

    filesize, chunks = analyze(pixels)

    assert chunks == [QoiChunk.COLOR_3, QoiChunk.COLOR_3, QoiChunk.INDEX]
    assert filesize == EMPTY_SIZE + 4 + 4 + 1


def test_zero_pixel_hits_initial_cache():
    assert analyze([(0, 0, 0, 0)]) == (EMPTY_SIZE + 1, [QoiChunk.INDEX])


def test_cache_is_direct_mapped():
    a, b, c = (1, 0, 0, 255), (0, 1, 0, 255), (2, 0, 0, 255)
    # a and b share a slot, a and c do not
    assert PixelDict.hash(QoiPixel(*a)) == PixelDict.hash(QoiPixel(*b)) == 62
    assert PixelDict.hash(QoiPixel(*c)) == 61

    _, chunks = analyze([a, b, a])
    assert chunks == [QoiChunk.DIFF_8] * 3

    _, chunks = analyze([a, c, a])
    assert chunks == [QoiChunk.DIFF_8, QoiChunk.DIFF_8, QoiChunk.INDEX]


def test_cache_hit_does_not_rewrite_slot():
    analyzer = QoiAnalyzer()
    px = QoiPixel(10, 20, 30, 255)

    analyzer.update(px)
    analyzer.update(QoiPixel(50, 60, 70, 255))
    analyzer.update(QoiPixel(10, 20, 30, 255))

    assert analyzer.chunks[-1] == QoiChunk.INDEX
    assert analyzer.dict[63] is px


def test_diff24_and_color4():
    # deltas (15, -16, -9, 8)
    _, chunks = analyze([(15, 240, 247, 7)])
    assert chunks == [QoiChunk.DIFF_24]

    assert analyze([(100, 100, 100, 100)]) == (EMPTY_SIZE + 5, [QoiChunk.COLOR_4])


def test_equal_pixels_never_compared(monkeypatch):
    calls = []
    original_sub = QoiPixel.sub

    def checked_sub(self, rhs):
        calls.append((self, rhs))
        return original_sub(self, rhs)

    monkeypatch.setattr(QoiPixel, "sub", checked_sub)

    analyze(sample_pixels())

    assert calls
    assert all(px != prev for px, prev in calls)


def test_finalize_is_one_shot():
    analyzer = QoiAnalyzer()
    analyzer.update(QoiPixel(*BLACK))

    assert analyzer.finalize() == EMPTY_SIZE + 1

    with pytest.raises(RuntimeError):
        analyzer.finalize()

    with pytest.raises(RuntimeError):
        analyzer.update(QoiPixel(*BLACK))


def test_numpy_input_matches_sequence_input():
    pixels = sample_pixels(1)

    assert analyze(pixels) == analyze(pixels.tolist())
    assert analyze(pixels.reshape(1, -1, 4)) == analyze(pixels)


def test_invalid_input():
    with pytest.raises(ValueError):
        analyze(np.zeros((2, 2, 3), dtype=np.uint8))

    with pytest.raises(ValueError):
        analyze(np.full((2, 4), 300))

    with pytest.raises(ValueError):
        analyze(np.zeros((2, 4), dtype=np.float32))

    with pytest.raises(ValueError):
        analyze([(1, 2, 3)])


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_size_matches_chunks(seed):
    """The file size can be rebuilt from the per-pixel chunk sequence."""
    pixels = sample_pixels(seed)

    filesize, chunks = analyze(pixels)

    assert len(chunks) == len(pixels)
    assert chunk_size(chunks) == filesize


def test_histogram():
    pixels = sample_pixels()
    _, chunks = analyze(pixels)

    counts = histogram(chunks)

    assert set(counts) == set(QoiChunk)
    assert sum(counts.values()) == len(pixels)
    assert counts[QoiChunk.RUN_16] >= 8999
    assert counts[QoiChunk.INDEX] > 0


def test_histogram_empty():
    assert histogram([]) == {chunk: 0 for chunk in QoiChunk}
