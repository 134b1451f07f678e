from dataclasses import dataclass
from typing import NamedTuple, Sequence, Union

# Signed delta ranges (inclusive) of the diff chunks
DIFF_RANGE_2 = (-2, 1)
DIFF_RANGE_4 = (-8, 7)
DIFF_RANGE_5 = (-16, 15)


def _in_bounds(value_range: tuple, value: int) -> bool:
    return value_range[0] <= value <= value_range[1]


def _wrapping_sub(x: int, y: int) -> int:
    """Byte-wrapped difference ``x - y`` reinterpreted as a signed value (-128..127)."""
    d = (x - y + 256) % 256
    if d > 127:
        d -= 256
    return d


def _bias(value: int, value_range: tuple) -> int:
    # Shift a signed delta so the bottom of its range becomes 0
    return value - value_range[0]


@dataclass(frozen=True)
class Diff8:
    """QOI_DIFF_8 payload: ``0b00rrggbb``."""

    value: int

    cost = 1

    @classmethod
    def from_unbiased(cls, r: int, g: int, b: int) -> "Diff8":
        r = _bias(r, DIFF_RANGE_2)
        g = _bias(g, DIFF_RANGE_2)
        b = _bias(b, DIFF_RANGE_2)
        return cls((r << 4) | (g << 2) | b)

    def deltas(self) -> tuple:
        """Unbiased (dr, dg, db, da) carried by this chunk."""
        low = DIFF_RANGE_2[0]
        return (
            ((self.value >> 4) & 0x03) + low,
            ((self.value >> 2) & 0x03) + low,
            (self.value & 0x03) + low,
            0,
        )


@dataclass(frozen=True)
class Diff16:
    """QOI_DIFF_16 payload: ``0b000rrrrr_ggggbbbb``."""

    value: int

    cost = 2

    @classmethod
    def from_unbiased(cls, r: int, g: int, b: int) -> "Diff16":
        r = _bias(r, DIFF_RANGE_5)
        g = _bias(g, DIFF_RANGE_4)
        b = _bias(b, DIFF_RANGE_4)
        return cls((r << 8) | (g << 4) | b)

    def deltas(self) -> tuple:
        return (
            ((self.value >> 8) & 0x1F) + DIFF_RANGE_5[0],
            ((self.value >> 4) & 0x0F) + DIFF_RANGE_4[0],
            (self.value & 0x0F) + DIFF_RANGE_4[0],
            0,
        )


@dataclass(frozen=True)
class Diff24:
    """QOI_DIFF_24 payload.

    ``diff_r`` holds ``0b000rrrrr`` and ``diff_gba`` holds ``0b0gggggbbbbbaaaaa``.
    """

    diff_r: int
    diff_gba: int

    cost = 3

    @classmethod
    def from_unbiased(cls, r: int, g: int, b: int, a: int) -> "Diff24":
        r = _bias(r, DIFF_RANGE_5)
        g = _bias(g, DIFF_RANGE_5)
        b = _bias(b, DIFF_RANGE_5)
        a = _bias(a, DIFF_RANGE_5)
        return cls(r, (g << 10) | (b << 5) | a)

    def deltas(self) -> tuple:
        low = DIFF_RANGE_5[0]
        return (
            self.diff_r + low,
            ((self.diff_gba >> 10) & 0x1F) + low,
            ((self.diff_gba >> 5) & 0x1F) + low,
            (self.diff_gba & 0x1F) + low,
        )


@dataclass(frozen=True)
class Color:
    """QOI_COLOR selector. ``mask`` is ``0b0000rgba``, a set bit means the raw channel is stored."""

    mask: int

    @property
    def channel_count(self) -> int:
        return bin(self.mask).count("1")

    @property
    def cost(self) -> int:
        # One tag byte plus one byte per stored channel
        return 1 + self.channel_count


PixelDiff = Union[Diff8, Diff16, Diff24]
DiffOrColor = Union[Diff8, Diff16, Diff24, Color]


class QoiPixel(NamedTuple):
    """RGBA8 pixel."""

    r: int
    g: int
    b: int
    a: int

    @classmethod
    def from_rgba(cls, rgba: Sequence[int]) -> "QoiPixel":
        """
        Build a pixel from a 4-item sequence (tuple, list, bytes or numpy row).

        :param rgba: Red, green, blue and alpha components in 0..255.
        :return: QoiPixel
        """
        if len(rgba) != 4:
            raise ValueError("QOI.pixel: Expected 4 channels (RGBA)")

        r, g, b, a = (int(c) for c in rgba)
        if not all(0 <= c <= 255 for c in (r, g, b, a)):
            raise ValueError("QOI.pixel: Channel value out of range 0..255")

        return cls(r, g, b, a)

    def sub(self, rhs: "QoiPixel") -> DiffOrColor:
        """
        Return ``self - rhs`` as the chunk the encoder would pick for ``self``
        when ``rhs`` is the previous pixel.

        The checks run in a fixed order and the first match wins.
        """
        dr = _wrapping_sub(self.r, rhs.r)
        dg = _wrapping_sub(self.g, rhs.g)
        db = _wrapping_sub(self.b, rhs.b)
        da = _wrapping_sub(self.a, rhs.a)

        # QOI_DIFF_8 and QOI_DIFF_16 are never worse than QOI_COLOR.
        if da == 0:
            if (
                _in_bounds(DIFF_RANGE_2, dr)
                and _in_bounds(DIFF_RANGE_2, dg)
                and _in_bounds(DIFF_RANGE_2, db)
            ):
                return Diff8.from_unbiased(dr, dg, db)

            if (
                _in_bounds(DIFF_RANGE_5, dr)
                and _in_bounds(DIFF_RANGE_4, dg)
                and _in_bounds(DIFF_RANGE_4, db)
            ):
                return Diff16.from_unbiased(dr, dg, db)

        mask = (
            ((dr != 0) << 3)
            | ((dg != 0) << 2)
            | ((db != 0) << 1)
            | (da != 0)
        )

        # With a single changed channel, QOI_COLOR (2 bytes) beats QOI_DIFF_24.
        if (
            bin(mask).count("1") >= 2
            and _in_bounds(DIFF_RANGE_5, dr)
            and _in_bounds(DIFF_RANGE_5, dg)
            and _in_bounds(DIFF_RANGE_5, db)
            and _in_bounds(DIFF_RANGE_5, da)
        ):
            return Diff24.from_unbiased(dr, dg, db, da)

        return Color(mask)


class PixelDict:
    """
    64-slot direct-mapped color cache.

    A write always replaces whatever the slot held before.
    """

    SIZE = 64

    def __init__(self):
        self._slots = [QoiPixel(0, 0, 0, 0)] * self.SIZE

    @staticmethod
    def hash(px: QoiPixel) -> int:
        """Calculates the slot position for a pixel."""
        return (px.r ^ px.g ^ px.b ^ px.a) & 0x3F

    def __getitem__(self, index: int) -> QoiPixel:
        return self._slots[index]

    def __setitem__(self, index: int, px: QoiPixel):
        self._slots[index] = px

    def __len__(self) -> int:
        return self.SIZE
