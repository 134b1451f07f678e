#! The analyzed size is for the experimental chunk set (QOI_DIFF_24, QOI_RUN_16, masked QOI_COLOR),
#! while the qoi package (https://pypi.org/project/qoi/) writes the final QOI format, so both can be compared.

import io
import os
import sys

from PIL import Image

import qoi as OfficialQOI
from qoivis import AnalyzedImage, load_image

INPUT_IMAGE = "fruits.png"


def size_compare(filepath: str) -> dict:
    pixel_data, desc = load_image(filepath)
    print(f"Loaded image {filepath}: {desc['width']}x{desc['height']} Channels: {desc['channels']}")

    analyzed = AnalyzedImage(
        os.path.basename(filepath), pixel_data, os.path.getsize(filepath)
    )

    official = OfficialQOI.encode(pixel_data)

    png = io.BytesIO()
    Image.fromarray(pixel_data).save(png, format="PNG")

    sizes = {
        "original": analyzed.filesize_orig,
        "raw rgba": pixel_data.nbytes,
        "analyzed qoi": analyzed.filesize_qoi,
        "official qoi": len(official),
        "png": png.getbuffer().nbytes,
    }

    for label, size in sizes.items():
        print(f"{label:<14}{size:>12} bytes")

    return sizes


if __name__ == "__main__":
    size_compare(sys.argv[1] if len(sys.argv) > 1 else INPUT_IMAGE)
