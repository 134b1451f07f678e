import argparse
import logging
import sys

from qoivis import AnalyzedImage, QoiChunk, VisConfig, save_visualization

INPUT_IMAGE = "fruits.png"
OUTPUT_VIS = None


def parse_chunk(name: str) -> QoiChunk:
    try:
        return QoiChunk[name.upper()]
    except KeyError:
        choices = ", ".join(chunk.name for chunk in QoiChunk)
        raise argparse.ArgumentTypeError(f"unknown chunk '{name}' (choose from {choices})")


def print_report(img: AnalyzedImage):
    print(f"Loaded image {img.name}: {img.width}x{img.height} ({img.pixel_count} pixels)")
    if img.filesize_orig is not None:
        print(f"Original {img.name} {img.filesize_orig} bytes")
    print(
        f"Analyzed QOI {img.filesize_qoi} bytes "
        f"({img.compression_ratio() * 100:.2f}% of raw RGBA)"
    )

    print()
    print(f"{'chunk':<22}{'pixels':>12}{'share':>10}")
    shares = img.shares()
    for chunk in QoiChunk:
        print(f"{chunk.label:<22}{img.histogram[chunk]:>12}{shares[chunk] * 100:>9.2f}%")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Show which QOI chunk encodes each pixel of an image."
    )
    parser.add_argument("image", nargs="?", default=INPUT_IMAGE, help="image to analyze")
    parser.add_argument(
        "--vis", "-o", default=OUTPUT_VIS, help="write the chunk visualization to this PNG"
    )
    parser.add_argument(
        "--hide",
        nargs="*",
        type=parse_chunk,
        default=[],
        metavar="CHUNK",
        help="chunk kinds drawn black in the visualization (e.g. INDEX RUN_8)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="debug logging")
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    try:
        img = AnalyzedImage.from_file(args.image)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print_report(img)

    if args.vis:
        save_visualization(img, args.vis, VisConfig(hidden=args.hide))
        print(f"\nSaved visualization to {args.vis}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
