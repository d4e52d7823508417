#!/usr/bin/env python3
"""Print a summary of the hydrography layer's FGDC metadata."""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from microplastics.data import read_fgdc_metadata


def main():
    parser = argparse.ArgumentParser(description="Summarize an FGDC metadata document")
    parser.add_argument("path", help="FGDC CSDGM XML file")
    args = parser.parse_args()

    meta = read_fgdc_metadata(args.path)

    print(f"Title:       {meta.title}")
    print(f"Originator:  {', '.join(meta.originator) or '-'}")
    print(f"Published:   {meta.publication_date or '-'}")
    if meta.bounding_box:
        bb = meta.bounding_box
        print(f"Extent:      W {bb.west}  E {bb.east}  N {bb.north}  S {bb.south}")
    if meta.theme_keywords:
        print(f"Themes:      {', '.join(meta.theme_keywords)}")
    if meta.place_keywords:
        print(f"Places:      {', '.join(meta.place_keywords)}")
    if meta.abstract:
        print(f"\n{meta.abstract}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
