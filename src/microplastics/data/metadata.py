"""FGDC CSDGM metadata reader for the hydrography reference layer.

The hydrography shapefile is only used as a map reference; its metadata
document is parsed for a printable summary and the layer's extent, which
is used to flag sampling sites outside the layer.

Key Functions:
    read_fgdc_metadata() - Parse an FGDC XML file into HydrographyMetadata
    parse_fgdc_metadata() - Same, from an XML string

Usage:
    from microplastics.data.metadata import read_fgdc_metadata

    meta = read_fgdc_metadata("storage/data/hydrography.xml")
    print(meta.title, meta.bounding_box)
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import List, Optional, Union

from microplastics.data.schemas import BoundingBox, HydrographyMetadata

# CSDGM element paths (relative to <metadata>)
TITLE = "idinfo/citation/citeinfo/title"
ORIGINATOR = "idinfo/citation/citeinfo/origin"
PUBDATE = "idinfo/citation/citeinfo/pubdate"
ABSTRACT = "idinfo/descript/abstract"
PURPOSE = "idinfo/descript/purpose"
THEME_KEYWORDS = "idinfo/keywords/theme/themekey"
PLACE_KEYWORDS = "idinfo/keywords/place/placekey"
BOUNDING = "idinfo/spdom/bounding"


def _text(root: ET.Element, path: str) -> Optional[str]:
    node = root.find(path)
    if node is None or node.text is None:
        return None
    text = " ".join(node.text.split())
    return text or None


def _texts(root: ET.Element, path: str) -> List[str]:
    values = []
    for node in root.findall(path):
        if node.text and node.text.strip():
            values.append(" ".join(node.text.split()))
    return values


def _bounding_box(root: ET.Element) -> Optional[BoundingBox]:
    node = root.find(BOUNDING)
    if node is None:
        return None
    coords = {}
    for tag, field in (("westbc", "west"), ("eastbc", "east"),
                       ("northbc", "north"), ("southbc", "south")):
        value = _text(node, tag)
        if value is None:
            return None
        coords[field] = float(value)
    return BoundingBox(**coords)


def parse_fgdc_metadata(xml_text: Union[str, bytes]) -> HydrographyMetadata:
    """Parse FGDC CSDGM XML.

    Raises:
        ValueError: If the document is not CSDGM or has no title.
    """
    root = ET.fromstring(xml_text)
    if root.tag != "metadata":
        raise ValueError(f"Not an FGDC CSDGM document (root <{root.tag}>)")

    title = _text(root, TITLE)
    if title is None:
        raise ValueError(f"FGDC document has no {TITLE}")

    return HydrographyMetadata(
        title=title,
        originator=_texts(root, ORIGINATOR),
        publication_date=_text(root, PUBDATE),
        abstract=_text(root, ABSTRACT),
        purpose=_text(root, PURPOSE),
        theme_keywords=_texts(root, THEME_KEYWORDS),
        place_keywords=_texts(root, PLACE_KEYWORDS),
        bounding_box=_bounding_box(root),
    )


def read_fgdc_metadata(path: Union[str, Path]) -> HydrographyMetadata:
    """Parse an FGDC CSDGM XML file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing {path}")
    return parse_fgdc_metadata(path.read_bytes())
