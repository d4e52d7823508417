"""Data module - cached tables, geocoding, and reference metadata.

Public API:
    DataReader - Cached dataset and auxiliary table access
    ReverseGeocoder - Coordinates -> ZIP code HTTP client
    read_fgdc_metadata - Parse the hydrography FGDC document
    SampleRecord, WastewaterFacility, HydrographyMetadata - Pydantic models
"""

from microplastics.data.reader import DataReader, normalize_tract, normalize_zip
from microplastics.data.geocoder import ReverseGeocoder
from microplastics.data.metadata import parse_fgdc_metadata, read_fgdc_metadata
from microplastics.data.schemas import (
    BoundingBox,
    HydrographyMetadata,
    SampleRecord,
    WastewaterFacility,
    validate_facilities,
    validate_samples,
)

__all__ = [
    "DataReader",
    "normalize_zip",
    "normalize_tract",
    "ReverseGeocoder",
    "read_fgdc_metadata",
    "parse_fgdc_metadata",
    "BoundingBox",
    "HydrographyMetadata",
    "SampleRecord",
    "WastewaterFacility",
    "validate_samples",
    "validate_facilities",
]
