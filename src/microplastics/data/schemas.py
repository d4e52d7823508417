"""Pydantic schemas for sample and reference data validation.

Models:
    SampleRecord - One water sample row
    WastewaterFacility - Reclamation facility location
    BoundingBox - Geographic extent (decimal degrees)
    HydrographyMetadata - Parsed FGDC description of the reference layer

Usage:
    from microplastics.data.schemas import validate_samples

    validate_samples(df)  # raises ValueError on bad rows
"""

from __future__ import annotations

import datetime as dt
import math
from typing import List, Optional

import numpy as np
import pandas as pd
from pydantic import BaseModel, Field, ValidationError, field_validator


class SampleRecord(BaseModel):
    """One water sample."""

    site: str
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    date: Optional[dt.date] = None
    particle_concentration: Optional[float] = Field(default=None, ge=0)
    visual_score: Optional[float] = None
    turbidity: Optional[float] = Field(default=None, ge=0)
    temperature: Optional[float] = None
    ecoli: Optional[float] = Field(default=None, ge=0)

    @field_validator("site", mode="before")
    @classmethod
    def _site_as_str(cls, v):
        if isinstance(v, np.generic):
            v = v.item()
        return str(v)

    @field_validator(
        "date", "particle_concentration", "visual_score", "turbidity",
        "temperature", "ecoli",
        mode="before",
    )
    @classmethod
    def _nan_to_none(cls, v):
        # pandas hands numpy scalars and NaN / NaT for missing cells
        if isinstance(v, np.generic):
            v = v.item()
        if v is None:
            return None
        if isinstance(v, float) and math.isnan(v):
            return None
        if v is pd.NaT:
            return None
        if isinstance(v, pd.Timestamp):
            return v.date()
        return v


class WastewaterFacility(BaseModel):
    """Wastewater reclamation facility location."""

    name: Optional[str] = None
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class BoundingBox(BaseModel):
    """Geographic extent in decimal degrees."""

    west: float
    east: float
    north: float
    south: float

    def contains(self, lat: float, lon: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lon <= self.east


class HydrographyMetadata(BaseModel):
    """Descriptive fields of an FGDC CSDGM hydrography document."""

    title: str
    originator: List[str] = Field(default_factory=list)
    publication_date: Optional[str] = None
    abstract: Optional[str] = None
    purpose: Optional[str] = None
    theme_keywords: List[str] = Field(default_factory=list)
    place_keywords: List[str] = Field(default_factory=list)
    bounding_box: Optional[BoundingBox] = None

    def contains(self, lat: float, lon: float) -> bool:
        """True if the point lies in the layer's extent (or no extent is declared)."""
        if self.bounding_box is None:
            return True
        return self.bounding_box.contains(lat, lon)


def validate_samples(df: pd.DataFrame) -> List[SampleRecord]:
    """Validate every row of a sample frame.

    Only columns the schema knows are checked; extra columns pass through.

    Raises:
        ValueError: Listing the offending row indices and first error.
    """
    known = [c for c in SampleRecord.model_fields if c in df.columns]
    records = []
    bad = []
    first_error = None
    # Records keep each column's own dtype
    for idx, record in zip(df.index, df[known].to_dict("records")):
        try:
            records.append(SampleRecord.model_validate(record))
        except ValidationError as e:
            bad.append(idx)
            if first_error is None:
                first_error = e.errors()[0]["msg"]

    if bad:
        raise ValueError(f"Invalid sample rows {bad}: {first_error}")
    return records


def validate_facilities(df: pd.DataFrame) -> List[WastewaterFacility]:
    """Validate the facility coordinate table."""
    try:
        return [WastewaterFacility.model_validate(r) for r in df.to_dict("records")]
    except ValidationError as e:
        raise ValueError(f"Invalid facility table: {e.errors()[0]['msg']}") from e
