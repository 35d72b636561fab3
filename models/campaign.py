"""
Campaign data models: collection gaps, fixed sites and operating conditions.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

import pandas as pd


@dataclass
class CollectionGap:
    """An interval with no valid GPS data between two collection segments.

    Args:
        start: Last timestamp before the gap.
        end: First timestamp after the gap.
    """

    start: pd.Timestamp
    end: pd.Timestamp

    def __post_init__(self):
        self.start = pd.Timestamp(self.start)
        self.end = pd.Timestamp(self.end)
        if self.end <= self.start:
            raise ValueError(
                f"Gap end must be after start, got {self.start} -> {self.end}"
            )

    @property
    def duration_s(self) -> float:
        return (self.end - self.start).total_seconds()


@dataclass
class SiteLocation:
    """A fixed point of interest such as the factory stack."""

    name: str
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Invalid latitude: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Invalid longitude: {self.longitude}")

    @classmethod
    def from_dict(cls, d: dict) -> "SiteLocation":
        return cls(name=d["name"], latitude=d["latitude"], longitude=d["longitude"])


@dataclass
class CampaignConditions:
    """Operating conditions recorded for one collection day.

    Args:
        label: Short name used in result tables (e.g. "2023-06-14 on").
        collection_date: Day the data was collected.
        factory_on: Whether the factory was operating.
        wind_direction_deg: Prevailing meteorological wind direction
            (degrees, direction the wind comes FROM).
        wind_speed: Prevailing wind speed in m/s, if known.
    """

    label: str
    collection_date: Optional[date] = None
    factory_on: Optional[bool] = None
    wind_direction_deg: Optional[float] = None
    wind_speed: Optional[float] = None

    def __post_init__(self):
        if self.wind_direction_deg is not None:
            self.wind_direction_deg = float(self.wind_direction_deg) % 360.0
        if self.wind_speed is not None and self.wind_speed < 0:
            raise ValueError("Wind speed must be >= 0")
