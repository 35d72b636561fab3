"""
Abstract Data Provider interface for pluggable campaign data sources.

Allows swapping the simulated campaign for real instrument exports
without changing downstream code.
"""

import os
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

import pandas as pd

from models.campaign import CampaignConditions
from data.readers import read_gas_log, read_gps_logs
from data.raster_io import read_raster_csv


class DataProvider(ABC):
    """Abstract base class for campaign data sources.

    **Immutability contract:** All methods return *fresh* tables.  The
    provider may cache its data internally, so every call hands back a
    copy that callers are free to modify.
    """

    @abstractmethod
    def get_gas_readings(self) -> pd.DataFrame:
        """Return the raw gas log.

        Columns: 'timestamp' (naive, analyzer local time) followed by one
        float column per pollutant.
        """
        ...

    @abstractmethod
    def get_gps_fixes(self) -> pd.DataFrame:
        """Return all GPS segments concatenated in time order.

        Columns: 'timestamp' (naive, GPS logger time), 'latitude', 'longitude'.
        """
        ...

    @abstractmethod
    def get_prior_raster(self) -> Optional[pd.DataFrame]:
        """Return the rasterized means of an earlier campaign, or None."""
        ...

    def get_conditions(self) -> Optional[CampaignConditions]:
        """Return the campaign's operating conditions, if known."""
        return None


class MockDataProvider(DataProvider):
    """Wraps the simulated campaign in mock_data.py."""

    def __init__(self, seed: int = 42):
        self.seed = seed
        self._gas = None
        self._gps = None
        self._prior = None

    def _simulate(self):
        if self._gas is None:
            from data.mock_data import simulate_campaign
            self._gas, self._gps = simulate_campaign(seed=self.seed)

    def get_gas_readings(self) -> pd.DataFrame:
        self._simulate()
        return self._gas.copy()

    def get_gps_fixes(self) -> pd.DataFrame:
        self._simulate()
        return self._gps.copy()

    def get_prior_raster(self) -> Optional[pd.DataFrame]:
        if self._prior is None:
            from data.mock_data import get_prior_raster
            self._prior = get_prior_raster()
        return self._prior.copy()

    def get_conditions(self) -> Optional[CampaignConditions]:
        from data.mock_data import get_conditions
        return get_conditions()[0]


class FileDataProvider(DataProvider):
    """Load a campaign from CSV files on disk.

    Args:
        gas_path: Gas analyzer CSV export.
        gps_paths: One or more GPS log segments.
        prior_raster_path: Optional rasterized-mean CSV of an earlier campaign.
        pollutants: Optional subset of gas channels to load.
        conditions: Optional operating conditions for the campaign.

    Raises:
        FileNotFoundError: If any file does not exist.
        ValueError: If a file is missing required columns or has no usable rows.
    """

    def __init__(
        self,
        gas_path: str,
        gps_paths: Sequence[str],
        prior_raster_path: Optional[str] = None,
        pollutants: Optional[List[str]] = None,
        conditions: Optional[CampaignConditions] = None,
    ):
        if isinstance(gps_paths, (str, os.PathLike)):
            gps_paths = [gps_paths]
        for path in [gas_path, *gps_paths] + ([prior_raster_path] if prior_raster_path else []):
            if not os.path.exists(path):
                raise FileNotFoundError(f"Campaign file not found: {path}")

        self._gas = read_gas_log(gas_path, pollutants=pollutants)
        self._gps = read_gps_logs(gps_paths)
        self._prior = read_raster_csv(prior_raster_path) if prior_raster_path else None
        self._conditions = conditions

    # -- DataProvider interface -------------------------------------------

    def get_gas_readings(self) -> pd.DataFrame:
        return self._gas.copy()

    def get_gps_fixes(self) -> pd.DataFrame:
        return self._gps.copy()

    def get_prior_raster(self) -> Optional[pd.DataFrame]:
        return None if self._prior is None else self._prior.copy()

    def get_conditions(self) -> Optional[CampaignConditions]:
        return self._conditions
