#!/usr/bin/env python3
"""
Campaign Analysis.

Runs the full survey pipeline on one campaign (cleaning, GPS join,
rasterization), then the comparative statistics: against a prior
campaign's raster, by wind side, by quadrant and by distance to the
factory.  Prints every table and optionally writes CSVs and an HTML
report.

Usage:
    uv run python experiments/run_campaign_analysis.py --mock --out results/
    uv run python experiments/run_campaign_analysis.py \\
        --gas gas_analyzer.csv --gps gps_segment_1.csv gps_segment_2.csv \\
        --prior prior_raster.csv --wind-direction 225 --out results/
"""

import sys
import os
import argparse
import logging

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pandas as pd

from data.interfaces import FileDataProvider, MockDataProvider
from data.raster_io import write_raster_csv
from models.campaign import SiteLocation
from processing.pipeline import run_campaign
from analysis.statistics import describe
from analysis.comparison import (
    compare_rasters,
    compare_quadrants,
    compare_wind_sides,
    compare_distance_bands,
    distance_regression,
)
from visualization.report import write_report
from config import FACTORY_LOCATION, NEAR_FAR_THRESHOLD_KM


def _print_table(title: str, table: pd.DataFrame):
    print(f"\n{'='*70}")
    print(title)
    print(f"{'='*70}")
    if len(table) == 0:
        print("  (no rows)")
        return
    with pd.option_context("display.width", 160, "display.max_columns", 20,
                           "display.float_format", "{:.4g}".format):
        print(table.to_string())


def _compact(comparison: pd.DataFrame) -> pd.DataFrame:
    """The columns worth printing from a comparison table."""
    cols = ["group_a", "group_b", "pollutant", "n_a", "median_a", "n_b",
            "median_b", "p_value", "significant"]
    return comparison[cols]


def run_analysis(provider, site: SiteLocation, wind_direction=None,
                 threshold_km: float = NEAR_FAR_THRESHOLD_KM,
                 pollutants=None) -> dict:
    """Run the pipeline and every comparison; return the result tables."""
    gas = provider.get_gas_readings()
    gps = provider.get_gps_fixes()
    prior = provider.get_prior_raster()

    result = run_campaign(gas, gps, pollutants=pollutants)
    raster = result.raster
    tables = {
        "summary": describe(raster, result.pollutants),
        "distance_regression": distance_regression(raster, site, result.pollutants),
        "quadrants": compare_quadrants(raster, site, result.pollutants),
        "distance_bands": compare_distance_bands(
            raster, site, result.pollutants, threshold_km=threshold_km,
        ),
    }

    if wind_direction is None:
        conditions = provider.get_conditions()
        if conditions is not None:
            wind_direction = conditions.wind_direction_deg
    if wind_direction is not None:
        tables["wind_sides"] = compare_wind_sides(
            raster, site, wind_direction, result.pollutants,
        )

    if prior is not None:
        shared = [p for p in result.pollutants if p in prior.columns]
        tables["prior_comparison"] = compare_rasters(
            raster, prior, shared, labels=("current", "prior"),
        )

    return {"result": result, "tables": tables}


def main():
    parser = argparse.ArgumentParser(description="Mobile survey campaign analysis")
    parser.add_argument("--gas", help="Gas analyzer CSV export")
    parser.add_argument("--gps", nargs="+", help="GPS log segment CSVs")
    parser.add_argument("--prior", help="Prior campaign rasterized-mean CSV")
    parser.add_argument("--mock", action="store_true", help="Use the simulated campaign")
    parser.add_argument("--pollutants", nargs="+", help="Subset of gas channels")
    parser.add_argument("--wind-direction", type=float,
                        help="Prevailing wind direction (deg, direction wind comes FROM)")
    parser.add_argument("--threshold-km", type=float, default=NEAR_FAR_THRESHOLD_KM,
                        help="Near/far split distance (km)")
    parser.add_argument("--out", help="Directory for raster/result CSVs and the report")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.mock:
        provider = MockDataProvider()
    elif args.gas and args.gps:
        provider = FileDataProvider(args.gas, args.gps, prior_raster_path=args.prior)
    else:
        parser.error("Provide --gas and --gps, or --mock")

    site = SiteLocation.from_dict(FACTORY_LOCATION)
    print("Campaign Analysis")
    print(f"Site: {site.name} ({site.latitude:.5f}, {site.longitude:.5f})")

    output = run_analysis(
        provider, site,
        wind_direction=args.wind_direction,
        threshold_km=args.threshold_km,
        pollutants=args.pollutants,
    )
    result, tables = output["result"], output["tables"]

    print(f"Readings joined: {result.num_readings}, cells: {result.num_cells}, "
          f"gaps: {len(result.gaps)}")
    for gap in result.gaps:
        print(f"  gap {gap.start} -> {gap.end} ({gap.duration_s / 3600:.2f} h)")

    _print_table("POLLUTANT SUMMARY (raster cells)", tables["summary"])
    _print_table("REGRESSION ON DISTANCE TO SITE", tables["distance_regression"])
    for key, title in (("prior_comparison", "CURRENT vs PRIOR CAMPAIGN"),
                       ("wind_sides", "DOWNWIND vs UPWIND"),
                       ("distance_bands", "NEAR vs FAR"),
                       ("quadrants", "QUADRANT PAIRS")):
        if key in tables:
            _print_table(title, _compact(tables[key]))

    if args.out:
        os.makedirs(args.out, exist_ok=True)
        write_raster_csv(
            result.raster,
            os.path.join(args.out, "raster.csv"),
            metadata={
                "resolution_deg": result.grid.resolution,
                "lon0": result.grid.lon0,
                "lat0": result.grid.lat0,
                "nx": result.grid.nx,
                "ny": result.grid.ny,
                "start": result.gas["timestamp"].min(),
                "end": result.gas["timestamp"].max(),
            },
        )
        for name, table in tables.items():
            table.to_csv(os.path.join(args.out, f"{name}.csv"))
        report = write_report(
            os.path.join(args.out, "report.html"),
            result.raster, result.grid, result.pollutants,
            title="Mobile survey campaign report",
            site=site,
            tables={"Summary": tables["summary"],
                    "Regression on distance": tables["distance_regression"]},
        )
        print(f"\nResults written to {args.out} (report: {report})")


if __name__ == "__main__":
    main()
