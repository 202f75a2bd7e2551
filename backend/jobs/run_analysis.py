"""
Run carbon price analysis job.

Loads clean company and observation CSV files, runs the portfolio analysis
(climate portfolio vs baseline for every date / investment type / dimension)
and optionally the total-based tercile carbon price, then writes the results
as CSV.

Expected columns:
    companies:    id, isin, name, geography, sector, industry,
                  sdg_alignment_score, emission_target_2050
    observations: company_id, date, total_return_index, market_cap,
                  price_earnings, scope1_emissions, scope2_emissions,
                  scope3_emissions, net_profit
"""

import argparse
import os
import sys
from dataclasses import asdict
from datetime import date, datetime
from typing import Any, Dict, List, Optional

import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from carbonlens.domain.dataset import Dataset
from carbonlens.domain.models import (
    AnalysisResult,
    Company,
    TercileAggregate,
    TercileMethod,
    TimeSeriesObservation,
)
from carbonlens.log_config import analysis_context, logger
from carbonlens.services.carbon_price_calculator import TotalCarbonPriceEngine
from carbonlens.services.portfolio_analyzer import available_dimensions, parse_parameters, run_full_analysis
from carbonlens.services.tercile_calculator import precompute_terciles
from carbonlens.utils.cache import AnalysisCache
from carbonlens.utils.errors import CarbonLensError

OBSERVATION_NUMERIC_COLUMNS = [
    "total_return_index",
    "market_cap",
    "price_earnings",
    "scope1_emissions",
    "scope2_emissions",
    "scope3_emissions",
    "net_profit",
]


def parse_date(date_str: str) -> date:
    """Parse date string in YYYY-MM-DD format."""
    try:
        return datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date format: {date_str}. Use YYYY-MM-DD")


def _records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    # NaN -> None so optional model fields stay unset
    return df.astype(object).where(pd.notna(df), None).to_dict(orient="records")


def load_companies(path: str) -> List[Company]:
    """Read the companies CSV into Company models."""
    df = pd.read_csv(path)
    if "id" not in df.columns:
        raise ValueError(f"{path}: missing required column 'id'")
    return [Company.model_validate(row) for row in _records(df)]


def load_observations(path: str) -> List[TimeSeriesObservation]:
    """Read the observations CSV into TimeSeriesObservation models."""
    df = pd.read_csv(path)
    missing = {"company_id", "date"} - set(df.columns)
    if missing:
        raise ValueError(f"{path}: missing required columns {sorted(missing)}")

    df["date"] = pd.to_datetime(df["date"]).dt.date
    for column in OBSERVATION_NUMERIC_COLUMNS:
        if column in df.columns:
            df[column] = pd.to_numeric(df[column], errors="coerce")
    return [TimeSeriesObservation.model_validate(row) for row in _records(df)]


def results_to_frame(results: List[AnalysisResult]) -> pd.DataFrame:
    """Flatten analysis results into a DataFrame (company ids joined by ';')."""
    rows = []
    for result in results:
        row = result.model_dump(mode="json")
        row["companies"] = ";".join(str(cid) for cid in result.companies)
        rows.append(row)
    return pd.DataFrame(rows)


def aggregates_to_frame(aggregates: List[TercileAggregate]) -> pd.DataFrame:
    return pd.DataFrame([asdict(aggregate) for aggregate in aggregates])


def run_analysis(
    companies_path: str,
    observations_path: str,
    output_path: str,
    options: Optional[Dict[str, Any]] = None,
    sectors: Optional[List[str]] = None,
    geographies: Optional[List[str]] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    tercile_output_path: Optional[str] = None,
    tercile_method: TercileMethod = TercileMethod.ABSOLUTE,
) -> Dict[str, int]:
    """
    Load inputs, run the analysis and write the output CSV files.

    Returns:
        Counts of loaded companies / observations and written rows
    """
    parameters = parse_parameters(options)

    companies = load_companies(companies_path)
    observations = load_observations(observations_path)
    dataset = Dataset(companies, observations, dataset_id=os.path.basename(observations_path))
    logger.info(
        f"Loaded {len(companies)} companies and {len(dataset)} observations "
        f"from {companies_path}, {observations_path}"
    )

    dimensions = available_dimensions(dataset, parameters.sector_granularity)
    if sectors == ["all"]:
        sectors = dimensions["sectors"]
    if geographies == ["all"]:
        geographies = dimensions["regions"]

    stats = {
        "companies": len(companies),
        "observations": len(dataset),
        "results": 0,
        "tercile_results": 0,
    }

    with analysis_context(dataset_id=dataset.dataset_id):
        results = run_full_analysis(
            dataset,
            parameters,
            sectors=sectors,
            geographies=geographies,
            start_date=start_date,
            end_date=end_date,
        )
        results_to_frame(results).to_csv(output_path, index=False)
        logger.info(f"Wrote {len(results)} analysis results to {output_path}")
        stats["results"] = len(results)

        if tercile_output_path:
            cache = AnalysisCache()
            precompute_terciles(dataset, cache, parameters.sector_granularity)
            engine = TotalCarbonPriceEngine(cache)
            aggregates = engine.calculate(
                dataset,
                method=tercile_method,
                include_scope3=parameters.include_scope3,
                winsorize=parameters.winsorize,
                winsorize_percentile=parameters.winsorize_percentile,
                granularity=parameters.sector_granularity,
            )
            aggregates_to_frame(aggregates).to_csv(tercile_output_path, index=False)
            logger.info(f"Wrote {len(aggregates)} tercile carbon prices to {tercile_output_path}")
            stats["tercile_results"] = len(aggregates)

    return stats


def _split(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def main():
    """Main entry point for CLI execution."""
    parser = argparse.ArgumentParser(
        description="Run implied carbon price analysis on company / observation CSV files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python3 backend/jobs/run_analysis.py companies.csv observations.csv -o results.csv
  python3 backend/jobs/run_analysis.py companies.csv observations.csv -o results.csv \\
      --sectors all --geographies Europe,US --methodology dcf --include-scope3
  python3 backend/jobs/run_analysis.py companies.csv observations.csv -o results.csv \\
      --tercile-output terciles.csv --tercile-method sector_relative --winsorize 5
        """
    )

    parser.add_argument("companies", help="Companies CSV file")
    parser.add_argument("observations", help="Observations CSV file")
    parser.add_argument("-o", "--output", required=True, help="Analysis results CSV file")

    parser.add_argument("--include-scope3", action="store_true", help="Include scope 3 emissions")
    parser.add_argument(
        "--methodology", choices=["relative", "dcf"], default="relative", help="Valuation methodology"
    )
    parser.add_argument(
        "--granularity", choices=["sector", "industry"], default="sector", help="Peer group level"
    )
    parser.add_argument(
        "--classification",
        choices=[m.value for m in TercileMethod],
        default=TercileMethod.SECTOR_RELATIVE.value,
        help="Rank within peer groups (sector_relative) or across all companies (absolute)",
    )
    parser.add_argument(
        "--thresholds",
        action="store_true",
        help="Use percentile / target / score thresholds instead of terciles",
    )
    parser.add_argument(
        "--winsorize",
        type=int,
        default=None,
        metavar="PERCENTILE",
        help="Winsorize group values at this tail percentile (0-50)",
    )

    parser.add_argument("--sectors", type=str, default=None, help="Comma-separated sectors, or 'all'")
    parser.add_argument(
        "--geographies", type=str, default=None, help="Comma-separated countries / regions, or 'all'"
    )
    parser.add_argument("--start-date", type=parse_date, default=None, help="First date (YYYY-MM-DD)")
    parser.add_argument("--end-date", type=parse_date, default=None, help="Last date (YYYY-MM-DD)")

    parser.add_argument("--tercile-output", type=str, default=None, help="Total-based carbon price CSV file")
    parser.add_argument(
        "--tercile-method",
        choices=[m.value for m in TercileMethod],
        default=TercileMethod.ABSOLUTE.value,
        help="Tercile ranking for the total-based carbon price",
    )

    args = parser.parse_args()

    if args.start_date and args.end_date and args.start_date > args.end_date:
        parser.error("--start-date must not be after --end-date")

    options: Dict[str, Any] = {
        "include_scope3": args.include_scope3,
        "methodology": args.methodology,
        "sector_granularity": args.granularity,
        "classification": args.classification,
        "tercile_approach": not args.thresholds,
    }
    if args.winsorize is not None:
        options["winsorize"] = True
        options["winsorize_percentile"] = args.winsorize

    try:
        stats = run_analysis(
            args.companies,
            args.observations,
            args.output,
            options=options,
            sectors=_split(args.sectors),
            geographies=_split(args.geographies),
            start_date=args.start_date,
            end_date=args.end_date,
            tercile_output_path=args.tercile_output,
            tercile_method=TercileMethod(args.tercile_method),
        )
    except CarbonLensError as e:
        logger.error(f"Analysis failed: {e.message} {e.details}")
        sys.exit(1)

    print(
        f"Analysis complete: {stats['results']} results, "
        f"{stats['tercile_results']} tercile carbon prices"
    )


if __name__ == "__main__":
    main()
