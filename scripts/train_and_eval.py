#!/usr/bin/env python3
"""Training + evaluation pipeline runner.

Orchestrates the complete modeling workflow:
1. Load the cached sample frame (and auxiliary tables)
2. Prepare the model frame
3. Stratified train/test split and repeated k-fold partitions
4. Tune every model family and the null model
5. Residual diagnostics
6. Compare families, final fit, test evaluation
7. Save results

Usage:
    python scripts/train_and_eval.py
    python scripts/train_and_eval.py --dataset samples_2023 --families lasso forest
    python scripts/train_and_eval.py --aux land_use=landuse_by_tract --aux facilities=wrf_sites
    python scripts/train_and_eval.py --zip-population storage/data/zip_population.xlsx

Environment:
    MICROPLASTICS_DATA_DIR: Cached data directory (default: storage/data)
    MICROPLASTICS_RESULTS_DIR: Output directory (default: storage/results)
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Add src to path if running as script
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from microplastics.config import CV_FOLDS, CV_REPEATS, DEFAULT_DATASET, RANDOM_SEED, TEST_PROPORTION
from microplastics.data import DataReader
from microplastics.models import DEFAULT_FAMILIES, list_families
from microplastics.pipeline import Pipeline
from microplastics.pipeline.runner import AUXILIARY_TABLES

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def parse_aux(values):
    """["land_use=landuse_by_tract", ...] -> {"land_use": "landuse_by_tract"}"""
    aux = {}
    for value in values or []:
        key, sep, name = value.partition("=")
        if not sep or key not in AUXILIARY_TABLES:
            raise argparse.ArgumentTypeError(
                f"--aux expects TABLE=NAME with TABLE in {list(AUXILIARY_TABLES)}, got '{value}'"
            )
        aux[key] = name
    return aux


def main():
    """Run full training + evaluation pipeline."""
    parser = argparse.ArgumentParser(
        description="Tune and evaluate microplastic concentration models"
    )
    parser.add_argument("--dataset", default=DEFAULT_DATASET, help="Cached sample frame name")
    parser.add_argument("--data-dir", default=None, help="Cached data directory")
    parser.add_argument("--results-dir", default=None, help="Output directory")
    parser.add_argument(
        "--families", nargs="+", default=DEFAULT_FAMILIES, choices=list_families(),
        help="Model families to tune",
    )
    parser.add_argument("--selection", choices=["best", "one_se"], default="best",
                        help="Configuration selection rule")
    parser.add_argument("--missing", choices=["drop", "impute"], default="drop",
                        help="Missing predictor handling")
    parser.add_argument("--test-prop", type=float, default=TEST_PROPORTION,
                        help="Share of rows held out for testing")
    parser.add_argument("--folds", type=int, default=CV_FOLDS, help="CV folds")
    parser.add_argument("--repeats", type=int, default=CV_REPEATS, help="CV repeats")
    parser.add_argument("--seed", type=int, default=RANDOM_SEED, help="Random seed")
    parser.add_argument("--trees", type=int, default=None, help="Trees in the random forest")
    parser.add_argument("--metadata", default=None,
                        help="FGDC metadata of the hydrography layer (flags samples outside it)")
    parser.add_argument("--aux", action="append", default=[],
                        help="Auxiliary table to join, as TABLE=NAME (repeatable)")
    parser.add_argument("--zip-population", default=None,
                        help="Excel sheet of ZIP-code populations to join")
    parser.add_argument("--zip-sheet", default=0,
                        help="Sheet name or index in the ZIP population workbook")
    parser.add_argument("--zip-col", default="zip", help="ZIP column in the workbook")
    parser.add_argument("--population-col", default="population",
                        help="Population column in the workbook")

    args = parser.parse_args()
    try:
        aux_names = parse_aux(args.aux)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    if args.zip_population and "zip_population" in aux_names:
        parser.error("Use either --zip-population or --aux zip_population=NAME, not both")

    print("\n" + "=" * 70)
    print("MICROPLASTICS TRAINING + EVALUATION PIPELINE")
    print("=" * 70)

    family_options = {"forest": {"n_estimators": args.trees}} if args.trees else {}
    pipeline = Pipeline(
        dataset=args.dataset,
        data_dir=args.data_dir,
        results_dir=args.results_dir,
        families=args.families,
        selection=args.selection,
        missing=args.missing,
        test_proportion=args.test_prop,
        n_folds=args.folds,
        n_repeats=args.repeats,
        seed=args.seed,
        family_options=family_options,
        metadata_path=args.metadata,
    )

    print("\n[1/7] LOADING DATA")
    print("-" * 70)
    auxiliary = {}
    if aux_names or args.zip_population:
        reader = DataReader(args.data_dir)
        auxiliary = {key: reader.load_table(name) for key, name in aux_names.items()}
        if args.zip_population:
            sheet = int(args.zip_sheet) if str(args.zip_sheet).isdigit() else args.zip_sheet
            auxiliary["zip_population"] = reader.load_zip_population(
                args.zip_population,
                sheet_name=sheet,
                zip_col=args.zip_col,
                population_col=args.population_col,
            )
    pipeline.load(**auxiliary)

    print("\n[2/7] PREPARING")
    print("-" * 70)
    pipeline.prepare()

    print("\n[3/7] SPLITTING")
    print("-" * 70)
    pipeline.split()
    pipeline.make_folds()

    print("\n[4/7] TUNING")
    print("-" * 70)
    pipeline.tune()

    print("\n[5/7] DIAGNOSTICS")
    print("-" * 70)
    pipeline.diagnose()

    print("\n[6/7] COMPARISON + FINAL FIT")
    print("-" * 70)
    pipeline.compare()
    metrics = pipeline.finalize()

    print("\n[7/7] SAVING")
    print("-" * 70)
    pipeline.save_artifacts()

    print("\n" + "=" * 70)
    print("PIPELINE COMPLETE")
    print("=" * 70)
    print(f"Selected: {pipeline.best_family}")
    print(f"Test RMSE: {metrics.model_rmse:.3f} (null {metrics.baseline_rmse:.3f})")
    print(f"Results: {pipeline.results_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
