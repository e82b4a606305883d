#!/usr/bin/env python3
"""
Example script demonstrating how to run the LPI percent cover workflow.

This script reads a tall LPI table and produces, for each hit mode:
1. Percent cover by species code
2. Percent cover by growth habit and duration (when those columns exist)
3. The point counts used as denominators

Output is saved as both a pickle file (dictionary) and individual CSVs.
"""

import pickle
import sys
from pathlib import Path

from lpi_cover import HIT_MODES, compute_cover_tables, load_lpi_tall

INDICATOR_SETS = {
    'species': ['code'],
    'growth_habit': ['GrowthHabitSub'],
    'growth_habit_duration': ['GrowthHabitSub', 'Duration'],
}


def process_lpi_file(lpi_path: str, output_dir: str = "./output") -> dict:
    """
    Compute cover tables for a tall LPI file and save results.

    Parameters
    ----------
    lpi_path : str
        Path to a tall LPI table (.csv or .pkl)
    output_dir : str
        Directory to save output files

    Returns
    -------
    dict
        Dictionary of hit mode to workflow output
    """
    csvs_output_dir = Path(output_dir) / "csvs"
    csvs_output_dir.mkdir(parents=True, exist_ok=True)

    print(f"\n{'='*60}")
    print(f"Processing LPI file: {lpi_path}")
    print(f"{'='*60}\n")

    lpi_tall = load_lpi_tall(lpi_path)

    # Only ask for the indicator sets this table can support
    indicator_sets = {
        name: variables for name, variables in INDICATOR_SETS.items()
        if all(var in lpi_tall.columns for var in variables)
    }
    skipped = sorted(set(INDICATOR_SETS) - set(indicator_sets))
    if skipped:
        print(f"Skipping indicator sets with missing columns: {', '.join(skipped)}")

    outputs = {}
    for hit in HIT_MODES:
        outputs[hit] = compute_cover_tables(lpi_tall, indicator_sets, hit=hit, verbose=True)

    # Save as pickle (dictionary)
    stem = Path(lpi_path).stem
    pkl_file = Path(output_dir) / f"{stem}_cover.pkl"
    with open(pkl_file, 'wb') as f:
        pickle.dump(outputs, f)
    print(f"\nPickle file saved: {pkl_file}")

    # Save individual DataFrames as CSVs for easy inspection
    for hit, output in outputs.items():
        for name, table in output['cover'].items():
            filepath = csvs_output_dir / f"{stem}_{hit}_{name}.csv"
            table.to_csv(filepath, index=False)
            print(f"CSV saved: {filepath}")

    point_counts_file = csvs_output_dir / f"{stem}_point_counts.csv"
    outputs['any']['point_counts'].to_csv(point_counts_file, index=False)
    print(f"CSV saved: {point_counts_file}")

    # Print summary
    metadata = outputs['any']['metadata']
    print(f"\n{'='*60}")
    print("Summary:")
    print(f"{'='*60}")
    print(f"  Sites: {metadata['n_sites']}")
    print(f"  Plots: {metadata['n_plots']}")
    print(f"  Lines: {metadata['n_lines']}")
    print(f"  Pin drops with a hit: {metadata['n_points']}")

    for name, table in outputs['first']['cover'].items():
        if not table.empty:
            print(f"\nFirst hit cover, {name} (sample rows):")
            print(table.head(3).to_string())

    return outputs


def main():
    """Main entry point."""
    if len(sys.argv) < 2:
        print("Usage: python example_run.py <lpi_tall.csv|.pkl> [output_dir]")
        sys.exit(1)

    lpi_path = sys.argv[1]
    output_dir = sys.argv[2] if len(sys.argv) > 2 else "./output"

    if not Path(lpi_path).exists():
        print(f"Error: LPI file '{lpi_path}' not found.")
        sys.exit(1)

    process_lpi_file(lpi_path, output_dir)

    print(f"\n{'='*60}")
    print("Done!")
    print(f"{'='*60}")


if __name__ == "__main__":
    main()
