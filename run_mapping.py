"""
Suggest column mappings for a local CSV or Excel file.

Usage:
  PYTHONPATH=. python run_mapping.py \
    --input /path/to/customers.csv \
    --rows 10 \
    --output results/customers_mapping.json
"""

import argparse
import json
import logging
from pathlib import Path

import pandas as pd

from core.agents.column_mapping import ColumnMappingAgent
from core.config import get_config

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}


def read_sample(input_path: Path, rows: int, sheet: str = None) -> pd.DataFrame:
    """Read the header row plus the first rows of a CSV or Excel file as text."""
    if input_path.suffix.lower() in EXCEL_SUFFIXES:
        return pd.read_excel(input_path, sheet_name=sheet or 0, nrows=rows, dtype=str)
    return pd.read_csv(input_path, nrows=rows, dtype=str, sep=None, engine="python")


def main():
    parser = argparse.ArgumentParser(description="Suggest canonical field mappings for a data file.")
    parser.add_argument("--input", required=True, help="Path to input CSV or Excel file")
    parser.add_argument("--sheet", default=None, help="Excel sheet name (default: first sheet)")
    parser.add_argument("--rows", type=int, default=50, help="Rows to read for sample values")
    parser.add_argument("--no-llm", action="store_true", help="Disable the language model fallback")
    parser.add_argument("--output", default=None, help="Optional JSON output path")
    parser.add_argument("--verbose", action="store_true", help="Log per-column decisions")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    input_path = Path(args.input)
    if not input_path.exists():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    config = get_config()
    if args.no_llm:
        agent = ColumnMappingAgent(
            sample_size=config.column_mapping.sample_size,
            max_workers=config.column_mapping.max_workers,
        )
    else:
        agent = ColumnMappingAgent.from_config(config)

    df = read_sample(input_path, args.rows, args.sheet)
    suggestions = agent.suggest_mappings_for_dataframe(df)

    width = max(len(s.original_column) for s in suggestions)
    for s in suggestions:
        print(f"{s.original_column:<{width}}  ->  {s.suggested_field:<16} {s.confidence:.2f}  {s.reasoning}")

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(exist_ok=True, parents=True)
        output_path.write_text(json.dumps([s.to_dict() for s in suggestions], indent=2))
        print(f"Results saved to: {output_path}")


if __name__ == "__main__":
    main()
