#!/usr/bin/env python3
"""
Generate Sample Census Data
===========================
Creates a synthetic census CSV with columns age, sex, educ, race, income,
married, suitable as input for the noiser.

Usage:
    python examples/generate_sample_data.py

    # Or with custom parameters:
    python examples/generate_sample_data.py --num-records 5000 --output data/data.csv
"""

import argparse
import os

import numpy as np
import pandas as pd

from schema.dataset import COLUMNS, INCOME_BUCKET_STEP, INCOME_BUCKET_STOP


def generate_sample_data(
    num_records: int = 1000,
    output_path: str = "data/data.csv",
    seed: int = 42
) -> pd.DataFrame:
    """
    Generate synthetic census records and write them as a headed CSV.

    Education codes are drawn from 1..20 with mass around high-school levels;
    incomes are rounded to 10,000-wide bands so most rows land in a bucket.

    Args:
        num_records: Number of rows
        output_path: Destination CSV path
        seed: Random seed for reproducibility

    Returns:
        The generated DataFrame
    """
    rng = np.random.default_rng(seed)

    educ_weights = np.exp(-0.5 * ((np.arange(1, 21) - 10) / 3.5) ** 2)
    educ_weights /= educ_weights.sum()

    income = rng.lognormal(mean=10.6, sigma=0.7, size=num_records)
    income = np.clip(np.round(income / INCOME_BUCKET_STEP) * INCOME_BUCKET_STEP, 0, INCOME_BUCKET_STOP + INCOME_BUCKET_STEP)

    df = pd.DataFrame({
        "age": rng.integers(18, 91, size=num_records),
        "sex": rng.integers(0, 2, size=num_records),
        "educ": rng.choice(np.arange(1, 21), size=num_records, p=educ_weights),
        "race": rng.integers(1, 7, size=num_records),
        "income": income.astype(np.int64),
        "married": rng.integers(0, 2, size=num_records),
    }, columns=list(COLUMNS))

    os.makedirs(os.path.dirname(output_path) or '.', exist_ok=True)
    df.to_csv(output_path, index=False)

    print(f"✅ Done! Generated {len(df):,} records")
    print(f"   Output: {output_path}")
    return df


def main():
    parser = argparse.ArgumentParser(
        description="Generate sample census data for the noiser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Generate 1,000 records to data/data.csv
    python examples/generate_sample_data.py

    # Generate with specific random seed
    python examples/generate_sample_data.py --seed 123 --num-records 20000
        """
    )

    parser.add_argument(
        '--num-records', '-n',
        type=int,
        default=1000,
        help='Number of records to generate (default: 1,000)'
    )

    parser.add_argument(
        '--output', '-o',
        type=str,
        default='data/data.csv',
        help='Output file path (default: data/data.csv)'
    )

    parser.add_argument(
        '--seed', '-s',
        type=int,
        default=42,
        help='Random seed for reproducibility (default: 42)'
    )

    args = parser.parse_args()

    generate_sample_data(
        num_records=args.num_records,
        output_path=args.output,
        seed=args.seed
    )


if __name__ == '__main__':
    main()
