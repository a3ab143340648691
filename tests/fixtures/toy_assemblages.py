"""Generate synthetic assemblage data for testing"""
import argparse
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

TYPES = ['plain_ware', 'red_slip', 'black_gloss', 'amphora', 'lamp', 'coarse_ware']

# Two regional traditions with distinct type proportions
TRADITIONS: Dict[str, List[float]] = {
    'north': [0.40, 0.30, 0.05, 0.10, 0.05, 0.10],
    'south': [0.10, 0.05, 0.35, 0.30, 0.15, 0.05],
}


def generate_toy_assemblages(
    num_sites: int = 12,
    mean_size: int = 200,
    seed: int = 42
) -> Dict[str, pd.DataFrame]:
    """
    Generate clustered assemblages: the first half of the sites follows the
    'north' tradition, the second half 'south'.

    Returns dict with 'counts' (site x type matrix), 'long' (site, type, count)
    and 'sites' (site, region, excavated_area, x, y).
    """
    rng = np.random.default_rng(seed)
    site_names = [f"S{i:02d}" for i in range(num_sites)]

    rows = []
    site_rows = []
    for i, site in enumerate(site_names):
        region = 'north' if i < num_sites // 2 else 'south'
        size = int(rng.integers(mean_size // 2, mean_size * 2))
        counts = rng.multinomial(size, TRADITIONS[region])
        rows.append(counts)
        site_rows.append({
            'site': site,
            'region': region,
            'excavated_area': float(rng.uniform(5.0, 500.0)),
            'x': float(rng.normal(0 if region == 'north' else 10, 2)),
            'y': float(rng.normal(0, 2)),
        })

    counts = pd.DataFrame(rows, index=site_names, columns=TYPES)
    counts.index.name = 'site'
    counts.columns.name = 'type'

    long_df = counts.stack().reset_index(name='count')
    long_df = long_df[long_df['count'] > 0].reset_index(drop=True)

    return {'counts': counts, 'long': long_df, 'sites': pd.DataFrame(site_rows)}


def write_toy_dataset(
    data_dir: Path,
    num_sites: int = 12,
    seed: int = 42,
    wide: bool = False,
    edges: Optional[pd.DataFrame] = None
) -> Path:
    """Write assemblages (long or wide), sites and optional edges CSVs into data_dir"""
    data_dir = Path(data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    toy = generate_toy_assemblages(num_sites=num_sites, seed=seed)

    if wide:
        toy['counts'].reset_index().to_csv(data_dir / 'assemblages_wide.csv', index=False)
    else:
        toy['long'].to_csv(data_dir / 'assemblages.csv', index=False)
    toy['sites'].to_csv(data_dir / 'sites.csv', index=False)
    if edges is not None:
        edges.to_csv(data_dir / 'edges.csv', index=False)
    return data_dir


def main():
    parser = argparse.ArgumentParser(description='Write a deterministic toy assemblage dataset')
    parser.add_argument('--output-dir', type=str, default='tests/fixtures/data', help='Output directory')
    parser.add_argument('--num-sites', type=int, default=12, help='Number of sites')
    parser.add_argument('--seed', type=int, default=42, help='Random seed')
    args = parser.parse_args()

    path = write_toy_dataset(Path(args.output_dir), num_sites=args.num_sites, seed=args.seed)
    print(f"Toy dataset written to {path}")


if __name__ == '__main__':
    main()
