"""Assemblage dataset loader"""
from pathlib import Path
from typing import Dict, Optional, List
import pandas as pd
from .schema import AssemblageSchema, long_to_matrix


class AssemblageLoader:
    """Loads and validates assemblage and network data from CSV/Parquet files"""

    def __init__(
        self,
        data_path: str,
        min_assemblage_size: int = 0,
        site_column: str = 'site',
        type_column: str = 'type',
        count_column: str = 'count'
    ):
        self.data_path = Path(data_path)
        if not self.data_path.exists():
            raise FileNotFoundError(f"Data path does not exist: {data_path}")

        self.min_assemblage_size = min_assemblage_size
        self.site_column = site_column
        # Long-form source column -> canonical name
        self.columns = {site_column: 'site', type_column: 'type', count_column: 'count'}

        self._counts: Optional[pd.DataFrame] = None
        self._sites: Optional[pd.DataFrame] = None
        self._edges: Optional[pd.DataFrame] = None
        self._adjacency: Optional[pd.DataFrame] = None
        self._dropped_sites: List[str] = []

    @classmethod
    def from_params(cls, data_path: str, params) -> 'AssemblageLoader':
        """Loader configured from the `data` params section"""
        return cls(
            data_path,
            min_assemblage_size=params.get('data', 'min_assemblage_size', default=0),
            site_column=params.get('data', 'site_column', default='site'),
            type_column=params.get('data', 'type_column', default='type'),
            count_column=params.get('data', 'count_column', default='count')
        )

    def _find(self, stem: str) -> Optional[Path]:
        for suffix in ('.csv', '.parquet'):
            path = self.data_path / f"{stem}{suffix}"
            if path.exists():
                return path
        return None

    @staticmethod
    def _read(path: Path, **kwargs) -> pd.DataFrame:
        if path.suffix == '.csv':
            return pd.read_csv(path, **kwargs)
        return pd.read_parquet(path)

    def load(self) -> List[str]:
        """
        Load assemblages plus optional sites, edges and adjacency tables.
        Returns list of validation errors (empty if valid).
        """
        errors = []

        long_path = self._find('assemblages')
        wide_path = self._find('assemblages_wide')

        if long_path is not None:
            df = self._read(long_path).rename(columns=self.columns)
            if 'site' in df.columns:
                df['site'] = df['site'].astype(str)
            errors.extend(AssemblageSchema.validate_long(df))
            if all(field in df.columns for field in AssemblageSchema.LONG_FIELDS):
                numeric = pd.to_numeric(df['count'], errors='coerce')
                # Missing, negative and non-integer counts are reported above and dropped here
                valid = numeric.notna() & (numeric >= 0) & (numeric % 1 == 0)
                df = df[valid].copy()
                df['count'] = numeric[valid]
                self._counts = long_to_matrix(df)
        elif wide_path is not None:
            df = self._read(wide_path).rename(columns={self.site_column: 'site'})
            errors.extend(AssemblageSchema.validate_wide(df))
            if 'site' in df.columns:
                df['site'] = df['site'].astype(str)
                df = df.drop_duplicates(subset=['site'], keep='first').set_index('site')
                df = df.apply(pd.to_numeric, errors='coerce')
                df = df.where((df >= 0) & (df % 1 == 0), 0)
                df.index.name = 'site'
                df.columns.name = 'type'
                self._counts = df.astype(int)
        else:
            errors.append("assemblages: no assemblages.csv or assemblages_wide.csv found")
            return errors

        if self._counts is not None and self.min_assemblage_size > 0:
            totals = self._counts.sum(axis=1)
            small = totals[totals < self.min_assemblage_size].index.tolist()
            if small:
                self._dropped_sites = small
                self._counts = self._counts.drop(index=small)
                errors.append(
                    f"assemblages: dropped {len(small)} sites below min_assemblage_size={self.min_assemblage_size}"
                )

        sites_path = self._find('sites')
        if sites_path is not None:
            df = self._read(sites_path)
            errors.extend(AssemblageSchema.validate_sites(df))
            if 'site' in df.columns:
                df['site'] = df['site'].astype(str)
                self._sites = df.drop_duplicates(subset=['site']).set_index('site')

        edges_path = self._find('edges')
        if edges_path is not None:
            df = self._read(edges_path)
            errors.extend(AssemblageSchema.validate_edges(df))
            if all(field in df.columns for field in AssemblageSchema.EDGE_FIELDS):
                df['source'] = df['source'].astype(str)
                df['target'] = df['target'].astype(str)
                if 'weight' not in df.columns:
                    df['weight'] = 1.0
                self._edges = df

        adjacency_path = self._find('adjacency')
        if adjacency_path is not None:
            if adjacency_path.suffix == '.csv':
                df = pd.read_csv(adjacency_path, index_col=0)
            else:
                df = pd.read_parquet(adjacency_path)
            df.index = df.index.astype(str)
            df.columns = df.columns.astype(str)
            if list(df.index) != list(df.columns):
                errors.append("adjacency: row and column labels differ")
            self._adjacency = df

        return errors

    def get_counts(self) -> Optional[pd.DataFrame]:
        """Get site x type count matrix"""
        return self._counts

    def get_sites(self) -> Optional[pd.DataFrame]:
        """Get site attribute table (indexed by site)"""
        return self._sites

    def get_edges(self) -> Optional[pd.DataFrame]:
        """Get observed network edge list"""
        return self._edges

    def get_adjacency(self) -> Optional[pd.DataFrame]:
        """Get observed network adjacency table"""
        return self._adjacency

    def get_site_names(self) -> List[str]:
        """Get list of loaded sites"""
        if self._counts is None:
            return []
        return list(self._counts.index)

    def get_dropped_sites(self) -> List[str]:
        """Sites removed for falling below min_assemblage_size"""
        return list(self._dropped_sites)

    def summary(self) -> Dict[str, int]:
        """Counts of loaded sites, types and artifacts"""
        if self._counts is None:
            return {'sites': 0, 'types': 0, 'artifacts': 0}
        return {
            'sites': int(self._counts.shape[0]),
            'types': int(self._counts.shape[1]),
            'artifacts': int(self._counts.values.sum())
        }
