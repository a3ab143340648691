"""Data schema validation for assemblage inputs"""
from typing import List
import pandas as pd


class AssemblageSchema:
    """Validates assemblage, site, and network input tables"""

    LONG_FIELDS = ['site', 'type', 'count']
    SITE_FIELD = 'site'
    EDGE_FIELDS = ['source', 'target']

    @staticmethod
    def validate_long(df: pd.DataFrame) -> List[str]:
        """Validate long-form assemblage records. Returns list of errors."""
        errors = []
        for field in AssemblageSchema.LONG_FIELDS:
            if field not in df.columns:
                errors.append(f"assemblages: Missing required field '{field}'")
        if errors:
            return errors

        if not pd.api.types.is_numeric_dtype(df['count']):
            errors.append("assemblages: 'count' must be numeric")
            return errors

        if df['count'].isna().any():
            errors.append(f"assemblages: {int(df['count'].isna().sum())} rows with missing count")
        if (df['count'] < 0).any():
            errors.append(f"assemblages: {int((df['count'] < 0).sum())} rows with negative count")

        non_integer = df['count'].dropna() % 1 != 0
        if non_integer.any():
            errors.append(f"assemblages: {int(non_integer.sum())} rows with non-integer count")

        dupes = df.duplicated(subset=['site', 'type']).sum()
        if dupes:
            errors.append(f"assemblages: {int(dupes)} duplicate (site, type) rows (summed)")

        return errors

    @staticmethod
    def validate_wide(df: pd.DataFrame) -> List[str]:
        """Validate wide-form assemblage table (site column + one column per type)."""
        errors = []
        if AssemblageSchema.SITE_FIELD not in df.columns:
            return ["assemblages_wide: Missing required field 'site'"]

        type_cols = [c for c in df.columns if c != AssemblageSchema.SITE_FIELD]
        if not type_cols:
            errors.append("assemblages_wide: No artifact type columns")

        for col in type_cols:
            if not pd.api.types.is_numeric_dtype(df[col]):
                errors.append(f"assemblages_wide: '{col}' must be numeric")
            elif (df[col] < 0).any():
                errors.append(f"assemblages_wide: '{col}' has negative counts")
            elif (df[col].dropna() % 1 != 0).any():
                errors.append(f"assemblages_wide: '{col}' has non-integer counts")

        if df[AssemblageSchema.SITE_FIELD].duplicated().any():
            errors.append("assemblages_wide: duplicate site rows")

        return errors

    @staticmethod
    def validate_sites(df: pd.DataFrame) -> List[str]:
        """Validate site attribute table."""
        errors = []
        if AssemblageSchema.SITE_FIELD not in df.columns:
            errors.append("sites: Missing required field 'site'")
        elif df[AssemblageSchema.SITE_FIELD].duplicated().any():
            errors.append("sites: duplicate site rows")
        return errors

    @staticmethod
    def validate_edges(df: pd.DataFrame) -> List[str]:
        """Validate observed network edge list."""
        errors = []
        for field in AssemblageSchema.EDGE_FIELDS:
            if field not in df.columns:
                errors.append(f"edges: Missing required field '{field}'")
        if 'weight' in df.columns and not pd.api.types.is_numeric_dtype(df['weight']):
            errors.append("edges: 'weight' must be numeric")
        return errors


def long_to_matrix(df: pd.DataFrame, site_col: str = 'site', type_col: str = 'type', count_col: str = 'count') -> pd.DataFrame:
    """Pivot long-form records into a site x type count matrix (missing -> 0, duplicates summed)"""
    matrix = df.pivot_table(
        index=site_col,
        columns=type_col,
        values=count_col,
        aggfunc='sum',
        fill_value=0
    )
    matrix.index.name = 'site'
    matrix.columns.name = 'type'
    return matrix.astype(int)


def matrix_to_long(matrix: pd.DataFrame) -> pd.DataFrame:
    """Inverse of long_to_matrix, dropping zero counts"""
    long_df = matrix.rename_axis(index='site', columns='type').stack().reset_index(name='count')
    long_df = long_df[long_df['count'] > 0]
    return long_df.reset_index(drop=True)
