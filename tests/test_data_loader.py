"""Tests for assemblage loading and schema validation"""
import pytest
import pandas as pd

from archnet.config.params_loader import ParamsLoader
from archnet.data.loader import AssemblageLoader
from archnet.data.schema import AssemblageSchema, long_to_matrix, matrix_to_long
from tests.fixtures.toy_assemblages import generate_toy_assemblages, write_toy_dataset


class TestAssemblageLoader:

    def test_missing_directory(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            AssemblageLoader(str(tmp_path / "nope"))

    def test_missing_assemblage_file(self, tmp_path):
        loader = AssemblageLoader(str(tmp_path))
        errors = loader.load()
        assert any('no assemblages.csv' in e for e in errors)
        assert loader.get_counts() is None
        assert loader.get_site_names() == []

    def test_load_long_form(self, tmp_path):
        write_toy_dataset(tmp_path / "data", num_sites=8)
        loader = AssemblageLoader(str(tmp_path / "data"))
        errors = loader.load()

        assert errors == []
        toy = generate_toy_assemblages(num_sites=8)
        counts = loader.get_counts()
        assert counts.shape == (8, 6)
        assert counts.values.sum() == toy['counts'].values.sum()
        assert loader.get_sites().loc['S00', 'region'] == 'north'
        assert loader.summary()['sites'] == 8

    def test_load_wide_form(self, tmp_path):
        write_toy_dataset(tmp_path / "data", num_sites=6, wide=True)
        loader = AssemblageLoader(str(tmp_path / "data"))
        assert loader.load() == []
        counts = loader.get_counts()
        assert list(counts.index) == [f"S{i:02d}" for i in range(6)]
        assert counts.columns.name == 'type'

    def test_invalid_rows_reported_and_excluded(self, tmp_path):
        pd.DataFrame({
            'site': ['A', 'A', 'A', 'B', 'B'],
            'type': ['x', 'x', 'y', 'x', 'y'],
            'count': [2, 3, -1, 4, 1],
        }).to_csv(tmp_path / "assemblages.csv", index=False)

        loader = AssemblageLoader(str(tmp_path))
        errors = loader.load()

        assert any('negative' in e for e in errors)
        assert any('duplicate' in e for e in errors)
        counts = loader.get_counts()
        # Duplicates are summed, negative row dropped
        assert counts.loc['A', 'x'] == 5
        assert counts.loc['A', 'y'] == 0

    def test_non_integer_rows_dropped(self, tmp_path):
        pd.DataFrame({
            'site': ['A', 'A', 'B'],
            'type': ['x', 'y', 'x'],
            'count': [2.7, 3.0, 4.0],
        }).to_csv(tmp_path / "assemblages.csv", index=False)

        loader = AssemblageLoader(str(tmp_path))
        errors = loader.load()

        assert any('non-integer' in e for e in errors)
        counts = loader.get_counts()
        # 2.7 is dropped, not truncated to 2
        assert counts.loc['A', 'x'] == 0
        assert counts.loc['A', 'y'] == 3
        assert counts.loc['B', 'x'] == 4

    def test_wide_non_integer_cells_dropped(self, tmp_path):
        pd.DataFrame({
            'site': ['A', 'B'],
            'x': [1.5, 2.0],
            'y': [3, 4],
        }).to_csv(tmp_path / "assemblages_wide.csv", index=False)

        loader = AssemblageLoader(str(tmp_path))
        errors = loader.load()

        assert any('non-integer' in e for e in errors)
        assert loader.get_counts().loc['A', 'x'] == 0
        assert loader.get_counts().loc['B', 'x'] == 2

    def test_column_names_from_params(self, tmp_path):
        pd.DataFrame({
            'assemblage': ['A', 'A', 'B'],
            'artifact': ['x', 'y', 'x'],
            'n': [2, 3, 4],
        }).to_csv(tmp_path / "assemblages.csv", index=False)

        params = ParamsLoader(overrides={'data': {
            'site_column': 'assemblage',
            'type_column': 'artifact',
            'count_column': 'n'
        }})
        loader = AssemblageLoader.from_params(str(tmp_path), params)

        assert loader.load() == []
        counts = loader.get_counts()
        assert counts.loc['A', 'y'] == 3
        assert counts.index.name == 'site'
        assert loader.get_site_names() == ['A', 'B']

    def test_missing_column(self, tmp_path):
        pd.DataFrame({'site': ['A'], 'type': ['x']}).to_csv(tmp_path / "assemblages.csv", index=False)
        loader = AssemblageLoader(str(tmp_path))
        errors = loader.load()
        assert "assemblages: Missing required field 'count'" in errors
        assert loader.get_counts() is None

    def test_min_assemblage_size(self, tmp_path):
        pd.DataFrame({
            'site': ['A', 'B', 'C'],
            'type': ['x', 'x', 'y'],
            'count': [50, 3, 40],
        }).to_csv(tmp_path / "assemblages.csv", index=False)

        loader = AssemblageLoader(str(tmp_path), min_assemblage_size=10)
        errors = loader.load()
        assert loader.get_site_names() == ['A', 'C']
        assert loader.get_dropped_sites() == ['B']
        assert any('min_assemblage_size' in e for e in errors)

    def test_edges_and_adjacency(self, tmp_path):
        write_toy_dataset(
            tmp_path,
            num_sites=4,
            edges=pd.DataFrame({'source': ['S00', 'S01'], 'target': ['S01', 'S02']})
        )
        adj = pd.DataFrame([[0, 1], [1, 0]], index=['S00', 'S01'], columns=['S00', 'S01'])
        adj.to_csv(tmp_path / "adjacency.csv")

        loader = AssemblageLoader(str(tmp_path))
        assert loader.load() == []
        assert (loader.get_edges()['weight'] == 1.0).all()
        assert list(loader.get_adjacency().index) == ['S00', 'S01']


class TestSchema:

    def test_long_to_matrix_fills_missing(self):
        df = pd.DataFrame({'site': ['A', 'B'], 'type': ['x', 'y'], 'count': [1, 2]})
        matrix = long_to_matrix(df)
        assert matrix.loc['A', 'y'] == 0
        assert matrix.loc['B', 'y'] == 2

    def test_matrix_to_long_drops_zeros(self):
        matrix = pd.DataFrame({'x': [1, 0], 'y': [0, 2]}, index=['A', 'B'])
        long_df = matrix_to_long(matrix)
        assert len(long_df) == 2
        assert set(long_df.columns) == {'site', 'type', 'count'}

    def test_validate_wide_non_numeric(self):
        df = pd.DataFrame({'site': ['A'], 'x': ['lots']})
        errors = AssemblageSchema.validate_wide(df)
        assert "assemblages_wide: 'x' must be numeric" in errors

    def test_validate_edges(self):
        errors = AssemblageSchema.validate_edges(pd.DataFrame({'source': ['A']}))
        assert errors == ["edges: Missing required field 'target'"]
