"""
DataSource for PyPolyFit.

DataSource is the "I have data" abstraction. It doesn't know that a
polynomial is going to be fitted; it just provides named arrays.

Usage:
    from pypolyfit.core.datasource import DataSource

    ds = DataSource.from_arrays(x=x, y=y, errors=sigma)
    ds = DataSource.from_file("points.csv")
    ds = DataSource.from_dataframe(df)

    ds.keys()   # frozenset({'x', 'y', 'errors'})
    x = ds['x']
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TYPE_CHECKING
import numpy as np
from numpy.typing import NDArray

from pypolyfit.core.exceptions import ValidationError

if TYPE_CHECKING:
    import pandas as pd


@dataclass
class DataSource:
    """
    Named-array container. Domain-agnostic.

    Construct via factory classmethods, not directly.
    """
    _data: dict[str, Any]
    _metadata: dict[str, Any] = field(default_factory=dict)

    def keys(self) -> frozenset[str]:
        """Return the names of all available arrays."""
        return frozenset(k for k in self._data.keys() if not k.startswith('_'))

    def __getitem__(self, key: str) -> Any:
        """
        Access a named array.

        Raises:
            KeyError: If key not found, with a message listing available keys
        """
        if key not in self._data:
            available = self.keys()
            raise KeyError(
                f"DataSource has no array '{key}'. Available: {available}"
            )
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    @property
    def n_observations(self) -> int:
        """Number of observations (rows)."""
        return self._metadata.get('n_observations', 0)

    @property
    def metadata(self) -> dict[str, Any]:
        return self._metadata.copy()

    # === Factory Methods ===

    @classmethod
    def from_arrays(
        cls,
        *,
        x: NDArray | None = None,
        y: NDArray | None = None,
        errors: NDArray | None = None,
        **named_arrays: NDArray,
    ) -> DataSource:
        """Construct from NumPy arrays."""
        storage: dict[str, Any] = {}
        n_obs: int | None = None

        for name, arr in (('x', x), ('y', y), ('errors', errors)):
            if arr is not None:
                storage[name] = np.asarray(arr, dtype=np.float64).ravel()
                n_obs = n_obs or storage[name].shape[0]

        for name, arr in named_arrays.items():
            storage[name] = np.asarray(arr, dtype=np.float64)
            n_obs = n_obs or storage[name].shape[0]

        return cls(
            _data=storage,
            _metadata={'n_observations': n_obs, 'source': 'arrays'},
        )

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        *,
        error_column: int | str | None = None,
        min_fields: int = 4,
    ) -> DataSource:
        """
        Construct from a comma-separated file with a header row.

        The first two columns become 'x' and 'y', whatever their header
        names. Rows with fewer than `min_fields` populated fields are
        skipped. If `error_column` is given (position or header name),
        that column becomes 'errors'. Every other column is also
        available under its header name.

        Raises:
            ValidationError: Unknown file format, fewer than two columns,
                or unknown error column
        """
        import pandas as pd

        path = Path(path)
        suffix = path.suffix.lower()
        if suffix not in ('.csv', '.txt', '.dat'):
            raise ValidationError(f"Unknown file format: {suffix}")

        df = pd.read_csv(path, sep=',', skipinitialspace=True)
        if df.shape[1] < 2:
            raise ValidationError(
                f"{path}: expected at least 2 columns, got {df.shape[1]}"
            )
        df = df.dropna(thresh=min_fields).reset_index(drop=True)
        return cls.from_dataframe(
            df, error_column=error_column, source_path=str(path), positional=True
        )

    @classmethod
    def from_dataframe(
        cls,
        df: 'pd.DataFrame',
        *,
        error_column: int | str | None = None,
        source_path: str | None = None,
        positional: bool = False,
    ) -> DataSource:
        """
        Construct from a pandas DataFrame.

        Columns named 'x' and 'y' are used if present; otherwise the first
        two columns are taken as x and y. With positional=True the first
        two columns are always x and y, whatever the other headers are.
        """
        storage: dict[str, Any] = {}
        for col in df.columns:
            storage[str(col)] = df[col].to_numpy(dtype=np.float64)

        if positional or 'x' not in storage or 'y' not in storage:
            storage['x'] = df.iloc[:, 0].to_numpy(dtype=np.float64)
            storage['y'] = df.iloc[:, 1].to_numpy(dtype=np.float64)

        if error_column is not None:
            if isinstance(error_column, int):
                if not 0 <= error_column < df.shape[1]:
                    raise ValidationError(
                        f"error_column {error_column} out of range for {df.shape[1]} columns"
                    )
                storage['errors'] = df.iloc[:, error_column].to_numpy(dtype=np.float64)
            elif error_column in df.columns:
                storage['errors'] = df[error_column].to_numpy(dtype=np.float64)
            else:
                raise ValidationError(
                    f"error_column {error_column!r} not in columns {list(df.columns)}"
                )

        metadata = {
            'n_observations': len(df),
            'source': 'dataframe',
            'columns': [str(c) for c in df.columns],
        }
        if source_path:
            metadata['source_path'] = source_path

        return cls(_data=storage, _metadata=metadata)
