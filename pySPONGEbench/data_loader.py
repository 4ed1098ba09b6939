"""
Data Loader for the SPONGE benchmark
Load expression matrices and miRNA target tables into pandas
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from scipy import sparse as sp

from .errors import DataFormatError

TargetSource = Union[pd.DataFrame, List[pd.DataFrame]]


def check_and_convert_expression_data(expr_data) -> pd.DataFrame:
    """
    Normalize an expression input to a samples x features DataFrame

    Args:
        expr_data: pandas DataFrame, anndata.AnnData (obs = samples,
            var = features) or a 2-D numpy array

    Returns:
        DataFrame with float values and unique string column names

    Raises:
        DataFormatError: if the input is not a numeric 2-D matrix
    """
    if isinstance(expr_data, pd.DataFrame):
        df = expr_data.copy()
    elif hasattr(expr_data, 'obs_names') and hasattr(expr_data, 'var_names') and hasattr(expr_data, 'X'):
        # AnnData: cells/samples in obs, features in var
        X = expr_data.X
        X = X.toarray() if sp.issparse(X) else np.asarray(X)
        df = pd.DataFrame(X, index=list(expr_data.obs_names), columns=list(expr_data.var_names))
    elif isinstance(expr_data, np.ndarray):
        if expr_data.ndim != 2:
            raise DataFormatError(f"Expression array must be 2-D, got {expr_data.ndim}-D")
        df = pd.DataFrame(expr_data)
        df.columns = [f"feature_{i}" for i in range(df.shape[1])]
    else:
        raise DataFormatError(
            f"Unsupported expression data type: {type(expr_data).__name__}. "
            "Use a pandas DataFrame, an AnnData object or a 2-D numpy array."
        )

    if df.shape[0] == 0 or df.shape[1] == 0:
        raise DataFormatError(f"Expression matrix is empty: shape {df.shape}")

    df.columns = df.columns.map(str)
    if df.columns.has_duplicates:
        dupes = sorted(set(df.columns[df.columns.duplicated()]))
        raise DataFormatError(f"Duplicate feature names in expression matrix: {', '.join(dupes[:5])}")

    try:
        df = df.astype(float)
    except (TypeError, ValueError) as e:
        raise DataFormatError(f"Expression matrix must be numeric: {e}") from e

    return df


def load_expression_matrix(path: Union[str, Path]) -> pd.DataFrame:
    """
    Load a samples x features expression matrix from disk

    Text formats (.tsv, .txt, .csv) are expected to carry sample ids in the
    first column and feature names in the header. .h5ad files are read with
    anndata, .parquet files with pandas/pyarrow.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Expression file not found: {path}")

    suffix = path.suffix.lower()
    if suffix == '.h5ad':
        import anndata as ad
        data = ad.read_h5ad(path)
    elif suffix == '.parquet':
        data = pd.read_parquet(path)
    elif suffix in ('.tsv', '.txt'):
        data = pd.read_csv(path, sep='\t', index_col=0)
    elif suffix == '.csv':
        data = pd.read_csv(path, index_col=0)
    else:
        raise DataFormatError(f"Unsupported expression file format for {path.name}: {suffix}")

    return check_and_convert_expression_data(data)


def load_target_source(paths: Union[str, Path, Sequence[Union[str, Path]]]) -> TargetSource:
    """
    Load one or more miRNA target tables (genes in rows, miRNAs in columns)

    Returns a single DataFrame for one path and a list otherwise, mirroring
    how SPONGE accepts either one target matrix or a list of them.
    """
    if isinstance(paths, (str, Path)):
        paths = [paths]

    tables = []
    for p in paths:
        p = Path(p)
        if not p.exists():
            raise FileNotFoundError(f"Target file not found: {p}")
        table = pd.read_csv(p, sep='\t', index_col=0)
        if table.shape[0] == 0 or table.shape[1] == 0:
            raise DataFormatError(f"Target table {p} is empty")
        tables.append(table)

    if len(tables) == 0:
        raise DataFormatError("No target tables given")
    return tables[0] if len(tables) == 1 else tables


def sample_genes(
    gene_expr: pd.DataFrame,
    num_genes: int,
    rng: Optional[np.random.Generator] = None
) -> pd.DataFrame:
    """
    Draw num_genes gene columns uniformly at random without replacement

    Args:
        gene_expr: samples x genes expression matrix
        num_genes: Number of columns to draw
        rng: numpy Generator (a fresh unseeded one if None)

    Returns:
        New DataFrame with the same rows and the sampled columns, in draw order
    """
    n_available = gene_expr.shape[1]
    if num_genes <= 0:
        raise ValueError(f"Number of genes to sample must be positive, got {num_genes}")
    if num_genes > n_available:
        raise ValueError(
            f"Cannot sample {num_genes} genes from a matrix with {n_available} genes"
        )

    if rng is None:
        rng = np.random.default_rng()

    idx = rng.choice(n_available, size=num_genes, replace=False)
    return gene_expr.iloc[:, idx].copy()
