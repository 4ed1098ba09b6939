"""
Save and load benchmark bundles
One zip archive per gene-set size: a JSON manifest plus TSV tables
"""

import io
import json
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import numpy as np
import pandas as pd

from .errors import PersistenceError
from .models import BenchmarkBundle, FilteringMode, PoolingMode, SpongeRun, TimedResult
from .timing import Timing

MANIFEST_NAME = 'manifest.json'
SAMPLE_NAME = 'gene_expr_sample.tsv'
FORMAT_VERSION = 1


def convert_to_native_types(obj):
    """Convert NumPy/pandas types to native Python types for JSON serialization"""
    if isinstance(obj, (np.integer, np.int64, np.int32)):
        return int(obj)
    elif isinstance(obj, (np.floating, np.float64, np.float32)):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, Path):
        return str(obj)
    elif isinstance(obj, dict):
        return {str(key): convert_to_native_types(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_to_native_types(item) for item in obj]
    elif pd.api.types.is_scalar(obj) and pd.isna(obj):
        return None
    else:
        return obj


def bundle_file_name(num_genes: int, timestamp: datetime) -> str:
    return f"benchmark_result_{num_genes}_genes_{timestamp.strftime('%Y%m%d-%H%M%S-%f')}.zip"


def payload_to_frame(payload: Any) -> pd.DataFrame:
    """Tabular form of a filter/scoring payload for archiving"""
    if isinstance(payload, pd.DataFrame):
        return payload
    if hasattr(payload, 'to_frame'):
        return payload.to_frame()
    raise PersistenceError(
        f"Cannot archive result of type {type(payload).__name__}: "
        "expected a DataFrame or an object with to_frame()"
    )


def _frame_bytes(frame: pd.DataFrame, index: bool) -> bytes:
    return frame.to_csv(sep='\t', index=index).encode('utf-8')


def save_benchmark_bundle(
    bundle: BenchmarkBundle,
    folder: Union[str, Path],
    timestamp: Optional[datetime] = None
) -> Path:
    """
    Write one benchmark bundle as a single zip archive

    Args:
        bundle: Results for one gene-set size
        folder: Output directory (created if missing)
        timestamp: Generation time used in the file name (default: now)

    Returns:
        Path of the written archive

    Raises:
        PersistenceError: if the archive cannot be written or already exists
    """
    if timestamp is None:
        timestamp = datetime.now()

    folder = Path(folder)
    path = folder / bundle_file_name(bundle.num_genes, timestamp)

    manifest = {
        'format_version': FORMAT_VERSION,
        'num_genes': bundle.num_genes,
        'created': timestamp.isoformat(),
        'n_samples': bundle.gene_expr_sample.shape[0],
        'genes': list(bundle.gene_expr_sample.columns),
        'filtering': {},
        'scoring': {},
    }
    entries = {SAMPLE_NAME: _frame_bytes(bundle.gene_expr_sample, index=True)}

    for filtering, timed in bundle.filtering_results.items():
        name = f"filtering/{filtering.value}.tsv"
        entries[name] = _frame_bytes(payload_to_frame(timed.payload), index=False)
        manifest['filtering'][filtering.value] = {'file': name, **timed.timing.to_dict()}

    for filtering, pooling, run in bundle.runs():
        name = f"scoring/{filtering.value}/{pooling.value}.tsv"
        entries[name] = _frame_bytes(payload_to_frame(run.payload), index=False)
        manifest['scoring'].setdefault(filtering.value, {})[pooling.value] = {
            'file': name,
            'base': run.base.to_dict(),
            'significance': run.significance.to_dict() if run.significance is not None else None,
            'cumulative': run.cumulative.to_dict(),
        }

    try:
        folder.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(path, mode='x', compression=zipfile.ZIP_DEFLATED) as zf:
            zf.writestr(MANIFEST_NAME, json.dumps(convert_to_native_types(manifest), indent=2))
            for name, data in entries.items():
                zf.writestr(name, data)
    except FileExistsError as e:
        raise PersistenceError(f"Benchmark bundle already exists: {path}") from e
    except OSError as e:
        raise PersistenceError(f"Failed to write benchmark bundle {path}: {e}") from e

    bundle.path = path
    return path


def _read_frame(zf: zipfile.ZipFile, name: str, index_col=None) -> pd.DataFrame:
    with zf.open(name) as f:
        return pd.read_csv(io.TextIOWrapper(f, encoding='utf-8'), sep='\t', index_col=index_col)


def load_benchmark_bundle(path: Union[str, Path]) -> BenchmarkBundle:
    """
    Read a bundle written by save_benchmark_bundle

    Payloads come back as DataFrames; timings are restored exactly.
    """
    path = Path(path)
    try:
        with zipfile.ZipFile(path) as zf:
            manifest: Dict[str, Any] = json.loads(zf.read(MANIFEST_NAME).decode('utf-8'))
            gene_expr_sample = _read_frame(zf, SAMPLE_NAME, index_col=0)

            filtering_results = {}
            for filtering in FilteringMode:
                info = manifest['filtering'][filtering.value]
                filtering_results[filtering] = TimedResult(
                    payload=_read_frame(zf, info['file']),
                    timing=Timing.from_dict(info)
                )

            scoring_results = {}
            for filtering in FilteringMode:
                scoring_results[filtering] = {}
                for pooling in PoolingMode:
                    info = manifest['scoring'][filtering.value][pooling.value]
                    significance = info['significance']
                    scoring_results[filtering][pooling] = SpongeRun(
                        payload=_read_frame(zf, info['file']),
                        base=Timing.from_dict(info['base']),
                        significance=Timing.from_dict(significance) if significance is not None else None
                    )
    except (OSError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise PersistenceError(f"Failed to read benchmark bundle {path}: {e}") from e

    # TSV round trip turns column labels into strings
    gene_expr_sample.columns = [str(c) for c in manifest['genes']]

    return BenchmarkBundle(
        num_genes=int(manifest['num_genes']),
        scoring_results=scoring_results,
        filtering_results=filtering_results,
        gene_expr_sample=gene_expr_sample,
        path=path
    )
