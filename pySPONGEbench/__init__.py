"""
SPONGE Benchmark Harness
Time ceRNA interaction detection across regression / miRNA pooling settings
"""

__version__ = "0.1.0"

from .benchmark import SpongeBenchmark, run_benchmark, summarize_timings
from .data_loader import check_and_convert_expression_data, load_expression_matrix, load_target_source
from .errors import DataFormatError, PersistenceError, UpstreamComputationError
from .models import BenchmarkBundle, BenchmarkConfig, FilteringMode, PoolingMode, SpongeRun, TimedResult
from .persistence import load_benchmark_bundle, save_benchmark_bundle
from .r_backend import RSpongeBackend
from .timing import Timing, time_call

__all__ = [
    'SpongeBenchmark',
    'run_benchmark',
    'summarize_timings',
    'check_and_convert_expression_data',
    'load_expression_matrix',
    'load_target_source',
    'DataFormatError',
    'PersistenceError',
    'UpstreamComputationError',
    'BenchmarkBundle',
    'BenchmarkConfig',
    'FilteringMode',
    'PoolingMode',
    'SpongeRun',
    'TimedResult',
    'load_benchmark_bundle',
    'save_benchmark_bundle',
    'RSpongeBackend',
    'Timing',
    'time_call',
]
