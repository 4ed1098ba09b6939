"""
Core data structures for the SPONGE benchmark
Configuration lattice, timed result wrappers and per-size bundles
"""

import numbers
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import pandas as pd

from .timing import Timing


class FilteringMode(str, Enum):
    """Whether candidate gene-miRNA interactions are filtered by elastic net"""
    REGRESSION = 'regression'
    NO_REGRESSION = 'no_regression'

    @property
    def elastic_net(self) -> bool:
        return self is FilteringMode.REGRESSION


class PoolingMode(str, Enum):
    """Whether miRNAs are scored one at a time or pooled per gene pair"""
    SINGLE = 'single'
    POOLED = 'pooled'

    @property
    def each_mirna(self) -> bool:
        return self is PoolingMode.SINGLE


ConfigurationKey = Tuple[int, FilteringMode, PoolingMode]


def configuration_keys(gene_set_sizes: Sequence[int]) -> Iterator[ConfigurationKey]:
    """Enumerate (num_genes, filtering, pooling) in benchmark order"""
    for num_genes in gene_set_sizes:
        for filtering in FilteringMode:
            for pooling in PoolingMode:
                yield num_genes, filtering, pooling


@dataclass(frozen=True)
class TimedResult:
    """A filtering-stage result paired with the time it took"""
    payload: Any
    timing: Timing

    @property
    def cputime(self) -> float:
        return self.timing.cpu_time

    @property
    def elapsedtime(self) -> float:
        return self.timing.elapsed_time


@dataclass(frozen=True)
class SpongeRun:
    """
    A scoring-stage result with its timings

    base is the sponge() call alone. significance, when present, covers the
    null model build plus the p-value computation and is added on top of base.
    """
    payload: Any
    base: Timing
    significance: Optional[Timing] = None

    @property
    def has_p_values(self) -> bool:
        return self.significance is not None

    @property
    def cumulative(self) -> Timing:
        if self.significance is None:
            return self.base
        return self.base + self.significance

    @property
    def cputime_wo_pval(self) -> float:
        return self.base.cpu_time

    @property
    def elapsedtime_wo_pval(self) -> float:
        return self.base.elapsed_time

    @property
    def cputime(self) -> float:
        return self.cumulative.cpu_time

    @property
    def elapsedtime(self) -> float:
        return self.cumulative.elapsed_time


NestedResult = Dict[FilteringMode, Dict[PoolingMode, SpongeRun]]


@dataclass
class BenchmarkBundle:
    """Everything produced for one gene-set size, enough to reproduce the run"""
    num_genes: int
    scoring_results: NestedResult
    filtering_results: Dict[FilteringMode, TimedResult]
    gene_expr_sample: pd.DataFrame
    path: Optional[Path] = None

    def runs(self) -> Iterator[Tuple[FilteringMode, PoolingMode, SpongeRun]]:
        for filtering, by_pooling in self.scoring_results.items():
            for pooling, run in by_pooling.items():
                yield filtering, pooling, run


@dataclass
class BenchmarkConfig:
    """Parameters of one benchmark invocation"""
    number_of_samples: int = 100
    number_of_datasets: int = 100
    number_of_genes_to_test: List[int] = field(default_factory=lambda: [25])
    compute_significance: bool = False
    folder: Optional[str] = None
    coefficient_threshold: float = -0.05
    seed: Optional[int] = None
    verbose: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BenchmarkConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown benchmark config keys: {', '.join(unknown)}")
        config = cls(**data)
        config.number_of_genes_to_test = list(config.number_of_genes_to_test)
        return config

    def validate(self):
        sizes = self.number_of_genes_to_test
        if len(sizes) == 0:
            raise ValueError("number_of_genes_to_test must not be empty")
        for n in sizes:
            if isinstance(n, bool) or not isinstance(n, numbers.Integral) or n <= 0:
                raise ValueError(f"Gene set sizes must be positive integers, got {n!r}")
        if self.number_of_samples <= 0 or self.number_of_datasets <= 0:
            raise ValueError("number_of_samples and number_of_datasets must be positive")
