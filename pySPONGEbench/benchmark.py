"""
SPONGE benchmark driver
Runs the interaction filter and sponge scoring across the configuration grid
(gene-set sizes x regression filtering x single/pooled miRNAs) and times them
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd
from tqdm import tqdm

from .data_loader import sample_genes
from .models import (
    BenchmarkBundle,
    BenchmarkConfig,
    FilteringMode,
    NestedResult,
    PoolingMode,
    SpongeRun,
    TimedResult,
)
from .persistence import payload_to_frame, save_benchmark_bundle
from .timing import Timing, format_timing, time_call

module_logger = logging.getLogger(__name__)


class SpongeBenchmark:
    """
    Benchmark driver for one set of SPONGE collaborators

    backend must provide build_null_model, gene_mirna_interaction_filter,
    sponge and compute_p_values (see RSpongeBackend). Failures raised by the
    backend are not caught here: a failing stage aborts the invocation and
    nothing is written for the gene-set size being processed.
    """

    def __init__(self, backend, config: Optional[BenchmarkConfig] = None,
                 logger: Optional[logging.Logger] = None):
        self.backend = backend
        self.config = config if config is not None else BenchmarkConfig()
        self.logger = logger if logger is not None else module_logger

    def build_null_model(self, cov_matrices=None):
        """Build the null model once; returns (null_model, timing)"""
        self.logger.info(
            f"building null model with {self.config.number_of_samples} samples "
            f"and {self.config.number_of_datasets} datasets"
        )
        null_model, timing = time_call(
            self.backend.build_null_model,
            cov_matrices,
            self.config.number_of_samples,
            self.config.number_of_datasets
        )
        self.logger.info(f"null model built ({format_timing(timing)})")
        return null_model, timing

    def run_filtering(self, gene_expr_sample: pd.DataFrame, mir_expr: pd.DataFrame,
                      mir_predicted_targets) -> Dict[FilteringMode, TimedResult]:
        results = {}
        for filtering in FilteringMode:
            self.logger.info(
                f"computing miRNA-gene interactions with elastic.net = {filtering.elastic_net}"
            )
            candidates, timing = time_call(
                self.backend.gene_mirna_interaction_filter,
                gene_expr_sample,
                mir_expr,
                filtering.elastic_net,
                mir_predicted_targets,
                self.config.coefficient_threshold
            )
            results[filtering] = TimedResult(payload=candidates, timing=timing)
        return results

    def run_scoring(self, gene_expr_sample: pd.DataFrame, mir_expr: pd.DataFrame,
                    filtering_results: Dict[FilteringMode, TimedResult],
                    null_model=None, null_model_timing: Optional[Timing] = None) -> NestedResult:
        results: NestedResult = {}
        for filtering in FilteringMode:
            results[filtering] = {}
            for pooling in PoolingMode:
                self.logger.info(
                    f"computing sponge interactions with {filtering.value} "
                    f"and each.miRNA = {pooling.each_mirna}"
                )
                sponge_result, base = time_call(
                    self.backend.sponge,
                    gene_expr_sample,
                    mir_expr,
                    filtering_results[filtering].payload,
                    pooling.each_mirna
                )

                if self.config.compute_significance:
                    sponge_result, pval_timing = time_call(
                        self.backend.compute_p_values, sponge_result, null_model
                    )
                    # the shared null model build is charged to every significance run
                    if null_model_timing is not None:
                        significance = null_model_timing + pval_timing
                    else:
                        significance = pval_timing
                else:
                    significance = None

                results[filtering][pooling] = SpongeRun(
                    payload=sponge_result, base=base, significance=significance
                )
        return results

    def run(self, gene_expr: pd.DataFrame, mir_expr: pd.DataFrame, mir_predicted_targets,
            cov_matrices=None) -> List[BenchmarkBundle]:
        """
        Run the full benchmark

        Args:
            gene_expr: samples x genes expression matrix (already validated)
            mir_expr: samples x miRNAs expression matrix (already validated)
            mir_predicted_targets: target table or list of target tables
            cov_matrices: covariance matrices for the null model (backend default if None)

        Returns:
            One BenchmarkBundle per entry of number_of_genes_to_test, in order
        """
        config = self.config
        config.validate()
        n_genes_available = gene_expr.shape[1]
        too_large = [n for n in config.number_of_genes_to_test if n > n_genes_available]
        if too_large:
            raise ValueError(
                f"Cannot sample {too_large[0]} genes from a matrix with {n_genes_available} genes"
            )

        rng = np.random.default_rng(config.seed)

        null_model = None
        null_model_timing = None
        if config.compute_significance:
            null_model, null_model_timing = self.build_null_model(cov_matrices)

        bundles = []
        sizes = config.number_of_genes_to_test
        iterator = tqdm(sizes, desc="Gene set sizes") if config.verbose else sizes
        for num_genes in iterator:
            self.logger.info(f"benchmarking with {num_genes} genes")

            gene_expr_sample = sample_genes(gene_expr, num_genes, rng)

            filtering_results = self.run_filtering(gene_expr_sample, mir_expr, mir_predicted_targets)
            scoring_results = self.run_scoring(
                gene_expr_sample, mir_expr, filtering_results,
                null_model=null_model, null_model_timing=null_model_timing
            )

            bundle = BenchmarkBundle(
                num_genes=num_genes,
                scoring_results=scoring_results,
                filtering_results=filtering_results,
                gene_expr_sample=gene_expr_sample
            )

            if config.folder is not None:
                path = save_benchmark_bundle(bundle, config.folder)
                self.logger.info(f"saved benchmark results to {path}")

            bundles.append(bundle)

        return bundles


# R argument names accepted as aliases by run_benchmark
R_ARGUMENT_ALIASES = {
    'mir_predicted_targets': 'target_source',
    'number_of_samples': 'samples_per_null',
    'number_of_datasets': 'datasets_per_null',
    'number_of_genes_to_test': 'gene_set_sizes',
    'folder': 'output_dir',
}


def run_benchmark(
    gene_expr: pd.DataFrame,
    mir_expr: pd.DataFrame,
    target_source=None,
    samples_per_null: int = 100,
    datasets_per_null: int = 100,
    gene_set_sizes: Sequence[int] = (25,),
    compute_significance: bool = False,
    output_dir: Optional[str] = None,
    backend=None,
    logger: Optional[logging.Logger] = None,
    seed: Optional[int] = None,
    cov_matrices=None,
    verbose: bool = False,
    **r_arguments
) -> NestedResult:
    """
    Run the SPONGE benchmark and return the results of the last gene-set size

    Every size in gene_set_sizes is processed and, when output_dir is set,
    archived. Use SpongeBenchmark.run to get the results of all sizes.
    The SPONGE R argument names (mir_predicted_targets, number_of_samples,
    number_of_datasets, number_of_genes_to_test, folder) are accepted as
    keyword aliases.

    Args:
        gene_expr: samples x genes expression matrix
        mir_expr: samples x miRNAs expression matrix
        target_source: miRNA target table(s), genes x miRNAs
        samples_per_null: number of samples in the null model
        datasets_per_null: number of datasets to sample from the null model
        gene_set_sizes: gene-set sizes to benchmark, e.g. [250, 500]
        compute_significance: whether to compute p-values
        output_dir: where bundles are saved; no disk output if None
        backend: SPONGE collaborators (RSpongeBackend if None)
        logger: logger for progress lines (module logger if None)
        seed: seed for gene sampling
        cov_matrices: covariance matrices for the null model
        verbose: show a progress bar over gene-set sizes

    Returns:
        {regression|no_regression: {single|pooled: SpongeRun}}
    """
    arguments = {
        'target_source': target_source,
        'samples_per_null': samples_per_null,
        'datasets_per_null': datasets_per_null,
        'gene_set_sizes': gene_set_sizes,
        'output_dir': output_dir,
    }
    defaults = {'samples_per_null': 100, 'datasets_per_null': 100,
                'gene_set_sizes': (25,), 'output_dir': None, 'target_source': None}
    for alias, value in r_arguments.items():
        if alias not in R_ARGUMENT_ALIASES:
            raise TypeError(f"run_benchmark() got an unexpected keyword argument '{alias}'")
        name = R_ARGUMENT_ALIASES[alias]
        if arguments[name] is not defaults[name]:
            raise TypeError(f"run_benchmark() got both '{name}' and its alias '{alias}'")
        arguments[name] = value

    if arguments['target_source'] is None:
        raise TypeError("run_benchmark() missing required argument: 'target_source'")

    config = BenchmarkConfig(
        number_of_samples=arguments['samples_per_null'],
        number_of_datasets=arguments['datasets_per_null'],
        number_of_genes_to_test=list(arguments['gene_set_sizes']),
        compute_significance=compute_significance,
        folder=arguments['output_dir'],
        seed=seed,
        verbose=verbose
    )
    target_source = arguments['target_source']

    if backend is None:
        from .r_backend import RSpongeBackend
        with RSpongeBackend() as r_backend:
            bundles = SpongeBenchmark(r_backend, config, logger).run(
                gene_expr, mir_expr, target_source, cov_matrices
            )
    else:
        bundles = SpongeBenchmark(backend, config, logger).run(
            gene_expr, mir_expr, target_source, cov_matrices
        )

    return bundles[-1].scoring_results


def summarize_timings(bundles: Sequence[BenchmarkBundle]) -> pd.DataFrame:
    """
    One row per configuration with filter and scoring timings

    Columns: num_genes, filtering, pooling, n_interactions, filter_cputime,
    filter_elapsedtime, cputime_wo_pval, elapsedtime_wo_pval, cputime,
    elapsedtime
    """
    rows = []
    for bundle in bundles:
        for filtering, pooling, run in bundle.runs():
            timed_filter = bundle.filtering_results[filtering]
            rows.append({
                'num_genes': bundle.num_genes,
                'filtering': filtering.value,
                'pooling': pooling.value,
                'n_interactions': len(payload_to_frame(run.payload)),
                'filter_cputime': timed_filter.cputime,
                'filter_elapsedtime': timed_filter.elapsedtime,
                'cputime_wo_pval': run.cputime_wo_pval,
                'elapsedtime_wo_pval': run.elapsedtime_wo_pval,
                'cputime': run.cputime,
                'elapsedtime': run.elapsedtime,
            })
    columns = [
        'num_genes', 'filtering', 'pooling', 'n_interactions',
        'filter_cputime', 'filter_elapsedtime',
        'cputime_wo_pval', 'elapsedtime_wo_pval', 'cputime', 'elapsedtime'
    ]
    return pd.DataFrame(rows, columns=columns)
