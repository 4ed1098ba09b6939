#!/usr/bin/env python3
"""
SPONGE benchmark CLI
Compare regression / no regression and single / pooled miRNA settings
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from .benchmark import SpongeBenchmark, summarize_timings
from .config import load_benchmark_config
from .data_loader import load_expression_matrix, load_target_source
from .models import BenchmarkConfig
from .r_backend import RSpongeBackend

logger = logging.getLogger('pySPONGEbench')


def setup_logging(log_file: Optional[str] = None, level: int = logging.INFO) -> logging.Logger:
    """Configure console (and optional file) logging for a CLI run"""
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    formatter = logging.Formatter('%(asctime)s | %(levelname)s | %(message)s')

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    return logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Benchmark SPONGE ceRNA interaction detection settings'
    )

    parser.add_argument('--gene_expr', type=str, required=True,
                        help='Gene expression matrix, samples x genes (.tsv, .csv, .parquet, .h5ad)')
    parser.add_argument('--mir_expr', type=str, required=True,
                        help='miRNA expression matrix, samples x miRNAs')
    parser.add_argument('--targets', nargs='+', required=True,
                        help='miRNA target table(s), genes x miRNAs TSV (e.g. targetscan)')
    parser.add_argument('--config', type=str, default=None,
                        help='JSON benchmark config; command line flags override it')
    parser.add_argument('--genes', nargs='+', type=int, default=None,
                        help='Gene-set sizes to test (e.g., 250 500)')
    parser.add_argument('--number_of_samples', type=int, default=None,
                        help='Number of samples in the null model (default 100)')
    parser.add_argument('--number_of_datasets', type=int, default=None,
                        help='Number of datasets to sample from the null model (default 100)')
    parser.add_argument('--compute_significance', action='store_true', default=None,
                        help='Compute p-values against the null model')
    parser.add_argument('--output_dir', type=str, default=None,
                        help='Directory for result bundles; nothing is written if omitted')
    parser.add_argument('--cov_matrices', type=str, default=None,
                        help='.rds file with covariance matrices (SPONGE precomputed ones by default)')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for gene sampling')
    parser.add_argument('--rscript', type=str, default=None,
                        help='Path to Rscript (searched on PATH by default)')
    parser.add_argument('--log_file', type=str, default=None,
                        help='Also write log lines to this file')
    parser.add_argument('--verbose', action='store_true', default=None,
                        help='Show a progress bar over gene-set sizes')
    return parser


def resolve_config(args: argparse.Namespace) -> BenchmarkConfig:
    """Merge the optional JSON config with command line overrides"""
    config = load_benchmark_config(args.config) if args.config else BenchmarkConfig()

    overrides = {
        'number_of_genes_to_test': args.genes,
        'number_of_samples': args.number_of_samples,
        'number_of_datasets': args.number_of_datasets,
        'compute_significance': args.compute_significance,
        'folder': args.output_dir,
        'seed': args.seed,
        'verbose': args.verbose,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)

    config.validate()
    return config


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_file)

    start_time = time.time()
    try:
        config = resolve_config(args)

        logger.info("=" * 80)
        logger.info("RUNNING SPONGE BENCHMARK")
        logger.info("=" * 80)
        logger.info(f"Gene expression: {args.gene_expr}")
        logger.info(f"miRNA expression: {args.mir_expr}")
        logger.info(f"Targets: {', '.join(args.targets)}")
        logger.info(f"Gene-set sizes: {config.number_of_genes_to_test}")
        logger.info(f"Compute significance: {config.compute_significance}")
        logger.info(f"Output dir: {config.folder}")

        gene_expr = load_expression_matrix(args.gene_expr)
        mir_expr = load_expression_matrix(args.mir_expr)
        targets = load_target_source(args.targets)
        logger.info(f"Gene expression: {gene_expr.shape[0]} samples x {gene_expr.shape[1]} genes")
        logger.info(f"miRNA expression: {mir_expr.shape[0]} samples x {mir_expr.shape[1]} miRNAs")

        with RSpongeBackend(rscript=args.rscript) as backend:
            bundles = SpongeBenchmark(backend, config, logger).run(
                gene_expr, mir_expr, targets, cov_matrices=args.cov_matrices
            )

        summary = summarize_timings(bundles)
        if config.folder is not None:
            summary_file = Path(config.folder) / 'timing_summary.tsv'
            summary.to_csv(summary_file, sep='\t', index=False)
            logger.info(f"Saved timing summary: {summary_file}")
    except Exception as e:
        logger.error(f"Benchmark failed: {e}", exc_info=True)
        return 1

    for row in summary.itertuples(index=False):
        logger.info(
            f"{row.num_genes} genes | {row.filtering} | {row.pooling}: "
            f"{row.n_interactions} interactions, {row.elapsedtime:.2f}s elapsed, {row.cputime:.2f}s cpu"
        )

    elapsed = time.time() - start_time
    logger.info(f"SPONGE benchmark completed in {elapsed:.1f} seconds")
    return 0


if __name__ == '__main__':
    sys.exit(main())
