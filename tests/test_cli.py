from __future__ import annotations

import json

import pandas as pd
import pytest

from pySPONGEbench import run_sponge_benchmark
from pySPONGEbench.errors import PersistenceError
from pySPONGEbench.persistence import load_benchmark_bundle


@pytest.fixture
def input_files(tmp_path, gene_expr, mir_expr, targets):
    gene_file = tmp_path / "gene_expr.tsv"
    mir_file = tmp_path / "mir_expr.tsv"
    target_file = tmp_path / "targets.tsv"
    gene_expr.to_csv(gene_file, sep="\t")
    mir_expr.to_csv(mir_file, sep="\t")
    targets.to_csv(target_file, sep="\t")
    return ["--gene_expr", str(gene_file), "--mir_expr", str(mir_file), "--targets", str(target_file)]


@pytest.fixture
def cli_backend(monkeypatch, backend):
    monkeypatch.setattr(run_sponge_benchmark, "RSpongeBackend", lambda rscript=None: backend)
    return backend


def test_cli_writes_bundles_and_summary(input_files, cli_backend, tmp_path):
    out = tmp_path / "results"
    code = run_sponge_benchmark.main(
        input_files + ["--genes", "5", "7", "--output_dir", str(out), "--seed", "1"]
    )

    assert code == 0
    assert cli_backend.closed
    bundles = sorted(out.glob("benchmark_result_*.zip"))
    assert len(bundles) == 2
    assert sorted(load_benchmark_bundle(p).num_genes for p in bundles) == [5, 7]

    summary = pd.read_csv(out / "timing_summary.tsv", sep="\t")
    assert len(summary) == 8
    assert list(summary.columns[:3]) == ["num_genes", "filtering", "pooling"]


def test_cli_config_file_with_overrides(input_files, cli_backend, tmp_path):
    cfg = tmp_path / "bench.json"
    cfg.write_text(json.dumps({"number_of_genes_to_test": [4], "compute_significance": True,
                               "number_of_samples": 20}), encoding="utf-8")

    code = run_sponge_benchmark.main(input_files + ["--config", str(cfg), "--number_of_datasets", "15"])

    assert code == 0
    assert cli_backend.calls[0] == ("build_null_model", 20, 15)
    assert [c[1] for c in cli_backend.calls if c[0] == "filter"] == [4, 4]


def test_cli_without_output_dir_writes_nothing(input_files, cli_backend, tmp_path):
    before = set(tmp_path.iterdir())
    code = run_sponge_benchmark.main(input_files + ["--genes", "3"])
    assert code == 0
    assert set(tmp_path.iterdir()) == before


def test_cli_log_file(input_files, cli_backend, tmp_path):
    log_file = tmp_path / "bench.log"
    code = run_sponge_benchmark.main(input_files + ["--genes", "3", "--log_file", str(log_file)])
    assert code == 0
    text = log_file.read_text()
    assert "benchmarking with 3 genes" in text
    assert "SPONGE benchmark completed" in text


def test_cli_reports_failure(input_files, backend_factory, monkeypatch, tmp_path):
    failing = backend_factory(fail_on="sponge")
    monkeypatch.setattr(run_sponge_benchmark, "RSpongeBackend", lambda rscript=None: failing)
    log_file = tmp_path / "bench.log"

    code = run_sponge_benchmark.main(input_files + ["--genes", "3", "--log_file", str(log_file)])

    assert code == 1
    assert "Benchmark failed: sponge exploded" in log_file.read_text()


def test_cli_missing_input_file(tmp_path, cli_backend):
    code = run_sponge_benchmark.main([
        "--gene_expr", str(tmp_path / "nope.tsv"),
        "--mir_expr", str(tmp_path / "nope2.tsv"),
        "--targets", str(tmp_path / "nope3.tsv"),
    ])
    assert code == 1
    assert cli_backend.calls == []


def test_cli_reports_summary_failure(input_files, cli_backend, monkeypatch, tmp_path):
    def broken_summary(bundles):
        raise PersistenceError("Unsupported payload type for archiving: object")

    monkeypatch.setattr(run_sponge_benchmark, "summarize_timings", broken_summary)
    log_file = tmp_path / "bench.log"

    code = run_sponge_benchmark.main(input_files + ["--genes", "3", "--log_file", str(log_file)])

    assert code == 1
    text = log_file.read_text()
    assert "Benchmark failed: Unsupported payload type" in text
    assert "SPONGE benchmark completed" not in text
