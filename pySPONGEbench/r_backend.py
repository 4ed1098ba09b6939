"""
R SPONGE backend
Runs the SPONGE package through Rscript and exchanges data via TSV/RDS files
"""

import os
import shutil
import subprocess
import tempfile
import weakref
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import pandas as pd

from .errors import UpstreamComputationError

R_PREAMBLE = """
suppressPackageStartupMessages(library(SPONGE))
read_matrix <- function(f) as.matrix(read.delim(f, row.names = 1, check.names = FALSE))
write_tsv <- function(x, f) write.table(x, f, sep = '\\t', quote = FALSE, row.names = FALSE)
"""


@dataclass(frozen=True)
class RObject:
    """Handle to an R object serialized to an .rds file (e.g. a null model)"""
    rds_path: Path


@dataclass(frozen=True)
class InteractionCandidates:
    """
    Result of sponge_gene_miRNA_interaction_filter

    pairs has one row per retained (gene, mirna) with its regression
    coefficient; rds_path holds the R list itself for the scoring step.
    """
    pairs: pd.DataFrame
    rds_path: Path

    def to_frame(self) -> pd.DataFrame:
        return self.pairs.copy()

    @property
    def genes(self) -> List[str]:
        return list(pd.unique(self.pairs['gene'])) if len(self.pairs) > 0 else []


def find_rscript(rscript: Optional[str] = None) -> str:
    """Locate Rscript on PATH or in the active conda environment"""
    if rscript is not None:
        if Path(rscript).exists() or shutil.which(rscript):
            return rscript
        raise UpstreamComputationError(f"Rscript not found at {rscript}")

    rscript_path = shutil.which('Rscript')

    if rscript_path is None:
        conda_prefix = os.environ.get('CONDA_PREFIX', '')
        if conda_prefix:
            potential_path = os.path.join(conda_prefix, 'bin', 'Rscript')
            if os.path.exists(potential_path):
                rscript_path = potential_path

    if rscript_path is None:
        raise UpstreamComputationError(
            "Rscript not found. Please ensure R and the SPONGE package are installed.\n"
            "If using conda: conda install -c bioconda bioconductor-sponge"
        )
    return rscript_path


def r_string(value: Union[str, Path]) -> str:
    """Quote a value as an R string literal"""
    text = str(value).replace('\\', '\\\\').replace("'", "\\'")
    return f"'{text}'"


def r_bool(value: bool) -> str:
    return 'TRUE' if value else 'FALSE'


class RSpongeBackend:
    """
    SPONGE collaborators backed by the R package

    Every call writes its inputs into work_dir, runs one R script and reads
    the outputs back. Objects that only R needs again (null model, filter
    result) stay on disk as .rds and are passed around as handles.
    """

    def __init__(
        self,
        work_dir: Optional[Union[str, Path]] = None,
        rscript: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.rscript = rscript
        self.timeout = timeout
        if work_dir is None:
            self.work_dir = Path(tempfile.mkdtemp(prefix='pysponge_'))
            self._owns_work_dir = True
        else:
            self.work_dir = Path(work_dir)
            self.work_dir.mkdir(parents=True, exist_ok=True)
            self._owns_work_dir = False
        self._counter = 0
        # id(frame) -> (weakref to frame, path); entries drop when the frame is freed
        self._frame_files: Dict[int, Tuple[weakref.ref, Path]] = {}

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self):
        """Remove the work directory if this backend created it"""
        self._frame_files.clear()
        if self._owns_work_dir and self.work_dir.exists():
            shutil.rmtree(self.work_dir)

    def _new_path(self, stem: str, suffix: str) -> Path:
        self._counter += 1
        return self.work_dir / f"{stem}_{self._counter:04d}{suffix}"

    def _write_matrix(self, frame: pd.DataFrame, stem: str) -> Path:
        key = id(frame)
        cached = self._frame_files.get(key)
        if cached is not None and cached[0]() is frame:
            return cached[1]
        path = self._new_path(stem, '.tsv')
        frame.to_csv(path, sep='\t')
        frame_files = self._frame_files

        def forget(ref):
            entry = frame_files.get(key)
            if entry is not None and entry[0] is ref:
                del frame_files[key]

        frame_files[key] = (weakref.ref(frame, forget), path)
        return path

    def run_script(self, body: str) -> str:
        """Run an R script body after the SPONGE preamble, return stdout"""
        rscript_path = find_rscript(self.rscript)
        script = R_PREAMBLE + body
        try:
            result = subprocess.run(
                [rscript_path, '-e', script],
                check=True, capture_output=True, text=True, timeout=self.timeout
            )
        except subprocess.CalledProcessError as e:
            raise UpstreamComputationError(f"R script failed: {e.stderr}", stderr=e.stderr or "") from e
        except subprocess.TimeoutExpired as e:
            raise UpstreamComputationError(f"R script timed out after {self.timeout} seconds") from e
        return result.stdout

    def _cov_matrices_expr(self, cov_matrices) -> str:
        if cov_matrices is None:
            return 'precomputed_cov_matrices'
        if isinstance(cov_matrices, RObject):
            return f"readRDS({r_string(cov_matrices.rds_path)})"
        if isinstance(cov_matrices, (str, Path)):
            return f"readRDS({r_string(cov_matrices)})"
        raise TypeError(
            f"cov_matrices must be None, an RObject or a path to an .rds file, "
            f"got {type(cov_matrices).__name__}"
        )

    def build_null_model(self, cov_matrices, number_of_samples: int, number_of_datasets: int) -> RObject:
        out = self._new_path('null_model', '.rds')
        self.run_script(f"""
null_model <- sponge_build_null_model(
    number_of_datasets = {int(number_of_datasets)},
    number_of_samples = {int(number_of_samples)},
    cov_matrices = {self._cov_matrices_expr(cov_matrices)})
saveRDS(null_model, {r_string(out)})
""")
        return RObject(rds_path=out)

    def gene_mirna_interaction_filter(
        self,
        gene_expr: pd.DataFrame,
        mir_expr: pd.DataFrame,
        elastic_net: bool,
        mir_predicted_targets,
        coefficient_threshold: float
    ) -> InteractionCandidates:
        gene_file = self._write_matrix(gene_expr, 'gene_expr')
        mir_file = self._write_matrix(mir_expr, 'mir_expr')
        tables = mir_predicted_targets if isinstance(mir_predicted_targets, list) else [mir_predicted_targets]
        target_files = [self._write_matrix(t, 'targets') for t in tables]
        targets_expr = ', '.join(r_string(f) for f in target_files)

        rds_out = self._new_path('interactions', '.rds')
        tsv_out = self._new_path('interactions', '.tsv')
        self.run_script(f"""
targets <- lapply(c({targets_expr}), read_matrix)
if (length(targets) == 1) targets <- targets[[1]]
res <- sponge_gene_miRNA_interaction_filter(
    gene_expr = read_matrix({r_string(gene_file)}),
    mir_expr = read_matrix({r_string(mir_file)}),
    mir_predicted_targets = targets,
    elastic.net = {r_bool(elastic_net)},
    coefficient.threshold = {float(coefficient_threshold)})
saveRDS(res, {r_string(rds_out)})
flat <- do.call(rbind, lapply(names(res), function(g) {{
    x <- res[[g]]
    if (is.null(x) || nrow(x) == 0) return(NULL)
    data.frame(gene = g, mirna = x$mirna, coefficient = x$coefficient)
}}))
if (is.null(flat)) flat <- data.frame(gene = character(), mirna = character(), coefficient = numeric())
write_tsv(flat, {r_string(tsv_out)})
""")
        pairs = pd.read_csv(tsv_out, sep='\t')
        return InteractionCandidates(pairs=pairs, rds_path=rds_out)

    def sponge(
        self,
        gene_expr: pd.DataFrame,
        mir_expr: pd.DataFrame,
        mir_interactions: InteractionCandidates,
        each_mirna: bool
    ) -> pd.DataFrame:
        if not isinstance(mir_interactions, InteractionCandidates):
            raise TypeError("mir_interactions must come from gene_mirna_interaction_filter")
        gene_file = self._write_matrix(gene_expr, 'gene_expr')
        mir_file = self._write_matrix(mir_expr, 'mir_expr')
        out = self._new_path('sponge', '.tsv')
        self.run_script(f"""
res <- sponge(
    gene_expr = read_matrix({r_string(gene_file)}),
    mir_expr = read_matrix({r_string(mir_file)}),
    mir_interactions = readRDS({r_string(mir_interactions.rds_path)}),
    each.miRNA = {r_bool(each_mirna)})
write_tsv(res, {r_string(out)})
""")
        return pd.read_csv(out, sep='\t')

    def compute_p_values(self, sponge_result: pd.DataFrame, null_model: RObject) -> pd.DataFrame:
        if not isinstance(null_model, RObject):
            raise TypeError("null_model must come from build_null_model")
        result_file = self._new_path('sponge_in', '.tsv')
        sponge_result.to_csv(result_file, sep='\t', index=False)
        out = self._new_path('sponge_pval', '.tsv')
        self.run_script(f"""
res <- sponge_compute_p_values(
    sponge_result = read.delim({r_string(result_file)}, check.names = FALSE, stringsAsFactors = FALSE),
    null_model = readRDS({r_string(null_model.rds_path)}))
write_tsv(res, {r_string(out)})
""")
        return pd.read_csv(out, sep='\t')
