from __future__ import annotations

from itertools import combinations

import numpy as np
import pandas as pd
import pytest


class FakeNullModel:
    """Stand-in for a SPONGE null model; identity is what the tests check"""

    def __init__(self, number_of_samples, number_of_datasets):
        self.number_of_samples = number_of_samples
        self.number_of_datasets = number_of_datasets


class FakeSpongeBackend:
    """Records every collaborator call and returns small deterministic tables"""

    def __init__(self, fail_on=None):
        self.calls = []
        self.null_models = []
        self.p_value_null_models = []
        self.fail_on = fail_on
        self.closed = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True
        return False

    def _maybe_fail(self, name):
        if self.fail_on == name:
            raise RuntimeError(f"{name} exploded")

    def build_null_model(self, cov_matrices, number_of_samples, number_of_datasets):
        self.calls.append(('build_null_model', number_of_samples, number_of_datasets))
        self._maybe_fail('build_null_model')
        model = FakeNullModel(number_of_samples, number_of_datasets)
        self.null_models.append(model)
        return model

    def gene_mirna_interaction_filter(self, gene_expr, mir_expr, elastic_net,
                                      mir_predicted_targets, coefficient_threshold):
        self.calls.append(('filter', gene_expr.shape[1], elastic_net, coefficient_threshold))
        self._maybe_fail('filter')
        mirnas = list(mir_expr.columns)
        if elastic_net:
            mirnas = mirnas[: len(mirnas) // 2]
        rows = [
            {'gene': g, 'mirna': m, 'coefficient': -0.1}
            for g in gene_expr.columns for m in mirnas
            if mir_predicted_targets.loc[g, m] > 0
        ]
        return pd.DataFrame(rows, columns=['gene', 'mirna', 'coefficient'])

    def sponge(self, gene_expr, mir_expr, mir_interactions, each_mirna):
        self.calls.append(('sponge', gene_expr.shape[1], each_mirna))
        self._maybe_fail('sponge')
        genes = list(pd.unique(mir_interactions['gene']))
        rows = [
            {'geneA': a, 'geneB': b, 'df': 1 if each_mirna else len(mir_expr.columns),
             'cor': 0.5, 'pcor': 0.4, 'mscor': 0.1}
            for a, b in combinations(genes, 2)
        ]
        return pd.DataFrame(rows, columns=['geneA', 'geneB', 'df', 'cor', 'pcor', 'mscor'])

    def compute_p_values(self, sponge_result, null_model):
        self.calls.append(('compute_p_values',))
        self._maybe_fail('compute_p_values')
        self.p_value_null_models.append(null_model)
        result = sponge_result.copy()
        result['p.val'] = 0.01
        result['p.adj'] = 0.05
        return result


@pytest.fixture
def rng():
    return np.random.default_rng(7)


@pytest.fixture
def gene_expr(rng):
    return pd.DataFrame(
        rng.normal(size=(50, 300)),
        index=[f"sample_{i}" for i in range(50)],
        columns=[f"GENE{i}" for i in range(300)],
    )


@pytest.fixture
def mir_expr(rng):
    return pd.DataFrame(
        rng.normal(size=(50, 20)),
        index=[f"sample_{i}" for i in range(50)],
        columns=[f"hsa-miR-{i}" for i in range(20)],
    )


@pytest.fixture
def targets(gene_expr, mir_expr):
    return pd.DataFrame(1, index=gene_expr.columns, columns=mir_expr.columns)


@pytest.fixture
def backend():
    return FakeSpongeBackend()


@pytest.fixture
def backend_factory():
    return FakeSpongeBackend
