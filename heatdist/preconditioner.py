"""Algebraic multigrid preconditioners

Every solve gets a freshly built preconditioner, whose lifetime is bounded by a `with` block;
the operators of the different stages of the distance computation differ,
so a hierarchy is never carried over from one solve to the next.
"""

import importlib.util
import logging
from contextlib import contextmanager

import numpy as np
import scipy.sparse
import scipy.sparse.linalg

from heatdist.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


# single V-cycle of aggregation AMG as a preconditioner
AMGX_CONFIG = {
    'config_version': 2,
    'solver': {
        'solver': 'AMG',
        'algorithm': 'AGGREGATION',
        'selector': 'SIZE_2',
        'smoother': 'BLOCK_JACOBI',
        'presweeps': 1,
        'postsweeps': 1,
        'cycle': 'V',
        'max_iters': 1,
        'max_levels': 50,
        'monitor_residual': 0,
        'print_solve_stats': 0,
    },
}


def gpu_available():
    """Whether the AmgX python bindings can be imported"""
    return importlib.util.find_spec('pyamgx') is not None


def check_gpu(use_gpu):
    if use_gpu and not gpu_available():
        raise ConfigurationError('GPU preconditioner requested, but AmgX support (pyamgx) is not installed')


@contextmanager
def get_preconditioner(A, use_gpu=False):
    """Build an algebraic multigrid preconditioner for A

    Parameters
    ----------
    A : sparse matrix, [n, n], float
        symmetric positive (semi)definite operator
    use_gpu : bool
        if True, use AmgX on the GPU; otherwise pyamg on the CPU

    Yields
    ------
    LinearOperator, [n, n]
        applies one multigrid cycle; only valid within the with block
    """
    check_gpu(use_gpu)
    A = scipy.sparse.csr_matrix(A)
    if use_gpu:
        with AmgXPreconditioner(A) as M:
            yield M
    else:
        from pyamg import smoothed_aggregation_solver
        # local weighting skips the randomized spectral radius estimate; rebuilt hierarchies are identical
        ml = smoothed_aggregation_solver(A, smooth=('jacobi', {'weighting': 'local'}))
        logger.debug('smoothed aggregation hierarchy with %d levels for %d dofs', len(ml.levels), A.shape[0])
        yield ml.aspreconditioner(cycle='V')


class AmgXPreconditioner(object):
    """Aggregation AMG V-cycle on the GPU, through the AmgX bindings

    Device resources are claimed on entry and released on exit
    """

    def __init__(self, A, config=None):
        self.A = A
        self.config = AMGX_CONFIG if config is None else config

    def __enter__(self):
        import pyamgx
        self.pyamgx = pyamgx
        pyamgx.initialize()
        self.cfg = pyamgx.Config().create_from_dict(self.config)
        self.resources = pyamgx.Resources().create_simple(self.cfg)
        self.matrix = pyamgx.Matrix().create(self.resources)
        self.b = pyamgx.Vector().create(self.resources)
        self.x = pyamgx.Vector().create(self.resources)
        self.solver = pyamgx.Solver().create(self.resources, self.cfg)
        self.matrix.upload_CSR(self.A)
        self.solver.setup(self.matrix)
        logger.debug('AmgX preconditioner set up for %d dofs', self.A.shape[0])
        return scipy.sparse.linalg.LinearOperator(shape=self.A.shape, matvec=self.cycle, dtype=float)

    def cycle(self, r):
        r = np.ascontiguousarray(np.ravel(r), dtype=float)
        z = np.zeros_like(r)
        self.b.upload(r)
        self.x.upload(z)
        self.solver.solve(self.b, self.x, zero_initial_guess=True)
        self.x.download(z)
        return z

    def __exit__(self, *exc):
        for resource in (self.solver, self.x, self.b, self.matrix, self.resources, self.cfg):
            resource.destroy()
        self.pyamgx.finalize()
        return False
