"""Sparse linear solvers useful in this context"""

import logging
from collections import namedtuple

import numpy as np
import scipy.sparse

from heatdist.exceptions import ConvergenceError


logger = logging.getLogger(__name__)


REL_TOL = 1e-12
MAX_ITER = 100


SolveInfo = namedtuple('SolveInfo', ['iterations', 'converged', 'residual', 'initial_residual'])


def form_linear_system(A, b, constrained, x):
    """Eliminate constrained dofs from a symmetric linear system, preserving symmetry

    The rows and columns of the constrained dofs are replaced by those of the identity,
    and their prescribed values are moved to the right hand side

    Parameters
    ----------
    A : sparse matrix, [n, n], float
        symmetric operator
    b : ndarray, [n], float
        right hand side
    constrained : ndarray, [n_constrained], int
        indices of the dofs with prescribed values
    x : ndarray, [n], float
        holds the prescribed values at the constrained dofs; other entries are ignored

    Returns
    -------
    A : sparse matrix, [n, n], float
        constrained operator; still symmetric
    b : ndarray, [n], float
        constrained right hand side
    """
    constrained = np.asarray(constrained, dtype=int)
    b = np.array(b, dtype=float)
    if len(constrained) == 0:
        return scipy.sparse.csr_matrix(A), b

    prescribed = np.zeros(A.shape[0])
    prescribed[constrained] = x[constrained]
    b -= A @ prescribed
    b[constrained] = prescribed[constrained]

    free = np.ones(A.shape[0])
    free[constrained] = 0
    A = scipy.sparse.diags(free) @ A @ scipy.sparse.diags(free) + scipy.sparse.diags(1 - free)
    return scipy.sparse.csr_matrix(A), b


def deflate_constant(x):
    """Project out the constant vector; the null space of a pure Neumann laplacian"""
    x -= x.mean()


def solve_cg(operator, rhs, preconditioner=None, x0=None, deflate=None,
             rel_tol=REL_TOL, abs_tol=0.0, max_iter=MAX_ITER):
    """Solve operator(x) = rhs using preconditioned conjugate gradient iteration

    Parameters
    ----------
    operator : sparse matrix or LinearOperator, [n, n], float
        symmetric positive (semi)definite operator
    rhs : ndarray, [n], float
    preconditioner : sparse matrix or LinearOperator, [n, n], float, optional
        symmetric positive definite approximation of the inverse of the operator
    x0 : ndarray, [n], float, optional
        initial guess; zero by default
    deflate : callable, optional
        projects its argument in place onto the subspace the solution is sought in;
        allows solving operators with a known null space
    rel_tol : float
        convergence is reached when the preconditioned residual norm has
        decreased by this factor relative to the initial one
    abs_tol : float
        convergence is also reached when the preconditioned residual norm drops below this
    max_iter : int

    Returns
    -------
    x : ndarray, [n], float
    info : SolveInfo

    Notes
    -----
    Residual norms are measured in the norm induced by the preconditioner;
    that is, sqrt(r . M r)
    """
    if deflate is None:
        deflate = lambda v: None
    if preconditioner is None:
        precondition = lambda r: r.copy()
    else:
        precondition = lambda r: np.asarray(preconditioner @ r).ravel()

    rhs = np.array(rhs, dtype=float)
    deflate(rhs)
    x = np.zeros_like(rhs) if x0 is None else np.array(x0, dtype=float)
    deflate(x)

    r = rhs - operator @ x
    deflate(r)
    z = precondition(r)
    deflate(z)
    nom = np.dot(r, z)
    nom0 = nom
    if nom0 < 0:
        raise ValueError('preconditioner is not positive definite')
    threshold = max(nom0 * rel_tol ** 2, abs_tol ** 2)

    if nom <= threshold:
        return x, SolveInfo(0, True, np.sqrt(abs(nom)), np.sqrt(nom0))

    d = z.copy()
    for i in range(1, max_iter + 1):
        q = operator @ d
        deflate(q)
        dq = np.dot(d, q)
        if dq <= 0:
            # breakdown; operator is not positive definite on the search direction
            break
        alpha = nom / dq
        x += alpha * d
        r -= alpha * q
        z = precondition(r)
        deflate(z)
        nom_old, nom = nom, np.dot(r, z)
        if nom <= threshold:
            return x, SolveInfo(i, True, np.sqrt(abs(nom)), np.sqrt(nom0))
        d = z + (nom / nom_old) * d
    else:
        i = max_iter

    return x, SolveInfo(i, False, np.sqrt(abs(nom)), np.sqrt(nom0))


def solve(operator, rhs, preconditioner=None, x0=None, deflate=None, rel_tol=REL_TOL, max_iter=MAX_ITER, name='solve'):
    """Conjugate gradient solve that fails loudly

    Raises
    ------
    ConvergenceError
        if the tolerance is not met within `max_iter` iterations
    """
    x, info = solve_cg(operator, rhs, preconditioner=preconditioner, x0=x0, deflate=deflate,
                       rel_tol=rel_tol, max_iter=max_iter)
    relative = info.residual / info.initial_residual if info.initial_residual > 0 else 0.0
    logger.debug('%s: %d cg iterations, relative residual %.3e', name, info.iterations, relative)
    if not info.converged:
        raise ConvergenceError(
            '{}: conjugate gradient did not converge in {} iterations; relative residual {:.3e}, requested {:.1e}'.format(
                name, info.iterations, relative, rel_tol),
            iterations=info.iterations,
            residual=info.residual,
        )
    return x
