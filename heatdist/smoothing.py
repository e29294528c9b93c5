"""Diffusion filter for noisy or discontinuous level sets"""

import numpy as np


def l1_diagonal(stiffness):
    """Row-wise l1 norms of an operator

    Used in place of its diagonal, this gives a jacobi smoother that is convergent for any
    symmetric positive semidefinite operator, including higher order laplacians with
    positive off-diagonal entries, for which plain jacobi diverges

    Parameters
    ----------
    stiffness : sparse matrix, [n, n], float

    Returns
    -------
    ndarray, [n], float
    """
    return np.asarray(abs(stiffness).sum(axis=1)).ravel()


def diffuse_field(stiffness, field, smooth_steps, omega=1.0):
    """Smooth a field by l1-jacobi relaxation of the laplace equation

    Starting from the field itself, each sweep relaxes `L x = 0` locally;
    this damps the high frequency content of the field most strongly,
    while leaving its smooth content largely untouched.

    Parameters
    ----------
    stiffness : sparse matrix, [n_dofs, n_dofs], float
        the discrete laplacian L of the domain
    field : ndarray, [n_dofs], float
        field to be smoothed; overwritten with the result
    smooth_steps : int
        number of relaxation sweeps. 0 leaves the field untouched
    omega : float, optional
        relaxation weight, in (0, 1]. no component of the field is amplified within this range

    Returns
    -------
    field : ndarray, [n_dofs], float
        the same array that was passed in

    Notes
    -----
    x <- x - omega D^-1 L x, with D the l1 row norms of L.
    By Gershgorin, the spectrum of D^-1 L lies within [0, 1]
    """
    if smooth_steps < 0:
        raise ValueError('Number of smoothing steps must be non-negative, got {}'.format(smooth_steps))
    if not 0 < omega <= 1:
        raise ValueError('Relaxation weight must lie in (0, 1], got {}'.format(omega))
    if smooth_steps == 0:
        return field

    inverse_diagonal = omega / l1_diagonal(stiffness)
    x = np.array(field, dtype=float)
    for i in range(smooth_steps):
        x -= inverse_diagonal * (stiffness @ x)
    field[...] = x
    return field
