"""Generation of some simple meshes"""

import numpy as np
from skfem import MeshLine, MeshTri, MeshQuad, MeshTet, MeshHex


def n_cube_grid(shape, box=None, simplicial=False):
    """Generate a regular grid of n-cubes in euclidian n-space, for n in 1, 2, 3

    Parameters
    ----------
    shape : tuple of int
        shape of the grid to be generated, as the number of cubes in each dimension
    box : ndarray, [2, n_dim], float, optional
        lower and upper corner of the grid; the unit n-cube by default
    simplicial : bool
        if True, each n-cube is split into simplices

    Returns
    -------
    skfem.Mesh
        segments, quads or hexahedra; or triangles or tetrahedra if simplicial
    """
    n_dim = len(shape)
    if box is None:
        box = np.array([np.zeros(n_dim), np.ones(n_dim)])
    box = np.asarray(box, dtype=float)
    if not box.shape == (2, n_dim):
        raise ValueError('box should have shape (2, {}), got {}'.format(n_dim, box.shape))
    axes = [np.linspace(lo, hi, n + 1) for lo, hi, n in zip(box[0], box[1], shape)]

    if n_dim == 1:
        x, = axes
        segments = np.arange(len(x) - 1)
        return MeshLine(x[None, :], np.array([segments, segments + 1]))
    if n_dim == 2:
        mesh_type = MeshTri if simplicial else MeshQuad
    elif n_dim == 3:
        mesh_type = MeshTet if simplicial else MeshHex
    else:
        raise ValueError('Only 1, 2 and 3 dimensional grids are supported')
    return mesh_type.init_tensor(*axes).with_boundaries(boundary_selectors(box))


def boundary_selectors(box):
    """Named facet selectors for the sides of an axis aligned box

    Parameters
    ----------
    box : ndarray, [2, n_dim], float

    Returns
    -------
    dict of str: callable
        'left', 'right', 'bottom', 'top', 'front', 'back' for the sides normal to x, y and z respectively
    """
    names = [('left', 'right'), ('bottom', 'top'), ('front', 'back')]
    tol = 1e-10 * np.abs(box).max(initial=1.0)
    selectors = {}
    for axis, (lo, hi) in enumerate(box.T):
        low, high = names[axis]
        selectors[low] = lambda x, axis=axis, lo=lo: np.isclose(x[axis], lo, atol=tol)
        selectors[high] = lambda x, axis=axis, hi=hi: np.isclose(x[axis], hi, atol=tol)
    return selectors
