"""Scalar Lagrange finite element spaces over scikit-fem meshes

This is the only place where the distance computation touches the finite element library;
it is consumed through a small set of capabilities:
projection of level sets, cell measures and geometry, boundary dofs,
and the assembled mass and stiffness operators.
"""

import logging

import numpy as np
from cached_property import cached_property
from skfem import (
    Basis, asm,
    MeshLine1, MeshTri1, MeshQuad1, MeshTet1, MeshHex1,
    ElementLineP1, ElementLineP2,
    ElementTriP1, ElementTriP2, ElementTriP3, ElementTriP4,
    ElementQuad1, ElementQuad2,
    ElementTetP1, ElementTetP2,
    ElementHex1, ElementHex2,
)

from heatdist import forms
from heatdist.exceptions import ConfigurationError


logger = logging.getLogger(__name__)


# reference cell geometry of each supported mesh type
GEOMETRIES = (
    (MeshLine1, 'segment'),
    (MeshTri1, 'triangle'),
    (MeshQuad1, 'square'),
    (MeshTet1, 'tetrahedron'),
    (MeshHex1, 'cube'),
)

ELEMENTS = {
    'segment': {1: ElementLineP1, 2: ElementLineP2},
    'triangle': {1: ElementTriP1, 2: ElementTriP2, 3: ElementTriP3, 4: ElementTriP4},
    'square': {1: ElementQuad1, 2: ElementQuad2},
    'tetrahedron': {1: ElementTetP1, 2: ElementTetP2},
    'cube': {1: ElementHex1, 2: ElementHex2},
}


def mesh_geometry(mesh):
    """Reference cell geometry of a mesh

    Parameters
    ----------
    mesh : skfem.Mesh

    Returns
    -------
    str
        one of 'segment', 'triangle', 'square', 'tetrahedron', 'cube'

    Raises
    ------
    ConfigurationError
        for any other cell type
    """
    for mesh_type, geometry in GEOMETRIES:
        if isinstance(mesh, mesh_type):
            return geometry
    raise ConfigurationError('Unsupported cell geometry: {}'.format(type(mesh).__name__))


class Discretization(object):
    """Continuous scalar Lagrange space of a given order over a mesh

    Parameters
    ----------
    mesh : skfem.Mesh
        the local partition of the domain
    order : int
        polynomial order of the lagrange elements
    """

    def __init__(self, mesh, order=1):
        self.mesh = mesh
        self.order = int(order)
        self.geometry = mesh_geometry(mesh)
        try:
            element = ELEMENTS[self.geometry][self.order]
        except KeyError:
            raise ConfigurationError(
                'Order {} is not supported on {} cells; choose from {}'.format(
                    order, self.geometry, sorted(ELEMENTS[self.geometry])))
        self.basis = Basis(mesh, element())
        logger.debug('order %d %s space: %d dofs over %d cells', self.order, self.geometry, self.n_dofs, self.n_cells)

    @property
    def n_dim(self):
        return self.mesh.dim()

    @property
    def n_dofs(self):
        return self.basis.N

    @property
    def n_cells(self):
        return self.mesh.t.shape[1]

    @cached_property
    def cell_measures(self):
        """Length, area or volume of each cell

        Returns
        -------
        ndarray, [n_cells], float
        """
        return self.basis.dx.sum(axis=1)

    @cached_property
    def dof_locations(self):
        """Nodal positions of the lagrange dofs

        Returns
        -------
        ndarray, [n_dim, n_dofs], float
        """
        return self.basis.doflocs

    def zeros(self):
        """A field over the dofs, initialized to zero"""
        return np.zeros(self.n_dofs)

    def project(self, level_set):
        """Nodal interpolation of a level set onto the dofs

        Parameters
        ----------
        level_set : callable or ndarray, [n_dofs], float
            a callable is evaluated at the dof locations, passed as an array of shape [n_dim, n_dofs];
            an array is taken to hold the dof values already

        Returns
        -------
        ndarray, [n_dofs], float
            a new array holding the projection
        """
        if callable(level_set):
            values = level_set(self.dof_locations)
        else:
            values = level_set
        values = np.array(values, dtype=float)
        if not values.shape == (self.n_dofs,):
            raise ValueError('Level set has shape {}; expected ({},)'.format(values.shape, self.n_dofs))
        return values

    def boundary_dofs(self, boundaries=None):
        """Dofs on the boundary of the domain

        Parameters
        ----------
        boundaries : iterable of str, optional
            names of boundaries registered on the mesh.
            if None, all boundary facets are included

        Returns
        -------
        ndarray, [n_boundary_dofs], int
            sorted unique dof indices; empty for a mesh without boundary
        """
        if boundaries is None:
            if len(self.mesh.boundary_facets()) == 0:
                return np.zeros(0, dtype=int)
            return np.unique(self.basis.get_dofs().flatten())

        named = self.mesh.boundaries or {}
        dofs = [np.zeros(0, dtype=int)]
        for name in boundaries:
            if name not in named:
                raise ValueError('Mesh has no boundary named {!r}; known: {}'.format(name, sorted(named)))
            dofs.append(self.basis.get_dofs(named[name]).flatten())
        return np.unique(np.concatenate(dofs)).astype(int)

    @cached_property
    def mass(self):
        """Mass matrix; the identity, weighted by basis function overlap"""
        return asm(forms.mass, self.basis).tocsr()

    @cached_property
    def stiffness(self):
        """Stiffness matrix; the weak form of the negative laplacian"""
        return asm(forms.stiffness, self.basis).tocsr()

    def gradient_rhs(self, field):
        """Integral of the normalized descent direction of a field against the gradient of each basis function

        Parameters
        ----------
        field : ndarray, [n_dofs], float

        Returns
        -------
        ndarray, [n_dofs], float
        """
        return asm(forms.normalized_gradient, self.basis, u=self.basis.interpolate(field))

    def plot_field(self, field, ax=None, **kwargs):
        """Plot a field over a 1d or 2d discretization

        Parameters
        ----------
        field : ndarray, [n_dofs], float
        ax : matplotlib axes, optional

        Notes
        -----
        Only the values at the mesh vertices are drawn;
        quads are split into two triangles for display
        """
        import matplotlib.pyplot as plt

        if ax is None:
            fig, ax = plt.subplots(1, 1)

        vertex_values = np.asarray(field)[self.basis.nodal_dofs[0]]
        p, t = self.mesh.p, self.mesh.t
        if self.n_dim == 1:
            order = np.argsort(p[0])
            ax.plot(p[0][order], vertex_values[order], **kwargs)
        elif self.n_dim == 2:
            if self.geometry == 'square':
                t = np.concatenate([t[[0, 1, 2]], t[[0, 2, 3]]], axis=1)
            c = ax.tripcolor(p[0], p[1], t.T, vertex_values, shading='gouraud', **kwargs)
            ax.set_aspect('equal')
            plt.colorbar(c, ax=ax)
        else:
            raise NotImplementedError('Plotting is only supported for 1d and 2d discretizations')
        return ax
