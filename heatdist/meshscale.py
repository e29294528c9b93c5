"""Characteristic cell size of a discretization

The size is derived from the mean cell measure, assuming cells of similar shape;
it sets the time scale of the diffusion step of the distance computation.
"""

import logging

import numpy as np

from heatdist.exceptions import ConfigurationError
from heatdist.parallel import global_sum


logger = logging.getLogger(__name__)


# map from the mean measure of a cell to the edge length of the corresponding regular cell
EDGE_LENGTH = {
    'segment': lambda m: m,
    'square': lambda m: np.sqrt(m),
    'triangle': lambda m: np.sqrt(2.0 * m),
    'cube': lambda m: np.power(m, 1.0 / 3.0),
    'tetrahedron': lambda m: np.power(6.0 * m, 1.0 / 3.0),
}


def estimate_cell_size(total_measure, n_cells, geometry, order=1):
    """Estimate the characteristic cell size dx

    Parameters
    ----------
    total_measure : float
        summed measure (length, area or volume) of all cells of the domain
    n_cells : int
        total number of cells of the domain
    geometry : str
        reference cell geometry; one of the keys of `EDGE_LENGTH`
    order : int
        approximation order of the finite element space;
        higher orders resolve proportionally finer features within a cell

    Returns
    -------
    dx : float
        characteristic cell size, divided by the approximation order

    Raises
    ------
    ConfigurationError
        if the geometry is not supported, or the inputs give a non-positive size
    """
    try:
        edge_length = EDGE_LENGTH[geometry]
    except KeyError:
        raise ConfigurationError('Unsupported cell geometry: {!r}'.format(geometry))
    if n_cells <= 0:
        raise ConfigurationError('A discretization needs at least one cell')
    if order < 1:
        raise ConfigurationError('Approximation order must be positive, got {}'.format(order))
    if not total_measure > 0:
        raise ConfigurationError('Domain measure must be positive, got {}'.format(total_measure))

    return float(edge_length(total_measure / n_cells)) / order


def global_cell_size(discretization, comm):
    """Characteristic cell size over all partitions of a distributed discretization

    Parameters
    ----------
    discretization : Discretization
        local partition of the domain
    comm : Communicator
        each participating process must call this collectively

    Returns
    -------
    dx : float
    """
    total_measure = global_sum(comm, discretization.cell_measures)
    n_cells = comm.allreduce(int(discretization.n_cells), 'sum')
    dx = estimate_cell_size(total_measure, n_cells, discretization.geometry, discretization.order)
    logger.debug('%d %s cells of total measure %g; dx = %g', n_cells, discretization.geometry, total_measure, dx)
    return dx
