"""Heat method distance function

Approximates the unsigned distance to the 0.5-contour of a level set in three stages:

1. the level set is turned into a source that peaks on the contour
2. the source is diffused over a short time scale, tied to the cell size;
   once with homogeneous Dirichlet conditions, once with natural conditions,
   and the two are averaged, to cancel most of the boundary bias of either
3. a potential is recovered whose gradient best matches the normalized gradient
   of the diffused source; this potential, shifted to have its minimum at zero, is the distance

References
----------
[1] http://www.multires.caltech.edu/pubs/GeodesicsInHeat.pdf

"""

import logging

import numpy as np

from heatdist.exceptions import ConfigurationError
from heatdist.levelset import peak_transform
from heatdist.meshscale import global_cell_size
from heatdist.parallel import SerialCommunicator, global_min
from heatdist.preconditioner import check_gpu, get_preconditioner
from heatdist.smoothing import diffuse_field
from heatdist.solvers import form_linear_system, solve, deflate_constant, REL_TOL, MAX_ITER


logger = logging.getLogger(__name__)


DIFFUSION_COEFFICIENT = 1.0


class DistanceFunction(object):
    """Computes distance fields over a fixed discretization

    Parameters
    ----------
    discretization : Discretization
        the local partition of the domain; shared read-only by all stages
    diffusion_coefficient : float
        diffusion time in units of the squared cell size
    use_gpu : bool
        build the preconditioners with AmgX rather than pyamg
    comm : Communicator, optional
        communicator over the processes holding the discretization; serial by default.
        the linear solves act on the local discretization only, so a communicator
        spanning more than one process is refused
    boundaries : iterable of str, optional
        named boundaries receiving the Dirichlet condition in the diffusion stage;
        all boundary facets by default
    rel_tol : float
        relative tolerance of every linear solve
    max_iter : int
        iteration budget of every linear solve
    omega : float
        relaxation weight of the level set smoother, in (0, 1]

    Raises
    ------
    ConfigurationError
        for unsupported cell geometries, a GPU request without AmgX support,
        or a communicator over more than one process
    """

    def __init__(self, discretization, diffusion_coefficient=DIFFUSION_COEFFICIENT, use_gpu=False, comm=None,
                 boundaries=None, rel_tol=REL_TOL, max_iter=MAX_ITER, omega=1.0):
        self.state = 'constructed'
        check_gpu(use_gpu)
        comm = SerialCommunicator() if comm is None else comm
        if comm.size > 1:
            raise ConfigurationError(
                'distributed linear solves are not supported; got a communicator over {} processes'.format(comm.size))
        self.discretization = discretization
        self.diffusion_coefficient = diffusion_coefficient
        self.use_gpu = use_gpu
        self.comm = comm
        self.rel_tol = rel_tol
        self.max_iter = max_iter
        self.omega = omega

        self.dx = global_cell_size(discretization, self.comm)
        self.essential_dofs = discretization.boundary_dofs(boundaries)
        self.essential_dofs.setflags(write=False)

        self.source = discretization.zeros()
        self.diffused = discretization.zeros()
        self.distance = discretization.zeros()
        self.state = 'ready'
        logger.info(
            'distance function over %d dofs; dx = %g, %d dirichlet dofs',
            discretization.n_dofs, self.dx, len(self.essential_dofs))

    @property
    def dt(self):
        """Diffusion time of the smoothing stage"""
        return self.diffusion_coefficient * self.dx ** 2

    def prepare_source(self, level_set, smooth_steps=0, transform=True):
        """Project, optionally smooth, and optionally peak-transform a level set into `self.source`"""
        source = self.discretization.project(level_set)
        if smooth_steps > 0:
            diffuse_field(self.discretization.stiffness, source, smooth_steps, omega=self.omega)
        if transform:
            source = peak_transform(source)
        self.source[:] = source
        return self.source

    def _solve(self, A, b, constrained, deflate=None, name='solve'):
        x = self.discretization.zeros()
        A, b = form_linear_system(A, b, constrained, x)
        with get_preconditioner(A, use_gpu=self.use_gpu) as M:
            return solve(A, b, preconditioner=M, x0=x, deflate=deflate,
                         rel_tol=self.rel_tol, max_iter=self.max_iter, name=name)

    def solve_diffusion(self, source, constrained):
        """Solve the screened diffusion equation (M + dt L) u = M source

        Parameters
        ----------
        source : ndarray, [n_dofs], float
        constrained : ndarray, [n_constrained], int
            dofs at which u is fixed to zero; empty for natural boundary conditions

        Returns
        -------
        u : ndarray, [n_dofs], float
        """
        M = self.discretization.mass
        L = self.discretization.stiffness
        name = 'diffusion ({})'.format('dirichlet' if len(constrained) else 'neumann')
        return self._solve(M + self.dt * L, M @ source, constrained, name=name)

    def solve_distance(self, diffused):
        """Find the potential whose gradient matches the normalized descent direction of `diffused`

        Solves L d = rhs with natural boundary conditions; the result is defined up to a constant

        Parameters
        ----------
        diffused : ndarray, [n_dofs], float

        Returns
        -------
        d : ndarray, [n_dofs], float
        """
        rhs = self.discretization.gradient_rhs(diffused)
        no_constraints = np.zeros(0, dtype=int)
        return self._solve(self.discretization.stiffness, rhs, no_constraints, deflate=deflate_constant, name='distance')

    def compute_distance(self, level_set, smooth_steps=0, transform=True):
        """Compute the distance to the 0.5-contour of a level set

        Parameters
        ----------
        level_set : callable or ndarray, [n_dofs], float
            callables are evaluated at the dof locations, given as an array of shape [n_dim, n_dofs]
        smooth_steps : int
            number of smoothing sweeps applied to the projected level set; 0 uses it as given
        transform : bool
            if True, map the level set, assumed to be normalized to [0, 1], to a source peaking at 0.5

        Returns
        -------
        distance : ndarray, [n_dofs], float
            non-negative, with global minimum zero. this is `self.distance`,
            which is overwritten by the next call

        Raises
        ------
        ConvergenceError
            if any of the linear solves fails to converge; `state` is then 'failed',
            and `distance` holds the result of the previous call
        """
        self.state = 'computing'
        try:
            source = self.prepare_source(level_set, smooth_steps=smooth_steps, transform=transform)

            u_dirichlet = self.solve_diffusion(source, self.essential_dofs)
            u_neumann = self.solve_diffusion(source, np.zeros(0, dtype=int))
            self.diffused[:] = 0.5 * (u_dirichlet + u_neumann)

            distance = self.solve_distance(self.diffused)
        except Exception:
            self.state = 'failed'
            raise
        self.distance[:] = distance

        shift = global_min(self.comm, self.distance)
        self.distance -= shift
        self.state = 'done'
        logger.info('distance computed; shifted by %g, maximum %g', shift, self.distance.max())
        return self.distance
