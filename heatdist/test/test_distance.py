import numpy as np
import pytest

from heatdist import levelset, synthetic
from heatdist.discretization import Discretization
from heatdist.distance import DistanceFunction
from heatdist.exceptions import ConfigurationError, ConvergenceError
from heatdist.parallel import Communicator
from heatdist import preconditioner


def nearest_dof(discretization, point):
    return np.argmin(np.linalg.norm(discretization.dof_locations - np.asarray(point)[:, None], axis=0))


@pytest.fixture
def rectangle():
    mesh = synthetic.n_cube_grid((32, 16), box=[[0, 0], [2, 1]])
    return Discretization(mesh)


@pytest.fixture
def bump():
    return levelset.bump([1.0, 0.5], width=0.1, height=0.5)


def test_construction(rectangle):
    df = DistanceFunction(rectangle)
    assert df.state == 'ready'
    assert np.isclose(df.dx, 1 / 16.)
    assert np.isclose(df.dt, 1 / 256.)
    assert len(df.essential_dofs) == 2 * (33 + 17) - 4


def test_gpu_unavailable(rectangle, monkeypatch):
    monkeypatch.setattr(preconditioner, 'gpu_available', lambda: False)
    with pytest.raises(ConfigurationError):
        DistanceFunction(rectangle, use_gpu=True)


def test_bump(rectangle, bump):
    """Distance from a bump at the center of a rectangle"""
    df = DistanceFunction(rectangle)
    d = df.compute_distance(bump, smooth_steps=0, transform=True)
    assert df.state == 'done'
    assert d is df.distance

    assert d.min() == 0
    assert np.all(d >= 0)

    center = nearest_dof(rectangle, [1.0, 0.5])
    assert np.linalg.norm(rectangle.dof_locations[:, np.argmin(d)] - [1.0, 0.5]) < 0.1

    # increasing towards the boundary along the center line, in both directions
    for sign in [-1, +1]:
        profile = [d[nearest_dof(rectangle, [1.0 + sign * r, 0.5])] for r in [0, 0.25, 0.5, 0.75, 1.0]]
        assert np.all(np.diff(profile) > 0)
    profile = [d[nearest_dof(rectangle, [1.0, 0.5 + r])] for r in [0, 0.125, 0.25, 0.375, 0.5]]
    assert np.all(np.diff(profile) > 0)

    # roughly a euclidian distance
    assert 0.3 < d[nearest_dof(rectangle, [1.5, 0.5])] - d[center] < 0.7

    # and symmetric, like the problem
    assert np.isclose(d[nearest_dof(rectangle, [0.5, 0.5])], d[nearest_dof(rectangle, [1.5, 0.5])], rtol=1e-3)


def test_repeated(rectangle, bump):
    """Computing the same distance twice gives the same answer, also after computing something else"""
    df = DistanceFunction(rectangle)
    essential = df.essential_dofs.copy()
    first = df.compute_distance(bump).copy()
    other = df.compute_distance(levelset.circle([0.5, 0.5], 0.2)).copy()
    second = df.compute_distance(bump)

    assert np.array_equal(df.essential_dofs, essential)
    assert not np.allclose(first, other)
    assert np.array_equal(first, second)
    assert np.array_equal(first, DistanceFunction(rectangle).compute_distance(bump))


def test_dual_boundary_average(rectangle, bump):
    """The internally diffused field is the mean of separate dirichlet and neumann solves"""
    df = DistanceFunction(rectangle)
    df.compute_distance(bump)
    source = df.source.copy()

    u_dirichlet = df.solve_diffusion(source, df.essential_dofs)
    u_neumann = df.solve_diffusion(source, [])
    assert np.allclose(u_dirichlet[df.essential_dofs], 0, atol=1e-10)
    assert not np.allclose(u_neumann[df.essential_dofs], 0, atol=1e-12)

    expected = 0.5 * (u_dirichlet + u_neumann)
    assert np.allclose(df.diffused, expected, rtol=0, atol=1e-10 * np.abs(expected).max())


def test_no_smoothing(rectangle, bump):
    df = DistanceFunction(rectangle)
    source = df.prepare_source(bump, smooth_steps=0, transform=False)
    assert np.array_equal(source, rectangle.project(bump))


def test_smoothing(rectangle):
    """Smoothing a noisy level set lowers its variation before the transform"""
    df = DistanceFunction(rectangle)
    noisy = np.random.rand(rectangle.n_dofs)
    raw = df.prepare_source(noisy, smooth_steps=0, transform=False).copy()
    smoothed = df.prepare_source(noisy, smooth_steps=4, transform=False)
    L = rectangle.stiffness
    assert smoothed @ L @ smoothed < raw @ L @ raw


def test_transform(rectangle, bump):
    df = DistanceFunction(rectangle)
    source = df.prepare_source(bump, transform=True)
    assert np.all((source >= 0) & (source <= 1))
    assert np.isclose(source.max(), 1)
    assert source[nearest_dof(rectangle, [1.0, 0.5])] == source.max()


def test_out_of_range(rectangle):
    """A level set exceeding [0, 1] still gives a valid distance"""
    df = DistanceFunction(rectangle)
    x, y = rectangle.dof_locations
    d = df.compute_distance(1.5 - x)
    assert d.min() == 0
    assert np.all(d >= 0)
    assert np.all(df.source[x < 0.5] == 0)


def test_line():
    """In 1d the normalized gradient is exactly +-1, so the distance is exact"""
    discretization = Discretization(synthetic.n_cube_grid((64,)))
    df = DistanceFunction(discretization)
    d = df.compute_distance(levelset.bump([0.5], width=0.15))
    x = discretization.dof_locations[0]
    assert np.allclose(d, np.abs(x - 0.5), atol=1e-6)


@pytest.mark.parametrize('shape, simplicial, order', [
    ((12, 12), True, 2),
    ((12, 12), False, 2),
    ((12, 12, 12), True, 1),
    ((12, 12, 12), False, 1),
])
def test_other_discretizations(shape, simplicial, order):
    mesh = synthetic.n_cube_grid(shape, simplicial=simplicial)
    discretization = Discretization(mesh, order=order)
    df = DistanceFunction(discretization)
    center = [0.5] * len(shape)
    d = df.compute_distance(levelset.circle(center, 0.25))

    assert d.min() == 0
    assert np.all(d >= 0)
    # the distance vanishes on the circle; not at its center or on the domain boundary
    assert d[nearest_dof(discretization, center)] > d.min()
    corner = d[nearest_dof(discretization, [0.0] * len(shape))]
    assert corner > d[nearest_dof(discretization, [0.75] + [0.5] * (len(shape) - 1))]


def test_named_boundaries(rectangle, bump):
    df = DistanceFunction(rectangle, boundaries=['left'])
    assert len(df.essential_dofs) == 17
    d = df.compute_distance(bump)
    assert d.min() == 0


def test_convergence_error(rectangle, bump):
    df = DistanceFunction(rectangle, max_iter=1)
    previous = df.distance.copy()
    with pytest.raises(ConvergenceError):
        df.compute_distance(bump)
    assert df.state == 'failed'
    assert np.array_equal(df.distance, previous)


def test_plot(rectangle, show_plot):
    df = DistanceFunction(rectangle)
    d = df.compute_distance(levelset.circle([0.7, 0.5], 0.3))
    rectangle.plot_field(d)
    show_plot()


class TwoProcessCommunicator(Communicator):
    size = 2

    def allreduce(self, value, op):
        return value


def test_distributed_refused(rectangle):
    """Linear solves act on the local discretization; more than one process is refused up front"""
    with pytest.raises(ConfigurationError):
        DistanceFunction(rectangle, comm=TwoProcessCommunicator())


def test_smoothing_higher_order(bump):
    """Smoothing the level set on a quadratic space keeps the source within range"""
    discretization = Discretization(synthetic.n_cube_grid((16, 16), simplicial=True), order=2)
    df = DistanceFunction(discretization, omega=0.8)
    noisy = discretization.project(bump) + 0.05 * np.random.rand(discretization.n_dofs)
    smoothed = df.prepare_source(noisy, smooth_steps=20, transform=False)
    assert smoothed.min() > -0.2
    assert smoothed.max() < 0.75
    d = df.compute_distance(noisy, smooth_steps=20)
    assert d.min() == 0
    assert np.all(d >= 0)
