import numpy as np
import pytest

from heatdist import synthetic


def test_box():
    box = np.array([[-1, 0], [1, 3]])
    mesh = synthetic.n_cube_grid((4, 6), box=box)
    assert np.allclose(mesh.p.min(axis=1), box[0])
    assert np.allclose(mesh.p.max(axis=1), box[1])
    assert mesh.t.shape == (4, 24)


def test_simplicial():
    quads = synthetic.n_cube_grid((3, 3))
    tris = synthetic.n_cube_grid((3, 3), simplicial=True)
    assert tris.t.shape[0] == 3
    assert tris.t.shape[1] == 2 * quads.t.shape[1]


def test_named_boundaries():
    mesh = synthetic.n_cube_grid((2, 2, 2))
    assert set(mesh.boundaries) == {'left', 'right', 'bottom', 'top', 'front', 'back'}
    for name in mesh.boundaries:
        assert len(mesh.boundaries[name]) == 4


def test_line():
    mesh = synthetic.n_cube_grid((5,), box=[[1], [2]])
    assert mesh.p.shape == (1, 6)
    assert mesh.t.shape == (2, 5)


def test_invalid():
    with pytest.raises(ValueError):
        synthetic.n_cube_grid((2, 2, 2, 2))
    with pytest.raises(ValueError):
        synthetic.n_cube_grid((2, 2), box=[[0, 0, 0], [1, 1, 1]])
