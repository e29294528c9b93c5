"""Weak forms of the operators making up the heat method"""

from skfem import BilinearForm, LinearForm
from skfem.helpers import dot, grad

from heatdist.math import linalg


@BilinearForm
def mass(u, v, w):
    return u * v


@BilinearForm
def stiffness(u, v, w):
    return dot(grad(u), grad(v))


@LinearForm
def normalized_gradient(v, w):
    """Integrate the descent direction of `w['u']` against the gradient of the test functions

    The gradient is normalized pointwise, so that the potential recovered from it
    has a gradient of unit length. Where the gradient vanishes exactly,
    the direction is undefined; those points do not contribute.
    """
    direction = -linalg.normalized(w['u'].grad, axis=0, ignore_zeros=True)
    return dot(direction, grad(v))
