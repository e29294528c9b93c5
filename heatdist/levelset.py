"""Level set functions and transformations

Level sets here are normalized to [0, 1], with the implicit boundary at the 0.5 contour.
Callables take points as an array of shape [n_dim, n_points].
"""

import numpy as np


def peak_transform(values):
    """Map a level set in [0, 1] to a source peaking at its 0.5 contour

    x -> 4 x (1 - x) inside [0, 1], and 0 outside of it

    Parameters
    ----------
    values : ndarray, [...], float

    Returns
    -------
    ndarray, [...], float
        transformed copy, within [0, 1]
    """
    x = np.asarray(values, dtype=float)
    inside = (x >= 0) & (x <= 1)
    return np.where(inside, 4 * x * (1 - x), 0.0)


def circle(center, radius, sharpness=8.0):
    """Smoothed indicator of a circle, or sphere in 3d

    Parameters
    ----------
    center : array_like, [n_dim], float
    radius : float
    sharpness : float
        inverse width of the transition zone

    Returns
    -------
    callable
        level set that is 1 at the center, 0.5 on the circle, and tends to 0 outside it
    """
    center = np.asarray(center, dtype=float)

    def level_set(x):
        d = np.linalg.norm(x - center[:, None], axis=0) - radius
        return 1 / (1 + np.exp(d * sharpness))
    return level_set


def bump(center, width, height=0.5):
    """Gaussian bump

    Parameters
    ----------
    center : array_like, [n_dim], float
    width : float
        standard deviation of the bump
    height : float
        peak value. with a height of 0.5, the peak transform of the bump
        attains its maximum at the center

    Returns
    -------
    callable
    """
    center = np.asarray(center, dtype=float)

    def level_set(x):
        r2 = ((x - center[:, None]) ** 2).sum(axis=0)
        return height * np.exp(-r2 / (2 * width ** 2))
    return level_set
