"""Distance to a circle on a rectangular grid, as used to position a shifted boundary

Run with `python -m examples.circle` from the repository root
"""
import logging

import numpy as np

from heatdist import levelset, synthetic
from heatdist.discretization import Discretization
from heatdist.distance import DistanceFunction


if __name__ == '__main__':
    import matplotlib.pyplot as plt
    logging.basicConfig(level=logging.DEBUG)

    mesh = synthetic.n_cube_grid((64, 32), box=[[0, 0], [2, 1]], simplicial=True)
    discretization = Discretization(mesh, order=2)
    distance_function = DistanceFunction(discretization, diffusion_coefficient=1.0)

    center, radius = np.array([0.7, 0.5]), 0.3
    distance = distance_function.compute_distance(levelset.circle(center, radius), smooth_steps=0, transform=True)

    exact = np.abs(np.linalg.norm(discretization.dof_locations - center[:, None], axis=0) - radius)
    print('max error:', np.abs(distance - exact).max())

    fig, axes = plt.subplots(2, 1)
    discretization.plot_field(distance, ax=axes[0])
    discretization.plot_field(distance - exact, ax=axes[1], cmap='seismic')
    plt.show()
