"""
Heat method distance functions on finite element discretizations

Computes an approximate unsigned distance to the 0.5-contour of a level set,
by diffusing a source concentrated on that contour and recovering a potential
whose gradient matches the normalized gradient of the diffused field.
This avoids a direct Eikonal solve, and only requires a couple of symmetric positive
definite linear solves, which are well served by algebraic multigrid.

The intended application is the generation of distance fields for
shifted-boundary and immersed-boundary methods.

"""
