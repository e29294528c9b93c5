import numpy as np


def normalized(array_of_vectors, axis=-1, ord=2, ignore_zeros=False, return_norm=False):
    """Return a copy of a, normalized along axis with the ord-norm

    Parameters
    ----------
    array_of_vectors : ndarray, [..., n_dim]
        input data to be normalized
    axis : int, optional
        axis to perform normalization along
    ord : see np.linalg.norm
        the normalization order. default 2 gives the euclidean norm
    ignore_zeros : bool
        if true, elements with norm zero are left zero
    return_norm : bool
        if true, the norms are returned

    Returns
    -------
    normalized : ndarray, [..., n_dim]
        normalized values; same shape as input array
    norms : ndarray, [...], float, optional
        the norms of the input vectors

    See Also
    --------
    np.linalg.norm, for the meaning of the ord parameter
    """
    array_of_vectors = np.asarray(array_of_vectors, dtype=float)
    norm = np.linalg.norm(array_of_vectors, ord, axis)
    norm = np.expand_dims(norm, axis)
    zeros = norm == 0
    if ignore_zeros:
        norm[zeros] = 1
    normed = array_of_vectors / norm
    if ignore_zeros:
        norm[zeros] = 0
    if return_norm:
        return normed, np.take(norm, 0, axis)
    else:
        return normed
