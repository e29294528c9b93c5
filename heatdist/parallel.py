"""Collective reductions over the partitions of a discretization

Every process cooperating on a distance computation holds a communicator,
and all of them must call the same reductions in the same order;
a reduction that is skipped on one partition blocks the others indefinitely.

The communicator is always passed around explicitly.
"""

import numpy as np


REDUCTIONS = ('sum', 'min', 'max')


class Communicator(object):
    """Minimal collective interface required by the distance computation"""

    size = 1
    rank = 0

    def allreduce(self, value, op):
        """Combine a scalar over all participating processes

        Parameters
        ----------
        value : float or int
            local contribution of this process
        op : {'sum', 'min', 'max'}

        Returns
        -------
        float or int
            the reduced value, identical on all processes
        """
        raise NotImplementedError


class SerialCommunicator(Communicator):
    """A single process owning the whole discretization"""

    def allreduce(self, value, op):
        check_op(op)
        return value


class MPICommunicator(Communicator):
    """Wraps an mpi4py communicator

    Suitable for the reductions of `global_sum` and `global_min`, for instance to estimate
    the cell size of a partitioned mesh. `DistanceFunction` refuses it when it spans more
    than one process, since its linear solves only see the local discretization

    Parameters
    ----------
    comm : mpi4py.MPI.Comm, optional
        defaults to COMM_WORLD
    """

    def __init__(self, comm=None):
        from mpi4py import MPI
        if comm is None:
            comm = MPI.COMM_WORLD
        self.comm = comm
        self.ops = {'sum': MPI.SUM, 'min': MPI.MIN, 'max': MPI.MAX}

    @property
    def size(self):
        return self.comm.Get_size()

    @property
    def rank(self):
        return self.comm.Get_rank()

    def allreduce(self, value, op):
        check_op(op)
        return self.comm.allreduce(value, op=self.ops[op])


def check_op(op):
    if op not in REDUCTIONS:
        raise ValueError('unknown reduction {!r}; expected one of {}'.format(op, REDUCTIONS))


def global_sum(comm, local):
    """Sum of all local contributions, as a python scalar"""
    return comm.allreduce(np.asarray(local).sum().item(), 'sum')


def global_min(comm, local):
    """Minimum over all local arrays

    Every process needs to participate, even when its local array is empty;
    an empty partition contributes +inf
    """
    local = np.asarray(local)
    value = local.min().item() if local.size else np.inf
    return comm.allreduce(value, 'min')
