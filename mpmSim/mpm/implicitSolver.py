# -- Implicit Grid Velocity Solve -- #

'''
Linearized backward-Euler update of the grid velocities.

On the active grid nodes (nodes that received mass) the implicit
update solves

    (M + dt^2 K) v_new = M v_old + dt (f_int + M g)

where M is the lumped (diagonal) node mass and K an isotropic
stiffness approximation assembled from the particle stencils:

    K_ij = sum_p V_p k (grad w_ip . grad w_jp)

with k the material P-wave modulus. The same scalar system applies
to every velocity component, so it is assembled once and solved per
axis. A is symmetric positive definite (M > 0 and K is a sum of
Gram matrices), so conjugate gradients is the primary solver; a
direct solve is the fallback when CG stalls.

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

import logging

import numpy as np
import scipy.sparse as sps
import scipy.sparse.linalg as spla

from mpmSim import constants as const
from mpmSim.core.sparseMatrix import SparseMatrix
from mpmSim.errors import ShapeMismatchError

logger = logging.getLogger(__name__)


######################################################################
# -- Assembly -- #
######################################################################

def assembleGridSystem(
    activeNodes: np.ndarray,
    nodeIndices: np.ndarray,
    weightGradients: np.ndarray,
    volumes: np.ndarray,
    modulus: float,
    nodeMasses: np.ndarray,
    dt: float,
) -> SparseMatrix:
    '''
    Assemble A = M + dt^2 K on the active grid degrees of freedom.

    Parameters:
    -----------
    activeNodes : np.ndarray
        Sorted flat indices of the active nodes, shape (M,)
    nodeIndices : np.ndarray
        Flat node index of every stencil entry, shape (N, S)
    weightGradients : np.ndarray
        Weight gradients grad w_ip [1/m], shape (N, S, dim)
    volumes : np.ndarray
        Current particle volumes [m^dim], shape (N,)
    modulus : float
        Stiffness modulus k [Pa]
    nodeMasses : np.ndarray
        Mass of each active node [kg], shape (M,)
    dt : float
        Time step [s]

    Returns:
    --------
    SparseMatrix : Row-major system matrix of shape (M, M)
    '''
    activeNodes = np.asarray(activeNodes)
    numDofs = activeNodes.shape[0]
    if nodeMasses.shape != (numDofs,):
        raise ShapeMismatchError(
            f'Expected {numDofs} node masses, got shape {nodeMasses.shape}'
        )
    if nodeIndices.shape != weightGradients.shape[:2]:
        raise ShapeMismatchError(
            f'Stencil shapes differ: {nodeIndices.shape} vs {weightGradients.shape[:2]}'
        )

    # Map flat node index -> row of the system
    dofs = np.minimum(np.searchsorted(activeNodes, nodeIndices), max(numDofs - 1, 0))

    # Stencil nodes without mass carry no stiffness
    if numDofs:
        valid = activeNodes[dofs] == nodeIndices
        weightGradients = weightGradients * valid[..., np.newaxis]

    # Pairwise gradient products per particle, shape (N, S, S)
    gram = np.einsum('psd,ptd->pst', weightGradients, weightGradients)
    scale = (dt * dt * modulus) * volumes[:, np.newaxis, np.newaxis]
    values = (scale * gram).ravel()

    stencilSize = nodeIndices.shape[1]
    rows = np.repeat(dofs, stencilSize, axis=1).ravel()
    cols = np.tile(dofs, (1, stencilSize)).ravel()

    diag = np.arange(numDofs)
    coo = sps.coo_matrix(
        (
            np.concatenate([values, nodeMasses]),
            (np.concatenate([rows, diag]), np.concatenate([cols, diag])),
        ),
        shape=(numDofs, numDofs),
    )

    system = SparseMatrix.fromScipy(coo)
    logger.debug('Assembled implicit system: %d dofs, %d nonzeros', numDofs, system.nonZeros())
    return system


######################################################################
# -- Solve -- #
######################################################################

def solveGridSystem(system: SparseMatrix, rhs: np.ndarray) -> np.ndarray:
    '''
    Solve A x = b for one or more right-hand sides.

    Parameters:
    -----------
    system : SparseMatrix
        Square SPD system matrix, shape (M, M)
    rhs : np.ndarray
        Right-hand side(s), shape (M,) or (M, k)

    Returns:
    --------
    np.ndarray : Solution with the shape of rhs
    '''
    if system.rows != system.cols:
        raise ShapeMismatchError(f'System matrix must be square, got {system.shape}')
    rhs = np.asarray(rhs, dtype=float)
    if rhs.shape[0] != system.rows:
        raise ShapeMismatchError(
            f'Right-hand side has {rhs.shape[0]} rows, system has {system.rows}'
        )

    A = system.toScipy().tocsr()
    columns = rhs.reshape(rhs.shape[0], -1)
    solution = np.zeros_like(columns)

    for k in range(columns.shape[1]):
        b = columns[:, k]
        if not np.any(b):
            continue

        iterations = 0

        def countIteration(_xk: np.ndarray) -> None:
            nonlocal iterations
            iterations += 1

        x, info = spla.cg(
            A, b,
            rtol=const.cgTolerance,
            maxiter=const.cgMaxIterations,
            callback=countIteration,
        )

        if info != 0:
            logger.warning(
                'CG did not converge on component %d (info=%d); falling back to spsolve', k, info,
            )
            x = spla.spsolve(A.tocsc(), b)

        residual = np.linalg.norm(A @ x - b) / max(np.linalg.norm(b), const.divisionEpsilon)
        logger.debug('Component %d solved: %d CG iterations, relative residual %.2e', k, iterations, residual)
        solution[:, k] = x

    return solution.reshape(rhs.shape)
