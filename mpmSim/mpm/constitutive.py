# -- Constitutive Models -- #

'''
Hyperelastic stress laws for MPM solids.

Every model maps a batch of deformation gradients F (N, dim, dim)
to the first Piola-Kirchhoff stress P = dPsi/dF and the strain
energy density Psi. The driver only needs P for the internal grid
forces, the stiffness modulus for the implicit system and the
dilatational wave speed for the CFL bound, so the models are
interchangeable strategy objects.

Lame parameters:
    mu     = E / (2 (1 + nu))
    lambda = E nu / ((1 + nu)(1 - 2 nu))

References:
-----------
Bonet & Wood (2008) -- Nonlinear continuum mechanics for finite
    element analysis
Stomakhin et al. (2012) -- Energetically consistent invertible
    elasticity

Sean Bowman [10/19/2026]
'''

from __future__ import annotations

import math
from typing import Protocol, TYPE_CHECKING

import numpy as np

from mpmSim.errors import ConfigurationError

if TYPE_CHECKING:
    from mpmSim.mpm.protocols import MaterialConfig


def lameParameters(youngsModulus: float, poissonRatio: float) -> tuple[float, float]:
    '''
    Convert (E, nu) to the Lame parameters.

    Parameters:
    -----------
    youngsModulus : float
        Young's modulus E [Pa]
    poissonRatio : float
        Poisson ratio nu, in [0, 0.5)

    Returns:
    --------
    tuple[float, float] : (mu, lambda) [Pa]
    '''
    mu = youngsModulus / (2.0 * (1.0 + poissonRatio))
    lam = youngsModulus * poissonRatio / ((1.0 + poissonRatio) * (1.0 - 2.0 * poissonRatio))
    return mu, lam


######################################################################
# -- Model Protocol -- #
######################################################################

class ConstitutiveModel(Protocol):
    '''Protocol for elastic stress laws.'''

    @property
    def name(self) -> str:
        '''Configuration name of the model.'''
        ...

    @property
    def stiffnessModulus(self) -> float:
        '''P-wave modulus lambda + 2 mu [Pa].'''
        ...

    def firstPiolaStress(self, F: np.ndarray) -> np.ndarray:
        '''
        First Piola-Kirchhoff stress for a batch of deformation gradients.

        Parameters:
        -----------
        F : np.ndarray
            Deformation gradients, shape (N, dim, dim)

        Returns:
        --------
        np.ndarray : Stress P [Pa], shape (N, dim, dim)
        '''
        ...

    def energyDensity(self, F: np.ndarray) -> np.ndarray:
        '''Strain energy per reference volume [J/m^dim], shape (N,).'''
        ...

    def waveSpeed(self, density: float) -> float:
        '''Dilatational wave speed sqrt((lambda + 2 mu) / rho) [m/s].'''
        ...


######################################################################
# -- Shared Helpers -- #
######################################################################

class _LameModel:
    '''Base for models parameterized by the Lame constants.'''

    _name = ''

    def __init__(self, youngsModulus: float, poissonRatio: float) -> None:
        self._youngsModulus = youngsModulus
        self._poissonRatio = poissonRatio
        self._mu, self._lambda = lameParameters(youngsModulus, poissonRatio)

    @property
    def name(self) -> str:
        return self._name

    @property
    def mu(self) -> float:
        '''Shear modulus [Pa].'''
        return self._mu

    @property
    def lam(self) -> float:
        '''First Lame parameter [Pa].'''
        return self._lambda

    @property
    def stiffnessModulus(self) -> float:
        return self._lambda + 2.0 * self._mu

    def waveSpeed(self, density: float) -> float:
        return math.sqrt(self.stiffnessModulus / density)

    def __repr__(self) -> str:
        return f'{type(self).__name__}(E={self._youngsModulus}, nu={self._poissonRatio})'


def _identityLike(F: np.ndarray) -> np.ndarray:
    return np.broadcast_to(np.eye(F.shape[-1]), F.shape)


def _trace(A: np.ndarray) -> np.ndarray:
    return np.trace(A, axis1=-2, axis2=-1)


def _transpose(A: np.ndarray) -> np.ndarray:
    return np.swapaxes(A, -1, -2)


######################################################################
# -- Small-Strain Linear Elasticity -- #
######################################################################

class LinearElastic(_LameModel):
    '''
    Small-strain linear elasticity.

    eps = (F + F^T)/2 - I
    P   = 2 mu eps + lambda tr(eps) I
    Psi = mu eps:eps + lambda/2 tr(eps)^2

    Not rotation invariant; valid only for small deformations.
    '''

    _name = 'linearElastic'

    def _strain(self, F: np.ndarray) -> np.ndarray:
        return 0.5 * (F + _transpose(F)) - _identityLike(F)

    def firstPiolaStress(self, F: np.ndarray) -> np.ndarray:
        eps = self._strain(F)
        trEps = _trace(eps)[:, np.newaxis, np.newaxis]
        return 2.0 * self._mu * eps + self._lambda * trEps * _identityLike(F)

    def energyDensity(self, F: np.ndarray) -> np.ndarray:
        eps = self._strain(F)
        return self._mu * np.sum(eps * eps, axis=(1, 2)) + 0.5 * self._lambda * _trace(eps) ** 2


######################################################################
# -- St. Venant-Kirchhoff -- #
######################################################################

class StVenantKirchhoff(_LameModel):
    '''
    St. Venant-Kirchhoff model (linear in Green strain).

    E   = (F^T F - I) / 2
    P   = F (2 mu E + lambda tr(E) I)
    Psi = mu E:E + lambda/2 tr(E)^2
    '''

    _name = 'stVenantKirchhoff'

    def _greenStrain(self, F: np.ndarray) -> np.ndarray:
        return 0.5 * (_transpose(F) @ F - _identityLike(F))

    def firstPiolaStress(self, F: np.ndarray) -> np.ndarray:
        E = self._greenStrain(F)
        trE = _trace(E)[:, np.newaxis, np.newaxis]
        S = 2.0 * self._mu * E + self._lambda * trE * _identityLike(F)
        return F @ S

    def energyDensity(self, F: np.ndarray) -> np.ndarray:
        E = self._greenStrain(F)
        return self._mu * np.sum(E * E, axis=(1, 2)) + 0.5 * self._lambda * _trace(E) ** 2


######################################################################
# -- Compressible Neo-Hookean -- #
######################################################################

class NeoHookean(_LameModel):
    '''
    Compressible Neo-Hookean model.

    P   = mu (F - F^-T) + lambda ln(J) F^-T
    Psi = mu/2 (tr(F^T F) - dim) - mu ln(J) + lambda/2 ln(J)^2

    J is clamped to a small positive value so inverted elements
    still produce a finite restoring stress.
    '''

    _name = 'neoHookean'
    _minJ = 1e-6

    def firstPiolaStress(self, F: np.ndarray) -> np.ndarray:
        J = np.maximum(np.linalg.det(F), self._minJ)[:, np.newaxis, np.newaxis]
        FinvT = _transpose(np.linalg.inv(F))
        return self._mu * (F - FinvT) + self._lambda * np.log(J) * FinvT

    def energyDensity(self, F: np.ndarray) -> np.ndarray:
        dim = F.shape[-1]
        logJ = np.log(np.maximum(np.linalg.det(F), self._minJ))
        trC = np.sum(F * F, axis=(1, 2))
        return 0.5 * self._mu * (trC - dim) - self._mu * logJ + 0.5 * self._lambda * logJ ** 2


######################################################################
# -- Fixed Corotated -- #
######################################################################

class FixedCorotated(_LameModel):
    '''
    Fixed corotated model (Stomakhin et al. 2012).

    F = R S (polar decomposition via SVD)
    P   = 2 mu (F - R) + lambda (J - 1) J F^-T
    Psi = mu |F - R|^2 + lambda/2 (J - 1)^2

    Robust under element inversion; the usual choice for MPM solids.
    '''

    _name = 'fixedCorotated'

    def _rotation(self, F: np.ndarray) -> np.ndarray:
        U, _, Vt = np.linalg.svd(F)
        R = U @ Vt

        # Keep R a proper rotation when F is inverted
        flip = np.linalg.det(R) < 0.0
        if np.any(flip):
            U = U.copy()
            U[flip, :, -1] *= -1.0
            R = U @ Vt
        return R

    def firstPiolaStress(self, F: np.ndarray) -> np.ndarray:
        R = self._rotation(F)
        J = np.linalg.det(F)[:, np.newaxis, np.newaxis]

        # J F^-T is the cofactor matrix; computed without inverting F
        cofactor = self._cofactor(F)
        return 2.0 * self._mu * (F - R) + self._lambda * (J - 1.0) * cofactor

    def energyDensity(self, F: np.ndarray) -> np.ndarray:
        R = self._rotation(F)
        J = np.linalg.det(F)
        diff = F - R
        return self._mu * np.sum(diff * diff, axis=(1, 2)) + 0.5 * self._lambda * (J - 1.0) ** 2

    @staticmethod
    def _cofactor(F: np.ndarray) -> np.ndarray:
        if F.shape[-1] == 2:
            cof = np.empty_like(F)
            cof[:, 0, 0] = F[:, 1, 1]
            cof[:, 0, 1] = -F[:, 1, 0]
            cof[:, 1, 0] = -F[:, 0, 1]
            cof[:, 1, 1] = F[:, 0, 0]
            return cof
        # 3D: rows of the cofactor are cross products of the other two rows
        cof = np.empty_like(F)
        cof[:, 0] = np.cross(F[:, 1], F[:, 2])
        cof[:, 1] = np.cross(F[:, 2], F[:, 0])
        cof[:, 2] = np.cross(F[:, 0], F[:, 1])
        return cof


######################################################################
# -- Model Factory -- #
######################################################################

def createConstitutiveModel(material: MaterialConfig) -> ConstitutiveModel:
    '''
    Create a constitutive model from material parameters.

    Parameters:
    -----------
    material : MaterialConfig
        Model name, Young's modulus and Poisson ratio

    Returns:
    --------
    ConstitutiveModel : Model instance

    Raises:
    -------
    ConfigurationError : If the model name is unknown
    '''
    models = {
        'linearElastic': LinearElastic,
        'stVenantKirchhoff': StVenantKirchhoff,
        'neoHookean': NeoHookean,
        'fixedCorotated': FixedCorotated,
    }
    modelClass = models.get(material.model)
    if modelClass is None:
        raise ConfigurationError(f'Unknown constitutive model: {material.model}')
    return modelClass(material.youngsModulus, material.poissonRatio)
