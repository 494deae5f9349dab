# structengine/kernel/dynamics.py
"""Direct time integration (Newmark-β), Rayleigh damping and response spectrum combination."""

import logging
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np
import scipy.linalg

logger = logging.getLogger(__name__)

# A spectrum is either Sa(T) or a table (periods, accelerations)
Spectrum = Union[Callable[[float], float], Tuple[Sequence[float], Sequence[float]]]


def rayleigh_coefficients(damping_ratio: float, omega1: float, omega2: float) -> Tuple[float, float]:
    """
    Rayleigh damping C = a·M + b·K with the same damping ratio ζ at ω1 and ω2.

        ζ(ω) = a/(2ω) + b·ω/2
        a = 2ζ·ω1·ω2 / (ω1 + ω2)
        b = 2ζ / (ω1 + ω2)

    With ω1 == ω2 this gives exactly ζ at that frequency.
    """
    if omega1 <= 0 or omega2 <= 0:
        raise ValueError(f"Rayleigh damping needs positive frequencies, got {omega1}, {omega2}")
    a = 2.0 * damping_ratio * omega1 * omega2 / (omega1 + omega2)
    b = 2.0 * damping_ratio / (omega1 + omega2)
    return a, b


def newmark_integrate(
    K: np.ndarray,
    M: np.ndarray,
    C: np.ndarray,
    F: np.ndarray,
    dt: float,
    d0: Optional[np.ndarray] = None,
    v0: Optional[np.ndarray] = None,
    beta: float = 0.25,
    gamma: float = 0.5,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Integrate M·a + C·v + K·d = F(t) with the Newmark-β method.

    The default β = 1/4, γ = 1/2 is the average acceleration rule:
    unconditionally stable, no numerical damping, period elongation
    of about (ω·dt)²/12.

    Each step solves for the new acceleration with the constant matrix
    M + γ·dt·C + β·dt²·K, factored once.

    Args:
        K, M, C: Stiffness, mass and damping over the free DOFs (n x n)
        F: Load history, shape (n_steps + 1, n); row i is the load at t = i·dt
        dt: Time step
        d0, v0: Initial displacement and velocity (zeros by default)

    Returns:
        (D, V, A): displacement, velocity and acceleration histories,
        each of shape (n_steps + 1, n)

    Raises:
        ValueError: If a DOF has no mass or dt is not positive
    """
    if dt <= 0:
        raise ValueError(f"Time step must be positive, got {dt}")
    n = K.shape[0]
    F = np.atleast_2d(F)
    if F.shape[1] != n:
        raise ValueError(f"Load history has {F.shape[1]} columns for {n} DOFs")
    if np.any(np.diag(M) <= 0):
        raise ValueError("Mass matrix has non-positive diagonal entries (free DOF without mass)")

    n_points = F.shape[0]
    D = np.zeros((n_points, n))
    V = np.zeros((n_points, n))
    A = np.zeros((n_points, n))
    if d0 is not None:
        D[0] = d0
    if v0 is not None:
        V[0] = v0

    # Initial acceleration from equilibrium at t = 0
    A[0] = scipy.linalg.solve(M, F[0] - C @ V[0] - K @ D[0], assume_a='pos')

    lu = scipy.linalg.lu_factor(M + gamma * dt * C + beta * dt**2 * K)

    for i in range(n_points - 1):
        # Predictors
        dp = D[i] + dt * V[i] + dt**2 * (0.5 - beta) * A[i]
        vp = V[i] + dt * (1.0 - gamma) * A[i]

        A[i + 1] = scipy.linalg.lu_solve(lu, F[i + 1] - C @ vp - K @ dp)
        V[i + 1] = vp + gamma * dt * A[i + 1]
        D[i + 1] = dp + beta * dt**2 * A[i + 1]

    logger.debug("Newmark: %d steps of dt = %.3e on %d DOFs", n_points - 1, dt, n)
    return D, V, A


def spectral_acceleration(spectrum: Spectrum, period: float) -> float:
    """Sa at one period, from a callable or by linear interpolation of a table."""
    if callable(spectrum):
        return float(spectrum(period))
    periods, accelerations = spectrum
    return float(np.interp(period, periods, accelerations))


def srss(values: np.ndarray, axis: int = 0) -> np.ndarray:
    """Square root of the sum of squares of modal peaks."""
    return np.sqrt(np.sum(np.square(values), axis=axis))
