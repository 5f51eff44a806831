"""
Numba-accelerated computational kernels for the channel solver.

These JIT-compiled functions run the per-interface and per-cell loops of every
substep on preallocated arrays, so the frame loop does not allocate.
"""

import numpy as np
from numba import njit, prange

# Floor applied to the hydraulic radius before R^(4/3)
RADIUS_FLOOR = 1e-8


@njit(fastmath=True)
def physical_flux_kernel(h: float, q: float, g: float, min_depth: float):
    """Compute physical flux for 1D shallow water equations (JIT-compiled).

    The physical flux for the shallow water (Saint-Venant) system is:
        F(U) = [q, q²/h + 0.5*g*h²]ᵀ

    where U = [h, q]ᵀ is the conserved variables vector:
        - h: water depth (m)
        - q = h*u: discharge per unit width (m²/s)

    Args:
        h: Water depth (m), non-negative
        q: Discharge per unit width (m²/s)
        g: Gravitational acceleration (m/s²)
        min_depth: Dry threshold (m)

    Returns:
        tuple: (mass flux, momentum flux)

    Note:
        The advective term q²/h is dropped when h <= min_depth.
    """
    pressure = 0.5 * g * h * h
    if h > min_depth:
        return q, q * q / h + pressure
    return q, pressure


@njit(fastmath=True)
def rusanov_flux_kernel(h_g: float, q_g: float, h_d: float, q_d: float,
                        g: float, min_depth: float):
    """Rusanov (local Lax-Friedrichs) numerical flux kernel (JIT-compiled).

    Computes the Rusanov flux using local wave speed estimates:
        F̂_Rus(U_L, U_R) = 1/2 * [F(U_L) + F(U_R) - α(U_R - U_L)]

    where α = max(|u_L| + c_L, |u_R| + c_R) and c = √(gh) is the gravity wave
    celerity. Velocity and celerity are taken as zero on a dry side
    (h <= min_depth), so a dry neighbour contributes no signal speed.

    Args:
        h_g: Left (gauche) depth (m)
        q_g: Left discharge (m²/s)
        h_d: Right (droite) depth (m)
        q_d: Right discharge (m²/s)
        g: Gravitational acceleration (m/s²)
        min_depth: Dry threshold (m)

    Returns:
        tuple: (F̂_h, F̂_q)
    """
    u_g = q_g / h_g if h_g > min_depth else 0.0
    u_d = q_d / h_d if h_d > min_depth else 0.0
    c_g = np.sqrt(g * h_g) if h_g > min_depth else 0.0
    c_d = np.sqrt(g * h_d) if h_d > min_depth else 0.0

    alpha = max(abs(u_g) + c_g, abs(u_d) + c_d)

    fh_g, fq_g = physical_flux_kernel(h_g, q_g, g, min_depth)
    fh_d, fq_d = physical_flux_kernel(h_d, q_d, g, min_depth)

    flux_h = 0.5 * (fh_g + fh_d) - 0.5 * alpha * (h_d - h_g)
    flux_q = 0.5 * (fq_g + fq_d) - 0.5 * alpha * (q_d - q_g)
    return flux_h, flux_q


@njit(fastmath=True)
def interface_flux_kernel(h: np.ndarray, q: np.ndarray,
                          h_left: float, q_left: float,
                          h_right: float, q_right: float,
                          g: float, min_depth: float,
                          fh: np.ndarray, fq: np.ndarray):
    """Fill the interface flux arrays for one substep (JIT-compiled).

    Interface i separates cell i-1 and cell i. The two boundary interfaces
    use the ghost states:
        - interface 0: (ghost_left, cell 0)
        - interface N: (cell N-1, ghost_right)

    Args:
        h, q: Cell state arrays of shape (N,)
        h_left, q_left: Upstream ghost state
        h_right, q_right: Downstream ghost state
        g: Gravitational acceleration (m/s²)
        min_depth: Dry threshold (m)
        fh, fq: Output arrays of shape (N+1,), modified in place
    """
    n_cells = h.shape[0]

    flux_h, flux_q = rusanov_flux_kernel(h_left, q_left, h[0], q[0], g, min_depth)
    fh[0] = flux_h
    fq[0] = flux_q

    for i in range(1, n_cells):
        flux_h, flux_q = rusanov_flux_kernel(h[i - 1], q[i - 1], h[i], q[i], g, min_depth)
        fh[i] = flux_h
        fq[i] = flux_q

    flux_h, flux_q = rusanov_flux_kernel(h[n_cells - 1], q[n_cells - 1], h_right, q_right, g, min_depth)
    fh[n_cells] = flux_h
    fq[n_cells] = flux_q


@njit(fastmath=True)
def max_wave_speed_kernel(h: np.ndarray, q: np.ndarray, g: float, min_depth: float):
    """Scan the state for the fastest signal speed and the deepest cell (JIT-compiled).

        λ_max = max_i (|u_i| + √(g h_i))   over wet cells (h_i > min_depth)

    Args:
        h, q: Cell state arrays of shape (N,)
        g: Gravitational acceleration (m/s²)
        min_depth: Dry threshold (m)

    Returns:
        tuple: (λ_max, h_max); λ_max is 0 on a fully dry domain
    """
    lambda_max = 0.0
    h_max = 0.0
    for i in range(h.shape[0]):
        if h[i] > h_max:
            h_max = h[i]
        if h[i] > min_depth:
            speed = abs(q[i] / h[i]) + np.sqrt(g * h[i])
            if speed > lambda_max:
                lambda_max = speed
    return lambda_max, h_max


@njit(fastmath=True)
def manning_slope_kernel(u: float, radius: float, manning_n: float) -> float:
    """Manning friction slope (JIT-compiled).

        S_f = n² u|u| / R^(4/3)

    The u|u| product keeps the sign of the velocity so friction always opposes
    the flow. R is floored at RADIUS_FLOOR before exponentiation.
    """
    r = max(radius, RADIUS_FLOOR)
    return manning_n * manning_n * u * abs(u) / r ** (4.0 / 3.0)


@njit(fastmath=True)
def rectangular_radius_kernel(h: np.ndarray, width: float, radius: np.ndarray):
    """Hydraulic radius of a rectangular channel of width B (JIT-compiled).

        R = B h / (B + 2h)

    Args:
        h: Depth array of shape (N,)
        width: Channel width B (m)
        radius: Output array of shape (N,), modified in place
    """
    for i in range(h.shape[0]):
        area = width * h[i]
        perimeter = width + 2.0 * h[i]
        radius[i] = area / perimeter if perimeter > 0.0 else 0.0


@njit(fastmath=True, parallel=True)
def finite_volume_update_kernel(h: np.ndarray, q: np.ndarray,
                                fh: np.ndarray, fq: np.ndarray,
                                radius: np.ndarray,
                                h_new: np.ndarray, q_new: np.ndarray,
                                dt: float, dx: float, g: float,
                                manning_n: float, bed_slope: float,
                                min_depth: float):
    """Explicit Euler finite volume update with friction source (JIT-compiled, parallelized).

    For each cell i:
        ΔH = (Δt/Δx) (F̂h_{i+1} - F̂h_i)
        ΔQ = (Δt/Δx) (F̂q_{i+1} - F̂q_i)
        S  = Δt g H_i (S0 - S_f)            (only if H_i > min_depth)
        H_i^{n+1} = max(H_i - ΔH, 0)
        Q_i^{n+1} = Q_i - ΔQ + S

    Cells whose new depth falls below min_depth are set to H = Q = 0 exactly.

    Every iteration reads the previous state and writes only index i of the
    scratch arrays, so the loop is safe to run with prange.

    Args:
        h, q: Current state of shape (N,)
        fh, fq: Interface fluxes of shape (N+1,)
        radius: Hydraulic radius per cell of shape (N,)
        h_new, q_new: Output state of shape (N,), modified in place
        dt: Substep Δt (s)
        dx: Cell width Δx (m)
        g: Gravitational acceleration (m/s²)
        manning_n: Manning roughness
        bed_slope: Bed slope S0
        min_depth: Dry threshold (m)
    """
    n_cells = h.shape[0]
    ratio = dt / dx

    for i in prange(n_cells):
        dh = ratio * (fh[i + 1] - fh[i])
        dq = ratio * (fq[i + 1] - fq[i])

        source_q = 0.0
        if h[i] > min_depth:
            u = q[i] / h[i]
            sf = manning_slope_kernel(u, radius[i], manning_n)
            source_q = dt * g * h[i] * (bed_slope - sf)

        hn = max(h[i] - dh, 0.0)
        qn = q[i] - dq + source_q

        if hn < min_depth:
            hn = 0.0
            qn = 0.0

        h_new[i] = hn
        q_new[i] = qn
