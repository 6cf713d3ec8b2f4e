"""Fast Explicit Diffusion step sizes.

After Grewenig, Weickert and Bruhn, "From box filtering to fast explicit
diffusion" (DAGM 2010), and Grewenig, Weickert, Schroers and Bruhn, "Cyclic
schemes for PDE-based image analysis" (2013).
"""

from __future__ import annotations

import math


def is_prime(n):
    """Return whether ``n`` is a prime number."""
    if n < 2:
        return False
    if n < 4:
        return True
    if n % 2 == 0:
        return False
    return all(n % divisor for divisor in range(3, math.isqrt(n) + 1, 2))


def fed_tau_by_process_time(total_time, cycles, tau_max, reordering):
    """Step sizes for one of ``cycles`` equal cycles reaching ``total_time``."""
    return fed_tau_by_cycle_time(total_time / cycles, tau_max, reordering)


def fed_tau_by_cycle_time(t, tau_max, reordering):
    """The fewest FED step sizes whose sum reaches the cycle time ``t``."""
    n = max(0, math.ceil(math.sqrt(3.0 * t / tau_max + 0.25) - 0.5 - 1.0e-8))
    if n == 0:
        return []
    scale = 3.0 * t / (tau_max * (n * (n + 1)))
    return fed_tau_internal(n, scale, tau_max, reordering)


def fed_tau_internal(n, scale, tau_max, reordering):
    """The ``n`` FED step sizes for the given scale, optionally reordered for stability."""
    c = 1.0 / (4.0 * n + 2.0)
    d = scale * tau_max / 2.0
    tau = [d / math.cos(math.pi * (2.0 * k + 1.0) * c) ** 2 for k in range(n)]
    if not reordering or n < 2:
        return tau

    # Kappa cycle with kappa = n / 2, taken modulo the next prime above n.
    kappa = n // 2
    prime = n + 1
    while not is_prime(prime):
        prime += 1

    reordered = []
    k = 0
    for _ in range(n):
        index = ((k + 1) * kappa) % prime - 1
        while not 0 <= index < n:
            k += 1
            index = ((k + 1) * kappa) % prime - 1
        k += 1
        reordered.append(tau[index])
    return reordered