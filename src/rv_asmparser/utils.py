'''
rangos de n bits y comprobaciones de rango sobre expresiones
'''

from __future__ import annotations
from typing import Tuple

from .expr import Expr, const_value

def unsigned_range(n: int) -> Tuple[int, int]:
    """Intervalo cerrado [0, 2^n - 1] (sin signo de n bits)."""
    if n <= 0:
        raise ValueError("n debe ser positivo")
    return 0, (1 << n) - 1

def signed_range(n: int) -> Tuple[int, int]:
    """Intervalo cerrado [-(2^(n-1)), 2^(n-1)-1] (con signo de n bits)."""
    if n <= 0:
        raise ValueError("n debe ser positivo")
    return -(1 << (n - 1)), (1 << (n - 1)) - 1

def in_range(expr: Expr | None, lo: int, hi: int) -> bool:
    """True si `expr` es una constante dentro de [lo, hi].

    Una expresión simbólica nunca está en rango: no se fuerza su resolución.
    """
    if expr is None:
        return False
    v = const_value(expr)
    return v is not None and lo <= v <= hi
