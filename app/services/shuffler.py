# app/services/shuffler.py
"""
Permutación determinista del orden de preguntas.

El orden nunca se guarda: se recalcula a partir del ID del intento, de modo que
un intento reanudado muestra siempre el mismo orden y cada intento ve uno distinto.
Solo aritmética entera para que el resultado sea reproducible entre procesos.
"""
from typing import Any, List, Sequence

FNV_OFFSET_BASIS = 0x811C9DC5
FNV_PRIME = 0x01000193
MASK_32 = 0xFFFFFFFF

# Constantes LCG de Numerical Recipes
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223

# Semilla usada si el hash resulta 0
FALLBACK_SEED = 0x9E3779B9


def seed_from(value: Any) -> int:
    """Hash FNV-1a de 32 bits sobre la forma texto del identificador (nunca 0)."""
    h = FNV_OFFSET_BASIS
    for byte in str(value).encode("utf-8"):
        h ^= byte
        h = (h * FNV_PRIME) & MASK_32
    return h or FALLBACK_SEED


class LCG:
    """Generador congruencial lineal de 32 bits."""

    def __init__(self, seed: int):
        self.state = seed & MASK_32

    def next(self) -> int:
        self.state = (LCG_MULTIPLIER * self.state + LCG_INCREMENT) & MASK_32
        return self.state


def shuffle(sequence: Sequence[Any], seed: Any) -> List[Any]:
    """
    Fisher-Yates guiado por el LCG. Devuelve una lista nueva; la entrada no se modifica.
    """
    items = list(sequence)
    rng = LCG(seed_from(seed))
    for i in range(len(items) - 1, 0, -1):
        j = rng.next() % (i + 1)
        items[i], items[j] = items[j], items[i]
    return items
