"""Configuración del parser: features activas y tabla de las direcciones de 64 bits."""

from __future__ import annotations
import argparse
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .isa import ALL_FEATURES, FEATURE_NAMES, Feature
from .regs import GR32_REGS, GR64_REGS

_NAME_TO_FEATURE: Dict[str, Feature] = {name: bit for bit, name in FEATURE_NAMES.items()}

# Tablas que pueden ligarse a los puntos de entrada BDAddr64/BDXAddr64.
ADDR64_TABLES: Dict[str, Tuple[int, ...]] = {
    "GR32": GR32_REGS,
    "GR64": GR64_REGS,
}

def parse_features(text: str) -> Feature:
    """Parsea una lista estilo -mattr: '+m,+f,-d', 'm,a' o 'all'.

    Lanza ValueError con el nombre de la feature desconocida.
    """
    mask = Feature.NONE
    for item in (s.strip() for s in text.split(",")):
        if not item:
            continue
        enable = not item.startswith("-")
        name = item.lstrip("+-").lower()
        if name == "all":
            bits = ALL_FEATURES
        elif name in _NAME_TO_FEATURE:
            bits = _NAME_TO_FEATURE[name]
        else:
            raise ValueError(f"feature desconocida: '{name}'")
        mask = (mask | bits) if enable else (mask & ~bits)
    return Feature(mask)

@dataclass
class AsmConfig:
    """Configuración de una ejecución; las features se fijan una sola vez."""
    features: Feature = Feature.NONE
    addr64_table: str = "GR64"
    filename: Optional[str] = None

    def __post_init__(self):
        if self.addr64_table not in ADDR64_TABLES:
            raise ValueError(f"tabla de direcciones desconocida: '{self.addr64_table}'")

    @property
    def addr64_regs(self) -> Tuple[int, ...]:
        return ADDR64_TABLES[self.addr64_table]

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "AsmConfig":
        return cls(
            features=parse_features(args.mattr or ""),
            addr64_table=args.addr64_table,
            filename=args.source,
        )
