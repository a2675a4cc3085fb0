'''
identificadores canónicos de registros y tablas número-asm → registro
'''

from __future__ import annotations
import enum
from typing import List, Tuple

def _reg_names() -> List[str]:
    names = ["NOREG", "PC"]
    names += [f"X{n}" for n in range(32)]
    names += [f"F{n}" for n in range(32)]
    # pares par/impar para los operandos de 128 bits
    names += [f"X{n}Q" for n in range(0, 16, 2)]
    names += [f"F{n}Q" for n in range(0, 16, 2)]
    return names

# Identificador canónico del registro (no es el dígito de la sintaxis asm).
# NOREG = 0 significa "sin registro".
Reg = enum.IntEnum("Reg", [(name, i) for i, name in enumerate(_reg_names())])

# Las tablas asm → canónico tienen 16 entradas; 0 (NOREG) marca un registro
# inexistente. No se usa la clase de registro directamente porque
# define el orden de asignación, no la numeración.
MAX_REG_INDEX = 15

def _table(prefix: str) -> Tuple[int, ...]:
    return tuple(Reg[f"{prefix}{n}"] for n in range(MAX_REG_INDEX + 1))

def _pair_table(prefix: str) -> Tuple[int, ...]:
    return tuple(Reg[f"{prefix}{n}Q"] if n % 2 == 0 else Reg.NOREG
                 for n in range(MAX_REG_INDEX + 1))

GR32_REGS: Tuple[int, ...] = _table("X")
GR64_REGS: Tuple[int, ...] = GR32_REGS
GR128_REGS: Tuple[int, ...] = _pair_table("X")
FP32_REGS: Tuple[int, ...] = _table("F")
FP64_REGS: Tuple[int, ...] = FP32_REGS
FP128_REGS: Tuple[int, ...] = _pair_table("F")
PC_REGS: Tuple[int, ...] = (Reg.PC,) + (Reg.NOREG,) * MAX_REG_INDEX

def lookup(table: Tuple[int, ...], number: int) -> int:
    """Traduce un número asm a su id canónico; NOREG si no existe."""
    if 0 <= number < len(table):
        return table[number]
    return Reg.NOREG
