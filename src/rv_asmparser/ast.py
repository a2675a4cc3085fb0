'''
dataclases de operandos parseados (Token, Reg, AccessReg, Imm, Mem) y sus constructores
'''

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Optional, Union

from .expr import Expr
from .lexer import SourceLoc

class RegisterKind(enum.Enum):
    """Clase de un operando registro (o de los registros de una dirección)."""
    PC = "PC"
    GR32 = "GR32"
    GR64 = "GR64"
    GR128 = "GR128"
    ADDR32 = "ADDR32"
    ADDR64 = "ADDR64"
    FP32 = "FP32"
    FP64 = "FP64"
    FP128 = "FP128"

# ---- Operandos ----
# Inmutables; viven solo durante el parseo y emparejamiento de una línea.

@dataclass(frozen=True)
class TokenOp:
    """Texto literal; solo se usa en la posición del mnemónico."""
    text: str
    start: Optional[SourceLoc] = None
    end: Optional[SourceLoc] = None

@dataclass(frozen=True)
class RegOp:
    """Registro `num` (id canónico) de clase `kind`."""
    kind: RegisterKind
    num: int
    start: Optional[SourceLoc] = None
    end: Optional[SourceLoc] = None

@dataclass(frozen=True)
class AccessRegOp:
    """Registro de acceso 0..15; no forma parte del espacio de registros."""
    num: int
    start: Optional[SourceLoc] = None
    end: Optional[SourceLoc] = None

@dataclass(frozen=True)
class ImmOp:
    """Inmediato: expresión constante o simbólica."""
    expr: Expr
    start: Optional[SourceLoc] = None
    end: Optional[SourceLoc] = None

@dataclass(frozen=True)
class MemOp:
    """Dirección base + desplazamiento + índice; base/índice 0 = ausente.

    `reg_kind` dice de qué tipo son los registros (ADDR32 o ADDR64).
    """
    reg_kind: RegisterKind
    base: int
    index: int
    disp: Expr
    start: Optional[SourceLoc] = None
    end: Optional[SourceLoc] = None

Operand = Union[TokenOp, RegOp, AccessRegOp, ImmOp, MemOp]

# ---- Constructores ----

def create_token(text: str, loc: Optional[SourceLoc]) -> TokenOp:
    return TokenOp(text, loc, loc)

def create_reg(kind: RegisterKind, num: int, start: Optional[SourceLoc],
               end: Optional[SourceLoc]) -> RegOp:
    return RegOp(kind, num, start, end)

def create_access_reg(num: int, start: Optional[SourceLoc],
                      end: Optional[SourceLoc]) -> AccessRegOp:
    assert 0 <= num <= 15, f"registro de acceso fuera de rango: {num}"
    return AccessRegOp(num, start, end)

def create_imm(expr: Expr, start: Optional[SourceLoc], end: Optional[SourceLoc]) -> ImmOp:
    return ImmOp(expr, start, end)

def create_mem(reg_kind: RegisterKind, base: int, disp: Expr, index: int,
               start: Optional[SourceLoc], end: Optional[SourceLoc], *,
               allow_index: bool = False) -> MemOp:
    """Crea un operando de memoria.

    Precondición: solo se pasa un índice distinto de 0 cuando quien llama ya
    comprobó que la forma de direccionamiento admite índice (`allow_index`).
    """
    assert reg_kind in (RegisterKind.ADDR32, RegisterKind.ADDR64), f"clase de dirección inválida: {reg_kind}"
    assert allow_index or index == 0, "índice en una dirección que no lo admite"
    return MemOp(reg_kind, base, index, disp, start, end)
