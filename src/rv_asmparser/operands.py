'''
predicados sobre operandos parseados y su materialización en la instrucción
'''

from __future__ import annotations
from typing import List, Union

from .ast import (
    Operand, RegisterKind, TokenOp, RegOp, AccessRegOp, ImmOp, MemOp,
)
from .expr import Expr, const_value, is_symbolic
from .utils import in_range, signed_range, unsigned_range

# Argumento ya materializado: entero o expresión simbólica sin resolver.
MCOperand = Union[int, Expr]

# ---------------- Predicados básicos ----------------

def is_token(op: Operand) -> bool:
    return isinstance(op, TokenOp)

def is_reg(op: Operand, kind: RegisterKind) -> bool:
    return isinstance(op, RegOp) and op.kind is kind

def is_access_reg(op: Operand) -> bool:
    return isinstance(op, AccessRegOp)

def is_imm(op: Operand, lo: int, hi: int) -> bool:
    """Inmediato constante dentro de [lo, hi]; False (no error) en otro caso."""
    return isinstance(op, ImmOp) and in_range(op.expr, lo, hi)

def is_mem(op: Operand, kind: RegisterKind, has_index: bool) -> bool:
    return (isinstance(op, MemOp)
            and op.reg_kind is kind
            and (has_index or not op.index))

def is_mem_disp12(op: Operand, kind: RegisterKind, has_index: bool) -> bool:
    return is_mem(op, kind, has_index) and in_range(op.disp, 0, 0xFFF)

def is_mem_disp20(op: Operand, kind: RegisterKind, has_index: bool) -> bool:
    return is_mem(op, kind, has_index) and in_range(op.disp, -524288, 524287)

# ---------------- Predicados por clase de operando ----------------

def is_pc_reg(op: Operand) -> bool: return is_reg(op, RegisterKind.PC)
def is_gr32(op: Operand) -> bool: return is_reg(op, RegisterKind.GR32)
def is_gr64(op: Operand) -> bool: return is_reg(op, RegisterKind.GR64)
def is_gr128(op: Operand) -> bool: return is_reg(op, RegisterKind.GR128)
def is_addr32(op: Operand) -> bool: return is_reg(op, RegisterKind.ADDR32)
def is_addr64(op: Operand) -> bool: return is_reg(op, RegisterKind.ADDR64)
def is_fp32(op: Operand) -> bool: return is_reg(op, RegisterKind.FP32)
def is_fp64(op: Operand) -> bool: return is_reg(op, RegisterKind.FP64)
def is_fp128(op: Operand) -> bool: return is_reg(op, RegisterKind.FP128)

def is_bd_addr32_disp12(op: Operand) -> bool: return is_mem_disp12(op, RegisterKind.ADDR32, False)
def is_bd_addr32_disp20(op: Operand) -> bool: return is_mem_disp20(op, RegisterKind.ADDR32, False)
def is_bd_addr64_disp12(op: Operand) -> bool: return is_mem_disp12(op, RegisterKind.ADDR64, False)
def is_bd_addr64_disp20(op: Operand) -> bool: return is_mem_disp20(op, RegisterKind.ADDR64, False)
def is_bdx_addr64_disp12(op: Operand) -> bool: return is_mem_disp12(op, RegisterKind.ADDR64, True)
def is_bdx_addr64_disp20(op: Operand) -> bool: return is_mem_disp20(op, RegisterKind.ADDR64, True)

def _unsigned(n: int):
    lo, hi = unsigned_range(n)
    def pred(op: Operand) -> bool:
        return is_imm(op, lo, hi)
    pred.__name__ = f"is_u{n}_imm"
    return pred

def _signed(n: int):
    lo, hi = signed_range(n)
    def pred(op: Operand) -> bool:
        return is_imm(op, lo, hi)
    pred.__name__ = f"is_s{n}_imm"
    return pred

is_u4_imm = _unsigned(4)
is_u6_imm = _unsigned(6)
is_u8_imm = _unsigned(8)
is_u12_imm = _unsigned(12)
is_u16_imm = _unsigned(16)
is_u20_imm = _unsigned(20)
is_u32_imm = _unsigned(32)
is_s8_imm = _signed(8)
is_s12_imm = _signed(12)
is_s16_imm = _signed(16)
is_s20_imm = _signed(20)
is_s32_imm = _signed(32)

def is_pcrel(op: Operand, n: int) -> bool:
    """Destino relativo al PC: símbolo sin resolver o constante de n bits con signo."""
    if not isinstance(op, ImmOp):
        return False
    if is_symbolic(op.expr):
        return True
    lo, hi = signed_range(n)
    return in_range(op.expr, lo, hi)

def is_pcrel12(op: Operand) -> bool: return is_pcrel(op, 12)
def is_pcrel20(op: Operand) -> bool: return is_pcrel(op, 20)

# ---------------- Materialización ----------------
# Cada render_* añade a `out` los argumentos que consume el codificador.
# No consultan el flujo de tokens: dependen solo del operando ya parseado.

def _lower_expr(expr: Expr | None) -> MCOperand:
    """Constantes como entero; una expresión ausente vale 0; el resto se deja simbólico."""
    if expr is None:
        return 0
    v = const_value(expr)
    return v if v is not None else expr

def render_reg(op: Operand, out: List[MCOperand]) -> None:
    assert isinstance(op, RegOp), "Not a register"
    out.append(op.num)

def render_access_reg(op: Operand, out: List[MCOperand]) -> None:
    assert isinstance(op, AccessRegOp), "Invalid operand type"
    out.append(op.num)

def render_imm(op: Operand, out: List[MCOperand]) -> None:
    assert isinstance(op, ImmOp), "Not an immediate"
    out.append(_lower_expr(op.expr))

def render_bd_addr(op: Operand, out: List[MCOperand]) -> None:
    assert isinstance(op, MemOp) and op.index == 0, "Invalid operand type"
    out.append(op.base)
    out.append(_lower_expr(op.disp))

def render_bdx_addr(op: Operand, out: List[MCOperand]) -> None:
    assert isinstance(op, MemOp), "Invalid operand type"
    out.append(op.base)
    out.append(_lower_expr(op.disp))
    out.append(op.index)
