'''
tabla de emparejamiento: clases de operando, features y descriptores de instrucción
'''

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from . import operands as O
from .ast import Operand

class Feature(enum.IntFlag):
    """Features opcionales del subtarget (bits de la máscara)."""
    NONE = 0
    FEATURE_64BIT = 1 << 0
    FEATURE_M = 1 << 1
    FEATURE_A = 1 << 2
    FEATURE_F = 1 << 3
    FEATURE_D = 1 << 4
    FEATURE_Q = 1 << 5

FEATURE_NAMES: Dict[Feature, str] = {
    Feature.FEATURE_64BIT: "64bit",
    Feature.FEATURE_M: "m",
    Feature.FEATURE_A: "a",
    Feature.FEATURE_F: "f",
    Feature.FEATURE_D: "d",
    Feature.FEATURE_Q: "q",
}

ALL_FEATURES = Feature(sum(FEATURE_NAMES))

def feature_names(mask: int) -> List[str]:
    """Nombres de los bits puestos en `mask`, en orden ascendente de bit."""
    return [name for bit, name in sorted(FEATURE_NAMES.items()) if mask & bit]

@dataclass(frozen=True)
class OperandClass:
    """Clase de operando que puede aparecer en una posición de un descriptor.

    - predicate: acepta o rechaza el operando parseado
    - renderer: lo materializa en los argumentos de la instrucción
    - parser: nombre del método de AsmParser que lo parsea (None = expresión genérica)
    """
    name: str
    predicate: Callable[[Operand], bool]
    renderer: Callable[[Operand, list], None]
    parser: Optional[str] = None

OPERAND_CLASSES: Dict[str, OperandClass] = {}

def _cls(name: str, predicate, renderer, parser: Optional[str] = None):
    OPERAND_CLASSES[name] = OperandClass(name, predicate, renderer, parser)

# Registros
_cls("PCReg", O.is_pc_reg, O.render_reg, "parse_pc_reg")
_cls("GR32",  O.is_gr32,   O.render_reg, "parse_gr32")
_cls("GR64",  O.is_gr64,   O.render_reg, "parse_gr64")
_cls("GR128", O.is_gr128,  O.render_reg, "parse_gr128")
_cls("ADDR32", O.is_addr32, O.render_reg, "parse_addr32")
_cls("ADDR64", O.is_addr64, O.render_reg, "parse_addr64")
_cls("FP32",  O.is_fp32,   O.render_reg, "parse_fp32")
_cls("FP64",  O.is_fp64,   O.render_reg, "parse_fp64")
_cls("FP128", O.is_fp128,  O.render_reg, "parse_fp128")
_cls("AccessReg", O.is_access_reg, O.render_access_reg, "parse_access_reg")

# Direcciones base+desplazamiento (BD) y base+desplazamiento+índice (BDX)
_cls("BDAddr32Disp12", O.is_bd_addr32_disp12, O.render_bd_addr, "parse_bd_addr32")
_cls("BDAddr32Disp20", O.is_bd_addr32_disp20, O.render_bd_addr, "parse_bd_addr32")
_cls("BDAddr64Disp12", O.is_bd_addr64_disp12, O.render_bd_addr, "parse_bd_addr64")
_cls("BDAddr64Disp20", O.is_bd_addr64_disp20, O.render_bd_addr, "parse_bd_addr64")
_cls("BDXAddr64Disp12", O.is_bdx_addr64_disp12, O.render_bdx_addr, "parse_bdx_addr64")
_cls("BDXAddr64Disp20", O.is_bdx_addr64_disp20, O.render_bdx_addr, "parse_bdx_addr64")

# Inmediatos (sin parser propio: expresión genérica)
_cls("U4Imm",  O.is_u4_imm,  O.render_imm)
_cls("U6Imm",  O.is_u6_imm,  O.render_imm)
_cls("U8Imm",  O.is_u8_imm,  O.render_imm)
_cls("U12Imm", O.is_u12_imm, O.render_imm)
_cls("U16Imm", O.is_u16_imm, O.render_imm)
_cls("U20Imm", O.is_u20_imm, O.render_imm)
_cls("U32Imm", O.is_u32_imm, O.render_imm)
_cls("S8Imm",  O.is_s8_imm,  O.render_imm)
_cls("S12Imm", O.is_s12_imm, O.render_imm)
_cls("S16Imm", O.is_s16_imm, O.render_imm)
_cls("S20Imm", O.is_s20_imm, O.render_imm)
_cls("S32Imm", O.is_s32_imm, O.render_imm)
_cls("PCRel12", O.is_pcrel12, O.render_imm)
_cls("PCRel20", O.is_pcrel20, O.render_imm)

@dataclass(frozen=True)
class Descriptor:
    """Entrada de la tabla: mnemónico + forma de operandos → opcode."""
    mnemonic: str
    operands: Tuple[str, ...]
    features: Feature
    opcode: str

    @property
    def classes(self) -> Tuple[OperandClass, ...]:
        return tuple(OPERAND_CLASSES[c] for c in self.operands)

# Varios descriptores pueden compartir mnemónico (sobrecargas por forma),
# pero ninguna secuencia de operandos legal puede satisfacer a dos a la vez.
MATCH_TABLE: Dict[str, Tuple[Descriptor, ...]] = {}

F = Feature

def _def(mnemonic: str, forms: str, opcode: str, features: Feature = F.NONE):
    d = Descriptor(mnemonic, tuple(forms.split()), features, opcode)
    MATCH_TABLE[mnemonic] = MATCH_TABLE.get(mnemonic, ()) + (d,)

# Tipo R
for _m in ("add", "sub", "sll", "slt", "sltu", "xor", "srl", "sra", "or", "and"):
    _def(_m, "GR32 GR32 GR32", _m.upper())
# 'add' con inmediato es un alias de addi
_def("add", "GR32 GR32 S12Imm", "ADDI")

# Tipo I (ALU inmediatos)
for _m in ("addi", "slti", "sltiu", "xori", "ori", "andi"):
    _def(_m, "GR32 GR32 S12Imm", _m.upper())
for _m in ("slli", "srli", "srai"):
    _def(_m, "GR32 GR32 U6Imm", _m.upper())

# Cargas y almacenes
for _m in ("lb", "lh", "lw", "lbu", "lhu", "sb", "sh", "sw"):
    _def(_m, "GR32 BDAddr32Disp12", _m.upper())
_def("lwy", "GR32 BDAddr32Disp20", "LWY")
_def("swy", "GR32 BDAddr32Disp20", "SWY")
_def("lwx", "GR32 BDXAddr64Disp12", "LWX")
_def("swx", "GR32 BDXAddr64Disp12", "SWX")

# Saltos (destino relativo al PC: constante en rango o símbolo)
for _m in ("beq", "bne", "blt", "bge", "bltu", "bgeu"):
    _def(_m, "GR32 GR32 PCRel12", _m.upper())
_def("jal", "GR32 PCRel20", "JAL")
_def("jalr", "GR32 GR32 S12Imm", "JALR")
_def("jalr", "GR32 BDAddr32Disp12", "JALR_MEM")

# Tipo U y pseudo li
_def("lui", "GR32 U20Imm", "LUI")
_def("auipc", "GR32 U20Imm", "AUIPC")
_def("li", "GR32 S32Imm", "LI")
_def("rdpc", "GR32 PCReg", "RDPC")
_def("jr", "ADDR32", "JR")
_def("br", "ADDR64", "BR", F.FEATURE_64BIT)

# Sistema
_def("ecall", "", "ECALL")
_def("ebreak", "", "EBREAK")
_def("fence", "U4Imm U4Imm", "FENCE")
_def("fence.i", "", "FENCE_I")
_def("svc", "U8Imm", "SVC")
for _m in ("csrrw", "csrrs", "csrrc"):
    _def(_m, "GR32 U12Imm GR32", _m.upper())
for _m in ("csrrwi", "csrrsi", "csrrci"):
    _def(_m, "GR32 U12Imm U4Imm", _m.upper())

# Registros de acceso
_def("ear", "GR32 AccessReg", "EAR")
_def("sar", "AccessReg GR32", "SAR")

# RV64
for _m in ("addw", "subw", "sllw", "srlw", "sraw"):
    _def(_m, "GR64 GR64 GR64", _m.upper(), F.FEATURE_64BIT)
_def("addiw", "GR64 GR64 S12Imm", "ADDIW", F.FEATURE_64BIT)
_def("ld", "GR64 BDAddr64Disp12", "LD", F.FEATURE_64BIT)
_def("sd", "GR64 BDAddr64Disp12", "SD", F.FEATURE_64BIT)
_def("lwu", "GR64 BDAddr64Disp12", "LWU", F.FEATURE_64BIT)
_def("ldy", "GR64 BDAddr64Disp20", "LDY", F.FEATURE_64BIT)
_def("ldx", "GR64 BDXAddr64Disp20", "LDX", F.FEATURE_64BIT)
_def("sdx", "GR64 BDXAddr64Disp20", "SDX", F.FEATURE_64BIT)
_def("lgfi", "GR64 S32Imm", "LGFI", F.FEATURE_64BIT)
_def("llilf", "GR64 U32Imm", "LLILF", F.FEATURE_64BIT)

# Extensión M
for _m in ("mul", "mulh", "mulhsu", "mulhu", "div", "divu", "rem", "remu"):
    _def(_m, "GR32 GR32 GR32", _m.upper(), F.FEATURE_M)
for _m in ("mulw", "divw", "remw"):
    _def(_m, "GR64 GR64 GR64", _m.upper(), F.FEATURE_64BIT | F.FEATURE_M)
_def("dmul", "GR128 GR64 GR64", "DMUL", F.FEATURE_64BIT | F.FEATURE_M)

# Extensión A
_def("lr.w", "GR32 BDAddr32Disp12", "LR_W", F.FEATURE_A)
_def("sc.w", "GR32 GR32 BDAddr32Disp12", "SC_W", F.FEATURE_A)
for _m in ("amoswap.w", "amoadd.w", "amoand.w", "amoor.w", "amoxor.w"):
    _def(_m, "GR32 GR32 BDAddr32Disp12", _m.upper().replace(".", "_"), F.FEATURE_A)

# Extensiones F / D / Q
_def("flw", "FP32 BDAddr32Disp12", "FLW", F.FEATURE_F)
_def("fsw", "FP32 BDAddr32Disp12", "FSW", F.FEATURE_F)
_def("fld", "FP64 BDAddr32Disp12", "FLD", F.FEATURE_D)
_def("fsd", "FP64 BDAddr32Disp12", "FSD", F.FEATURE_D)
for _op in ("add", "sub", "mul", "div"):
    _def(f"f{_op}.s", "FP32 FP32 FP32", f"F{_op.upper()}_S", F.FEATURE_F)
    _def(f"f{_op}.d", "FP64 FP64 FP64", f"F{_op.upper()}_D", F.FEATURE_D)
    _def(f"f{_op}.q", "FP128 FP128 FP128", f"F{_op.upper()}_Q", F.FEATURE_D | F.FEATURE_Q)
_def("fmv.x.w", "GR32 FP32", "FMV_X_W", F.FEATURE_F)
_def("fmv.w.x", "FP32 GR32", "FMV_W_X", F.FEATURE_F)

del _m, _op

def descriptors(mnemonic: str) -> Tuple[Descriptor, ...]:
    """Descriptores candidatos para un mnemónico (tupla vacía si no existe)."""
    return MATCH_TABLE.get(mnemonic.lower(), ())

def operand_parsers(mnemonic: str, position: int) -> Tuple[str, ...]:
    """Parsers propios declarados para la posición `position` (1-based) del mnemónico.

    Se recorren todos los descriptores del mnemónico, sin filtrar por aridad,
    en el orden de la tabla y sin repetidos.
    """
    out: List[str] = []
    for d in descriptors(mnemonic):
        if position <= len(d.operands):
            name = OPERAND_CLASSES[d.operands[position - 1]].parser
            if name is not None and name not in out:
                out.append(name)
    return tuple(out)

def check_table() -> None:
    """Valida la tabla: clases conocidas y sin formas duplicadas por mnemónico."""
    for mnemonic, descs in MATCH_TABLE.items():
        seen = set()
        for d in descs:
            for c in d.operands:
                if c not in OPERAND_CLASSES:
                    raise KeyError(f"Clase de operando desconocida '{c}' en '{mnemonic}'")
            if d.operands in seen:
                raise ValueError(f"Forma duplicada para '{mnemonic}': {' '.join(d.operands)}")
            seen.add(d.operands)

check_table()
