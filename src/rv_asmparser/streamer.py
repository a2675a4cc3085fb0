from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from .expr import Expr
from .lexer import SourceLoc
from .operands import MCOperand

@dataclass(frozen=True)
class MCInst:
    """Instrucción ya emparejada: opcode + argumentos materializados."""
    opcode: str
    operands: Tuple[MCOperand, ...]
    loc: Optional[SourceLoc] = None

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.operands)
        return f"{self.opcode} {args}".rstrip()

@dataclass
class Streamer:
    """Sumidero de instrucciones: las guarda en orden de programa."""
    instructions: List[MCInst] = field(default_factory=list)

    def emit_instruction(self, inst: MCInst) -> None:
        self.instructions.append(inst)

def unresolved(inst: MCInst) -> List[Expr]:
    """Argumentos simbólicos que el codificador tendrá que resolver."""
    return [a for a in inst.operands if not isinstance(a, int)]

def to_lines(insts: Iterable[MCInst]) -> List[str]:
    return [str(i) for i in insts]

def write_text(insts: Iterable[MCInst], path: str) -> None:
    lines = to_lines(insts)
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")
