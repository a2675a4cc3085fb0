'''
clase Diagnostic, tipos de error y la excepción interna del parser de operandos
'''

from __future__ import annotations
import enum
from dataclasses import dataclass
from typing import Optional, Literal, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .lexer import SourceLoc

# Severidad de los diagnósticos (en español)
Severity = Literal["error", "advertencia"]

_SEV_TO_LABEL = {
    "error": "ERROR",
    "advertencia": "ADVERTENCIA",
}

class ErrorKind(enum.Enum):
    """Clases de error que puede producir una línea de ensamblador."""
    INVALID_REGISTER = "invalid-register"
    ZERO_REGISTER_IN_ADDRESS = "zero-register-in-address"
    INDEX_NOT_ALLOWED = "index-not-allowed"
    UNTERMINATED_ADDRESS = "unterminated-address"
    UNEXPECTED_TOKEN = "unexpected-token"
    MISSING_FEATURE = "missing-feature"
    INVALID_OPERAND = "invalid-operand"
    MNEMONIC_FAIL = "mnemonic-fail"
    REGISTER_EXPECTED = "register-expected"
    INVALID_EXPRESSION = "invalid-expression"

@dataclass(frozen=True)
class Diagnostic:
    """Estructura de un diagnóstico para reportar problemas.

    Lleva ubicación opcional (archivo, línea y columna), la clase de error
    (`kind`) y, según el caso, las features que faltan o el índice del
    operando culpable.
    """
    severity: Severity
    message: str
    line: Optional[int] = None
    col: Optional[int] = None
    hint: Optional[str] = None
    file: Optional[str] = None
    kind: Optional[ErrorKind] = None
    features: Tuple[str, ...] = ()
    operand_index: Optional[int] = None

    def __str__(self) -> str:
        loc = ""
        if self.file is not None:
            loc += f"{self.file}:"
        if self.line is not None:
            loc += f"{self.line}"
            if self.col is not None:
                loc += f":{self.col}"
        if loc:
            loc += ": "
        sev = _SEV_TO_LABEL.get(self.severity, str(self.severity).upper())
        core = f"{sev}: {self.message}"
        if self.hint:
            core += f"  (pista: {self.hint})"
        return loc + core

def error(message: str, *, loc: "SourceLoc | None" = None, kind: ErrorKind | None = None,
          hint: str | None = None, features: Tuple[str, ...] = (),
          operand_index: int | None = None) -> Diagnostic:
    """Crea un diagnóstico de tipo error en la ubicación `loc`."""
    line = loc.line if loc is not None else None
    col = loc.col if loc is not None else None
    file = loc.file if loc is not None else None
    return Diagnostic("error", message, line, col, hint, file, kind, features, operand_index)

def warning(message: str, *, loc: "SourceLoc | None" = None,
            hint: str | None = None) -> Diagnostic:
    """Crea un diagnóstico de tipo advertencia."""
    line = loc.line if loc is not None else None
    col = loc.col if loc is not None else None
    file = loc.file if loc is not None else None
    return Diagnostic("advertencia", message, line, col, hint, file)

class AsmParseError(Exception):
    """Fallo duro al parsear un operando; la línea se abandona.

    El parser de línea lo convierte en exactamente un Diagnostic.
    """
    def __init__(self, kind: ErrorKind, message: str, loc: "SourceLoc | None"):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.loc = loc

    def to_diagnostic(self) -> Diagnostic:
        return error(self.message, loc=self.loc, kind=self.kind)
