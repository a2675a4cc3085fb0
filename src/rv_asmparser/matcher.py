'''
motor de emparejamiento: operandos parseados → descriptor único o diagnóstico
'''

from __future__ import annotations
import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .ast import Operand
from .diagnostics import Diagnostic, ErrorKind, error
from .isa import Descriptor, Feature, descriptors, feature_names
from .lexer import SourceLoc
from .operands import MCOperand, is_token
from .streamer import MCInst, Streamer

logger = logging.getLogger(__name__)

class MatchStatus(enum.Enum):
    SUCCESS = "success"
    MISSING_FEATURE = "missing-feature"
    INVALID_OPERAND = "invalid-operand"
    MNEMONIC_FAIL = "mnemonic-fail"

@dataclass(frozen=True)
class MatchResult:
    """Resultado de emparejar una línea.

    - SUCCESS: `inst` contiene la instrucción materializada
    - MISSING_FEATURE: `missing` es la máscara de features que faltan
    - INVALID_OPERAND: `error_index` es la posición del operando culpable
      (0 = mnemónico) o None si no se pudo localizar
    """
    status: MatchStatus
    inst: Optional[MCInst] = None
    descriptor: Optional[Descriptor] = None
    missing: Feature = Feature.NONE
    error_index: Optional[int] = None

def _first_failure(desc: Descriptor, operands: Sequence[Operand]) -> Optional[int]:
    """Posición (en `operands`) del primer predicado que falla; None si todos aceptan."""
    for i, cls in enumerate(desc.classes, start=1):
        if not cls.predicate(operands[i]):
            return i
    return None

def materialize(desc: Descriptor, operands: Sequence[Operand],
                loc: Optional[SourceLoc] = None) -> MCInst:
    """Baja los operandos al formato del codificador (no toca el flujo de tokens)."""
    out: List[MCOperand] = []
    for i, cls in enumerate(desc.classes, start=1):
        cls.renderer(operands[i], out)
    return MCInst(desc.opcode, tuple(out), loc)

def match_instruction(operands: Sequence[Operand], available: Feature,
                      id_loc: Optional[SourceLoc] = None) -> MatchResult:
    """Busca el descriptor cuyo mnemónico, aridad y predicados aceptan `operands`.

    `operands[0]` es siempre el TokenOp del mnemónico. La instrucción emitida
    lleva `id_loc` (por defecto, la posición del mnemónico).
    """
    assert operands and is_token(operands[0]), "falta el mnemónico"
    mnemonic = operands[0].text
    arity = len(operands) - 1
    candidates = [d for d in descriptors(mnemonic) if len(d.operands) == arity]
    if not candidates:
        return MatchResult(MatchStatus.MNEMONIC_FAIL)

    error_index: Optional[int] = None
    missing: Optional[int] = None
    missing_desc: Optional[Descriptor] = None
    for desc in candidates:
        bad = _first_failure(desc, operands)
        if bad is not None:
            # nos quedamos con la posición que más avanzó entre candidatos
            if error_index is None or bad > error_index:
                error_index = bad
            continue
        lacking = int(desc.features) & ~int(available)
        if lacking:
            if missing is None or bin(lacking).count("1") < bin(missing).count("1"):
                missing, missing_desc = lacking, desc
            continue
        inst = materialize(desc, operands, id_loc if id_loc is not None else operands[0].start)
        return MatchResult(MatchStatus.SUCCESS, inst=inst, descriptor=desc)

    if missing is not None:
        return MatchResult(MatchStatus.MISSING_FEATURE, descriptor=missing_desc,
                           missing=Feature(missing))
    return MatchResult(MatchStatus.INVALID_OPERAND, error_index=error_index)

def report(result: MatchResult, operands: Sequence[Operand],
           id_loc: Optional[SourceLoc]) -> Optional[Diagnostic]:
    """Traduce un resultado fallido a su diagnóstico (None si fue éxito)."""
    status = result.status
    if status is MatchStatus.SUCCESS:
        return None
    if status is MatchStatus.MISSING_FEATURE:
        names = tuple(feature_names(result.missing))
        assert names, "feature desconocida"
        return error("instruction requires: " + " ".join(names), loc=id_loc,
                     kind=ErrorKind.MISSING_FEATURE, features=names)
    if status is MatchStatus.INVALID_OPERAND:
        err_loc = id_loc
        idx = result.error_index
        if idx is not None:
            if idx >= len(operands):
                return error("too few operands for instruction", loc=id_loc,
                             kind=ErrorKind.INVALID_OPERAND, operand_index=idx)
            err_loc = operands[idx].start or id_loc
        return error("invalid operand for instruction", loc=err_loc,
                     kind=ErrorKind.INVALID_OPERAND, operand_index=idx)
    return error("invalid instruction", loc=id_loc, kind=ErrorKind.MNEMONIC_FAIL)

def match_and_emit(operands: Sequence[Operand], available: Feature, streamer: Streamer,
                   id_loc: Optional[SourceLoc] = None) -> Optional[Diagnostic]:
    """Empareja y, si hay éxito, emite exactamente una instrucción.

    Devuelve el diagnóstico del fallo, o None si se emitió.
    """
    if id_loc is None:
        id_loc = operands[0].start
    result = match_instruction(operands, available, id_loc)
    diag = report(result, operands, id_loc)
    if diag is None:
        logger.debug("emparejado %s -> %s", operands[0].text, result.inst)
        streamer.emit_instruction(result.inst)
    else:
        logger.debug("rechazado %s: %s", operands[0].text, result.status.value)
    return diag
