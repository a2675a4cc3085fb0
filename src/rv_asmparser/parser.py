# src/rv_asmparser/parser.py
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from .ast import (
    Operand, RegisterKind,
    create_token, create_reg, create_access_reg, create_imm, create_mem,
)
from .config import AsmConfig
from .diagnostics import AsmParseError, Diagnostic, ErrorKind
from .expr import parse_expression
from .isa import operand_parsers
from .lexer import SourceLoc, Token, TokenKind, TokenStream, tokenize
from .matcher import match_and_emit
from .regs import (
    MAX_REG_INDEX, Reg, lookup,
    GR32_REGS, GR64_REGS, GR128_REGS, FP32_REGS, FP64_REGS, FP128_REGS, PC_REGS,
)
from .streamer import Streamer

logger = logging.getLogger(__name__)

REG_NUMBER_RE = re.compile(r"[0-9]+")

# Prefijos aceptados: 'r' (o 'x', nombre nativo) para GPRs y direcciones,
# 'f' para FPRs, 'p' para el PC y 'a' para los registros de acceso.
GPR_PREFIXES = "rx"

@dataclass(frozen=True)
class RawRegister:
    """Registro %<prefijo><número> tal como aparece en el fuente."""
    prefix: str
    number: int
    start: SourceLoc
    end: SourceLoc

class AsmParser:
    """Parser de operandos y emparejador de una línea de ensamblador.

    Cada línea se parsea y empareja por completo antes de leer la siguiente.
    Los errores se acumulan en `diagnostics` (uno por línea rechazada) y las
    instrucciones aceptadas van a `streamer`.
    """

    def __init__(self, config: Optional[AsmConfig] = None,
                 streamer: Optional[Streamer] = None):
        self.config = config or AsmConfig()
        self.streamer = streamer if streamer is not None else Streamer()
        self.diagnostics: List[Diagnostic] = []
        self.stream: Optional[TokenStream] = None
        self._soft_error: Optional[AsmParseError] = None

    # ---------------- Registros ----------------

    def _parse_raw_register(self) -> Optional[RawRegister]:
        """Lee '%' + identificador. None (sin consumir nada) si no hay '%'."""
        s = self.stream
        if not s.is_(TokenKind.PERCENT):
            return None
        start = s.lex().loc

        # se espera el nombre del registro
        tok = s.peek()
        if tok.kind is not TokenKind.IDENT:
            raise AsmParseError(ErrorKind.INVALID_REGISTER, "invalid register", start)
        name = tok.text
        if len(name) < 2 or not REG_NUMBER_RE.fullmatch(name[1:]):
            raise AsmParseError(ErrorKind.INVALID_REGISTER, "invalid register", start)
        s.lex()
        return RawRegister(name[0], int(name[1:], 10), start, tok.end)

    def _parse_register(self, prefixes: str, table: Tuple[int, ...], *,
                        is_address: bool = False) -> Optional[RawRegister]:
        """Registro con prefijo en `prefixes`, traducido con `table` a numeración canónica.

        En contexto de dirección %r0 no es direccionable: significa "sin registro".
        """
        reg = self._parse_raw_register()
        if reg is None:
            return None
        if (reg.prefix not in prefixes or reg.number > MAX_REG_INDEX
                or lookup(table, reg.number) == Reg.NOREG):
            raise AsmParseError(ErrorKind.INVALID_REGISTER, "invalid register", reg.start)
        if reg.number == 0 and is_address:
            raise AsmParseError(ErrorKind.ZERO_REGISTER_IN_ADDRESS,
                                "%r0 used in an address", reg.start)
        return replace(reg, number=table[reg.number])

    def _parse_reg_operand(self, prefixes: str, table: Tuple[int, ...],
                           kind: RegisterKind, is_address: bool = False) -> Optional[Operand]:
        reg = self._parse_register(prefixes, table, is_address=is_address)
        if reg is None:
            return None
        return create_reg(kind, reg.number, reg.start, reg.end)

    # Parsers propios por clase de operando (los nombra isa.OPERAND_CLASSES).
    def parse_gr32(self):
        return self._parse_reg_operand(GPR_PREFIXES, GR32_REGS, RegisterKind.GR32)

    def parse_gr64(self):
        return self._parse_reg_operand(GPR_PREFIXES, GR64_REGS, RegisterKind.GR64)

    def parse_gr128(self):
        return self._parse_reg_operand(GPR_PREFIXES, GR128_REGS, RegisterKind.GR128)

    def parse_pc_reg(self):
        return self._parse_reg_operand("p", PC_REGS, RegisterKind.PC)

    def parse_addr32(self):
        return self._parse_reg_operand(GPR_PREFIXES, GR32_REGS, RegisterKind.ADDR32, True)

    def parse_addr64(self):
        return self._parse_reg_operand(GPR_PREFIXES, self.config.addr64_regs,
                                       RegisterKind.ADDR64, True)

    def parse_fp32(self):
        return self._parse_reg_operand("f", FP32_REGS, RegisterKind.FP32)

    def parse_fp64(self):
        return self._parse_reg_operand("f", FP64_REGS, RegisterKind.FP64)

    def parse_fp128(self):
        return self._parse_reg_operand("f", FP128_REGS, RegisterKind.FP128)

    def _parse_plain_register(self) -> Optional[Operand]:
        """%r/%x → GR32 o %f → FP32 sin clase de operando esperada; %r0 vale."""
        reg = self._parse_raw_register()
        if reg is None:
            return None
        if reg.number > MAX_REG_INDEX:
            raise AsmParseError(ErrorKind.INVALID_REGISTER, "invalid register", reg.start)
        if reg.prefix in GPR_PREFIXES:
            return create_reg(RegisterKind.GR32, GR32_REGS[reg.number], reg.start, reg.end)
        if reg.prefix == "f":
            return create_reg(RegisterKind.FP32, FP32_REGS[reg.number], reg.start, reg.end)
        raise AsmParseError(ErrorKind.INVALID_REGISTER, "invalid register", reg.start)

    def parse_access_reg(self):
        reg = self._parse_raw_register()
        if reg is None:
            return None
        if reg.prefix != "a" or reg.number > 15:
            raise AsmParseError(ErrorKind.INVALID_REGISTER, "invalid register", reg.start)
        return create_access_reg(reg.number, reg.start, reg.end)

    def parse_bd_addr32(self):
        return self._parse_address(GR32_REGS, RegisterKind.ADDR32, has_index=False)

    def parse_bd_addr64(self):
        return self._parse_address(self.config.addr64_regs, RegisterKind.ADDR64, has_index=False)

    def parse_bdx_addr64(self):
        return self._parse_address(self.config.addr64_regs, RegisterKind.ADDR64, has_index=True)

    # ---------------- Direcciones ----------------

    def _parse_address(self, table: Tuple[int, ...], reg_kind: RegisterKind,
                       has_index: bool) -> Optional[Operand]:
        """
        Operando de memoria:  disp [ '(' reg [ ',' reg ] ')' ]

        Con dos registros el primero es el índice y el segundo la base.
        Devuelve None (cursor intacto) si no parece una dirección; si falta el
        ')' además deja anotado un error "blando" por si ningún otro parser
        consigue el operando.
        """
        s = self.stream
        begin = s.mark()
        start_loc = s.peek().loc

        # el desplazamiento siempre está presente
        try:
            disp = parse_expression(s)
        except AsmParseError:
            return None

        index = 0
        base = 0
        if s.is_(TokenKind.LPAREN):
            s.lex()
            reg = self._parse_register(GPR_PREFIXES, table, is_address=True)
            if reg is None:
                s.reset(begin)
                return None

            # si hay un segundo registro, el primero era el índice
            if s.is_(TokenKind.COMMA):
                s.lex()
                if not has_index:
                    raise AsmParseError(ErrorKind.INDEX_NOT_ALLOWED,
                                        "invalid use of indexed addressing", reg.start)
                index = reg.number
                reg = self._parse_register(GPR_PREFIXES, table, is_address=True)
                if reg is None:
                    s.reset(begin)
                    return None
            base = reg.number

            if not s.is_(TokenKind.RPAREN):
                self._soft_error = AsmParseError(ErrorKind.UNTERMINATED_ADDRESS,
                                                 "unterminated address, expected ')'",
                                                 s.peek().loc)
                s.reset(begin)
                return None
            s.lex()

        return create_mem(reg_kind, base, disp, index, start_loc, s.prev().end,
                          allow_index=has_index)

    # ---------------- Operandos e instrucciones ----------------

    def _parse_operand(self, mnemonic: str, position: int) -> Operand:
        """Un operando: primero los parsers propios de la posición, luego un inmediato."""
        s = self.stream
        self._soft_error = None
        parsers = operand_parsers(mnemonic, position)
        for name in parsers:
            op = getattr(self, name)()
            if op is not None:
                return op

        # ninguna forma espera un registro aquí (mnemónico desconocido u
        # operando de más): se acepta igual y el emparejador lo rechaza
        if not parsers and s.is_(TokenKind.PERCENT):
            return self._parse_plain_register()

        # el único otro tipo de operando es un inmediato
        start = s.peek().loc
        try:
            expr = parse_expression(s)
        except AsmParseError:
            if self._soft_error is not None:
                raise self._soft_error
            raise
        if self._soft_error is not None and not (s.is_(TokenKind.COMMA) or s.is_(TokenKind.EOS)):
            raise self._soft_error
        return create_imm(expr, start, s.prev().end)

    def parse_instruction(self, name: str, name_loc: Optional[SourceLoc],
                          stream: TokenStream) -> Optional[List[Operand]]:
        """Parsea los operandos de una instrucción ya reconocida por su mnemónico.

        Devuelve [TokenOp(mnemónico), operandos...] o None si la línea falló; en
        ese caso se descarta el resto de la sentencia y se deja un diagnóstico.
        """
        self.stream = stream
        operands: List[Operand] = [create_token(name, name_loc)]
        try:
            if not stream.is_(TokenKind.EOS):
                operands.append(self._parse_operand(name, 1))
                while stream.is_(TokenKind.COMMA):
                    stream.lex()
                    operands.append(self._parse_operand(name, len(operands)))
                if not stream.is_(TokenKind.EOS):
                    raise AsmParseError(ErrorKind.UNEXPECTED_TOKEN,
                                        "unexpected token in argument list", stream.peek().loc)
        except AsmParseError as ex:
            stream.eat_to_end_of_statement()
            self.diagnostics.append(ex.to_diagnostic())
            logger.debug("línea abandonada en %s: %s", ex.loc, ex.message)
            return None
        return operands

    def parse_directive(self, directive: Token) -> bool:
        """Las directivas no se tratan aquí: siempre 'no manejada'."""
        return False

    def match_and_emit(self, operands: List[Operand], id_loc: Optional[SourceLoc] = None) -> bool:
        """Empareja los operandos con las features activas; True si se emitió."""
        diag = match_and_emit(operands, self.config.features, self.streamer, id_loc)
        if diag is not None:
            self.diagnostics.append(diag)
            return False
        return True

    # ---------------- Consulta de registros ----------------

    def parse_register_name(self, stream: TokenStream) -> Tuple[int, SourceLoc, SourceLoc]:
        """Resuelve un registro general o de coma flotante fuera de un operando.

        Acepta %r/%x/%f con número hasta 15; no rechaza %r0.
        """
        self.stream = stream
        start = stream.peek().loc
        op = self._parse_plain_register()
        if op is None:
            raise AsmParseError(ErrorKind.REGISTER_EXPECTED, "register expected", start)
        return op.num, op.start, op.end

def resolve_register(text: str) -> int:
    """'%r7' → id canónico. Lanza AsmParseError si el texto no es un registro válido."""
    stream = TokenStream(tokenize(text))
    num, _, _ = AsmParser().parse_register_name(stream)
    if not stream.is_(TokenKind.EOS):
        raise AsmParseError(ErrorKind.UNEXPECTED_TOKEN, "unexpected token after register",
                            stream.peek().loc)
    return num
