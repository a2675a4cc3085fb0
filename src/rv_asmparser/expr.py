'''
expresiones de desplazamiento/inmediato: constante o simbólica
'''

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Union

from .lexer import TokenKind, TokenStream
from .diagnostics import AsmParseError, ErrorKind

@dataclass(frozen=True)
class Constant:
    """Valor entero conocido en tiempo de parseo."""
    value: int

    depth = 0

    def __str__(self) -> str:
        return str(self.value)

@dataclass(frozen=True)
class SymbolRef:
    """Referencia a un símbolo que se resuelve más tarde (no aquí)."""
    name: str

    depth = 0

    def __str__(self) -> str:
        return self.name

@dataclass(frozen=True)
class Unary:
    op: str
    operand: 'Expr'
    depth: int = field(init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "depth", self.operand.depth + 1)

    def __str__(self) -> str:
        return f"{self.op}{self.operand}"

@dataclass(frozen=True)
class Binary:
    op: str
    lhs: 'Expr'
    rhs: 'Expr'
    depth: int = field(init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "depth", max(self.lhs.depth, self.rhs.depth) + 1)

    def __str__(self) -> str:
        return f"({self.lhs}{self.op}{self.rhs})"

# Una expresión es constante (Constant) o simbólica (cualquier otro nodo).
Expr = Union[Constant, SymbolRef, Unary, Binary]

def const_value(expr: Expr) -> Optional[int]:
    """Devuelve el entero si la expresión es constante; None si es simbólica."""
    if isinstance(expr, Constant):
        return expr.value
    return None

def is_symbolic(expr: Expr) -> bool:
    return not isinstance(expr, Constant)

_ADDITIVE = {TokenKind.PLUS: "+", TokenKind.MINUS: "-"}
_MULTIPLICATIVE = {TokenKind.STAR: "*", TokenKind.SLASH: "/"}
_UNARY = {TokenKind.PLUS: "+", TokenKind.MINUS: "-", TokenKind.TILDE: "~"}

def _fold_binary(op: str, lhs: Expr, rhs: Expr) -> Expr:
    if isinstance(lhs, Constant) and isinstance(rhs, Constant):
        a, b = lhs.value, rhs.value
        if op == "+":
            return Constant(a + b)
        if op == "-":
            return Constant(a - b)
        if op == "*":
            return Constant(a * b)
        if b != 0:
            # división entera truncada hacia cero, como en C
            q = abs(a) // abs(b)
            return Constant(q if (a >= 0) == (b >= 0) else -q)
    return Binary(op, lhs, rhs)

def _fold_unary(op: str, operand: Expr) -> Expr:
    if isinstance(operand, Constant):
        v = operand.value
        if op == "-":
            return Constant(-v)
        if op == "~":
            return Constant(~v)
        return operand
    return Unary(op, operand)

# Paréntesis anidados como máximo; más allá la línea se rechaza.
MAX_NESTING = 64
# Profundidad máxima del árbol simbólico resultante.
MAX_DEPTH = 256

def parse_expression(stream: TokenStream) -> Expr:
    """
    Parsea una expresión desde el cursor:

      expr    := term (('+' | '-') term)*
      term    := unary (('*' | '/') unary)*
      unary   := ('+' | '-' | '~')* primary
      primary := INTEGER | IDENT | '(' expr ')'

    En caso de error el cursor vuelve a donde estaba y se lanza AsmParseError.
    """
    start = stream.mark()
    loc = stream.peek().loc
    try:
        expr = _parse_additive(stream, 0)
        if expr.depth > MAX_DEPTH:
            raise AsmParseError(ErrorKind.INVALID_EXPRESSION, "expression too complex", loc)
        return expr
    except AsmParseError:
        stream.reset(start)
        raise

def _parse_additive(stream: TokenStream, depth: int) -> Expr:
    lhs = _parse_term(stream, depth)
    while stream.peek().kind in _ADDITIVE:
        op = _ADDITIVE[stream.lex().kind]
        lhs = _fold_binary(op, lhs, _parse_term(stream, depth))
    return lhs

def _parse_term(stream: TokenStream, depth: int) -> Expr:
    lhs = _parse_unary(stream, depth)
    while stream.peek().kind in _MULTIPLICATIVE:
        op = _MULTIPLICATIVE[stream.lex().kind]
        lhs = _fold_binary(op, lhs, _parse_unary(stream, depth))
    return lhs

def _parse_unary(stream: TokenStream, depth: int) -> Expr:
    ops = []
    while stream.peek().kind in _UNARY:
        ops.append(_UNARY[stream.lex().kind])
    expr = _parse_primary(stream, depth)
    # el operador más cercano al primario se aplica primero
    for op in reversed(ops):
        expr = _fold_unary(op, expr)
    return expr

def _parse_primary(stream: TokenStream, depth: int) -> Expr:
    tok = stream.peek()
    if tok.kind is TokenKind.INTEGER:
        stream.lex()
        return Constant(tok.value)
    if tok.kind is TokenKind.IDENT:
        stream.lex()
        return SymbolRef(tok.text)
    if tok.kind is TokenKind.LPAREN:
        if depth >= MAX_NESTING:
            raise AsmParseError(ErrorKind.INVALID_EXPRESSION, "expression nested too deeply",
                                tok.loc)
        stream.lex()
        inner = _parse_additive(stream, depth + 1)
        if not stream.is_(TokenKind.RPAREN):
            raise AsmParseError(ErrorKind.INVALID_EXPRESSION, "expected ')' in expression",
                                stream.peek().loc)
        stream.lex()
        return inner
    raise AsmParseError(ErrorKind.INVALID_EXPRESSION, "unknown token in expression", tok.loc)
