'''
tokenizador de una línea de ensamblador y cursor sobre el flujo de tokens
'''

from __future__ import annotations
import enum
import re
from dataclasses import dataclass
from typing import List, Optional, Union

from .diagnostics import AsmParseError, ErrorKind

COMMENT_SPLIT_RE = re.compile(r"(#|//)")

def strip_comment(line: str) -> str:
    """Remove comments starting with '#' or '//'"""
    m = COMMENT_SPLIT_RE.split(line, maxsplit=1)
    if not m:
        return line.rstrip()
    return m[0].rstrip()

@dataclass(frozen=True)
class SourceLoc:
    """Posición (1-based) de un token dentro del fuente."""
    line: int
    col: int
    file: Optional[str] = None

    def __str__(self) -> str:
        pre = f"{self.file}:" if self.file else ""
        return f"{pre}{self.line}:{self.col}"

class TokenKind(enum.Enum):
    PERCENT = "%"
    IDENT = "IDENT"
    INTEGER = "INTEGER"
    LPAREN = "("
    RPAREN = ")"
    COMMA = ","
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    TILDE = "~"
    EOS = "EOS"

@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    loc: SourceLoc
    value: Union[int, None] = None

    @property
    def end(self) -> SourceLoc:
        """Posición del último carácter del token."""
        return SourceLoc(self.loc.line, self.loc.col + max(len(self.text), 1) - 1, self.loc.file)

    def __repr__(self):
        return f"Token({self.kind.name}, {self.text!r}, L{self.loc.line}:{self.loc.col})"

_PUNCT = {
    "%": TokenKind.PERCENT,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    ",": TokenKind.COMMA,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "~": TokenKind.TILDE,
}

IDENT_RE = re.compile(r"[A-Za-z_.][A-Za-z0-9_.$]*")
INT_RE   = re.compile(r"0[xX][0-9a-fA-F]+|0[bB][01]+|0[oO][0-7]+|\d+")

def tokenize(line: str, *, lineno: int = 1, filename: Optional[str] = None) -> List[Token]:
    """Convierte una línea en tokens; siempre termina con un token EOS.

    Lanza AsmParseError si aparece un carácter que no pertenece a la sintaxis.
    """
    core = strip_comment(line)
    toks: List[Token] = []
    i = 0
    while i < len(core):
        ch = core[i]
        loc = SourceLoc(lineno, i + 1, filename)
        if ch.isspace():
            i += 1
            continue
        if ch in _PUNCT:
            toks.append(Token(_PUNCT[ch], ch, loc))
            i += 1
            continue
        m = INT_RE.match(core, i)
        if m:
            # '12abc' no es un número válido
            end = m.end()
            if end < len(core) and (core[end].isalnum() or core[end] == "_"):
                raise AsmParseError(ErrorKind.UNEXPECTED_TOKEN,
                                    f"invalid number '{core[i:end + 1]}'", loc)
            text = m.group(0)
            base = 0 if text[:2].lower() in ("0x", "0b", "0o") else 10
            toks.append(Token(TokenKind.INTEGER, text, loc, int(text, base)))
            i = end
            continue
        m = IDENT_RE.match(core, i)
        if m:
            toks.append(Token(TokenKind.IDENT, m.group(0), loc))
            i = m.end()
            continue
        raise AsmParseError(ErrorKind.UNEXPECTED_TOKEN, f"unexpected character '{ch}'", loc)
    toks.append(Token(TokenKind.EOS, "", SourceLoc(lineno, len(core) + 1, filename)))
    return toks

class TokenStream:
    """Cursor sobre los tokens de una sentencia.

    Los parsers de operandos lo toman prestado y deben dejarlo en el primer
    token no consumido, tanto si tienen éxito como si fallan.
    """

    def __init__(self, tokens: List[Token]):
        assert tokens and tokens[-1].kind is TokenKind.EOS, "el flujo debe terminar en EOS"
        self.tokens = tokens
        self.pos = 0

    def peek(self, offset: int = 0) -> Token:
        i = self.pos + offset
        if i < len(self.tokens):
            return self.tokens[i]
        return self.tokens[-1]  # EOS

    def is_(self, kind: TokenKind) -> bool:
        return self.peek().kind is kind

    def lex(self) -> Token:
        """Consume y devuelve el token actual (EOS no se consume nunca)."""
        tok = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return tok

    def prev(self) -> Token:
        """Último token consumido (o el actual si no se consumió ninguno)."""
        return self.tokens[max(0, self.pos - 1)]

    def mark(self) -> int:
        return self.pos

    def reset(self, pos: int) -> None:
        self.pos = pos

    def eat_to_end_of_statement(self) -> None:
        while not self.is_(TokenKind.EOS):
            self.lex()
