from __future__ import annotations
import argparse, logging, sys
from dataclasses import replace
from typing import List, Tuple

from .config import ADDR64_TABLES, AsmConfig
from .diagnostics import AsmParseError, Diagnostic, ErrorKind, error, warning
from .lexer import TokenKind, TokenStream, tokenize
from .parser import AsmParser
from .streamer import MCInst, unresolved, write_text

logger = logging.getLogger(__name__)

def assemble_line(parser: AsmParser, raw: str, lineno: int) -> None:
    """Procesa una sentencia: directiva (no manejada) o instrucción.

    Cada línea rechazada deja exactamente un diagnóstico y ninguna instrucción.
    """
    try:
        tokens = tokenize(raw, lineno=lineno, filename=parser.config.filename)
    except AsmParseError as ex:
        parser.diagnostics.append(ex.to_diagnostic())
        return
    stream = TokenStream(tokens)
    if stream.is_(TokenKind.EOS):
        return

    head = stream.lex()
    if head.kind is not TokenKind.IDENT:
        parser.diagnostics.append(error("unexpected token at start of statement",
                                        loc=head.loc, kind=ErrorKind.UNEXPECTED_TOKEN))
        return

    if head.text.startswith("."):
        if not parser.parse_directive(head):
            # el parser del target no la maneja; aquí solo se avisa
            logger.debug("directiva ignorada: %s", head.text)
            parser.diagnostics.append(warning(f"directiva ignorada: {head.text}", loc=head.loc))
        return

    operands = parser.parse_instruction(head.text.lower(), head.loc, stream)
    if operands is not None:
        parser.match_and_emit(operands, head.loc)

def assemble_text(text: str, *, filename: str | None = None,
                  config: AsmConfig | None = None) -> Tuple[List[MCInst], List[Diagnostic]]:
    """Parsea y empareja cada línea. Devuelve (instrucciones, diagnósticos)."""
    if config is None:
        config = AsmConfig(filename=filename)
    elif filename is not None:
        config = replace(config, filename=filename)
    parser = AsmParser(config)
    for lineno, raw in enumerate(text.splitlines(), start=1):
        assemble_line(parser, raw, lineno)
    insts = parser.streamer.instructions
    pending = sum(len(unresolved(i)) for i in insts)
    logger.debug("%d instrucciones, %d referencias simbólicas pendientes", len(insts), pending)
    return insts, parser.diagnostics

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="RISC-V assembly operand parser and matcher")
    ap.add_argument("source", help="archivo .s de entrada")
    ap.add_argument("-o", "--output", help="archivo de salida con las instrucciones emparejadas")
    ap.add_argument("--mattr", default="", help="features activas, p.ej. '+m,+f' o 'all'")
    ap.add_argument("--addr64-table", choices=sorted(ADDR64_TABLES), default="GR64",
                    help="tabla de registros para las direcciones de 64 bits")
    ap.add_argument("-v", "--verbose", action="store_true", help="log de depuración")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(levelname)s %(name)s: %(message)s")

    try:
        config = AsmConfig.from_args(args)
    except ValueError as ex:
        print(f"ERROR: {ex}", file=sys.stderr)
        return 2

    try:
        with open(args.source, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as ex:
        print(f"ERROR: no pude leer {args.source}: {ex}", file=sys.stderr)
        return 2

    insts, diags = assemble_text(text, config=config)

    had_error = False
    for d in diags:
        # imprimimos todo; si hay error, devolvemos código 1
        print(d, file=sys.stderr)
        if d.severity == "error":
            had_error = True

    if had_error:
        return 1

    if args.output:
        try:
            write_text(insts, args.output)
        except OSError as ex:
            print(f"ERROR al escribir salidas: {ex}", file=sys.stderr)
            return 3
        print(f"OK: {len(insts)} instrucciones → {args.output}")
    else:
        for inst in insts:
            print(inst)
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
