import pytest
from rv_asmparser.ast import RegOp, AccessRegOp, ImmOp, MemOp, TokenOp, RegisterKind
from rv_asmparser.config import AsmConfig
from rv_asmparser.diagnostics import AsmParseError, ErrorKind
from rv_asmparser.expr import Binary, Constant, SymbolRef
from rv_asmparser.lexer import TokenKind, TokenStream, tokenize
from rv_asmparser.parser import AsmParser, resolve_register
from rv_asmparser.regs import Reg

def parser_on(text, **cfg):
    p = AsmParser(AsmConfig(**cfg))
    p.stream = TokenStream(tokenize(text))
    return p

def parse_line(text, **cfg):
    p = AsmParser(AsmConfig(**cfg))
    stream = TokenStream(tokenize(text))
    head = stream.lex()
    ops = p.parse_instruction(head.text, head.loc, stream)
    return p, stream, ops

# ---------------- Registros ----------------

@pytest.mark.parametrize("text, num", [("%r5", Reg.X5), ("%x5", Reg.X5), ("%r0", Reg.X0), ("%r15", Reg.X15)])
def test_gr32(text, num):
    op = parser_on(text).parse_gr32()
    assert op == RegOp(RegisterKind.GR32, num, op.start, op.end)
    assert op.start.col == 1

@pytest.mark.parametrize("text", ["%f1", "%r16", "%rfoo", "%r", "%,"])
def test_gr32_invalid(text):
    with pytest.raises(AsmParseError) as ei:
        parser_on(text).parse_gr32()
    assert ei.value.kind is ErrorKind.INVALID_REGISTER
    assert ei.value.loc.col == 1

def test_no_sigil_is_not_a_register():
    p = parser_on("5")
    assert p.parse_gr32() is None
    assert p.stream.mark() == 0

def test_zero_register_only_rejected_in_address_context():
    with pytest.raises(AsmParseError) as ei:
        parser_on("%r0").parse_addr32()
    assert ei.value.kind is ErrorKind.ZERO_REGISTER_IN_ADDRESS
    assert parser_on("%r0").parse_gr32().num == Reg.X0

def test_pairs_and_special_registers():
    assert parser_on("%r2").parse_gr128().num == Reg.X2Q
    assert parser_on("%f14").parse_fp128().num == Reg.F14Q
    with pytest.raises(AsmParseError):
        parser_on("%r3").parse_gr128()
    assert parser_on("%p0").parse_pc_reg().num == Reg.PC
    with pytest.raises(AsmParseError):
        parser_on("%p1").parse_pc_reg()

def test_access_registers():
    op = parser_on("%a15").parse_access_reg()
    assert isinstance(op, AccessRegOp) and op.num == 15
    for bad in ("%a16", "%r1"):
        with pytest.raises(AsmParseError) as ei:
            parser_on(bad).parse_access_reg()
        assert ei.value.kind is ErrorKind.INVALID_REGISTER

# ---------------- Direcciones ----------------

def test_base_displacement():
    op = parser_on("4(%r1)").parse_bd_addr32()
    assert isinstance(op, MemOp)
    assert (op.reg_kind, op.base, op.index, op.disp) == (RegisterKind.ADDR32, Reg.X1, 0, Constant(4))
    assert op.start.col == 1 and op.end.col == 6

def test_displacement_only_and_symbolic():
    op = parser_on("100").parse_bd_addr32()
    assert (op.base, op.disp) == (0, Constant(100))
    op = parser_on("sym(%r3)").parse_bd_addr32()
    assert op.disp == SymbolRef("sym")

def test_index_not_allowed():
    with pytest.raises(AsmParseError) as ei:
        parser_on("4(%r1,%r2)").parse_bd_addr32()
    assert ei.value.kind is ErrorKind.INDEX_NOT_ALLOWED
    assert ei.value.loc.col == 3

def test_indexed_address_first_register_is_index():
    op = parser_on("4(%r1,%r2)").parse_bdx_addr64()
    assert (op.reg_kind, op.base, op.index) == (RegisterKind.ADDR64, Reg.X2, Reg.X1)

def test_zero_register_in_address():
    with pytest.raises(AsmParseError) as ei:
        parser_on("0(%r0)").parse_bd_addr32()
    assert ei.value.kind is ErrorKind.ZERO_REGISTER_IN_ADDRESS

def test_addr64_table_is_configurable():
    op = parser_on("8(%r3)", addr64_table="GR32").parse_bd_addr64()
    assert op.reg_kind is RegisterKind.ADDR64 and op.base == Reg.X3

@pytest.mark.parametrize("text", ["4(5)", "(%r1)", "%r1"])
def test_not_an_address(text):
    p = parser_on(text)
    assert p.parse_bd_addr32() is None
    assert p.stream.mark() == 0

def test_unterminated_address_is_soft():
    p = parser_on("4(%r1")
    assert p.parse_bd_addr32() is None
    assert p.stream.mark() == 0
    assert p._soft_error.kind is ErrorKind.UNTERMINATED_ADDRESS

# ---------------- Instrucciones ----------------

def test_parse_instruction_operands():
    p, stream, ops = parse_line("li %r1, sym+4")
    assert ops[0] == TokenOp("li", ops[0].start, ops[0].end)
    assert isinstance(ops[1], RegOp)
    assert ops[2].expr == Binary("+", SymbolRef("sym"), Constant(4))
    assert ops[2].start.col == 9 and ops[2].end.col == 13
    assert p.diagnostics == []

def test_no_operands():
    _, _, ops = parse_line("ecall")
    assert len(ops) == 1

def test_custom_parsers_tried_in_order():
    _, _, ops = parse_line("jalr %r1, 8(%r2)")
    assert isinstance(ops[2], MemOp)
    _, _, ops = parse_line("jalr %r1, %r2, 8")
    assert isinstance(ops[2], RegOp) and isinstance(ops[3], ImmOp)

def test_unterminated_address_reported_when_fallback_stops():
    p, stream, ops = parse_line("lw %r1, 4(%r2")
    assert ops is None
    assert [d.kind for d in p.diagnostics] == [ErrorKind.UNTERMINATED_ADDRESS]
    assert stream.is_(TokenKind.EOS)

def test_unexpected_token_in_argument_list():
    p, stream, ops = parse_line("add %r1, %r2 %r3")
    assert ops is None
    (d,) = p.diagnostics
    assert d.kind is ErrorKind.UNEXPECTED_TOKEN
    assert d.col == 14
    assert stream.is_(TokenKind.EOS)

def test_bad_expression():
    p, _, ops = parse_line("lw %r1, (%r2)")
    assert ops is None
    assert p.diagnostics[0].kind is ErrorKind.INVALID_EXPRESSION

def test_directives_are_not_handled():
    p = AsmParser()
    assert p.parse_directive(tokenize(".text")[0]) is False

# ---------------- Consulta de registros ----------------

@pytest.mark.parametrize("text, num", [("%r7", Reg.X7), ("%x0", Reg.X0), ("%f3", Reg.F3)])
def test_resolve_register(text, num):
    assert resolve_register(text) == num

@pytest.mark.parametrize("text, kind", [
    ("r7", ErrorKind.REGISTER_EXPECTED),
    ("%a1", ErrorKind.INVALID_REGISTER),
    ("%r16", ErrorKind.INVALID_REGISTER),
    ("%r1 %r2", ErrorKind.UNEXPECTED_TOKEN),
])
def test_resolve_register_errors(text, kind):
    with pytest.raises(AsmParseError) as ei:
        resolve_register(text)
    assert ei.value.kind is kind

def test_parse_register_name_locations():
    stream = TokenStream(tokenize("  %r12"))
    num, start, end = AsmParser().parse_register_name(stream)
    assert num == Reg.X12
    assert (start.col, end.col) == (3, 6)

def test_register_where_no_form_expects_one():
    _, _, ops = parse_line("frob %x3, %f2")
    assert ops[1] == RegOp(RegisterKind.GR32, Reg.X3, ops[1].start, ops[1].end)
    assert ops[2].kind is RegisterKind.FP32 and ops[2].num == Reg.F2

def test_bad_register_where_no_form_expects_one():
    p, _, ops = parse_line("frob %a1")
    assert ops is None
    assert p.diagnostics[0].kind is ErrorKind.INVALID_REGISTER
