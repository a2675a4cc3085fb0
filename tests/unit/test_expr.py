import pytest
from rv_asmparser.expr import (
    parse_expression, Constant, SymbolRef, Binary, Unary, const_value, is_symbolic,
    MAX_DEPTH, MAX_NESTING,
)
from rv_asmparser.lexer import tokenize, TokenStream, TokenKind
from rv_asmparser.diagnostics import AsmParseError, ErrorKind

def _parse(text):
    s = TokenStream(tokenize(text))
    return parse_expression(s), s

@pytest.mark.parametrize("text, value", [
    ("1+2*3", 7),
    ("(1+2)*3", 9),
    ("-(4)", -4),
    ("~0", -1),
    ("7/-2", -3),
    ("0x10-1", 15),
])
def test_constant_folding(text, value):
    e, _ = _parse(text)
    assert e == Constant(value)
    assert const_value(e) == value

def test_symbolic_expression_is_not_forced():
    e, _ = _parse("loop+4")
    assert e == Binary("+", SymbolRef("loop"), Constant(4))
    assert is_symbolic(e)
    assert const_value(e) is None
    assert str(e) == "(loop+4)"

def test_unary_over_symbol_stays_symbolic():
    e, _ = _parse("-sym")
    assert e == Unary("-", SymbolRef("sym"))

def test_stops_before_address_parenthesis():
    e, s = _parse("8(%r1)")
    assert e == Constant(8)
    assert s.is_(TokenKind.LPAREN)

def test_error_resets_cursor():
    s = TokenStream(tokenize("(%r1)"))
    with pytest.raises(AsmParseError) as ei:
        parse_expression(s)
    assert ei.value.kind is ErrorKind.INVALID_EXPRESSION
    assert s.mark() == 0

def test_long_unary_chain_folds():
    e, s = _parse("-" * 1200 + "1")
    assert e == Constant(1)
    assert s.is_(TokenKind.EOS)

def test_unary_chain_over_symbol_too_deep():
    with pytest.raises(AsmParseError) as ei:
        _parse("-" * 1200 + "sym")
    assert ei.value.kind is ErrorKind.INVALID_EXPRESSION

def test_nesting_limit():
    e, _ = _parse("(" * MAX_NESTING + "1" + ")" * MAX_NESTING)
    assert e == Constant(1)
    s = TokenStream(tokenize("(" * 400 + "1" + ")" * 400))
    with pytest.raises(AsmParseError) as ei:
        parse_expression(s)
    assert ei.value.message == "expression nested too deeply"
    assert ei.value.loc.col == MAX_NESTING + 1
    assert s.mark() == 0

def test_long_symbolic_sum_rejected():
    with pytest.raises(AsmParseError) as ei:
        _parse("base" + "+base" * (MAX_DEPTH + 1))
    assert ei.value.message == "expression too complex"
