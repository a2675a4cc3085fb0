from rv_asmparser.isa import (
    MATCH_TABLE, OPERAND_CLASSES, Feature, ALL_FEATURES,
    check_table, descriptors, feature_names, operand_parsers,
)
from rv_asmparser.parser import AsmParser

def test_table_is_consistent():
    check_table()

def test_custom_parsers_exist():
    for cls in OPERAND_CLASSES.values():
        if cls.parser is not None:
            assert callable(getattr(AsmParser, cls.parser, None)), cls.parser

def test_overloads_share_mnemonic():
    forms = {d.operands for d in MATCH_TABLE["add"]}
    assert ("GR32", "GR32", "GR32") in forms
    assert ("GR32", "GR32", "S12Imm") in forms

def test_descriptors_case_insensitive():
    assert descriptors("ADD") == descriptors("add")
    assert descriptors("nope") == ()

def test_operand_parsers_union_in_table_order():
    assert operand_parsers("jalr", 1) == ("parse_gr32",)
    assert operand_parsers("jalr", 2) == ("parse_gr32", "parse_bd_addr32")
    assert operand_parsers("jalr", 3) == ()
    assert operand_parsers("li", 2) == ()
    assert operand_parsers("ecall", 1) == ()

def test_feature_names_ascending():
    assert feature_names(Feature.FEATURE_Q | Feature.FEATURE_D) == ["d", "q"]
    assert feature_names(Feature.NONE) == []
    assert feature_names(ALL_FEATURES) == ["64bit", "m", "a", "f", "d", "q"]

def test_extension_features():
    (mul,) = descriptors("mul")
    assert mul.features == Feature.FEATURE_M
    (faddq,) = descriptors("fadd.q")
    assert faddq.features == Feature.FEATURE_D | Feature.FEATURE_Q
