from rv_asmparser.regs import (
    Reg, GR32_REGS, GR128_REGS, FP32_REGS, FP128_REGS, PC_REGS, lookup,
)

def test_tables_have_sixteen_entries():
    for table in (GR32_REGS, GR128_REGS, FP32_REGS, FP128_REGS, PC_REGS):
        assert len(table) == 16

def test_canonical_ids_differ_from_asm_numbers():
    assert Reg.NOREG == 0
    assert GR32_REGS[0] == Reg.X0 and Reg.X0 != 0
    assert FP32_REGS[7] == Reg.F7

def test_pair_tables_use_sentinel_for_odd():
    assert GR128_REGS[2] == Reg.X2Q
    assert GR128_REGS[3] == Reg.NOREG
    assert FP128_REGS[14] == Reg.F14Q

def test_lookup_out_of_range_is_absent():
    assert lookup(PC_REGS, 0) == Reg.PC
    assert lookup(PC_REGS, 1) == Reg.NOREG
    assert lookup(GR32_REGS, 16) == Reg.NOREG
