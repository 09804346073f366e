"""Unit tests for InstructionClassifier"""
from meme_decoder.core.instruction_classifier import InstructionClassifier
from meme_decoder.core.pubkeys import COMPUTE_BUDGET_PROGRAM, TOKEN_PROGRAM, DexPrograms
from meme_decoder.core.transaction_view import TransactionView


def _classify(tx):
    return InstructionClassifier(TransactionView(tx.build()))


class TestOrdering:
    def test_execution_order(self, tx, new_address):
        program = new_address()
        tx.add_instruction(program, [], b"\x00")
        tx.add_instruction(program, [], b"\x01")
        tx.add_inner(0, program, [], b"\x02")
        tx.add_inner(0, program, [], b"\x03")

        classifier = _classify(tx)
        positions = [(ci.outer_index, ci.inner_index) for ci in classifier.get_instructions(program)]
        assert positions == [(0, None), (0, 0), (0, 1), (1, None)]
        assert [ci.idx for ci in classifier.get_instructions(program)] == ["0-0", "0-0", "0-1", "1-0"]

    def test_keys(self, tx, new_address):
        program = new_address()
        tx.add_instruction(program)
        tx.add_inner(0, program)
        outer, inner = _classify(tx).get_instructions(program)
        assert outer.key == f"{program}:0"
        assert inner.key == f"{program}:0-0"

    def test_multi_program_lookup_preserves_order(self, tx, new_address):
        a, b, c = new_address(), new_address(), new_address()
        tx.add_instruction(b)
        tx.add_instruction(c)
        tx.add_instruction(a)
        tx.add_inner(0, a)
        found = _classify(tx).get_multi_instructions([a, b])
        assert [(ci.program_id, ci.outer_index, ci.inner_index) for ci in found] == [
            (b, 0, None), (a, 0, 0), (a, 2, None),
        ]


class TestDiscriminatorLookup:
    def test_first_match(self, tx, new_address):
        program = new_address()
        tx.add_instruction(program, [], b"\xaa\xbb\x01")
        tx.add_instruction(program, [], b"\xaa\xbb\x02")
        classifier = _classify(tx)
        assert classifier.get_instruction_by_discriminator(b"\xaa\xbb").data == b"\xaa\xbb\x01"
        assert classifier.get_instruction_by_discriminator(b"\xaa\xbb", outer_index=1).data == b"\xaa\xbb\x02"
        assert classifier.get_instruction_by_discriminator(b"\xcc") is None


class TestProgramIds:
    def test_system_programs_excluded(self, tx, new_address):
        program = new_address()
        tx.add_instruction(COMPUTE_BUDGET_PROGRAM)
        tx.add_instruction(program)
        tx.add_inner(1, TOKEN_PROGRAM)
        assert _classify(tx).get_all_program_ids() == [program]

    def test_dex_info_route_and_amm(self, tx):
        tx.add_instruction(DexPrograms.JUPITER.id)
        tx.add_inner(0, DexPrograms.RAYDIUM_CPMM.id)
        info = _classify(tx).get_dex_info()
        assert info.route == "Jupiter"
        assert info.amm == "RaydiumCPMM"
        assert info.program_id == DexPrograms.JUPITER.id

    def test_dex_info_unknown(self, tx, new_address):
        tx.add_instruction(new_address())
        info = _classify(tx).get_dex_info()
        assert info.program_id is None and info.amm is None and info.route is None
