"""
Flattens outer and inner instructions into one execution-ordered list tagged
by owning program and position.
"""

from __future__ import annotations

from collections.abc import Iterable

from meme_decoder.core.pubkeys import (
    DEX_PROGRAM_IDS,
    ROUTE_PROGRAM_IDS,
    SKIP_PROGRAM_IDS,
    SYSTEM_PROGRAMS,
)
from meme_decoder.core.transaction_view import TransactionView
from meme_decoder.interfaces.models import ClassifiedInstruction, DexInfo
from meme_decoder.utils.logger import get_logger

logger = get_logger(__name__)


class InstructionClassifier:
    """Execution-ordered index of a transaction's instructions by program id.

    Order is outer index ascending, each outer instruction followed by its
    inner instructions in CPI sequence.
    """

    def __init__(self, view: TransactionView):
        self._view = view
        self._ordered: list[ClassifiedInstruction] = []
        self._by_program: dict[str, list[ClassifiedInstruction]] = {}

        for outer_index, ix in enumerate(view.instructions):
            self._add(ClassifiedInstruction(ix.program_id, ix, outer_index))
            for inner_index, inner in enumerate(view.inner_instructions_of(outer_index)):
                self._add(ClassifiedInstruction(inner.program_id, inner, outer_index, inner_index))

        logger.debug(
            f"[CLASSIFIER] {len(self._ordered)} instructions across "
            f"{len(self._by_program)} programs"
        )

    def _add(self, classified: ClassifiedInstruction) -> None:
        self._ordered.append(classified)
        self._by_program.setdefault(classified.program_id, []).append(classified)

    @property
    def view(self) -> TransactionView:
        return self._view

    def get_instructions(self, program_id: str) -> list[ClassifiedInstruction]:
        return list(self._by_program.get(program_id, ()))

    def get_multi_instructions(self, program_ids: Iterable[str]) -> list[ClassifiedInstruction]:
        """Instructions of any of ``program_ids``, still in execution order."""
        wanted = set(program_ids)
        return [ci for ci in self._ordered if ci.program_id in wanted]

    def get_instruction_by_discriminator(
        self,
        discriminator: bytes,
        outer_index: int | None = None,
    ) -> ClassifiedInstruction | None:
        """First instruction whose data starts with ``discriminator``.

        With ``outer_index`` the search is limited to that outer instruction
        and its CPI trace.
        """
        for ci in self._ordered:
            if outer_index is not None and ci.outer_index != outer_index:
                continue
            if ci.data[:len(discriminator)] == discriminator:
                return ci
        return None

    def get_all_program_ids(self) -> list[str]:
        """Non-system program ids in first-seen order."""
        return [
            pid for pid in self._by_program
            if pid not in SYSTEM_PROGRAMS and pid not in SKIP_PROGRAM_IDS
        ]

    def get_dex_info(self) -> DexInfo:
        """Router and AMM that surfaced the transaction, if any.

        The first known route program is the route; the first known AMM is
        the amm and the program id when no router is involved.
        """
        route = amm = program_id = None
        for pid in self.get_all_program_ids():
            program = DEX_PROGRAM_IDS.get(pid)
            if program is None:
                continue
            if pid in ROUTE_PROGRAM_IDS:
                if route is None:
                    route = program.name
                    program_id = program_id or pid
            elif "amm" in program.tags and amm is None:
                amm = program.name
                program_id = program_id or pid
        return DexInfo(program_id=program_id, amm=amm, route=route)

    def __len__(self) -> int:
        return len(self._ordered)

    def __iter__(self):
        return iter(self._ordered)
