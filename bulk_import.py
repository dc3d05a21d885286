"""
BulkImportParser: paste a block of copied cells into consecutive input fields
==============================================================================
Text copied from a spreadsheet or a screener table is split into tokens and
written into FIELD_ORDER starting at the focused cell.

Splitting rules:
- Separators are runs of tab, newline or semicolon, or 2+ consecutive spaces
- Commas are NOT separators: "1,234.5" is one value (commas are stripped)
- Empty tokens and the literals "undefined" / "null" are discarded

The whole batch is staged on copies of the records and committed in one
assignment after a single history push, so a partially applied paste is
never observable.
"""

import copy
import re
from dataclasses import dataclass, field
from typing import List

from change_history import ChangeHistory, ChangeSnapshot
from field_order import HISTORICAL, position_of, slice_from
from input_model import HistoricalRecord, InputModel, ProjectionRecord, coerce_for
from logging_config import get_logger

logger = get_logger(__name__)

_SEPARATORS = re.compile(r"[\t\r\n;]+| {2,}")
_DISCARDED_TOKENS = {"", "undefined", "null"}


def tokenize_paste(text: str) -> List[str]:
    """Split pasted text into cleaned value tokens, in reading order."""
    if not text:
        return []
    tokens = []
    for part in _SEPARATORS.split(text):
        token = part.strip().replace(",", "")
        if token not in _DISCARDED_TOKENS:
            tokens.append(token)
    return tokens


@dataclass
class PasteResult:
    applied_keys: List[str] = field(default_factory=list)
    dropped_tokens: int = 0

    @property
    def applied(self) -> bool:
        return bool(self.applied_keys)


class BulkImportParser:
    """Maps a pasted token list onto FIELD_ORDER and commits it atomically."""

    def __init__(self, history: ChangeHistory):
        self.history = history

    def stage(self, model: InputModel, tokens: List[str], start_key: str):
        """
        Write tokens into copies of the historical and projection records.

        Returns (historical, projections, applied_keys). The model is not touched.
        """
        historical: HistoricalRecord = copy.deepcopy(model.historical)
        projections: ProjectionRecord = copy.deepcopy(model.projections)
        applied_keys = []
        for spec, token in zip(slice_from(start_key, len(tokens)), tokens):
            target = historical if spec.record == HISTORICAL else projections
            target.set_value(spec.array, spec.index, coerce_for(spec, token))
            applied_keys.append(spec.key)
        return historical, projections, applied_keys

    def paste(self, model: InputModel, text: str, start_key: str) -> PasteResult:
        """Apply pasted text at `start_key`. Unknown start keys raise KeyError."""
        position_of(start_key)
        tokens = tokenize_paste(text)
        if not tokens:
            return PasteResult()

        historical, projections, applied_keys = self.stage(model, tokens, start_key)
        dropped = len(tokens) - len(applied_keys)
        if dropped:
            logger.debug("Paste at %s: %d token(s) beyond the last field dropped", start_key, dropped)

        self.history.push_snapshot(ChangeSnapshot.capture(model))
        model.historical, model.projections = historical, projections
        logger.debug("Paste at %s: %d field(s) applied", start_key, len(applied_keys))
        return PasteResult(applied_keys=applied_keys, dropped_tokens=dropped)
