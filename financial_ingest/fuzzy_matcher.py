"""
Field Candidate Ranking.

Builds the ranked "did you mean" list a field picker shows next to each
column.  Uses ``rapidfuzz`` to score the column name against every field's
label and aliases.  Results are confidence-gated:

* Candidates **below** ``candidate_threshold`` are dropped.
* If the two best candidates are within ``ambiguity_delta`` of each other
  the top one is flagged as ambiguous.

Ranking is advisory only; ``AutoMapper.suggest_field`` never consults it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from rapidfuzz import fuzz, process

from financial_ingest.config import MatchingConfig
from financial_ingest.field_registry import FieldRegistry, default_registry
from financial_ingest.logging_setup import get_logger
from financial_ingest.normalizer import normalize_column_name

logger = get_logger("fuzzy_matcher")


@dataclass
class FieldCandidate:
    """A single ranked candidate for one column."""

    field_id: str
    label: str
    score: float  # 0–100
    is_ambiguous: bool = False

    def to_dict(self) -> dict:
        return {
            "fieldId": self.field_id,
            "label": self.label,
            "score": round(self.score, 2),
            "isAmbiguous": self.is_ambiguous,
        }


class FieldCandidateRanker:
    """Rank standard fields by similarity to a raw column name.

    The ranker pre-builds a pool of space-separated target strings (labels
    and aliases) so that ``token_sort_ratio`` compares words rather than
    underscore-glued identifiers.

    Parameters
    ----------
    config:
        Thresholds and result limit.
    registry:
        Field catalogue.  Defaults to the built-in one.
    """

    def __init__(
        self,
        config: Optional[MatchingConfig] = None,
        registry: Optional[FieldRegistry] = None,
    ) -> None:
        self._config = config or MatchingConfig()
        self._registry = registry or default_registry()

        # target text → field id (first field wins on collisions)
        self._targets: Dict[str, str] = {}
        for f in self._registry:
            for text in (f.label, f.id, *f.aliases):
                key = normalize_column_name(text).replace("_", " ")
                if key:
                    self._targets.setdefault(key, f.id)
        self._target_keys: List[str] = list(self._targets)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def rank(self, raw_column_name: str, limit: Optional[int] = None) -> List[FieldCandidate]:
        """Return up to ``limit`` candidates, best first."""
        if limit is None:
            limit = self._config.candidate_limit
        query = normalize_column_name(raw_column_name or "").replace("_", " ")
        if not query:
            return []

        # Several targets can belong to one field; over-fetch, then keep
        # each field's best score.
        results = process.extract(
            query,
            self._target_keys,
            scorer=fuzz.token_sort_ratio,
            limit=len(self._target_keys),
            score_cutoff=self._config.candidate_threshold,
        )

        best: Dict[str, float] = {}
        for key, score, _ in results:
            field_id = self._targets[key]
            if score > best.get(field_id, -1.0):
                best[field_id] = score

        ordered = sorted(best.items(), key=lambda kv: kv[1], reverse=True)[:limit]
        candidates = [
            FieldCandidate(
                field_id=field_id,
                label=self._registry.label_for(field_id),
                score=score,
            )
            for field_id, score in ordered
        ]

        if len(candidates) > 1:
            delta = candidates[0].score - candidates[1].score
            if delta <= self._config.ambiguity_delta:
                candidates[0].is_ambiguous = True
                logger.info(
                    "Ambiguous candidates for %r: %r (%.1f) vs %r (%.1f)",
                    raw_column_name,
                    candidates[0].field_id,
                    candidates[0].score,
                    candidates[1].field_id,
                    candidates[1].score,
                )

        if not candidates:
            logger.debug("No candidates above %.1f for %r",
                         self._config.candidate_threshold, raw_column_name)
        return candidates

    def rank_batch(self, names: List[str]) -> Dict[str, List[FieldCandidate]]:
        """Rank several column names.  Returns ``{name: candidates}``."""
        return {name: self.rank(name) for name in names}
