"""
Fuzzy matching for package search.

This module implements the scoring used by fuzzy finders such as fzf and
skim: the pattern has to appear in the candidate as a subsequence, and among
all the ways it can be aligned the best-scoring one wins. Alignments are
rewarded for consecutive runs, for starting on word boundaries and for
matching case, and penalized for the gaps between matched characters.
"""

from dataclasses import dataclass
from typing import List, Optional


CHAR_NON_WORD = 0
CHAR_LOWER = 1
CHAR_UPPER = 2
CHAR_LETTER = 3
CHAR_DIGIT = 4


@dataclass(frozen=True)
class ScoringWeights:
    """
    Weights of the fuzzy scoring function.

    The defaults follow fzf's: a match is worth 16, a gap costs 3 to open and
    1 per extra skipped character, and a boundary bonus is half a match.
    """
    score_match: int = 16
    gap_start: int = -3
    gap_extension: int = -1
    bonus_boundary: int = 8
    bonus_non_word: int = 8
    bonus_camel: int = 7
    bonus_consecutive: int = 4
    first_char_multiplier: int = 2
    bonus_case_match: int = 1


def char_class(char: str) -> int:
    if char.islower():
        return CHAR_LOWER
    if char.isupper():
        return CHAR_UPPER
    if char.isdigit():
        return CHAR_DIGIT
    if char.isalpha():
        return CHAR_LETTER
    return CHAR_NON_WORD


class FuzzyScorer:
    """
    Scores package names against a search pattern.

    A scorer holds only its immutable weights, so a single instance can be
    shared freely, including between threads.
    """

    def __init__(self, weights: Optional[ScoringWeights] = None):
        """
        Initialize the fuzzy scorer.

        Args:
            weights: Scoring weights. If None, uses the defaults.
        """
        self._weights = weights or ScoringWeights()

    def score(self, candidate: str, pattern: str) -> Optional[int]:
        """
        Score a candidate against a pattern.

        Matching ignores case; exact-case matches score slightly higher.

        Args:
            candidate: The string being searched, usually a package name.
            pattern: The user's query.

        Returns:
            None if the pattern is not a subsequence of the candidate, 0 for an
            empty pattern, otherwise a positive score (higher is better).
        """
        if not pattern:
            return 0
        if len(pattern) > len(candidate):
            return None

        folded_candidate = [c.lower() for c in candidate]
        folded_pattern = [c.lower() for c in pattern]

        if not self._is_subsequence(folded_candidate, folded_pattern):
            return None

        best = self._align(candidate, pattern, folded_candidate, folded_pattern)
        if best is None:
            return None

        # Long gaps can drive a genuine match below zero
        return max(best, 1)

    @staticmethod
    def _is_subsequence(folded_candidate: List[str], folded_pattern: List[str]) -> bool:
        i = 0
        for c in folded_candidate:
            if c == folded_pattern[i]:
                i += 1
                if i == len(folded_pattern):
                    return True
        return False

    def _bonuses(self, candidate: str) -> List[int]:
        w = self._weights
        bonuses = []
        prev = CHAR_NON_WORD
        for char in candidate:
            cur = char_class(char)
            if prev == CHAR_NON_WORD and cur != CHAR_NON_WORD:
                bonus = w.bonus_boundary
            elif (prev == CHAR_LOWER and cur == CHAR_UPPER) or (prev != CHAR_DIGIT and cur == CHAR_DIGIT):
                bonus = w.bonus_camel
            elif cur == CHAR_NON_WORD:
                bonus = w.bonus_non_word
            else:
                bonus = 0
            bonuses.append(bonus)
            prev = cur
        return bonuses

    def _align(
        self,
        candidate: str,
        pattern: str,
        folded_candidate: List[str],
        folded_pattern: List[str],
    ) -> Optional[int]:
        """
        Find the best alignment score.

        Row i of the table holds, for every candidate position j, the best
        score of an alignment of pattern[:i + 1] whose last character is
        matched at j (None when there is none), and the bonus of the run that
        match belongs to.
        """
        w = self._weights
        n = len(candidate)
        bonuses = self._bonuses(candidate)

        prev_scores: List[Optional[int]] = [None] * n
        prev_run_bonus = [0] * n

        for i, pattern_char in enumerate(folded_pattern):
            scores: List[Optional[int]] = [None] * n
            run_bonus = [0] * n
            # best score of a row i-1 match followed by a gap ending just before j
            gap_best: Optional[int] = None

            for j in range(n):
                if i > 0:
                    if gap_best is not None:
                        gap_best += w.gap_extension
                    if j >= 2 and prev_scores[j - 2] is not None:
                        opened = prev_scores[j - 2] + w.gap_start
                        if gap_best is None or opened > gap_best:
                            gap_best = opened

                if folded_candidate[j] != pattern_char:
                    continue

                bonus = bonuses[j]
                case = w.bonus_case_match if candidate[j] == pattern[i] else 0

                if i == 0:
                    scores[j] = w.score_match + bonus * w.first_char_multiplier + case
                    run_bonus[j] = bonus
                    continue

                best = None
                if j >= 1 and prev_scores[j - 1] is not None:
                    consecutive = max(bonus, prev_run_bonus[j - 1], w.bonus_consecutive)
                    best = prev_scores[j - 1] + w.score_match + consecutive + case
                    run_bonus[j] = bonus if bonus >= w.bonus_boundary else prev_run_bonus[j - 1]

                if gap_best is not None:
                    gapped = gap_best + w.score_match + bonus + case
                    if best is None or gapped > best:
                        best = gapped
                        run_bonus[j] = bonus

                scores[j] = best

            prev_scores = scores
            prev_run_bonus = run_bonus

        matched = [s for s in prev_scores if s is not None]
        if not matched:
            return None
        return max(matched)
