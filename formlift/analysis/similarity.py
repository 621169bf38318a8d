"""
Label and control group similarity measures
"""

from typing import Sequence

from formlift.analysis.models import ControlSignature

DEFAULT_LABEL_SIMILARITY_THRESHOLD = 0.7
DEFAULT_GROUP_SIMILARITY_THRESHOLD = 0.8


def levenshtein_distance(s1: str, s2: str) -> int:
    """
    Edit distance between two strings (insert, delete, substitute)

    Args:
        s1: First string
        s2: Second string

    Returns:
        Minimum number of single-character edits
    """
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    previous = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1, start=1):
        current = [i]
        for j, c2 in enumerate(s2, start=1):
            cost = 0 if c1 == c2 else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current

    return previous[-1]


def label_similarity(label1: str, label2: str) -> float:
    """
    Normalized similarity of two labels in [0, 1], case-insensitive

    Returns 0.0 when either label is empty.
    """
    if not label1 or not label2:
        return 0.0

    folded1, folded2 = label1.lower(), label2.lower()
    if folded1 == folded2:
        return 1.0

    distance = levenshtein_distance(folded1, folded2)
    return 1.0 - distance / max(len(label1), len(label2))


def are_labels_similar(label1: str, label2: str,
                       threshold: float = DEFAULT_LABEL_SIMILARITY_THRESHOLD) -> bool:
    """True for identical labels (ignoring case) or labels within the edit threshold"""
    if not label1 or not label2:
        return False
    return label_similarity(label1, label2) >= threshold


def group_similarity(controls1: Sequence[ControlSignature],
                     controls2: Sequence[ControlSignature],
                     label_threshold: float = DEFAULT_LABEL_SIMILARITY_THRESHOLD) -> float:
    """
    Position-wise similarity of two control sequences

    Each position scores 1 for matching types and 1 more when the labels are
    also similar. Sequences of different length score 0.

    Returns:
        Score in [0, 1]
    """
    if len(controls1) != len(controls2) or not controls1:
        return 0.0

    matches = 0
    for c1, c2 in zip(controls1, controls2):
        if c1.type == c2.type:
            matches += 1
            if are_labels_similar(c1.normalized_label, c2.normalized_label, label_threshold):
                matches += 1

    return matches / (len(controls1) * 2)
