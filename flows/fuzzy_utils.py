from rapidfuzz.distance import Levenshtein

# Calibrated against calculate_similarity below, not against rapidfuzz's own ratios.
SIMILARITY_THRESHOLD = 0.7

def levenshtein_distance(a: str, b: str) -> int:
    # Unit-cost insertions, deletions and substitutions.
    return Levenshtein.distance(a, b)

def calculate_similarity(a: str, b: str) -> float:
    """
    Score how close two questions are, from 0.0 (unrelated) to 1.0 (identical).

    Both sides are trimmed and lower-cased, then the edit distance is taken
    relative to the longer string: (len(longer) - distance) / len(longer).
    Two empty strings count as a perfect match.
    """
    s1 = (a or "").strip().lower()
    s2 = (b or "").strip().lower()
    longer, shorter = (s1, s2) if len(s1) > len(s2) else (s2, s1)
    if len(longer) == 0:
        return 1.0
    edit_distance = levenshtein_distance(longer, shorter)
    return (len(longer) - edit_distance) / len(longer)
