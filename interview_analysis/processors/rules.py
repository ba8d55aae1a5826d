"""
Static rule tables and small text helpers shared by the scoring processors.
"""
import math
import re
from typing import Iterable, List, Pattern, Sequence, Tuple

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "are", "was", "were", "be", "been", "have",
    "has", "had", "do", "does", "did", "will", "would", "could", "should",
})

# (pattern, message); each distinct message costs 10 clarity points
GRAMMAR_RULES: List[Tuple[Pattern, str]] = [
    (re.compile(r"\b(there|their|they're)\b", re.IGNORECASE), "Check usage of there/their/they're"),
    (re.compile(r"\b(your|you're)\b", re.IGNORECASE), "Check usage of your/you're"),
    (re.compile(r"\b(its|it's)\b", re.IGNORECASE), "Check usage of its/it's"),
    (re.compile(r"[ \t]{2,}"), "Multiple spaces detected"),
    (re.compile(r"[.!?]{2,}"), "Multiple punctuation marks"),
    (re.compile(r"\b(alot|alright)\b", re.IGNORECASE), 'Consider using "a lot" or "all right"'),
    (re.compile(r"\b(gonna|wanna|gotta|kinda|sorta|ain't)\b", re.IGNORECASE), "Avoid informal contractions"),
]

INTRODUCTORY_PHRASES = (
    "first", "to start", "initially", "in my experience", "let me explain",
    "i would say", "from my perspective", "in this situation",
)

CONCLUSIVE_PHRASES = (
    "in conclusion", "to summarize", "overall", "in the end", "ultimately",
    "so in summary", "that's why", "therefore", "as a result",
)

LOGICAL_FLOW_WORDS = (
    "however", "therefore", "furthermore", "additionally", "moreover",
    "consequently", "meanwhile", "subsequently", "nevertheless",
)

TRANSITION_WORDS = LOGICAL_FLOW_WORDS + (
    "also", "then", "next", "finally", "first", "second", "third",
)

BACK_REFERENCE_RE = re.compile(r"\b(this|that|these|those|it|they|them)\b")

# Expected word-count ranges per question type for the full pass: (min, max)
ANSWER_LENGTH_RANGES = {
    "behavioral": (80, 250),
    "technical": (60, 200),
    "situational": (70, 220),
    "system-design": (100, 300),
}
DEFAULT_ANSWER_LENGTH = (50, 200)

TECHNICAL_TERM_PATTERNS = [
    re.compile(r"\b(algorithm|database|api|framework|library|architecture)s?\b"),
    re.compile(r"\b(performance|scalability|optimization|efficiency)\b"),
    re.compile(r"\b(security|authentication|authorization|encryption)\b"),
    re.compile(r"\b(testing|debugging|deployment|monitoring)\b"),
]

SPECIFIC_EXAMPLE_PATTERNS = [
    re.compile(r"\b(for example|for instance|such as|like when)\b"),
    re.compile(r"\b(in my experience|at my previous job|when i worked)\b"),
    re.compile(r"\b(i once|i remember|i implemented|i developed|i led|i built|i designed)\b"),
]

METHODOLOGY_RE = re.compile(
    r"(?<![\w/])(agile|scrum|kanban|waterfall|devops|ci/cd|tdd|bdd|solid|dry|mvc|mvp|rest|graphql)(?![\w/])"
)

EXAMPLE_PHRASES = (
    "for example", "for instance", "such as", "like when", "in my experience",
    "at my previous job", "when i worked", "i once", "i remember",
    "i led", "i implemented", "i developed", "i built", "i designed", "i created",
)

SPECIFIC_DETAIL_RE = re.compile(
    r"\d+(\.\d+)?\s*%"
    r"|\b\d+\s*(hours?|days?|weeks?|months?|years?)\b"
    r"|\bversion\s*\d+"
    r"|\b\d+\s*(users?|customers?|people|engineers?|requests?)\b",
    re.IGNORECASE,
)

QUANTIFIED_RESULT_PATTERNS = [
    re.compile(
        r"\b(increased|decreased|improved|reduced|cut|grew|boosted|lowered|raised)\b[^.!?]{0,60}?\bby\s+\$?\d+",
        re.IGNORECASE,
    ),
    re.compile(
        r"\d+(\.\d+)?\s*%\s+(increase|decrease|improvement|reduction|growth|faster|fewer|less|more)\b",
        re.IGNORECASE,
    ),
    re.compile(r"\b(saved|earned|generated)\s+\$?\d+", re.IGNORECASE),
]

INSIGHT_PHRASES = (
    "i learned", "i realized", "the key insight", "what i discovered",
    "the important thing", "i would do differently", "looking back",
    "the challenge was", "the solution was", "i believe", "in my opinion",
)

REFLECTIVE_PHRASES = (
    "i learned", "i realized", "looking back", "in retrospect",
    "i would do differently", "if i had to do it again", "the lesson was",
)

LESSON_PHRASES = (
    "lesson learned", "key takeaway", "what i discovered", "i found that",
    "it taught me", "i now understand", "i came to realize",
)

PERSONAL_EXPERIENCE_PHRASES = (
    "in my experience", "i have worked", "i have seen", "i have found",
    "from my background", "in my role", "when i was", "at my previous",
)

INNOVATION_PHRASES = (
    "innovative approach", "creative solution", "new way", "different approach",
    "unique perspective", "novel idea", "thinking outside",
)

PERSPECTIVE_PHRASES = (
    "on the other hand", "alternatively", "another approach", "different perspective",
    "from another angle", "considering both", "pros and cons", "trade-off", "tradeoff",
)

ACTIONABLE_PHRASES = (
    "i would recommend", "the solution is", "we should", "i suggest",
    "the best approach", "i would implement", "the strategy would be",
)

# Concept elements that are rarely named verbatim in an answer; an expected
# element also counts as matched when one of its indicators is present.
ELEMENT_INDICATORS = {
    "leadership": re.compile(r"\b(led|lead|leading|managed|mentored|spearheaded|took ownership|team of)\b"),
    "metrics": re.compile(r"\d+(\.\d+)?\s*%|\bpercent\b|\b(kpis?|measured|metric)\b"),
    "teamwork": re.compile(r"\b(collaborat\w*|together|teammates?|cross-functional)\b"),
    "communication": re.compile(r"\b(explained|presented|communicat\w*|stakeholders?)\b"),
    "problem solving": re.compile(r"\b(solved|root cause|debugged|diagnosed|workaround)\b"),
    "situation": re.compile(r"\b(when i was|at my previous|we were facing|the situation)\b"),
    "task": re.compile(r"\b(my task|responsible for|my goal|i needed to)\b"),
    "action": re.compile(r"\b(i decided|i implemented|i led|i built|i created|i organized)\b"),
    "result": re.compile(r"\b(as a result|resulted|outcome|achieved|reduced|increased|improved)\b"),
}

CONFIDENCE_PHRASES = (
    "i am confident", "i believe", "i know", "definitely", "certainly",
    "absolutely", "clearly", "obviously", "without doubt",
)

UNCERTAINTY_PHRASES = (
    "i think", "maybe", "perhaps", "possibly", "i guess", "i suppose",
    "not sure", "uncertain", "might be", "could be",
)

POSITIVE_WORDS = (
    "good", "great", "excellent", "amazing", "wonderful", "fantastic",
    "successful", "effective", "efficient", "innovative", "creative",
    "accomplished", "achieved", "improved", "enhanced", "optimized",
)

NEGATIVE_WORDS = (
    "bad", "terrible", "awful", "horrible", "failed", "unsuccessful",
    "ineffective", "inefficient", "problematic", "difficult", "challenging",
    "struggled", "issues", "problems", "mistakes", "errors",
)

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_NON_WORD_RE = re.compile(r"[^\w\s]")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: float, lo: float = 0, hi: float = 100) -> float:
    return max(lo, min(hi, value))


def split_sentences(text: str) -> List[str]:
    return [s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def word_count(text: str) -> int:
    return len(text.split())


def contains_any(text: str, phrases: Iterable[str]) -> bool:
    return any(p in text for p in phrases)


def count_present(text: str, phrases: Iterable[str]) -> int:
    return sum(1 for p in phrases if p in text)


def count_matches(text: str, patterns: Sequence[Pattern]) -> int:
    return sum(len(p.findall(text)) for p in patterns)


def count_words_present(text: str, words: Iterable[str]) -> int:
    """Count distinct words from ``words`` present as whole words in ``text``."""
    return sum(1 for w in words if re.search(rf"\b{re.escape(w)}\b", text))


def extract_keywords(text: str, limit: int = 0) -> List[str]:
    """Stop-word filtered terms longer than two characters, first occurrence order."""
    seen: List[str] = []
    for word in _NON_WORD_RE.sub("", text.lower()).split():
        if len(word) > 2 and word not in STOP_WORDS and word not in seen:
            seen.append(word)
    return seen[:limit] if limit else seen


def matches_element(text_lower: str, element: str) -> bool:
    """Substring match of an expected element, or one of its known indicators."""
    element_lower = element.lower().strip()
    if not element_lower:
        return False
    if element_lower in text_lower:
        return True
    indicator = ELEMENT_INDICATORS.get(element_lower.replace("-", " "))
    return bool(indicator and indicator.search(text_lower))
