# core/position_resolver.py
"""
Claim Position Resolver.

Maps a claim's text plus its hinted page to a tight percent-of-page box by
matching against extracted page layouts. Resolution degrades through three
stages and never fails:

1. prefix anchor: a short leading phrase of the claim is found inside a single
   line and boxed using only the items that reproduce it;
2. windowed fuzzy match over consecutive text items and whole lines;
3. a deterministic staggered fallback pin.
"""
import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import AbstractSet, Final, List, Optional, Sequence, Tuple

from core.keywords import extract_numbers, tokens
from core.page_layout import (
    BoundingBox,
    is_usable,
    items_bbox,
    line_bbox,
    line_items,
    page_by_number,
    to_percent,
)
from core.text_normalizer import normalize, normalize_numeric
from model.claim import (
    Claim,
    ExtractedPosition,
    FallbackPosition,
    ModelPosition,
    Position,
    PrefixAnchorPosition,
)
from model.layout import Line, PageLayout, TextItem
from util.timing import timed

logger = logging.getLogger(__name__)

_SENTENCE_END: Final = re.compile(r"[.!?](?=\s|$)")


@dataclass(frozen=True)
class FuzzyWeights:
    token_hit_ratio: float = 6.0
    number_hit: float = 3.0
    all_numbers: float = 2.0
    starts_with_first_token: float = 1.0
    first_two_tokens: float = 1.0
    first_four_tokens: float = 2.0
    jaccard: float = 3.0
    full_claim: float = 4.0
    line_full_claim: float = 12.0
    line_jaccard: float = 6.0
    line_number_hit: float = 3.0


@dataclass(frozen=True)
class ResolverConfig:
    # Prefix anchor
    sentence_prefix_chars: int = 60
    prefix_tokens: int = 5
    prefix_tokens_numeric: int = 7
    prefix_min_coverage: float = 0.6
    prefix_base_score: float = 10.0
    prefix_min_score: float = 10.0
    prefix_page_bonus: float = 2.0
    prefix_number_bonus: float = 3.0
    prefix_tight_bonus: float = 1.0
    prefix_tight_items: int = 3
    prefix_confidence_scale: float = 15.0
    # Windowed fuzzy
    window_min: int = 8
    window_max: int = 18
    window_padding: int = 6
    fuzzy_page_bias: float = 0.8
    fuzzy_min_score: float = 0.0
    fuzzy_confidence_scale: float = 20.0
    weights: FuzzyWeights = field(default_factory=FuzzyWeights)
    # Fallbacks
    model_hint_confidence: float = 0.1
    fallback_x: float = 12.0
    fallback_y: float = 12.0
    fallback_step: float = 9.0
    fallback_span: float = 76.0


DEFAULT_CONFIG: Final = ResolverConfig()


def clamp01(v: float) -> float:
    return max(0.0, min(1.0, v))


def _clamp_pct(v: float) -> float:
    return max(0.0, min(100.0, v))


def jaccard(a: AbstractSet[str], b: AbstractSet[str]) -> float:
    union = a | b
    return len(a & b) / len(union) if union else 0.0


def contains_number(numeric_text: str, number: str) -> bool:
    """Whole-number containment: "47" matches "47%" but not "147" or "4.47"."""
    pattern = rf"(?<!\d)(?<!\d[.,]){re.escape(number)}(?!\d)(?![.,]\d)"
    return re.search(pattern, numeric_text) is not None


# ---------------- Claim profile ----------------


@dataclass(frozen=True)
class ClaimProfile:
    text: str
    tokens: Tuple[str, ...]
    numbers: Tuple[str, ...]
    prefix: str
    hint_page: int

    @property
    def token_set(self) -> frozenset:
        return frozenset(self.tokens)

    @property
    def prefix_tokens(self) -> Tuple[str, ...]:
        return tuple(self.prefix.split())


def claim_prefix(text: str, has_numbers: bool, config: ResolverConfig = DEFAULT_CONFIG) -> str:
    """
    Normalized leading phrase used as an anchor: the first sentence when it ends
    within `sentence_prefix_chars`, otherwise the first few tokens (more when the
    claim carries numbers, which disambiguate repeated boilerplate).
    """
    m = _SENTENCE_END.search(text or "")
    if m and m.start() < config.sentence_prefix_chars:
        sentence = normalize(text[: m.start()])
        if sentence:
            return sentence
    count = config.prefix_tokens_numeric if has_numbers else config.prefix_tokens
    return " ".join(tokens(text)[:count])


def profile_claim(claim: Claim, config: ResolverConfig = DEFAULT_CONFIG) -> ClaimProfile:
    numbers = tuple(extract_numbers(claim.text))
    return ClaimProfile(
        text=normalize(claim.text),
        tokens=tuple(tokens(claim.text)),
        numbers=numbers,
        prefix=claim_prefix(claim.text, bool(numbers), config),
        hint_page=claim.page,
    )


@dataclass(frozen=True)
class Candidate:
    page: PageLayout
    box: BoundingBox
    score: float
    rank: float
    numeric: bool = False
    same_page: bool = False


# ---------------- Stage 1: prefix anchor ----------------


def covering_items(
    prefix_tokens: Sequence[str],
    page: PageLayout,
    line: Line,
    min_coverage: float,
) -> Optional[List[int]]:
    """
    Shortest run of the line's items reproducing as many prefix tokens as
    possible. Returns item indices, or None when coverage stays below
    `min_coverage`.
    """
    wanted = set(prefix_tokens)
    if not wanted:
        return None
    idx = [
        i for i in line.itemIndices
        if 0 <= i < len(page.items) and page.items[i].text.strip()
    ]
    item_tokens = [set(normalize(page.items[i].text).split()) for i in idx]

    def _span_from(start: int) -> Tuple[float, int, List[int]]:
        seen: set = set()
        coverage, end = 0.0, start
        for e in range(start, len(idx)):
            gained = (item_tokens[e] & wanted) - seen
            if gained:
                seen |= gained
                coverage, end = len(seen) / len(wanted), e
                if coverage >= 1.0:
                    break
        return coverage, -(end - start + 1), idx[start : end + 1]

    spans = [_span_from(s) for s in range(len(idx))]
    if not spans:
        return None
    coverage, _, members = max(spans, key=lambda t: (t[0], t[1]))
    return members if coverage >= min_coverage else None


def prefix_candidate(
    profile: ClaimProfile,
    page: PageLayout,
    line: Line,
    config: ResolverConfig = DEFAULT_CONFIG,
) -> Optional[Candidate]:
    if not profile.prefix or profile.prefix not in normalize(line.text):
        return None
    numeric = bool(profile.numbers)
    if numeric:
        line_numeric = normalize_numeric(line.text)
        if not any(contains_number(line_numeric, n) for n in profile.numbers):
            return None

    if line.itemIndices:
        members = covering_items(
            profile.prefix_tokens, page, line, config.prefix_min_coverage
        )
        if members is None:
            return None
        box = items_bbox(page.items[i] for i in members)
        tight = len(members) <= config.prefix_tight_items
    else:
        box = line_bbox(line)
        tight = False

    same_page = page.pageNum == profile.hint_page
    score = (
        config.prefix_base_score
        + (config.prefix_page_bonus if same_page else 0.0)
        + (config.prefix_number_bonus if numeric else 0.0)
        + (config.prefix_tight_bonus if tight else 0.0)
    )
    return Candidate(
        page=page, box=box, score=score, rank=score, numeric=numeric, same_page=same_page
    )


def best_prefix_candidate(
    profile: ClaimProfile,
    pages: Sequence[PageLayout],
    config: ResolverConfig = DEFAULT_CONFIG,
) -> Optional[Candidate]:
    candidates = [
        c
        for page in pages
        if is_usable(page)
        for line in page.lines
        for c in [prefix_candidate(profile, page, line, config)]
        if c is not None
    ]
    if not candidates:
        return None
    hit = next((c for c in candidates if c.same_page and c.numeric), None)
    if hit is not None:
        return hit
    return max(candidates, key=lambda c: (c.score, c.numeric))


# ---------------- Stage 2: windowed fuzzy ----------------


def window_size(token_count: int, config: ResolverConfig = DEFAULT_CONFIG) -> int:
    return max(config.window_min, min(config.window_max, token_count + config.window_padding))


def window_score(
    profile: ClaimProfile, raw: str, weights: FuzzyWeights = FuzzyWeights()
) -> float:
    text = normalize(raw)
    numeric_text = normalize_numeric(raw)
    win_tokens = text.split()
    win_set = set(win_tokens)
    claim_set = profile.token_set

    hit_ratio = len(claim_set & win_set) / len(claim_set) if claim_set else 0.0
    number_hits = sum(1 for n in profile.numbers if contains_number(numeric_text, n))
    all_numbers = bool(profile.numbers) and number_hits == len(profile.numbers)
    first = profile.tokens[0] if profile.tokens else ""
    first_two = " ".join(profile.tokens[:2]) if len(profile.tokens) >= 2 else ""
    first_four = " ".join(profile.tokens[:4])

    return (
        weights.token_hit_ratio * hit_ratio
        + weights.number_hit * number_hits
        + (weights.all_numbers if all_numbers else 0.0)
        + (weights.starts_with_first_token if first and win_tokens[:1] == [first] else 0.0)
        + (weights.first_two_tokens if first_two and first_two in text else 0.0)
        + (weights.first_four_tokens if first_four and first_four in text else 0.0)
        + weights.jaccard * jaccard(claim_set, win_set)
        + (weights.full_claim if profile.text and profile.text in text else 0.0)
    )


def line_score(
    profile: ClaimProfile, raw: str, weights: FuzzyWeights = FuzzyWeights()
) -> float:
    text = normalize(raw)
    numeric_text = normalize_numeric(raw)
    number_hits = sum(1 for n in profile.numbers if contains_number(numeric_text, n))
    return (
        (weights.line_full_claim if profile.text and profile.text in text else 0.0)
        + weights.line_jaccard * jaccard(profile.token_set, set(text.split()))
        + weights.line_number_hit * number_hits
    )


def _item_matches(profile: ClaimProfile, item: TextItem) -> bool:
    if profile.token_set & set(normalize(item.text).split()):
        return True
    numeric_text = normalize_numeric(item.text)
    return any(contains_number(numeric_text, n) for n in profile.numbers)


def _subset_box(profile: ClaimProfile, items: Sequence[TextItem]) -> Optional[BoundingBox]:
    matching = [it for it in items if _item_matches(profile, it)]
    return items_bbox(matching or items)


def best_fuzzy_on_page(
    profile: ClaimProfile,
    page: PageLayout,
    config: ResolverConfig = DEFAULT_CONFIG,
) -> Optional[Candidate]:
    weights = config.weights
    usable = [it for it in page.items if it.text.strip()]
    size = window_size(len(profile.tokens), config)

    # (score, prefers_line, items-or-line)
    scored: List[Tuple[float, bool, object]] = []
    for start in range(max(1, len(usable) - size + 1)):
        chunk = usable[start : start + size]
        if not chunk:
            break
        raw = " ".join(it.text for it in chunk)
        scored.append((window_score(profile, raw, weights), False, chunk))
    for line in page.lines:
        scored.append((line_score(profile, line.text, weights), True, line))
    if not scored:
        return None

    score, is_line, target = max(scored, key=lambda t: (t[0], t[1]))
    if is_line:
        members = line_items(page, target)
        box = _subset_box(profile, members) if members else line_bbox(target)
    else:
        box = _subset_box(profile, target)
    if box is None:
        return None

    same_page = page.pageNum == profile.hint_page
    return Candidate(
        page=page,
        box=box,
        score=score,
        rank=score + (config.fuzzy_page_bias if same_page else 0.0),
        numeric=bool(profile.numbers),
        same_page=same_page,
    )


def best_fuzzy_candidate(
    profile: ClaimProfile,
    pages: Sequence[PageLayout],
    config: ResolverConfig = DEFAULT_CONFIG,
) -> Optional[Candidate]:
    per_page = [
        c
        for page in pages
        if is_usable(page)
        for c in [best_fuzzy_on_page(profile, page, config)]
        if c is not None
    ]
    return max(per_page, key=lambda c: c.rank, default=None)


# ---------------- Stage 3: fallbacks ----------------


def fallback_position(index: int, config: ResolverConfig = DEFAULT_CONFIG) -> FallbackPosition:
    """Staggered pin down the left margin so pins never overlap exactly."""
    return FallbackPosition(
        x=config.fallback_x,
        y=config.fallback_y + (index * config.fallback_step) % config.fallback_span,
        width=0.0,
        height=0.0,
        confidence=0.0,
        score=0.0,
    )


def _model_position(
    claim: Claim, pages: Sequence[PageLayout], config: ResolverConfig
) -> Optional[ModelPosition]:
    if claim.x is None or claim.y is None:
        return None
    if page_by_number(pages, claim.page) is None:
        return None
    return ModelPosition(
        x=_clamp_pct(claim.x),
        y=_clamp_pct(claim.y),
        confidence=config.model_hint_confidence,
        score=0.0,
        page=claim.page,
    )


# ---------------- Public API ----------------


def resolve_position(
    claim: Claim,
    index: int,
    pages: Sequence[PageLayout],
    config: ResolverConfig = DEFAULT_CONFIG,
    use_model_hint: bool = False,
) -> Position:
    """
    Resolve one claim (at array position `index`) to a Position. Total: always
    returns a position, falling back to a deterministic pin.
    """
    profile = profile_claim(claim, config)

    anchor = best_prefix_candidate(profile, pages, config)
    if anchor is not None and anchor.score >= config.prefix_min_score:
        pct = to_percent(anchor.box, anchor.page)
        return PrefixAnchorPosition(
            source="prefix-anchor-numbers" if anchor.numeric else "prefix-anchor",
            x=_clamp_pct(pct.x),
            y=_clamp_pct(pct.y),
            width=pct.width,
            height=pct.height,
            confidence=clamp01(anchor.score / config.prefix_confidence_scale),
            score=anchor.score,
            page=anchor.page.pageNum,
        )

    fuzzy = best_fuzzy_candidate(profile, pages, config)
    if fuzzy is not None and fuzzy.score > 0 and fuzzy.score >= config.fuzzy_min_score:
        pct = to_percent(fuzzy.box, fuzzy.page)
        return ExtractedPosition(
            x=_clamp_pct(pct.x),
            y=_clamp_pct(pct.y),
            width=pct.width,
            height=pct.height,
            confidence=clamp01(fuzzy.score / config.fuzzy_confidence_scale),
            score=round(fuzzy.score, 3),
            page=fuzzy.page.pageNum,
        )

    if use_model_hint:
        hinted = _model_position(claim, pages, config)
        if hinted is not None:
            return hinted

    return fallback_position(index, config)


def assign_global_indices(claims: Sequence[Claim]) -> List[Claim]:
    """
    Reading-order numbering: rank by (page, original position), assign 1..N,
    and return the claims in their original order.
    """
    order = sorted(range(len(claims)), key=lambda i: (claims[i].page, i))
    rank = {pos: n for n, pos in enumerate(order, start=1)}
    return [c.model_copy(update={"globalIndex": rank[i]}) for i, c in enumerate(claims)]


def resolve_positions(
    claims: Sequence[Claim],
    pages: Sequence[PageLayout],
    config: ResolverConfig = DEFAULT_CONFIG,
    use_model_hint: bool = False,
) -> List[Claim]:
    """Attach a position to every claim, then assign global indices."""
    with timed(logger, "position.resolve", claims=len(claims), pages=len(pages)):
        positioned = [
            c.model_copy(
                update={
                    "position": resolve_position(c, i, pages, config, use_model_hint)
                }
            )
            for i, c in enumerate(claims)
        ]
    sources = Counter(c.position.source for c in positioned)
    logger.info(
        "position.sources %s", " ".join(f"{k}={v}" for k, v in sorted(sources.items()))
    )
    return assign_global_indices(positioned)
