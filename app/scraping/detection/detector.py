"""
Selector auto-detection for previously unseen competitor search pages.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass

from app.domain.compare import DetectionResult
from app.scraping.config.models import CompetitorSelectors, DetectionSettings
from app.scraping.detection.fields import inspect_card
from app.scraping.detection.signatures import (
    NON_CONTENT_TAGS,
    Signature,
    compound_selector,
    signature,
)
from app.scraping.dom import QueryableDocument, QueryableNode, SelectorSyntaxError
from app.scraping.errors import DetectionFailure, PageFetchError
from app.scraping.fetchers.base import PageFetcher, RenderSettle
from app.scraping.logging_utils import elapsed_ms, log_event
from app.scraping.normalization import has_currency_amount, is_bare_decimal, parse_price
from app.scraping.parsing import PRODUCT_FIELDS, locate_field

logger = logging.getLogger(__name__)

FALLBACK_SELECTORS = {
    "name": "h2, h3, h4, .title",
    "price": ".price",
    "image": "img",
    "url": "a",
}
MIN_CARD_ELEMENTS = 2
CLASSLESS_PENALTY = 0.5
NEVER_CONTAINERS = frozenset({"html", "body", "img", "picture", "source"})


@dataclass(frozen=True)
class CandidateGroup:
    """
    Elements sharing one structural signature.
    """

    signature: Signature
    selector: str
    members: list[QueryableNode]
    viable: list[QueryableNode]
    depth: int
    match_count: int
    precision: float

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def density(self) -> float:
        return len(self.viable) / len(self.members) if self.members else 0.0

    @property
    def score(self) -> float:
        weight = 1.0 if self.signature[1] else CLASSLESS_PENALTY
        return len(self.viable) * self.density * weight * self.precision


@dataclass(frozen=True)
class GroupAnalysis:
    """
    Field inference outcome for one candidate group.
    """

    group: CandidateGroup
    selectors: CompetitorSelectors
    sampled: int
    completeness: float
    consistency: float
    field_success: float


class SelectorDetector:
    """
    Infers container/name/price/image/link selectors from one rendered
    search results page.
    """

    def __init__(
        self,
        *,
        fetcher: PageFetcher,
        settings: DetectionSettings | None = None,
    ) -> None:
        self._fetcher = fetcher
        self._settings = settings or DetectionSettings()

    @property
    def settings(self) -> DetectionSettings:
        return self._settings

    def detect(self, search_url: str) -> DetectionResult | None:
        """
        Render `search_url` and infer a selector set.

        Returns None when no repeating product container exists. Raises
        DetectionFailure when the page cannot be rendered at all.
        """

        started_at = time.monotonic()
        settle = RenderSettle(
            settle_delay_ms=self._settings.settle_delay_ms,
            scroll_cycles=1,
            scroll_delay_ms=self._settings.scroll_delay_ms,
        )
        try:
            document = self._fetcher.fetch(
                search_url,
                timeout_seconds=self._settings.timeout_ms / 1000.0,
                settle=settle,
            )
        except PageFetchError as exc:
            log_event(
                logger,
                logging.WARNING,
                "selector_detection_fetch_failed",
                search_url=search_url,
                error=str(exc),
            )
            raise DetectionFailure(f"Could not render {search_url}: {exc}") from exc

        result = self.detect_document(document)
        log_event(
            logger,
            logging.INFO,
            "selector_detection_completed",
            search_url=search_url,
            detected=result is not None,
            confidence=result.confidence if result else None,
            duration_ms=elapsed_ms(started_at),
        )
        return result

    def detect_document(self, document: QueryableDocument) -> DetectionResult | None:
        """
        Infer selectors from an already rendered page.
        """

        groups: list[CandidateGroup] = []
        currency_marked = True
        for currency_marked in (True, False):
            groups = self._rank_groups(document, currency_marked=currency_marked)
            if groups:
                break
        if not groups:
            log_event(logger, logging.INFO, "selector_detection_no_container", url=document.url)
            return None

        best_score = groups[0].score
        finalists = [
            group
            for group in groups[: self._settings.max_candidate_groups]
            if group.score >= best_score * self._settings.near_equal_ratio
        ]

        analyses: list[GroupAnalysis] = []
        for group in finalists:
            analysis = self._analyze_group(
                document,
                group,
                currency_marked=currency_marked,
            )
            if analysis is not None:
                analyses.append(analysis)
        if not analyses:
            log_event(
                logger,
                logging.INFO,
                "selector_detection_insufficient_samples",
                url=document.url,
                candidates=[group.selector for group in finalists],
            )
            return None

        best = max(
            analyses,
            key=lambda item: (
                round(item.field_success, 6),
                round(item.group.precision, 6),
                item.group.size,
                -item.group.depth,
            ),
        )
        confidence = self._confidence(best)
        log_event(
            logger,
            logging.DEBUG,
            "selector_detection_chosen",
            url=document.url,
            container=best.group.selector,
            group_size=best.group.size,
            completeness=best.completeness,
            consistency=best.consistency,
            precision=best.group.precision,
            confidence=confidence,
            currency_marked=currency_marked,
        )
        return DetectionResult(
            selectors=best.selectors,
            confidence=confidence,
            container_count=best.group.match_count,
            sampled=best.sampled,
        )

    def _rank_groups(
        self,
        document: QueryableDocument,
        *,
        currency_marked: bool,
    ) -> list[CandidateGroup]:
        body = document.body()
        members_by_signature: dict[Signature, list[QueryableNode]] = {}
        for node in body.descendants():
            if node.tag in NON_CONTENT_TAGS or node.tag in NEVER_CONTAINERS:
                continue
            members_by_signature.setdefault(signature(node), []).append(node)

        groups: list[CandidateGroup] = []
        for node_signature, members in members_by_signature.items():
            if len(members) < self._settings.min_repetitions:
                continue
            viable = _outermost_free(
                [
                    member
                    for member in members
                    if self._is_viable_card(member, currency_marked=currency_marked)
                ]
            )
            if len(viable) < self._settings.min_repetitions:
                continue
            selector, match_count, precision = _container_selector(document, members, viable)
            groups.append(
                CandidateGroup(
                    signature=node_signature,
                    selector=selector,
                    members=members,
                    viable=viable,
                    depth=members[0].depth_from(body) or 0,
                    match_count=match_count,
                    precision=precision,
                )
            )

        groups.sort(key=lambda group: (-group.score, -group.size, group.depth))
        return groups

    @staticmethod
    def _is_viable_card(node: QueryableNode, *, currency_marked: bool) -> bool:
        element_count = 0
        for _ in node.descendants():
            element_count += 1
            if element_count >= MIN_CARD_ELEMENTS:
                break
        if element_count < MIN_CARD_ELEMENTS:
            return False
        if currency_marked:
            return has_currency_amount(node.text())
        return any(is_bare_decimal(item.text()) for item in node.descendants())

    def _analyze_group(
        self,
        document: QueryableDocument,
        group: CandidateGroup,
        *,
        currency_marked: bool,
    ) -> GroupAnalysis | None:
        samples = group.viable[: self._settings.sample_size]
        findings = [
            inspect_card(card, page_url=document.url, currency_marked=currency_marked)
            for card in samples
        ]
        usable = [item for item in findings if item.found_count > 0]
        if len(usable) < self._settings.min_usable_samples:
            return None

        chosen: dict[str, str] = {}
        agreement: list[float] = []
        for field_name in PRODUCT_FIELDS:
            votes = Counter(
                item.selectors[field_name] for item in findings if field_name in item.selectors
            )
            if not votes:
                chosen[field_name] = FALLBACK_SELECTORS[field_name]
                agreement.append(0.0)
                continue
            pattern, count = votes.most_common(1)[0]
            chosen[field_name] = pattern
            agreement.append(count / sum(votes.values()))

        resolved_counts = [
            self._resolved_fields(card, chosen, page_url=document.url) for card in samples
        ]
        completeness = sum(
            1 for count in resolved_counts if count == len(PRODUCT_FIELDS)
        ) / len(samples)
        field_success = sum(resolved_counts) / (len(samples) * len(PRODUCT_FIELDS))

        return GroupAnalysis(
            group=group,
            selectors=CompetitorSelectors(container=group.selector, **chosen),
            sampled=len(samples),
            completeness=completeness,
            consistency=sum(agreement) / len(agreement),
            field_success=field_success,
        )

    @staticmethod
    def _resolved_fields(card: QueryableNode, chosen: dict[str, str], *, page_url: str) -> int:
        """
        How many of the chosen selectors yield a usable value on `card`.
        """

        resolved = 0
        for field_name in PRODUCT_FIELDS:
            found = locate_field(card, field_name, chosen[field_name])
            if found is None:
                continue
            if field_name == "price" and parse_price(found.text()) is None:
                continue
            if field_name == "name" and not found.text():
                continue
            if field_name == "url" and not found.attr("href"):
                continue
            resolved += 1
        return resolved

    def _confidence(self, analysis: GroupAnalysis) -> int:
        settings = self._settings
        total_weight = (
            settings.completeness_weight + settings.consistency_weight + settings.repetition_weight
        )
        if total_weight <= 0:
            return 0
        repetition = min(1.0, len(analysis.group.viable) / settings.repetition_saturation)
        weighted = (
            settings.completeness_weight * analysis.completeness
            + settings.consistency_weight * analysis.consistency
            + settings.repetition_weight * repetition
        )
        # Scaled by the share of container matches that are product cards.
        scaled = 100 * weighted / total_weight * analysis.group.precision
        return max(0, min(100, round(scaled)))


def _container_selector(
    document: QueryableDocument,
    members: list[QueryableNode],
    viable: list[QueryableNode],
) -> tuple[str, int, float]:
    """
    Most precise container pattern that still matches every viable card.

    Tries the card's own compound selector, then qualifies it with the
    parent and grandparent (`ul.grid > li`). Returns the pattern, its
    page-wide match count and the share of those matches that are cards.
    """

    base = compound_selector(viable[0])
    candidates = [base]
    scope = base
    ancestor = viable[0].parent()
    for _ in range(2):
        if ancestor is None or ancestor.tag == "html":
            break
        scope = f"{compound_selector(ancestor)} > {scope}"
        candidates.append(scope)
        ancestor = ancestor.parent()

    wanted = {node.identity for node in viable}
    best: tuple[str, int, float] | None = None
    for pattern in candidates:
        try:
            matched = {node.identity for node in document.select_all(pattern)}
        except SelectorSyntaxError:
            continue
        if not matched or not wanted <= matched:
            continue
        precision = len(wanted) / len(matched)
        if best is None or precision > best[2]:
            best = (pattern, len(matched), precision)

    if best is None:
        return base, len(members), len(viable) / len(members)
    return best


def _outermost_free(nodes: list[QueryableNode]) -> list[QueryableNode]:
    """
    Drop members that wrap another member of the same group; product cards
    are siblings, not nested copies of one another.
    """

    identities = {node.identity for node in nodes}
    wrappers: set[int] = set()
    for node in nodes:
        for ancestor in node.ancestors():
            if ancestor.identity in identities:
                wrappers.add(ancestor.identity)
    return [node for node in nodes if node.identity not in wrappers]
