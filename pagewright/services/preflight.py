"""Publish preflight: cross-page invariants checked before anything is uploaded.

Every check runs and every violation is collected, so the caller can show
the user the complete list in one pass.
"""

import re
from collections import OrderedDict
from typing import List, Sequence

from pydantic import BaseModel, Field

from pagewright.errors import PreflightViolation
from pagewright.models.page import NavigationItem, Page
from pagewright.services.paths import canonical_slug

# Names that collide with files of the artifact layout
RESERVED_SLUGS = frozenset({"index.html", "styles.css", "assets"})

# Every slug segment becomes a directory name and an href; nothing else may
# reach the generated links
_SLUG_SEGMENT_RE = re.compile(r"[A-Za-z0-9_-]+")

_SLUG_CHARSET_HINT = "Slugs may contain only letters, numbers, hyphen, and underscore."


class PreflightResult(BaseModel):
    violations: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def raise_for_violations(self) -> None:
        if self.violations:
            raise PreflightViolation(self.violations)


def _is_home_candidate(page: Page) -> bool:
    return page.is_home or page.slug.strip() == "/"


def _slug_problems(page: Page, label: str, is_home: bool) -> List[str]:
    canonical = canonical_slug(page.slug)
    if canonical == "/":
        return [] if is_home else [f'Page "{label}" has an empty slug.']

    kind = "Home page" if is_home else "Page"
    raw = page.slug.strip()
    segments = canonical.strip("/").split("/")

    problems = []
    if not all(_SLUG_SEGMENT_RE.fullmatch(segment) for segment in segments):
        problems.append(f'{kind} "{label}" has invalid slug "{raw}". {_SLUG_CHARSET_HINT}')
    if segments[0].lower() in RESERVED_SLUGS:
        problems.append(f'{kind} "{label}" uses reserved slug "{canonical.lstrip("/")}".')
    return problems


def check_preflight(pages: Sequence[Page], navigation: Sequence[NavigationItem]) -> PreflightResult:
    """Evaluate every publish invariant and collect all violations."""
    if not pages:
        return PreflightResult(violations=["At least one page is required to publish."])

    details: List[str] = []

    for page in pages:
        label = page.title.strip() or page.id
        details.extend(_slug_problems(page, label, _is_home_candidate(page)))

    home_count = sum(1 for page in pages if _is_home_candidate(page))
    if home_count == 0:
        details.append("Exactly one home page is required, but none was found.")
    elif home_count > 1:
        details.append(f"Exactly one home page is required, but found {home_count}.")

    # Keyed on the page's own slug, not the home-resolved one, so two pages
    # that both claim "/" (or "About" and "about") always collide.
    by_slug: "OrderedDict[str, int]" = OrderedDict()
    for page in pages:
        key = canonical_slug(page.slug).lower()
        by_slug[key] = by_slug.get(key, 0) + 1
    for key, count in by_slug.items():
        if count > 1:
            shown = key if key == "/" else key.lstrip("/")
            details.append(f'Duplicate slug "{shown}" found on {count} pages.')

    page_ids = {page.id for page in pages}
    for index, item in enumerate(navigation, start=1):
        page_id = item.page_id.strip()
        if not page_id or page_id not in page_ids:
            details.append(
                f'Navigation item {index} references missing pageId "{page_id or "(empty)"}".'
            )

    return PreflightResult(violations=list(OrderedDict.fromkeys(details)))


def ensure_preflight(pages: Sequence[Page], navigation: Sequence[NavigationItem]) -> None:
    """Raise :class:`PreflightViolation` carrying every violation, if any."""
    check_preflight(pages, navigation).raise_for_violations()
