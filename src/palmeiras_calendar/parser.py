"""Extract raw fixture rows from the source site's HTML."""
from __future__ import annotations

import logging
import re
from typing import Iterable, List, Optional, Sequence, Set

from bs4 import BeautifulSoup, Tag

from .models import TRACKED_TEAM, RawFixture

LOGGER = logging.getLogger(__name__)

SCHEDULE_KEYWORDS: Sequence[str] = ("data", "horário", "adversário")
DATE_HEADER_KEYWORDS: Sequence[str] = ("data", "horário")
OPPONENT_HEADER_KEYWORDS: Sequence[str] = ("adversário",)
PLACEHOLDER_OPPONENTS = frozenset({"", "x"})
UPCOMING_HEADING = "PRÓXIMOS JOGOS"
UPCOMING_CONTAINERS: Sequence[str] = ("section", "div", "table")
UPCOMING_ROWS: Sequence[str] = ("tr", "div", "li")

UPCOMING_DATE_PATTERN = re.compile(r"(\d{1,2})/(\d{1,2})\s*\|\s*(\d{1,2})h(\d{2})")
BRACKET_LOCATION_PATTERN = re.compile(r"\[([^\]]+)\]")
CHANNEL_MENTION_PATTERN = re.compile(r"(Record|Cazé|TNT|HBO|Globo|Sportv|Premiere|Amazon)")


class HtmlDocument:
    """Small query layer over a parsed page."""

    def __init__(self, html: str) -> None:
        self.soup = BeautifulSoup(html, "html.parser")

    def select_by_tag(self, *names: str, root: Optional[Tag] = None) -> List[Tag]:
        scope = root if root is not None else self.soup
        return list(scope.find_all(list(names)))

    def select_by_text(self, phrase: str) -> List[Tag]:
        """Elements whose own text contains ``phrase`` (case-insensitive)."""

        needle = phrase.upper()
        found: List[Tag] = []
        seen: Set[int] = set()
        for text_node in self.soup.find_all(string=lambda value: needle in value.upper()):
            parent = text_node.parent
            if isinstance(parent, Tag) and id(parent) not in seen:
                seen.add(id(parent))
                found.append(parent)
        return found

    @staticmethod
    def closest(element: Tag, names: Iterable[str]) -> Optional[Tag]:
        kinds = list(names)
        if element.name in kinds:
            return element
        return element.find_parent(kinds)


def is_fixture_table(table_text: str) -> bool:
    lowered = table_text.lower()
    return any(keyword in lowered for keyword in SCHEDULE_KEYWORDS)


def is_header_row(date_cell: str, opponent_cell: str) -> bool:
    date_lower = date_cell.lower()
    opponent_lower = opponent_cell.lower()
    return any(keyword in date_lower for keyword in DATE_HEADER_KEYWORDS) or any(
        keyword in opponent_lower for keyword in OPPONENT_HEADER_KEYWORDS
    )


def is_placeholder_opponent(opponent_cell: str) -> bool:
    return opponent_cell.strip().lower() in PLACEHOLDER_OPPONENTS


def has_date_digits(date_cell: str) -> bool:
    return any(char.isdigit() for char in date_cell)


def _cell_text(cell: Tag) -> str:
    return cell.get_text(" ", strip=True)


def parse_fixture_tables(
    document: HtmlDocument, competition: str, source: str
) -> List[RawFixture]:
    fixtures: List[RawFixture] = []
    for table in document.select_by_tag("table"):
        if not is_fixture_table(table.get_text(" ", strip=True)):
            continue
        for row in document.select_by_tag("tr", root=table):
            cells = [_cell_text(cell) for cell in row.find_all("td")]
            if len(cells) < 3:
                continue
            date_cell, opponent_cell, location_cell = cells[0], cells[1], cells[2]
            broadcast_cell = cells[3] if len(cells) > 3 else ""
            if (
                is_header_row(date_cell, opponent_cell)
                or is_placeholder_opponent(opponent_cell)
                or not has_date_digits(date_cell)
            ):
                continue
            fixtures.append(
                RawFixture(
                    date_time_text=date_cell,
                    opponent_text=opponent_cell.strip(),
                    location_text=location_cell.strip(),
                    broadcast_text=broadcast_cell.strip(),
                    competition=competition,
                    source=source,
                )
            )
    return fixtures


def _opponent_from_images(row: Tag) -> str:
    names = [
        str(image.get("alt", "")).strip()
        for image in row.find_all("img", alt=True)
    ]
    candidates = [name for name in names if name and name.lower() != TRACKED_TEAM.lower()]
    return candidates[-1] if candidates else ""


def _upcoming_block(document: HtmlDocument, heading: Tag) -> Optional[Tag]:
    # The heading may sit in its own wrapper; climb until a container holds dates.
    block = document.closest(heading, UPCOMING_CONTAINERS)
    while block is not None:
        if UPCOMING_DATE_PATTERN.search(block.get_text(" ", strip=True)):
            return block
        parent = block.parent
        block = document.closest(parent, UPCOMING_CONTAINERS) if isinstance(parent, Tag) else None
    return None


def parse_upcoming_section(
    document: HtmlDocument, competition: str, source: str
) -> List[RawFixture]:
    """Parse the free-form "upcoming games" block of the home page.

    A row is the outermost element below the block that carries exactly one
    ``D/M | HHhMM`` token and an opponent crest; nested wrappers of a row
    that was already taken are ignored.
    """

    fixtures: List[RawFixture] = []
    seen_blocks: Set[int] = set()
    for heading in document.select_by_text(UPCOMING_HEADING):
        block = _upcoming_block(document, heading)
        if block is None or id(block) in seen_blocks:
            continue
        seen_blocks.add(id(block))

        taken: Set[int] = set()
        candidates = [block] + document.select_by_tag(*UPCOMING_ROWS, root=block)
        for row in candidates:
            if any(id(parent) in taken for parent in row.parents):
                continue
            text = row.get_text(" ", strip=True)
            tokens = UPCOMING_DATE_PATTERN.findall(text)
            if len(tokens) != 1:
                continue
            opponent = _opponent_from_images(row)
            if not opponent:
                continue
            taken.add(id(row))

            day, month, hour, minute = tokens[0]
            location_match = BRACKET_LOCATION_PATTERN.search(text)
            fixtures.append(
                RawFixture(
                    date_time_text=f"{day}/{month} – {hour}h{minute}",
                    opponent_text=opponent,
                    location_text=location_match.group(1).strip() if location_match else "",
                    broadcast_text=", ".join(CHANNEL_MENTION_PATTERN.findall(text)),
                    context_text=text,
                    competition=competition,
                    source=source,
                )
            )
    return fixtures


def parse_fixtures(
    html: str,
    competition: str,
    source: str,
    *,
    upcoming_section: bool = False,
) -> List[RawFixture]:
    """Return every fixture row found on a page; malformed rows are dropped."""

    document = HtmlDocument(html)
    fixtures = parse_fixture_tables(document, competition, source)
    if upcoming_section:
        fixtures.extend(parse_upcoming_section(document, competition, source))
    LOGGER.debug("Parsed %d raw fixtures from %s", len(fixtures), source)
    return fixtures
