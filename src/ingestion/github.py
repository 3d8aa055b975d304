"""
Guides derived from GitHub-hosted system design READMEs.
"""
import re
from abc import abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional

from core.scoring import (
    GUIDE_TOPICS,
    QUALITY_SCORE_THRESHOLD,
    calculate_quality_score,
    extract_topics,
    is_high_quality_title,
)
from ingestion.base import Diagram, RawItem, SourceAdapter

GUIDE_USER_AGENT = "ArchWeekly-SystemDesign-Scraper/1.0"
GUIDE_TIMEOUT = 15.0

MIN_DESCRIPTION_LENGTH = 30
MIN_TITLE_LENGTH = 10

_HEADING = re.compile(r"^##\s+([^#\[].+)$")
_IMAGE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_LINK = re.compile(r"\[([^\]]+)\]\((https?://[^)]+)\)")
_NON_PROSE_PREFIXES = ("#", "*", "-", "!", ">", "|", "<")


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", title.lower())
    return re.sub(r"\s+", "-", slug)


class _MarkdownAdapter(SourceAdapter):
    readme_url: str

    def __init__(
        self,
        timeout: float = GUIDE_TIMEOUT,
        user_agent: str = GUIDE_USER_AGENT,
        **kwargs,
    ):
        super().__init__(timeout=timeout, user_agent=user_agent, **kwargs)

    async def _fetch(self) -> List[RawItem]:
        async with self.client() as client:
            resp = await client.get(self.readme_url)
            resp.raise_for_status()

        return self.parse_markdown(resp.text)

    @abstractmethod
    def parse_markdown(self, markdown: str) -> List[RawItem]:
        """Turn the README text into guide items."""
        raise NotImplementedError


@dataclass
class _Section:
    title: str
    description: str = ""
    diagrams: List[Diagram] = field(default_factory=list)


class SystemDesignPrimerAdapter(_MarkdownAdapter):
    """
    One guide per second-level heading of the System Design Primer, starting
    at the "start here" marker.
    """

    name = "github-system-design-primer"
    readme_url = "https://raw.githubusercontent.com/donnemartin/system-design-primer/master/README.md"
    repo_url = "https://github.com/donnemartin/system-design-primer"
    START_MARKER = "system design topics: start here"

    def parse_markdown(self, markdown: str) -> List[RawItem]:
        items: List[RawItem] = []
        section: Optional[_Section] = None
        in_main_content = False

        for raw_line in markdown.split("\n"):
            line = raw_line.strip()

            if self.START_MARKER in line.lower():
                in_main_content = True
                continue
            if not in_main_content:
                continue

            heading = _HEADING.match(line)
            if heading:
                self._flush(section, items)
                section = _Section(title=heading.group(1).strip())
            elif (
                section is not None
                and not section.description
                and line
                and not line.startswith(_NON_PROSE_PREFIXES)
                and len(line) > MIN_DESCRIPTION_LENGTH
            ):
                section.description = line
            elif section is not None and "![" in line and "](" in line:
                image = _IMAGE.search(line)
                if image:
                    url = image.group(2)
                    if not url.startswith("http"):
                        url = f"{self.repo_url}/raw/master/{url}"
                    section.diagrams.append(
                        Diagram(url=url, description=image.group(1) or "Diagram", source="github")
                    )

        self._flush(section, items)
        return items

    def _flush(self, section: Optional[_Section], items: List[RawItem]) -> None:
        if section is None or not section.title or not section.description:
            return

        items.append(
            RawItem(
                title=section.title,
                url=f"{self.repo_url}#{slugify(section.title)}",
                description=section.description,
                source=self.name,
                kind="guide",
                topics=extract_topics(section.title, GUIDE_TOPICS, limit=len(GUIDE_TOPICS)),
                has_visuals=bool(section.diagrams),
                diagrams=section.diagrams,
            )
        )


class ByteByteGoAdapter(_MarkdownAdapter):
    """
    Guide links from the ByteByteGo system-design-101 README, kept only when
    the title passes the quality heuristics.
    """

    name = "github-bytebytego"
    readme_url = "https://raw.githubusercontent.com/ByteByteGoHq/system-design-101/main/README.md"
    GUIDE_PATHS = ("bytebytego.com/guides/", "bytebytego.com/courses/")

    def __init__(self, quality_threshold: int = QUALITY_SCORE_THRESHOLD, **kwargs):
        super().__init__(**kwargs)
        self.quality_threshold = quality_threshold

    def parse_markdown(self, markdown: str) -> List[RawItem]:
        items: List[RawItem] = []
        seen_urls = set()

        for match in _LINK.finditer(markdown):
            title = match.group(1).replace("**", "").strip()
            url = match.group(2).strip()

            if not any(path in url for path in self.GUIDE_PATHS):
                continue
            if url in seen_urls:
                continue
            seen_urls.add(url)

            if len(title) < MIN_TITLE_LENGTH or not is_high_quality_title(title):
                continue
            if calculate_quality_score(title) < self.quality_threshold:
                continue

            items.append(
                RawItem(
                    title=title,
                    url=url,
                    description=f"Learn about {title.lower()} with visual explanations from ByteByteGo.",
                    source=self.name,
                    kind="guide",
                    topics=extract_topics(title, GUIDE_TOPICS, limit=len(GUIDE_TOPICS)),
                    has_visuals=True,
                )
            )

        return items
