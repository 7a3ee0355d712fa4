"""
did - Keyword, Project and Tag Filtering
"""

from dataclasses import dataclass, field

from did.entry import Entry


@dataclass
class EntryFilter:
    """Matches entries by keyword, project and tags, case-insensitively.

    An entry matches when its description contains `keyword` (if given),
    its project equals `project` (if given) and it carries every tag in
    `tags`.
    """

    project: str = ""
    tags: list[str] = field(default_factory=list)
    keyword: str = ""

    def is_empty(self) -> bool:
        return not self.keyword and not self.project and not self.tags

    def matches(self, entry: Entry) -> bool:
        if self.keyword and self.keyword.lower() not in entry.description.lower():
            return False
        if self.project and entry.project.lower() != self.project.lower():
            return False
        entry_tags = {t.lower() for t in entry.tags}
        return all(tag.lower() in entry_tags for tag in self.tags)

    def describe(self) -> str:
        """Filter in input syntax, e.g. '"login" @acme #urgent'."""
        parts = []
        if self.keyword:
            parts.append(f'"{self.keyword}"')
        if self.project:
            parts.append(f"@{self.project}")
        parts.extend(f"#{tag}" for tag in self.tags)
        return " ".join(parts)

    def criteria(self) -> dict[str, object]:
        """Non-empty filter fields, as recorded in export metadata."""
        data: dict[str, object] = {}
        if self.keyword:
            data["keyword"] = self.keyword
        if self.project:
            data["project"] = self.project
        if self.tags:
            data["tags"] = list(self.tags)
        return data
