"""Typed views over the XML documents returned by the catalog.

Each accessor returns None when the expected element or attribute is absent
or empty, so a malformed response is detected by checking for None rather
than by comparing against an empty string.

A release listing looks like:
```xml
<results>
  <release id="600000000073715" name="12.2.1.3.0">Oracle WebLogic Server 12.2.1.3.0</release>
</results>
```

A patch search result looks like:
```xml
<results>
  <patch>
    <name>28186730</name>
    <release id="600000000073715" name="12.2.1.3.0"/>
    <files>
      <file>
        <download_url host="https://updates.oracle.com">/Orion/Download/process_form/p28186730_139400_Generic.zip?aru=22310944&amp;patch_file=p28186730_139400_Generic.zip</download_url>
      </file>
    </files>
  </patch>
</results>
```
"""

from dataclasses import dataclass
from xml.etree import ElementTree

__all__ = [
    "ReleaseDocument",
    "PatchRecord",
    "PatchSearchDocument",
    "ConflictCheckDocument",
]


def _text(element: ElementTree.Element | None) -> str | None:
    if element is None or element.text is None:
        return None
    return element.text.strip() or None


def _attr(element: ElementTree.Element | None, name: str) -> str | None:
    if element is None:
        return None
    return element.get(name) or None


def _results(root: ElementTree.Element) -> ElementTree.Element | None:
    """Return the `results` element whether or not it is the document root."""
    if root.tag == "results":
        return root
    return root.find("results")


@dataclass(frozen=True)
class ReleaseDocument:
    """The releases listed in a catalog metadata response."""

    root: ElementTree.Element

    def releases(self, prefix: str | None = None) -> list[ElementTree.Element]:
        """Return release elements whose display text starts with the prefix."""
        if (results := _results(self.root)) is None:
            return []
        return [
            release
            for release in results.findall("release")
            if prefix is None or (_text(release) or "").startswith(prefix)
        ]

    @staticmethod
    def release_id(release: ElementTree.Element) -> str | None:
        """Return the id attribute of a release element."""
        return _attr(release, "id")

    @staticmethod
    def release_name(release: ElementTree.Element) -> str | None:
        """Return the version name attribute of a release element."""
        return _attr(release, "name")

    @staticmethod
    def description(release: ElementTree.Element) -> str | None:
        """Return the display text of a release element."""
        return _text(release)


@dataclass(frozen=True)
class PatchRecord:
    """A single `patch` element of a patch search response."""

    element: ElementTree.Element

    def _download_url(self) -> ElementTree.Element | None:
        return self.element.find("files/file/download_url")

    def bug_name(self) -> str | None:
        return _text(self.element.find("name"))

    def release_id(self) -> str | None:
        return _attr(self.element.find("release"), "id")

    def download_url(self) -> str | None:
        return _text(self._download_url())

    def download_host(self) -> str | None:
        return _attr(self._download_url(), "host")


@dataclass(frozen=True)
class PatchSearchDocument:
    """The patches listed in a patch search response."""

    root: ElementTree.Element

    def patches(self) -> list[PatchRecord]:
        """Return the patches in the order given by the catalog."""
        if (results := _results(self.root)) is None:
            return []
        return [PatchRecord(patch) for patch in results.findall("patch")]

    def first(self) -> PatchRecord | None:
        """Return the first patch of the response, if any."""
        patches = self.patches()
        return patches[0] if patches else None


@dataclass(frozen=True)
class ConflictCheckDocument:
    """A conflict check response.

    A response without conflicts has no `conflict_sets` element. Otherwise:
    ```xml
    <conflict_check>
      <conflict_sets>
        <set>
          <merge_patches>
            <patch>28186730</patch>
            <patch>27342434</patch>
          </merge_patches>
        </set>
      </conflict_sets>
    </conflict_check>
    ```
    """

    root: ElementTree.Element

    def conflict_sets(self) -> ElementTree.Element | None:
        if self.root.tag == "conflict_sets":
            return self.root
        return self.root.find("conflict_sets")

    def sets(self) -> list[ElementTree.Element]:
        if (conflict_sets := self.conflict_sets()) is None:
            return []
        return conflict_sets.findall("set")

    def merge_patches(self) -> list[ElementTree.Element]:
        """Return every `merge_patches` node across all conflict sets."""
        return [
            node for conflict in self.sets() for node in conflict.findall("merge_patches")
        ]

    @staticmethod
    def patch_ids(conflict: ElementTree.Element) -> list[str]:
        """Return the patch identifiers named by a conflict set."""
        ids: list[str] = []
        for node in conflict.findall("merge_patches"):
            children = list(node)
            if not children:
                ids.extend(
                    part.strip() for part in (node.text or "").split(",") if part.strip()
                )
                continue
            for child in children:
                if value := (
                    _attr(child, "bug") or _attr(child, "id") or _text(child)
                ):
                    ids.append(value)
        return ids
