"""Check a set of patches for conflicts with each other."""

from dataclasses import dataclass, field
import logging
from xml.etree import ElementTree
from xml.sax.saxutils import escape, quoteattr

from .documents import ConflictCheckDocument
from .transport import AruTransport

__all__ = [
    "ConflictReport",
    "ConflictChecker",
]

_LOGGER = logging.getLogger(__name__)

CONFLICT_CHECK_PATH = "/Orion/Services/conflict_checks"

# Generic platform, patches are not platform specific
PLATFORM_ID = "2000"

BANNER = "=" * 51


@dataclass(frozen=True)
class ConflictReport:
    """Outcome of a conflict check."""

    conflict_sets: list[list[str]] = field(default_factory=list)
    """Groups of patch ids that cannot be installed together."""

    document: str = ""
    """Pretty printed `conflict_check_results` document, empty without conflicts."""

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflict_sets)

    def format(self) -> str:
        """Render the report for operator review."""
        if not self.has_conflicts:
            return ""
        return "\n".join(
            [
                BANNER,
                "There are conflicts between the patches requested:-",
                BANNER,
                "",
                self.document,
            ]
        )


def conflict_check_request(release_id: str, patch_ids: list[str]) -> str:
    """Return the request payload for the conflict check service."""
    parts = [
        "<conflict_check_request>",
        f"<platform>{PLATFORM_ID}</platform>",
        "<target_patch_list/>",
    ]
    for patch_id in patch_ids:
        parts.append(
            f"<candidate_patch_list rel_id={quoteattr(release_id)}>"
            f"{escape(patch_id)}</candidate_patch_list>"
        )
    parts.append("</conflict_check_request>")
    return "".join(parts)


def _report_document(doc: ConflictCheckDocument) -> str:
    results = ElementTree.Element("conflict_check_results")
    results.extend(doc.merge_patches())
    ElementTree.indent(results)
    return ElementTree.tostring(results, encoding="unicode")


class ConflictChecker:
    """Submits candidate patches to the conflict check service."""

    def __init__(self, transport: AruTransport) -> None:
        """Initialize ConflictChecker."""
        self._transport = transport

    async def check(self, release_id: str, patch_ids: list[str]) -> ConflictReport:
        """Return the conflicts between the candidate patches of a release."""
        payload = conflict_check_request(release_id, patch_ids)
        doc = ConflictCheckDocument(
            await self._transport.post_xml(CONFLICT_CHECK_PATH, payload)
        )
        sets = doc.sets()
        if not sets:
            _LOGGER.debug("No conflicts found between %s", patch_ids)
            return ConflictReport()
        report = ConflictReport(
            conflict_sets=[doc.patch_ids(conflict) for conflict in sets],
            document=_report_document(doc),
        )
        _LOGGER.info(
            "Found %d conflict set(s) between %s", len(report.conflict_sets), patch_ids
        )
        return report
