"""Locate patch metadata in the catalog."""

from dataclasses import dataclass
import logging
from urllib.parse import parse_qs, urlparse

from image_tool.exceptions import PatchMetadataMalformed

from .catalog import Category, ReleaseCatalogClient
from .documents import PatchRecord, PatchSearchDocument
from .transport import AruTransport

__all__ = [
    "LATEST",
    "PatchMetadata",
    "PatchLocator",
]

_LOGGER = logging.getLogger(__name__)

SEARCH_PATH = "/Orion/Services/search"

LATEST = "latest"
"""Requests the most recent patch set update instead of a specific bug."""

PATCH_FILE_PARAM = "patch_file"


@dataclass(frozen=True)
class PatchMetadata:
    """Metadata for a patch artifact.

    Fields missing from the catalog response are None. They are only required
    once the patch actually has to be downloaded, see `require_download`.
    """

    bug: str
    """The bug number that was requested, or LATEST."""

    bug_name: str | None
    release_id: str | None
    download_url: str | None
    download_host: str | None

    @property
    def file_name(self) -> str | None:
        """Return the catalog's file name for the patch archive."""
        if not self.download_url:
            return None
        query = parse_qs(urlparse(self.download_url).query)
        if values := query.get(PATCH_FILE_PARAM):
            return values[0] or None
        # Fall back to a raw split when the link is not a well formed url
        marker = f"{PATCH_FILE_PARAM}="
        if (index := self.download_url.find(marker)) > 0:
            return self.download_url[index + len(marker) :].split("&")[0] or None
        return None

    @property
    def patch_id(self) -> str:
        """Return the identifier used when checking conflicts."""
        return self.bug_name or self.bug

    def require_download(self) -> tuple[str, str]:
        """Return the absolute download url and file name of the patch.

        Raises PatchMetadataMalformed naming every missing field.
        """
        fields = {
            "name": self.bug_name,
            "release": self.release_id,
            "download_url": self.download_url,
            "download_host": self.download_host,
            PATCH_FILE_PARAM: self.file_name,
        }
        if missing := [name for name, value in fields.items() if value is None]:
            raise PatchMetadataMalformed(self.bug, missing)
        assert self.download_host and self.download_url and self.file_name
        return f"{self.download_host}{self.download_url}", self.file_name


class PatchLocator:
    """Finds the metadata of a patch within a release."""

    def __init__(
        self, transport: AruTransport, catalog: ReleaseCatalogClient | None = None
    ) -> None:
        """Initialize PatchLocator."""
        self._transport = transport
        self._catalog = catalog or ReleaseCatalogClient(transport)

    @property
    def catalog(self) -> ReleaseCatalogClient:
        return self._catalog

    async def locate(self, category: Category, version: str, bug: str) -> PatchMetadata:
        """Return the metadata for a bug number, or the latest patch with LATEST."""
        release_id = await self._catalog.resolve_release_id(category, version)
        return await self.locate_in_release(category, release_id, bug)

    async def search(
        self, category: Category, release_id: str, bug: str = LATEST
    ) -> PatchSearchDocument:
        """Return the raw patch search results for a release."""
        params = {"product": category.product_id, "release": release_id}
        if bug != LATEST:
            params["bug"] = bug
        return PatchSearchDocument(await self._transport.get_xml(SEARCH_PATH, params))

    async def locate_in_release(
        self, category: Category, release_id: str, bug: str
    ) -> PatchMetadata:
        """Return the metadata for a bug number in an already resolved release."""
        doc = await self.search(category, release_id, bug)
        if (record := doc.first()) is None:
            _LOGGER.debug("No patch found for %s in release %s", bug, release_id)
            return PatchMetadata(
                bug=bug,
                bug_name=None,
                release_id=None,
                download_url=None,
                download_host=None,
            )
        metadata = _metadata(bug, record)
        _LOGGER.debug("Located patch %s: %s", bug, metadata)
        return metadata

    async def patch_set_updates(
        self, category: Category, version: str
    ) -> list[PatchMetadata]:
        """Return every patch set update of a version, most recent first."""
        release_id = await self._catalog.resolve_release_id(category, version)
        doc = await self.search(category, release_id)
        return [
            _metadata(record.bug_name() or LATEST, record) for record in doc.patches()
        ]


def _metadata(bug: str, record: PatchRecord) -> PatchMetadata:
    return PatchMetadata(
        bug=bug,
        bug_name=record.bug_name(),
        release_id=record.release_id(),
        download_url=record.download_url(),
        download_host=record.download_host(),
    )
