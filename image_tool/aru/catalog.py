"""Client for the release listing of the catalog."""

from dataclasses import dataclass
import enum
import logging

from image_tool.exceptions import CatalogUnavailable, Unauthorized, VersionNotFound

from .documents import ReleaseDocument
from .transport import AruTransport, Credentials

__all__ = [
    "Category",
    "Release",
    "ReleaseCatalogClient",
]

_LOGGER = logging.getLogger(__name__)

RELEASES_PATH = "/Orion/Services/metadata?table=aru_releases"
LANGUAGES_PATH = "/Orion/Services/metadata?table=aru_languages"


class Category(str, enum.Enum):
    """Product category a release and its patches belong to."""

    PRODUCT = "wls"
    PLATFORM_UPGRADE = "fmw"

    @property
    def release_prefix(self) -> str:
        """Display text prefix of the releases in this category."""
        return _RELEASE_PREFIX[self]

    @property
    def product_id(self) -> str:
        """Catalog product identifier used for patch searches."""
        return _PRODUCT_ID[self]

    def __str__(self) -> str:
        return self.value


_RELEASE_PREFIX = {
    Category.PRODUCT: "Oracle WebLogic Server",
    Category.PLATFORM_UPGRADE: "Fusion Middleware Upgrade",
}

_PRODUCT_ID = {
    Category.PRODUCT: "15991",
    Category.PLATFORM_UPGRADE: "27638",
}


@dataclass(frozen=True)
class Release:
    """A product version known to the catalog."""

    name: str
    """Human version string e.g. 12.2.1.3.0."""

    release_id: str
    """Opaque identifier used to scope patch searches."""

    description: str | None = None


class ReleaseCatalogClient:
    """Looks up releases of a product category in the catalog."""

    def __init__(self, transport: AruTransport) -> None:
        """Initialize ReleaseCatalogClient."""
        self._transport = transport

    async def releases(self, category: Category) -> list[Release]:
        """Return the releases of a category in catalog order."""
        doc = ReleaseDocument(await self._transport.get_xml(RELEASES_PATH))
        releases = []
        for element in doc.releases(category.release_prefix):
            name = doc.release_name(element)
            release_id = doc.release_id(element)
            if name is None or release_id is None:
                _LOGGER.debug("Skipping incomplete release entry %s", element.attrib)
                continue
            releases.append(Release(name, release_id, doc.description(element)))
        return releases

    async def resolve_release_id(self, category: Category, version: str) -> str:
        """Return the release id for a version of the category."""
        for release in await self.releases(category):
            if release.name == version:
                _LOGGER.debug(
                    "Resolved %s version %s to release %s",
                    category,
                    version,
                    release.release_id,
                )
                return release.release_id
        raise VersionNotFound(version, category)

    async def check_credentials(self, credentials: Credentials | None = None) -> bool:
        """Return False only when the catalog rejects the credentials."""
        credentials = credentials or self._transport.credentials
        if not credentials or not credentials.username or not credentials.password:
            return False
        try:
            await self._transport.get_xml(LANGUAGES_PATH, credentials=credentials)
        except Unauthorized:
            return False
        except CatalogUnavailable as err:
            _LOGGER.warning("Unable to verify credentials: %s", err)
        return True
