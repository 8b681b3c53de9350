"""Clients for the release catalog: releases, patches and conflict checks."""

from .catalog import Category, Release, ReleaseCatalogClient
from .conflicts import ConflictChecker, ConflictReport
from .patches import LATEST, PatchLocator, PatchMetadata
from .service import PatchService, ResolvedPatches
from .transport import AruTransport, Credentials

__all__ = [
    "AruTransport",
    "Category",
    "ConflictChecker",
    "ConflictReport",
    "Credentials",
    "LATEST",
    "PatchLocator",
    "PatchMetadata",
    "PatchService",
    "Release",
    "ReleaseCatalogClient",
    "ResolvedPatches",
]
