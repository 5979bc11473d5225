"""Controller platform information and the supported-version gate."""
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional

from .envelope import Single
from .exceptions import IncompatibleVersionError, ResponseDecodeError

if TYPE_CHECKING:
    from .client import DNACClient

logger = logging.getLogger(__name__)

RELEASE_ENDPOINT = "/dna/intent/api/v1/dnac-release"

# Installed versions are matched by substring, not by version comparison.
SUPPORTED_VERSIONS: tuple[str, ...] = ("2.3.7.5", "2.3.7.6")


@dataclass
class ReleaseSummary:
    """Release information reported by the controller."""
    name: str
    installed_version: str
    display_name: Optional[str] = None
    display_version: Optional[str] = None
    system_version: Optional[str] = None
    previous_version: Optional[str] = None
    tenant_id: Optional[str] = None
    core_packages: list[str] = field(default_factory=list)
    packages: list[str] = field(default_factory=list)
    system_packages: list[str] = field(default_factory=list)
    supported_direct_updates: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ReleaseSummary":
        """Create from API response dict."""
        return cls(
            name=data.get("name", ""),
            installed_version=data["installedVersion"],
            display_name=data.get("displayName"),
            display_version=data.get("displayVersion"),
            system_version=data.get("systemVersion"),
            previous_version=data.get("previous_version") or data.get("previousVersion"),
            tenant_id=data.get("tenantId"),
            core_packages=data.get("corePackages") or [],
            packages=data.get("packages") or [],
            system_packages=data.get("systemPackages") or [],
            supported_direct_updates=data.get("supportedDirectUpdates") or [],
        )


async def get_release_summary(client: "DNACClient") -> ReleaseSummary:
    """Fetch the controller release summary (a single-object envelope).

    Raises:
        ResponseDecodeError: If the controller returned an array
    """
    envelope = await client.get_envelope(RELEASE_ENDPOINT, parser=ReleaseSummary.from_dict)
    if not isinstance(envelope, Single):
        raise ResponseDecodeError(
            "Unexpected release summary: expected a single object",
            details={"endpoint": RELEASE_ENDPOINT},
        )
    return envelope.item


def match_supported_version(
    installed_version: str,
    supported: tuple[str, ...] = SUPPORTED_VERSIONS,
) -> Optional[str]:
    """Return the first allow-listed version contained in installed_version."""
    return next((v for v in supported if v in installed_version), None)


async def verify_version(
    client: "DNACClient",
    supported: tuple[str, ...] = SUPPORTED_VERSIONS,
) -> str:
    """Check the controller runs a supported release.

    Returns:
        The matching entry of `supported`

    Raises:
        IncompatibleVersionError: If no supported version matches
    """
    summary = await get_release_summary(client)
    matched = match_supported_version(summary.installed_version, supported)
    if matched is None:
        logger.error(f"Controller version {summary.installed_version} is not supported")
        raise IncompatibleVersionError(summary.installed_version, supported)

    logger.info(f"Controller version {summary.installed_version} (supported: {matched})")
    return matched


__all__ = [
    "RELEASE_ENDPOINT",
    "SUPPORTED_VERSIONS",
    "ReleaseSummary",
    "get_release_summary",
    "match_supported_version",
    "verify_version",
]
