#!/usr/bin/env python3
"""Network Device Inventory for Catalyst Center (DNAC).

Read operations page through `/dna/intent/api/v1/network-device`; adding a
device is a write operation whose background task is polled to completion.

Example:
    async with DNACClient(config) as client:
        api = DeviceAPI(client)

        switches = await api.fetch_all_devices(DeviceFamily.SWITCHES_AND_HUBS)

        await api.add_device(AddDevice(
            ip_address=["10.0.0.1"],
            user_name="admin",
            password="...",
        ))
"""
import logging
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from .client import DNACClient
from .pagination import PAGE_SIZE, Pagination, fetch_all
from .tasks import TaskHandle

logger = logging.getLogger(__name__)


# ============================================
# Data Types
# ============================================

class DeviceFamily(str, Enum):
    """Device families used by the `family` filter."""
    SWITCHES_AND_HUBS = "Switches and Hubs"
    UNIFIED_AP = "Unified AP"
    ROUTERS = "Routers"
    WIRELESS_CONTROLLER = "Wireless Controller"
    WIRELESS_SENSOR = "Wireless Sensor"


class DeviceStatus(str, Enum):
    """Inventory collection status of a device."""
    UNASSOCIATED = "Unassociated"
    SYNCHRONIZING = "Synchronizing"
    SYNC_DISABLED = "Sync Disabled"
    COULD_NOT_SYNCHRONIZE = "Could Not Synchronize"
    NOT_MANAGEABLE = "Not Manageable"
    MANAGED = "Managed"
    PARTIAL_COLLECTION_FAILURE = "Partial Collection Failure"
    INCOMPLETE = "Incomplete"
    UNREACHABLE = "Unreachable"
    WRONG_CREDENTIAL = "Wrong Credential"
    REACHABLE = "Reachable"
    IN_PROGRESS = "In Progress"


def _optional_enum(enum_cls, value):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        logger.debug(f"Unknown {enum_cls.__name__} value: {value!r}")
        return None


@dataclass
class Device:
    """A network device from the controller inventory."""
    id: UUID
    management_ip_address: str
    collection_status: Optional[DeviceStatus] = None
    hostname: Optional[str] = None
    description: Optional[str] = None
    family: Optional[DeviceFamily] = None
    raw_data: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Device":
        """Create from API response dict."""
        return cls(
            id=UUID(data["id"]),
            management_ip_address=data.get("managementIpAddress", ""),
            collection_status=_optional_enum(DeviceStatus, data.get("collectionStatus")),
            hostname=data.get("hostname"),
            description=data.get("description"),
            family=_optional_enum(DeviceFamily, data.get("family")),
            raw_data=dict(data),
        )


@dataclass(frozen=True)
class DeviceFilter:
    """Query filter for the device list endpoint."""
    family: Optional[DeviceFamily] = None
    management_ip_address: Optional[str] = None

    def to_params(self) -> dict[str, str]:
        params = {}
        if self.family is not None:
            params["family"] = DeviceFamily(self.family).value
        if self.management_ip_address:
            params["managementIpAddress"] = self.management_ip_address
        return params


class DeviceType(str, Enum):
    NETWORK_DEVICE = "NETWORK_DEVICE"
    COMPUTE_DEVICE = "COMPUTE_DEVICE"
    MERAKI_DASHBOARD = "MERAKI_DASHBOARD"
    THIRD_PARTY_DEVICE = "THIRD_PARTY_DEVICE"
    NODATACHANGE = "NODATACHANGE"


class CliTransport(str, Enum):
    SSH = "ssh"
    TELNET = "telnet"


class SnmpVersion(str, Enum):
    V3 = "v3"
    V2 = "v2"


class SnmpMode(str, Enum):
    AUTH_PRIV = "authPriv"
    AUTH_NO_PRIV = "authNoPriv"
    NO_AUTH_NO_PRIV = "noAuthNoPriv"


class SnmpAuthProtocol(str, Enum):
    SHA = "sha"
    MD5 = "md5"


class SnmpPrivProtocol(str, Enum):
    AES128 = "AES128"


_ADD_DEVICE_FIELDS = {
    "ip_address": "ipAddress",
    "device_type": "type",
    "user_name": "userName",
    "password": "password",
    "enable_password": "enablePassword",
    "cli_transport": "cliTransport",
    "snmp_version": "snmpVersion",
    "snmp_user_name": "snmpUserName",
    "snmp_mode": "snmpMode",
    "snmp_auth_passphrase": "snmpAuthPassphrase",
    "snmp_priv_passphrase": "snmpPrivPassphrase",
    "snmp_auth_protocol": "snmpAuthProtocol",
    "snmp_priv_protocol": "snmpPrivProtocol",
    "netconf_port": "netconfPort",
}


@dataclass
class AddDevice:
    """Request body for adding devices to the inventory."""
    ip_address: list[str] = field(default_factory=list)
    device_type: DeviceType = DeviceType.NETWORK_DEVICE
    user_name: str = ""
    password: str = field(default="", repr=False)
    enable_password: str = field(default="", repr=False)
    cli_transport: CliTransport = CliTransport.SSH
    snmp_version: SnmpVersion = SnmpVersion.V3
    snmp_user_name: str = ""
    snmp_mode: SnmpMode = SnmpMode.AUTH_PRIV
    snmp_auth_passphrase: str = field(default="", repr=False)
    snmp_priv_passphrase: str = field(default="", repr=False)
    snmp_auth_protocol: SnmpAuthProtocol = SnmpAuthProtocol.SHA
    snmp_priv_protocol: SnmpPrivProtocol = SnmpPrivProtocol.AES128
    netconf_port: int = 830

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for API request."""
        payload = {}
        for name, value in asdict(self).items():
            if isinstance(value, Enum):
                value = value.value
            payload[_ADD_DEVICE_FIELDS[name]] = value
        return payload


# ============================================
# DeviceAPI
# ============================================

class DeviceAPI:
    """Device inventory operations.

    Attributes:
        client: DNACClient instance for API communication
    """

    ENDPOINT = "/dna/intent/api/v1/network-device"

    def __init__(self, client: DNACClient):
        self.client = client

    async def list_devices(
        self,
        filter: Optional[DeviceFilter] = None,
        pagination: Optional[Pagination] = None,
    ) -> list[Device]:
        """Fetch one page of devices."""
        params = filter.to_params() if filter else None
        return await self.client.get_items(
            self.ENDPOINT,
            params=params,
            pagination=pagination,
            parser=Device.from_dict,
        )

    async def fetch_all_devices(
        self,
        family: Optional[DeviceFamily] = None,
        *,
        limit: int = PAGE_SIZE,
        timeout: Optional[float] = None,
    ) -> list[Device]:
        """Fetch every device, optionally restricted to one family."""
        filter = DeviceFilter(family=family) if family else None
        devices = await fetch_all(self.list_devices, filter, limit=limit, timeout=timeout)
        logger.info(f"Fetched {len(devices):,} devices")
        return devices

    async def add_device(
        self,
        device: AddDevice,
        *,
        wait: bool = True,
        timeout: Optional[float] = None,
    ) -> Optional[TaskHandle]:
        """Add devices and (by default) wait for the inventory task.

        Raises:
            TaskFailure: If the controller task finished with an error
        """
        logger.info(f"Adding {len(device.ip_address)} device(s): {', '.join(device.ip_address)}")
        return await self.client.post(
            self.ENDPOINT,
            device.to_dict(),
            wait=wait,
            timeout=timeout,
        )


__all__ = [
    "AddDevice",
    "CliTransport",
    "Device",
    "DeviceAPI",
    "DeviceFamily",
    "DeviceFilter",
    "DeviceStatus",
    "DeviceType",
    "SnmpAuthProtocol",
    "SnmpMode",
    "SnmpPrivProtocol",
    "SnmpVersion",
]
