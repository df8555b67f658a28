"""
Account data models.

The account document returned by validate/accountLogin is parsed into
immutable snapshots. A snapshot is never patched: every refresh builds a
new AccountState and replaces the old one.
"""
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from ..exceptions import ServiceNotActiveError


def _mapping(data: Any) -> Dict[str, Any]:
    return data if isinstance(data, dict) else {}


@dataclass(frozen=True)
class DsInfo:
    """Directory services info of the signed-in account."""
    dsid: str = ''
    apple_id: str = ''
    full_name: str = ''
    primary_email: str = ''
    locale: str = ''
    country_code: str = ''
    hsa_version: int = 0
    hsa_enabled: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DsInfo':
        return cls(
            dsid=str(data.get('dsid') or ''),
            apple_id=data.get('appleId') or '',
            full_name=data.get('fullName') or '',
            primary_email=data.get('primaryEmail') or '',
            locale=data.get('locale') or '',
            country_code=data.get('countryCode') or '',
            hsa_version=int(data.get('hsaVersion') or 0),
            hsa_enabled=bool(data.get('hsaEnabled')),
        )


@dataclass(frozen=True)
class WebService:
    """Base URL of one iCloud webservice."""
    url: str = ''
    status: str = ''

    @property
    def is_active(self) -> bool:
        # Some services are listed without a status
        return bool(self.url) and self.status in ('', 'active')


@dataclass(frozen=True)
class AppCapabilities:
    """Capability flags of one iCloud app."""
    can_launch_with_one_factor: bool = False
    is_hidden: bool = False


@dataclass(frozen=True)
class AccountState:
    """
    Snapshot of server-reported account status.

    Attributes:
        ds_info: Account identity and 2FA protocol version
        hsa_challenge_required: A challenge must be answered now
        hsa_trusted_browser: This client is trusted
        webservices: Service name -> base URL
        apps: App name -> capability flags
        is_extended_login: Long-lived session was granted
    """
    ds_info: DsInfo = field(default_factory=DsInfo)
    hsa_challenge_required: bool = False
    hsa_trusted_browser: bool = False
    webservices: Mapping[str, WebService] = field(default_factory=lambda: MappingProxyType({}))
    apps: Mapping[str, AppCapabilities] = field(default_factory=lambda: MappingProxyType({}))
    is_extended_login: bool = False

    @classmethod
    def from_response(cls, data: Any) -> 'AccountState':
        """Build a snapshot from a validate/accountLogin response."""
        data = _mapping(data)
        webservices = {
            name.lower(): WebService(
                url=_mapping(entry).get('url') or '',
                status=_mapping(entry).get('status') or '',
            )
            for name, entry in _mapping(data.get('webservices')).items()
        }
        apps = {
            name.lower(): AppCapabilities(
                can_launch_with_one_factor=bool(_mapping(flags).get('canLaunchWithOneFactor')),
                is_hidden=bool(_mapping(flags).get('isHidden')),
            )
            for name, flags in _mapping(data.get('apps')).items()
        }
        return cls(
            ds_info=DsInfo.from_dict(_mapping(data.get('dsInfo'))),
            hsa_challenge_required=bool(data.get('hsaChallengeRequired')),
            hsa_trusted_browser=bool(data.get('hsaTrustedBrowser')),
            webservices=MappingProxyType(webservices),
            apps=MappingProxyType(apps),
            is_extended_login=bool(data.get('isExtendedLogin')),
        )

    @property
    def is_trusted_session(self) -> bool:
        return self.hsa_trusted_browser

    @property
    def requires_2fa(self) -> bool:
        """2-factor authentication (HSA2) is required."""
        return self.ds_info.hsa_version == 2 and (
            self.hsa_challenge_required or not self.is_trusted_session
        )

    @property
    def requires_2sa(self) -> bool:
        """2-step authentication is required."""
        return self.ds_info.hsa_version >= 1 and (
            self.hsa_challenge_required or not self.is_trusted_session
        )

    def allows_one_factor(self, app: str) -> bool:
        caps = self.apps.get(app.lower())
        return caps is not None and caps.can_launch_with_one_factor

    def webservice_url(self, service: str) -> str:
        """
        Base URL of a webservice.

        Accepts names with or without the ``ws`` suffix ("drive", "drivews").

        Raises:
            ServiceNotActiveError: If the service is missing or inactive
        """
        name = service.lower()
        short = name[:-2] if name.endswith('ws') else name
        for key in (name, short, short + 'ws'):
            entry = self.webservices.get(key)
            if entry is not None and entry.is_active:
                return entry.url
        raise ServiceNotActiveError(f"service {service!r} does not have an URL")


@dataclass(frozen=True)
class Device:
    """A second-step verification target."""
    device_type: str = ''
    area_code: str = ''
    phone_number: str = ''
    device_id: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Device':
        return cls(
            device_type=data.get('deviceType') or '',
            area_code=data.get('areaCode') or '',
            phone_number=data.get('phoneNumber') or '',
            device_id=str(data.get('deviceId') or ''),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'deviceType': self.device_type,
            'areaCode': self.area_code,
            'phoneNumber': self.phone_number,
            'deviceId': self.device_id,
        }

    def __str__(self) -> str:
        if self.phone_number:
            return f"{self.device_type} {self.phone_number}".strip()
        return self.device_type or self.device_id


def parse_devices(data: Any) -> Optional[List[Device]]:
    """Parse a listDevices response; None when the document is unusable."""
    if not isinstance(data, dict) or not isinstance(data.get('devices', []), list):
        return None
    return [Device.from_dict(_mapping(item)) for item in data.get('devices', [])]
