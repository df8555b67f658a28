"""
Session data models.

Contains data classes for session information.
"""
from dataclasses import dataclass, asdict, fields
from typing import Any, Mapping
import json
import uuid

# Response header -> SessionData attribute
SESSION_HEADERS = {
    'X-Apple-ID-Account-Country': 'account_country',
    'X-Apple-ID-Session-Id': 'session_id',
    'X-Apple-Session-Token': 'session_token',
    'X-Apple-TwoSV-Trust-Token': 'trust_token',
    'scnt': 'scnt',
}


@dataclass
class SessionData:
    """
    Session credentials kept between runs.

    Contains all information needed to resume a session
    without re-sending the password or re-triggering verification.

    Attributes:
        client_id: Stable client identifier, generated once
        account_country: Country reported by the auth service
        session_id: Auth service session id
        session_token: Web auth token exchanged for account state
        trust_token: 2FA trust token remembered across logins
        scnt: Sticky continuation token echoed back to the auth service
    """
    client_id: str = ''
    account_country: str = ''
    session_id: str = ''
    session_token: str = ''
    trust_token: str = ''
    scnt: str = ''

    def to_dict(self) -> dict:
        """
        Convert to dictionary for serialization.

        Returns:
            Dictionary representation
        """
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'SessionData':
        """
        Create from dictionary. Unknown keys are ignored.

        Args:
            data: Dictionary with session data

        Returns:
            SessionData instance
        """
        known = {f.name for f in fields(cls)}
        return cls(**{k: str(v) for k, v in data.items() if k in known and v is not None})

    def to_json(self) -> str:
        """
        Serialize to JSON string.

        Returns:
            JSON string
        """
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, json_str: str) -> 'SessionData':
        """
        Create from JSON string.

        Args:
            json_str: JSON string

        Returns:
            SessionData instance
        """
        data = json.loads(json_str)
        if not isinstance(data, dict):
            raise ValueError("Session file must be a JSON object")
        return cls.from_dict(data)

    def ensure_client_id(self) -> str:
        """Assign a client id once; an existing id is never replaced."""
        if not self.client_id:
            self.client_id = 'auth-' + str(uuid.uuid4()).lower()
        return self.client_id

    def apply_response_headers(self, headers: Mapping[str, str]) -> bool:
        """
        Copy session fields from response headers.

        Empty or missing headers leave the stored value untouched.

        Returns:
            True if any field changed
        """
        changed = False
        for header, attr in SESSION_HEADERS.items():
            value = headers.get(header)
            if value and getattr(self, attr) != value:
                setattr(self, attr, value)
                changed = True
        return changed
