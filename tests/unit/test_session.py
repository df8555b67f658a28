"""
Unit tests for session management.

Tests JSONSession, MemorySession, and SessionData.
"""
import json
import os
import stat

import pytest

from icloudpy.core.session import (
    SessionStorage,
    SessionData,
    JSONSession,
    MemorySession
)


class TestSessionData:
    """Tests for SessionData model."""

    def test_defaults_are_empty(self):
        data = SessionData()

        assert data.client_id == ''
        assert data.session_token == ''
        assert data.scnt == ''

    def test_ensure_client_id_generates_once(self):
        data = SessionData()

        first = data.ensure_client_id()
        second = data.ensure_client_id()

        assert first.startswith('auth-')
        assert first == first.lower()
        assert first == second

    def test_ensure_client_id_keeps_loaded_id(self):
        data = SessionData(client_id='auth-existing')

        assert data.ensure_client_id() == 'auth-existing'

    def test_apply_response_headers(self):
        data = SessionData(trust_token='old-trust')
        headers = {
            'X-Apple-ID-Account-Country': 'USA',
            'X-Apple-ID-Session-Id': 'sid',
            'X-Apple-Session-Token': 'token',
            'X-Apple-TwoSV-Trust-Token': 'new-trust',
            'scnt': 'continuation',
        }

        changed = data.apply_response_headers(headers)

        assert changed is True
        assert data.account_country == 'USA'
        assert data.session_id == 'sid'
        assert data.session_token == 'token'
        assert data.trust_token == 'new-trust'
        assert data.scnt == 'continuation'

    def test_apply_response_headers_ignores_empty_values(self):
        data = SessionData(session_token='keep')

        changed = data.apply_response_headers({'X-Apple-Session-Token': ''})

        assert changed is False
        assert data.session_token == 'keep'

    def test_json_roundtrip(self):
        data = SessionData(client_id='auth-1', session_token='tok', scnt='s')

        restored = SessionData.from_json(data.to_json())

        assert restored == data

    def test_from_dict_ignores_unknown_keys(self):
        data = SessionData.from_dict({'client_id': 'auth-1', 'unknown': 'x'})

        assert data.client_id == 'auth-1'

    def test_from_json_rejects_non_object(self):
        with pytest.raises(ValueError):
            SessionData.from_json('[1, 2]')


class TestMemorySession:
    """Tests for MemorySession."""

    def test_is_session_storage(self):
        assert isinstance(MemorySession(), SessionStorage)

    def test_load_empty(self):
        session = MemorySession()

        assert session.load() is None
        assert not session.exists()

    def test_save_and_load_copy(self):
        session = MemorySession()
        data = SessionData(client_id='auth-1')

        session.save(data)
        data.session_token = 'changed later'
        loaded = session.load()

        assert loaded.client_id == 'auth-1'
        assert loaded.session_token == ''
        assert session.save_count == 1

    def test_delete(self):
        session = MemorySession(SessionData(client_id='auth-1'))

        session.delete()

        assert not session.exists()

    def test_context_manager(self):
        with MemorySession() as session:
            session.save(SessionData())
            assert session.exists()


class TestJSONSession:
    """Tests for JSONSession."""

    def test_missing_file_is_no_session(self, tmp_path):
        session = JSONSession(tmp_path / 'session.json')

        assert session.load() is None
        assert not session.exists()

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / 'nested' / 'user@example.com' / 'session.json'

        JSONSession(path)

        assert path.parent.is_dir()

    def test_save_and_load(self, tmp_path):
        session = JSONSession(tmp_path / 'session.json')
        data = SessionData(client_id='auth-1', session_token='tok', trust_token='trust')

        session.save(data)
        loaded = JSONSession(tmp_path / 'session.json').load()

        assert loaded == data

    def test_file_is_flat_json_document(self, tmp_path):
        path = tmp_path / 'session.json'
        JSONSession(path).save(SessionData(client_id='auth-1'))

        document = json.loads(path.read_text())

        assert document['client_id'] == 'auth-1'
        assert set(document) == {
            'client_id', 'account_country', 'session_id',
            'session_token', 'trust_token', 'scnt',
        }

    @pytest.mark.skipif(os.name != 'posix', reason="POSIX permissions")
    def test_file_is_owner_only(self, tmp_path):
        path = tmp_path / 'session.json'
        JSONSession(path).save(SessionData())

        assert stat.S_IMODE(path.stat().st_mode) == 0o600

    def test_invalid_file_raises(self, tmp_path):
        path = tmp_path / 'session.json'
        path.write_text('"just a string"')

        with pytest.raises(ValueError):
            JSONSession(path).load()

    def test_delete(self, tmp_path):
        session = JSONSession(tmp_path / 'session.json')
        session.save(SessionData())

        session.delete()

        assert not session.exists()
