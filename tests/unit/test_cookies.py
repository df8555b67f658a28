"""Tests for the persistent cookie store."""
import pytest
from multidict import CIMultiDict

from icloudpy.core.session import CookieStore


def set_cookie_headers(*values):
    headers = CIMultiDict()
    for value in values:
        headers.add('Set-Cookie', value)
    return headers


class TestCookieStore:
    """Test suite for CookieStore."""

    def test_extract_and_send(self):
        store = CookieStore()
        store.extract(
            'https://setup.icloud.com/setup/ws/1/accountLogin',
            set_cookie_headers(
                'X-APPLE-WEBAUTH-TOKEN="v=2:t=abc"; Domain=.icloud.com; Path=/; Secure',
                'X-APPLE-DS-WEB-SESSION-TOKEN=xyz; Domain=.icloud.com; Path=/; Secure',
            ),
        )

        header = store.header_for('https://p01-drivews.icloud.com/retrieveItemDetailsInFolders')

        assert 'X-APPLE-WEBAUTH-TOKEN="v=2:t=abc"' in header
        assert 'X-APPLE-DS-WEB-SESSION-TOKEN=xyz' in header
        assert len(store) == 2

    def test_cookies_not_sent_to_other_domains(self):
        store = CookieStore()
        store.extract(
            'https://setup.icloud.com/setup/ws/1/validate',
            set_cookie_headers('A=1; Domain=.icloud.com; Path=/'),
        )

        assert store.header_for('https://idmsa.apple.com/appleauth/auth') is None

    def test_get_matches_parent_domain(self):
        store = CookieStore()
        store.set('X-APPLE-WEBAUTH-VALIDATE', 'v=1:t=token', '.icloud.com')

        assert store.get('X-APPLE-WEBAUTH-VALIDATE', 'icloud.com') == 'v=1:t=token'
        assert store.get('X-APPLE-WEBAUTH-VALIDATE', 'www.icloud.com') == 'v=1:t=token'
        assert store.get('X-APPLE-WEBAUTH-VALIDATE', 'apple.com') is None
        assert store.get('missing', 'icloud.com') is None

    def test_save_and_load_netscape_file(self, tmp_path):
        path = tmp_path / 'user' / 'cookies.txt'
        store = CookieStore(path)
        store.extract(
            'https://setup.icloud.com/setup/ws/1/validate',
            set_cookie_headers('SESSION=value; Domain=.icloud.com; Path=/; Secure'),
        )

        store.save()
        reloaded = CookieStore(path)
        reloaded.load()

        assert path.read_text().startswith('# Netscape HTTP Cookie File')
        assert reloaded.get('SESSION', 'icloud.com') == 'value'
        assert reloaded.names() == ['SESSION']

    def test_missing_file_loads_empty(self, tmp_path):
        store = CookieStore(tmp_path / 'cookies.txt')

        store.load()

        assert len(store) == 0

    def test_memory_store_save_is_noop(self):
        store = CookieStore()
        store.set('A', '1', '.icloud.com')

        store.save()

        assert store.path is None

    def test_save_to_unwritable_path_raises(self, tmp_path):
        blocker = tmp_path / 'file'
        blocker.write_text('x')
        store = CookieStore(blocker / 'cookies.txt')
        store.set('A', '1', '.icloud.com')

        with pytest.raises(OSError):
            store.save()
