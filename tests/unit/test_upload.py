"""Tests for the upload transaction."""
import io
from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import aiohttp
import pytest

from icloudpy.core.api.errors import ICloudAPIError
from icloudpy.core.exceptions import InvalidResponseError, UploadTokenError
from icloudpy.core.upload import UploadConfig, UploadCoordinator
from icloudpy.core.upload.models import UploadedContent, UploadStaging
from icloudpy.core.upload.services import ContentUploader, DocumentCommitter, FileValidator

from fakes import DOCWS_URL, FakeResponse

CONTENT_URL = 'https://p01-contentws.icloud.com/upload/abc'
STAGING = UploadStaging(document_id='doc-new', content_url=CONTENT_URL, folder_id='folder-1')


def staged(document_id='doc-new', url=CONTENT_URL):
    return FakeResponse.json([{'document_id': document_id, 'url': url, 'owner': 'me'}])


def uploaded(size=5, receipt='rcpt-1'):
    single = {
        'fileChecksum': 'sum-1',
        'referenceChecksum': 'ref-1',
        'wrappingKey': 'key-1',
        'size': size,
    }
    if receipt:
        single['receipt'] = receipt
    return FakeResponse.json({'singleFile': single})


@pytest.fixture
def uploader(signed_in_api, cookies):
    cookies.set('X-APPLE-WEBAUTH-VALIDATE', 'v=1:t=TOKEN123', '.icloud.com')
    return UploadCoordinator(signed_in_api, DOCWS_URL)


class TestUploadConfig:
    """Tests for UploadConfig validation."""

    def test_requires_a_source(self):
        with pytest.raises(ValueError):
            UploadConfig(folder_id='f')

    def test_source_and_path_exclusive(self):
        with pytest.raises(ValueError):
            UploadConfig(folder_id='f', file_path='a.txt', source=b'x', name='a.txt')

    def test_stream_requires_name(self):
        with pytest.raises(ValueError):
            UploadConfig(folder_id='f', source=b'x')

    def test_bytes_size_is_inferred(self):
        config = UploadConfig(folder_id='f', source=b'hello', name='dir/hello.txt')

        assert config.size == 5
        assert config.name == 'hello.txt'

    def test_name_defaults_to_file_name(self, tmp_path):
        config = UploadConfig(folder_id='f', file_path=str(tmp_path / 'photo.jpg'))

        assert config.name == 'photo.jpg'


class TestFileValidator:
    """Tests for FileValidator."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            FileValidator().validate(tmp_path / 'nope.bin')

    def test_directory(self, tmp_path):
        with pytest.raises(ValueError):
            FileValidator().validate(tmp_path)

    def test_size(self, tmp_path):
        path = tmp_path / 'data.bin'
        path.write_bytes(b'12345678')

        assert FileValidator().validate(str(path)) == (path, 8)

    def test_modification_time_is_aware(self, tmp_path):
        path = tmp_path / 'data.bin'
        path.write_bytes(b'1')

        assert FileValidator().modification_time(path).tzinfo is not None


class TestUploadToken:
    """Tests for the upload token."""

    def test_token_from_cookie(self, uploader):
        assert uploader.upload_token() == 'TOKEN123'

    @pytest.mark.asyncio
    async def test_missing_cookie(self, signed_in_api, http):
        coordinator = UploadCoordinator(signed_in_api, DOCWS_URL)

        with pytest.raises(UploadTokenError):
            await coordinator.put_stream('folder-1', b'hello', 'a.txt', 5)
        assert http.calls == []

    def test_cookie_without_token(self, signed_in_api, cookies):
        cookies.set('X-APPLE-WEBAUTH-VALIDATE', 'v=1:x=2', '.icloud.com')

        with pytest.raises(UploadTokenError):
            UploadCoordinator(signed_in_api, DOCWS_URL).upload_token()


class TestUploadCoordinator:
    """Tests for the stage, content and commit legs."""

    @pytest.mark.asyncio
    async def test_put_stream(self, uploader, http):
        http.queue(staged(), uploaded(), FakeResponse.json({'status': 'OK'}))
        mtime = datetime(2022, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

        result = await uploader.put_stream('folder-1', io.BytesIO(b'hello'), 'a.txt', 5, mtime)

        assert len(http.calls) == 3
        stage, content, commit = http.calls

        assert stage.url == f'{DOCWS_URL}/ws/com.apple.CloudDocs/upload/web?token=TOKEN123'
        assert stage.headers['Content-Type'] == 'text/plain'
        assert stage.json == {
            'filename': 'a.txt', 'type': 'FILE', 'content_type': 'text/plain', 'size': 5,
        }

        assert content.url == CONTENT_URL
        assert isinstance(content.data, aiohttp.MultipartWriter)

        assert commit.url == f'{DOCWS_URL}/ws/com.apple.CloudDocs/update/documents'
        command = commit.json
        assert command['command'] == 'add_file'
        assert command['document_id'] == 'doc-new'
        assert command['path'] == {'starting_document_id': 'folder-1', 'path': 'a.txt'}
        assert command['data']['receipt'] == 'rcpt-1'
        assert command['data']['signature'] == 'sum-1'
        assert command['mtime'] == command['btime'] == 1641092645000

        assert result.document_id == 'doc-new'
        assert result.size == 5
        assert result.response == {'status': 'OK'}

    @pytest.mark.asyncio
    async def test_empty_file_has_no_receipt(self, uploader, http):
        http.queue(staged(), uploaded(size=0, receipt=''), FakeResponse.json({}))

        await uploader.put_stream('folder-1', b'', 'empty.bin', 0)

        assert 'receipt' not in http.calls[2].json['data']

    @pytest.mark.asyncio
    async def test_upload_local_file(self, uploader, http, tmp_path):
        path = tmp_path / 'notes.md'
        path.write_bytes(b'# notes')
        http.queue(staged(), uploaded(size=7), FakeResponse.json({}))

        result = await uploader.upload(UploadConfig(folder_id='folder-1', file_path=path))

        assert http.calls[0].json['size'] == 7
        assert http.calls[0].json['filename'] == 'notes.md'
        assert result.name == 'notes.md'

    @pytest.mark.asyncio
    async def test_unknown_content_type(self, uploader, http):
        http.queue(staged(), uploaded(), FakeResponse.json({}))

        await uploader.put_stream('folder-1', b'hello', 'blob', 5)

        assert http.calls[0].json['content_type'] == ''

    @pytest.mark.asyncio
    async def test_invalid_staging(self, uploader, http):
        http.queue(FakeResponse.json([{'document_id': 'doc-new'}]))

        with pytest.raises(InvalidResponseError):
            await uploader.put_stream('folder-1', b'hello', 'a.txt', 5)
        assert len(http.calls) == 1

    @pytest.mark.asyncio
    async def test_commit_error_propagates(self, uploader, http):
        http.queue(
            staged(),
            uploaded(),
            FakeResponse.json({'errorCode': 'CONFLICT', 'errorReason': 'Conflict'}),
        )

        with pytest.raises(ICloudAPIError):
            await uploader.put_stream('folder-1', b'hello', 'a.txt', 5)
        assert len(http.calls) == 3

    @pytest.mark.asyncio
    async def test_commit_error_without_body_propagates(self, uploader, http):
        http.queue(
            staged(),
            uploaded(),
            FakeResponse.text('', status=400, reason='Bad Request'),
        )

        with pytest.raises(ICloudAPIError):
            await uploader.put_stream('folder-1', b'hello', 'a.txt', 5)


class ClosingSource:
    """Readable that records close and can fail on demand."""

    def __init__(self, data=b'', read_error=None, close_error=None):
        self._data = data
        self._read_error = read_error
        self._close_error = close_error
        self.closed = False

    def read(self):
        if self._read_error:
            raise self._read_error
        return self._data

    def close(self):
        self.closed = True
        if self._close_error:
            raise self._close_error


class AsyncSource(ClosingSource):

    async def read(self):
        return super().read()

    async def close(self):
        super().close()


class TestContentUploader:
    """Tests for ContentUploader."""

    @pytest.mark.asyncio
    async def test_source_is_closed(self, signed_in_api, http):
        http.queue(uploaded())
        source = ClosingSource(b'hello')

        content = await ContentUploader(signed_in_api).upload(STAGING, 'a.txt', source)

        assert source.closed
        assert content.receipt == 'rcpt-1'

    @pytest.mark.asyncio
    async def test_async_source(self, signed_in_api, http):
        http.queue(uploaded())
        source = AsyncSource(b'hello')

        await ContentUploader(signed_in_api).upload(STAGING, 'a.txt', source)

        assert source.closed

    @pytest.mark.asyncio
    async def test_read_error_wins_over_close_error(self, signed_in_api, http):
        source = ClosingSource(read_error=OSError('read'), close_error=OSError('close'))

        with pytest.raises(OSError, match='read'):
            await ContentUploader(signed_in_api).upload(STAGING, 'a.txt', source)
        assert source.closed
        assert http.calls == []

    @pytest.mark.asyncio
    async def test_source_closed_on_any_read_error(self, signed_in_api, http):
        source = ClosingSource(read_error=ValueError('I/O operation on closed file'))

        with pytest.raises(ValueError):
            await ContentUploader(signed_in_api).upload(STAGING, 'a.txt', source)
        assert source.closed
        assert http.calls == []

    @pytest.mark.asyncio
    async def test_read_error_wins_over_any_close_error(self, signed_in_api, http):
        source = AsyncSource(read_error=OSError('read'), close_error=RuntimeError('close'))

        with pytest.raises(OSError, match='read'):
            await ContentUploader(signed_in_api).upload(STAGING, 'a.txt', source)
        assert source.closed

    @pytest.mark.asyncio
    async def test_close_error_is_raised(self, signed_in_api, http):
        source = ClosingSource(b'hello', close_error=OSError('close'))

        with pytest.raises(OSError, match='close'):
            await ContentUploader(signed_in_api).upload(STAGING, 'a.txt', source)
        assert http.calls == []

    @pytest.mark.asyncio
    async def test_non_json_response(self, signed_in_api, http):
        http.queue(FakeResponse(200, b'{"singleFile": {"size": 3}}', {'Content-Type': 'text/plain'}))

        content = await ContentUploader(signed_in_api).upload(STAGING, 'a.txt', b'abc')

        assert content.size == 3
        assert content.receipt == ''


class TestDocumentCommitter:
    """Tests for DocumentCommitter."""

    def test_build_command(self, signed_in_api):
        committer = DocumentCommitter(signed_in_api, DOCWS_URL)
        content = UploadedContent(checksum='s', reference_checksum='r', wrapping_key='k', size=1)
        mtime = datetime(2020, 1, 1, tzinfo=timezone.utc)

        command = committer.build_command(STAGING, content, 'a.txt', mtime)

        assert command['data'] == {
            'signature': 's', 'wrapping_key': 'k', 'reference_signature': 'r', 'size': 1,
        }
        assert command['mtime'] == 1577836800000
        assert command['allow_conflict'] is True
        assert command['create_short_guid'] is True
        assert command['file_flags'] == {
            'is_writable': True, 'is_executable': False, 'is_hidden': False,
        }


class TestInjectedServices:
    """Tests for UploadCoordinator with injected services."""

    @pytest.mark.asyncio
    async def test_legs_receive_staging(self, signed_in_api, cookies, http):
        cookies.set('X-APPLE-WEBAUTH-VALIDATE', 'v=1:t=TOKEN123', '.icloud.com')
        content = UploadedContent(checksum='s', size=5)
        uploader = Mock(spec=ContentUploader)
        uploader.upload = AsyncMock(return_value=content)
        committer = Mock(spec=DocumentCommitter)
        committer.commit = AsyncMock(return_value={'ok': True})
        http.queue(staged())

        coordinator = UploadCoordinator(
            signed_in_api, DOCWS_URL, content_uploader=uploader, committer=committer
        )
        result = await coordinator.put_stream('folder-1', b'hello', 'a.txt', 5)

        uploader.upload.assert_awaited_once_with(STAGING, 'a.txt', b'hello')
        staging, committed, name, mtime = committer.commit.await_args.args
        assert staging == STAGING
        assert committed is content
        assert mtime.tzinfo is not None
        assert result.response == {'ok': True}

    @pytest.mark.asyncio
    async def test_content_failure_skips_commit(self, signed_in_api, cookies, http):
        cookies.set('X-APPLE-WEBAUTH-VALIDATE', 'v=1:t=TOKEN123', '.icloud.com')
        uploader = Mock(spec=ContentUploader)
        uploader.upload = AsyncMock(side_effect=ICloudAPIError(500, '', 'boom'))
        committer = Mock(spec=DocumentCommitter)
        committer.commit = AsyncMock()
        http.queue(staged())

        coordinator = UploadCoordinator(
            signed_in_api, DOCWS_URL, content_uploader=uploader, committer=committer
        )
        with pytest.raises(ICloudAPIError):
            await coordinator.put_stream('folder-1', b'hello', 'a.txt', 5)

        committer.commit.assert_not_awaited()
