"""
Tests for Supabase uploads and the storage endpoint client.

Run with: python -m pytest tests/test_storage.py -v
"""

import pytest
import requests

from services.documents.exceptions import StorageAPIError
from services.storage_client import StorageAPIClient
from services.supabase_storage import (
    ensure_bucket,
    generate_transaction_pdf_path,
    get_supabase_client,
    reset_supabase_client,
    upload_transaction_pdf,
)


class FakeBucketApi:
    def __init__(self, bucket, uploads):
        self.bucket = bucket
        self.uploads = uploads

    def upload(self, path, file, file_options=None):
        self.uploads.append((self.bucket, path, file, file_options))
        return {'Key': f'{self.bucket}/{path}'}

    def get_public_url(self, path):
        return f'https://proj.supabase.co/storage/v1/object/public/{self.bucket}/{path}'


class FakeStorage:
    def __init__(self, buckets=(), create_error=None):
        self.buckets = [{'name': name, 'id': name} for name in buckets]
        self.create_error = create_error
        self.created = []
        self.uploads = []

    def list_buckets(self):
        return self.buckets

    def create_bucket(self, name, options=None):
        if self.create_error:
            raise self.create_error
        self.created.append((name, options))

    def from_(self, bucket):
        return FakeBucketApi(bucket, self.uploads)


class FakeSupabase:
    def __init__(self, **kwargs):
        self.storage = FakeStorage(**kwargs)


class TestEnsureBucket:

    def test_existing_bucket(self):
        client = FakeSupabase(buckets=['transaction-documents'])
        assert ensure_bucket('transaction-documents', client=client) == 'transaction-documents'
        assert client.storage.created == []

    def test_creates_public_bucket(self):
        client = FakeSupabase(buckets=[])
        assert ensure_bucket('transaction-documents', client=client) == 'transaction-documents'
        assert client.storage.created == [('transaction-documents', {'public': True})]

    def test_falls_back_to_existing_bucket(self):
        client = FakeSupabase(buckets=['public-files'], create_error=RuntimeError('permission denied'))
        assert ensure_bucket('transaction-documents', client=client) == 'public-files'

    def test_no_bucket_at_all(self):
        client = FakeSupabase(buckets=[], create_error=RuntimeError('permission denied'))
        with pytest.raises(RuntimeError):
            ensure_bucket('transaction-documents', client=client)


class TestUploadTransactionPdf:

    def test_upload(self):
        client = FakeSupabase(buckets=['transaction-documents'])

        result = upload_transaction_pdf(b'%PDF-1.4', 'x.pdf', client=client)

        bucket, path, data, options = client.storage.uploads[0]
        assert path == generate_transaction_pdf_path('x.pdf') == 'transaction-pdfs/x.pdf'
        assert options == {'content-type': 'application/pdf', 'upsert': 'true'}
        assert result == {
            'bucket': 'transaction-documents',
            'path': 'transaction-pdfs/x.pdf',
            'url': 'https://proj.supabase.co/storage/v1/object/public/transaction-documents/transaction-pdfs/x.pdf',
            'size': 8,
        }


class FakeResponse:
    def __init__(self, payload=None, status_code=200, text=None):
        self.payload = payload
        self.status_code = status_code
        self.text = text if text is not None else str(payload)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.posts = []

    def post(self, url, json=None, timeout=None):
        self.posts.append((url, json, timeout))
        return self.responses.pop(0)


class TestStorageAPIClient:

    def make(self, *responses):
        session = FakeSession(*responses)
        return StorageAPIClient('http://svc/upload', 'http://svc/update', timeout=10, session=session), session

    def test_upload_pdf(self):
        client, session = self.make(FakeResponse({'success': True, 'url': 'https://cdn/x.pdf', 'airtableUpdated': True}))

        result = client.upload_pdf('data:application/pdf;base64,JVBER', 'x.pdf', 'recTXN123')

        assert result['url'] == 'https://cdn/x.pdf'
        assert session.posts == [('http://svc/upload', {
            'pdfData': 'data:application/pdf;base64,JVBER',
            'filename': 'x.pdf',
            'transactionId': 'recTXN123',
        }, 10)]

    def test_upload_without_url(self):
        client, _ = self.make(FakeResponse({'success': True}))
        with pytest.raises(StorageAPIError):
            client.upload_pdf('data:application/pdf;base64,JVBER', 'x.pdf', None)

    def test_update_attachment(self):
        client, session = self.make(FakeResponse({'success': True}))

        client.update_attachment('https://cdn/x.pdf', 'x.pdf', 'recTXN123')

        url, payload, _ = session.posts[0]
        assert url == 'http://svc/update'
        assert payload['pdfData'] == 'https://cdn/x.pdf'
        assert payload['fieldId'] == 'fldhrYdoFwtNfzdFY'

    def test_http_error(self):
        client, _ = self.make(FakeResponse({'error': 'boom'}, status_code=500, text='{"error": "boom"}'))

        with pytest.raises(StorageAPIError) as exc_info:
            client.update_attachment('https://cdn/x.pdf', 'x.pdf', 'recTXN123')

        assert exc_info.value.status_code == 500
        assert exc_info.value.response_body == '{"error": "boom"}'

    def test_reported_failure(self):
        client, _ = self.make(FakeResponse({'success': False, 'error': 'Missing Airtable credentials'}))

        with pytest.raises(StorageAPIError) as exc_info:
            client.update_attachment('https://cdn/x.pdf', 'x.pdf', 'recTXN123')

        assert 'Missing Airtable credentials' in str(exc_info.value)

    def test_invalid_json(self):
        client, _ = self.make(FakeResponse(ValueError('no json'), text='<html>'))
        with pytest.raises(StorageAPIError):
            client.upload_pdf('data:application/pdf;base64,JVBER', 'x.pdf', None)

    def test_relative_endpoint_uses_base_url(self):
        session = FakeSession(FakeResponse({'success': True, 'url': 'https://cdn/x.pdf'}), FakeResponse({'success': True}))
        client = StorageAPIClient('/api/supabase-pdf-upload', '/api/update-airtable-attachment', session=session)

        client.upload_pdf('data:application/pdf;base64,JVBER', 'x.pdf', 'recTXN123', base_url='https://tc.example.com/')
        client.update_attachment('https://cdn/x.pdf', 'x.pdf', 'recTXN123', base_url='https://tc.example.com/')

        assert [post[0] for post in session.posts] == [
            'https://tc.example.com/api/supabase-pdf-upload',
            'https://tc.example.com/api/update-airtable-attachment',
        ]

    def test_absolute_endpoint_ignores_base_url(self):
        client, session = self.make(FakeResponse({'success': True}))

        client.update_attachment('https://cdn/x.pdf', 'x.pdf', 'recTXN123', base_url='https://tc.example.com/')

        assert session.posts[0][0] == 'http://svc/update'

    def test_relative_endpoint_without_base_url(self):
        session = FakeSession()
        client = StorageAPIClient('/api/supabase-pdf-upload', '/api/update-airtable-attachment', session=session)

        with pytest.raises(StorageAPIError):
            client.upload_pdf('data:application/pdf;base64,JVBER', 'x.pdf', 'recTXN123')

        assert session.posts == []


class TestGetSupabaseClient:

    @pytest.fixture(autouse=True)
    def created(self, monkeypatch):
        calls = []

        def fake_create_client(url, key):
            calls.append((url, key))
            return object()

        reset_supabase_client()
        monkeypatch.delenv('SUPABASE_URL', raising=False)
        monkeypatch.delenv('SUPABASE_KEY', raising=False)
        monkeypatch.setattr('services.supabase_storage.create_client', fake_create_client)
        yield calls
        reset_supabase_client()

    def test_explicit_credentials(self, created):
        get_supabase_client('https://a.supabase.co', 'key-a')
        assert created == [('https://a.supabase.co', 'key-a')]

    def test_client_reused(self, created):
        first = get_supabase_client('https://a.supabase.co', 'key-a')
        assert get_supabase_client('https://a.supabase.co', 'key-a') is first
        assert len(created) == 1

    def test_new_credentials_rebuild_client(self, created):
        get_supabase_client('https://a.supabase.co', 'key-a')
        get_supabase_client('https://b.supabase.co', 'key-b')
        assert created[-1] == ('https://b.supabase.co', 'key-b')

    def test_environment_fallback(self, created, monkeypatch):
        monkeypatch.setenv('SUPABASE_URL', 'https://env.supabase.co')
        monkeypatch.setenv('SUPABASE_KEY', 'env-key')

        get_supabase_client()

        assert created == [('https://env.supabase.co', 'env-key')]

    def test_missing_credentials(self, created):
        with pytest.raises(ValueError):
            get_supabase_client()
        assert created == []
