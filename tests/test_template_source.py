"""
Tests for template loading with remote and local fallbacks.

Run with: python -m pytest tests/test_template_source.py -v
"""

import pytest
import requests

from services.documents.exceptions import TemplateUnavailable
from services.documents.template_source import TemplateLoader


class FakeResponse:
    def __init__(self, content=b'', status_code=200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=self)


class FakeSession:
    """Stands in for requests.Session; records every GET."""
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error:
            raise self.error
        return self.response


class TestTemplateLoader:

    def test_remote_template_preferred(self, tmp_path):
        local = tmp_path / 'mergedTC.pdf'
        local.write_bytes(b'%PDF-local')
        session = FakeSession(FakeResponse(b'%PDF-remote'))

        loader = TemplateLoader('https://example.com/t.pdf', [str(local)], timeout=5, session=session)

        assert loader.load() == b'%PDF-remote'
        assert session.calls == [('https://example.com/t.pdf', 5)]

    def test_http_error_falls_back_to_local(self, tmp_path):
        local = tmp_path / 'mergedTC.pdf'
        local.write_bytes(b'%PDF-local')
        session = FakeSession(FakeResponse(status_code=404))

        loader = TemplateLoader('https://example.com/t.pdf', [str(local)], session=session)

        assert loader.load() == b'%PDF-local'

    def test_timeout_falls_back_to_local(self, tmp_path):
        local = tmp_path / 'mergedTC.pdf'
        local.write_bytes(b'%PDF-local')
        session = FakeSession(error=requests.exceptions.Timeout('timed out'))

        loader = TemplateLoader('https://example.com/t.pdf', [str(local)], session=session)

        assert loader.load() == b'%PDF-local'

    def test_empty_remote_body_falls_back(self, tmp_path):
        local = tmp_path / 'mergedTC.pdf'
        local.write_bytes(b'%PDF-local')
        session = FakeSession(FakeResponse(b''))

        loader = TemplateLoader('https://example.com/t.pdf', [str(local)], session=session)

        assert loader.load() == b'%PDF-local'

    def test_fallback_paths_tried_in_order(self, tmp_path):
        first = tmp_path / 'missing.pdf'
        second = tmp_path / 'second.pdf'
        second.write_bytes(b'%PDF-second')

        loader = TemplateLoader(None, [str(first), str(second)], session=FakeSession())

        assert loader.load() == b'%PDF-second'

    def test_relative_paths_resolve_against_working_directory(self, tmp_path, monkeypatch):
        (tmp_path / 'public').mkdir()
        (tmp_path / 'public' / 'mergedTC.pdf').write_bytes(b'%PDF-cwd')
        monkeypatch.chdir(tmp_path)

        loader = TemplateLoader(None, ['public/mergedTC.pdf'], session=FakeSession())

        assert loader.load() == b'%PDF-cwd'

    def test_empty_local_file_skipped(self, tmp_path):
        empty = tmp_path / 'empty.pdf'
        empty.write_bytes(b'')

        loader = TemplateLoader(None, [str(empty)], session=FakeSession())

        with pytest.raises(TemplateUnavailable):
            loader.load()

    def test_exhaustion_lists_every_attempt(self, tmp_path):
        session = FakeSession(error=requests.exceptions.ConnectionError('refused'))
        missing = tmp_path / 'missing.pdf'

        loader = TemplateLoader('https://example.com/t.pdf', [str(missing)], session=session)

        with pytest.raises(TemplateUnavailable) as exc_info:
            loader.load()

        assert len(exc_info.value.attempts) == 2
        assert 'https://example.com/t.pdf' in exc_info.value.attempts[0]
        assert 'missing.pdf' in exc_info.value.attempts[1]
