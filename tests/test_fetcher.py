import asyncio

import httpx

from loader.fetcher import FetchResult, HTTPFetcher


def _fetch(handler, url="https://example.com/", **kwargs) -> FetchResult:
    async def run():
        fetcher = HTTPFetcher(transport=httpx.MockTransport(handler), **kwargs)
        try:
            return await fetcher.fetch(url)
        finally:
            await fetcher.aclose()

    return asyncio.run(run())


def test_fetch_success(sample_html):
    seen = {}

    def handler(request):
        seen['user_agent'] = request.headers['user-agent']
        return httpx.Response(200, html=sample_html)

    result = _fetch(handler, user_agent='TestAgent/2.0')

    assert result.success
    assert result.status_code == 200
    assert result.error is None
    assert result.text == sample_html
    assert result.encoding == 'utf-8'
    assert result.content_type.startswith('text/html')
    assert result.final_url == 'https://example.com/'
    assert result.size == len(sample_html.encode('utf-8'))
    assert seen['user_agent'] == 'TestAgent/2.0'


def test_fetch_non_2xx_is_an_error():
    result = _fetch(lambda request: httpx.Response(404, text="missing"))
    assert not result.success
    assert result.status_code == 404
    assert result.error == "Request failed with status code 404"


def test_fetch_connection_error():
    def handler(request):
        raise httpx.ConnectError("Connection refused", request=request)

    result = _fetch(handler)
    assert not result.success
    assert result.status_code == 0
    assert result.error.startswith("Connection error")
    assert "Connection refused" in result.error


def test_fetch_timeout():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = _fetch(handler, timeout=2)
    assert not result.success
    assert result.error.startswith("Timeout after 2.0s")


def test_fetch_rejects_declared_oversize_body():
    def handler(request):
        return httpx.Response(200, headers={'content-type': 'text/html'}, content=b'x' * 100)

    result = _fetch(handler, max_response_size=10)
    assert not result.success
    assert result.error == "Content too large: 100 bytes > 10 bytes"


def test_fetch_truncates_streamed_body():
    async def body():
        for _ in range(4):
            yield b'a' * 8

    def handler(request):
        return httpx.Response(200, headers={'content-type': 'text/html'}, content=body())

    result = _fetch(handler, max_response_size=10)
    assert result.success
    assert result.content == b'a' * 10


def test_fetch_rejects_non_text_content():
    def handler(request):
        return httpx.Response(200, headers={'content-type': 'image/png'}, content=b'\x89PNG')

    result = _fetch(handler)
    assert not result.success
    assert result.error == "Unsupported content type: image/png"
    assert result.content == b''


def test_fetch_detects_meta_charset():
    page = '<html><head><meta charset="iso-8859-1"></head><body><p>Yale caf\xe9</p></body></html>'

    def handler(request):
        return httpx.Response(200, headers={'content-type': 'text/html'}, content=page.encode('latin-1'))

    result = _fetch(handler)
    assert result.encoding == 'iso-8859-1'
    assert 'Yale caf\xe9' in result.text


def test_text_falls_back_on_unknown_encoding():
    result = FetchResult(url='http://example.com', status_code=200, content=b'abc', encoding='no-such-codec')
    assert result.text == 'abc'


def test_from_config():
    fetcher = HTTPFetcher.from_config({'user_agent': 'Cfg/1.0', 'timeout': 5, 'max_response_size': 1024})
    try:
        assert fetcher.user_agent == 'Cfg/1.0'
        assert fetcher.timeout == 5.0
        assert fetcher.max_response_size == 1024
        assert fetcher.max_redirects == 5
    finally:
        asyncio.run(fetcher.aclose())


def test_fetch_unsupported_scheme_is_an_error():
    async def run():
        fetcher = HTTPFetcher()
        try:
            return await fetcher.fetch("ftp://example.com/")
        finally:
            await fetcher.aclose()

    result = asyncio.run(run())
    assert not result.success
    assert result.status_code == 0
    assert result.error.startswith("UnsupportedProtocol")
