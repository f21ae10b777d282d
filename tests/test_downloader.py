"""Tests for the CDN downloader (fake aiohttp session, no network)."""

from __future__ import annotations

from typing import Any

import aiohttp
import pytest

from flux_mcp.domain.errors import DownloadError, UnsafeRedirectError, UnsafeUrlError
from flux_mcp.infrastructure.clients.downloader import Downloader

CDN_URL = "https://replicate.delivery/pbxt/abc/out-0.png"


class FakeContent:
    def __init__(self, chunks: list[bytes], fail_after: Exception | None = None) -> None:
        self._chunks = chunks
        self._fail_after = fail_after

    async def iter_chunked(self, n: int):
        for chunk in self._chunks:
            yield chunk
        if self._fail_after is not None:
            raise self._fail_after


class FakeResponse:
    def __init__(
        self,
        status: int = 200,
        headers: dict[str, str] | None = None,
        chunks: list[bytes] | None = None,
        fail_after: Exception | None = None,
    ) -> None:
        self.status = status
        self.headers = headers or {}
        self.content = FakeContent(chunks or [], fail_after)

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> bool:
        return False


class FakeSession:
    def __init__(self, responses: dict[str, FakeResponse | Exception]) -> None:
        self.responses = responses
        self.requested: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.requested.append((url, kwargs))
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self) -> None:
        self.closed = True


def make_downloader(responses: dict[str, FakeResponse | Exception], **kwargs: Any) -> tuple[Downloader, FakeSession]:
    session = FakeSession(responses)
    return Downloader(session=session, **kwargs), session  # type: ignore[arg-type]


class TestDownload:
    async def test_streams_body_to_file(self, tmp_path):
        downloader, session = make_downloader({
            CDN_URL: FakeResponse(chunks=[b"\x89PNG", b"data", b"more"]),
        })
        dest = tmp_path / "out.png"
        written = await downloader.download(CDN_URL, str(dest))
        assert written == 12
        assert dest.read_bytes() == b"\x89PNGdatamore"
        assert session.requested == [(CDN_URL, {"allow_redirects": False})]

    async def test_overwrites_existing_file(self, tmp_path):
        dest = tmp_path / "out.png"
        dest.write_bytes(b"old contents that are longer")
        downloader, _ = make_downloader({CDN_URL: FakeResponse(chunks=[b"new"])})
        await downloader.download(CDN_URL, str(dest))
        assert dest.read_bytes() == b"new"

    async def test_unsafe_url_rejected_before_network(self, tmp_path):
        downloader, session = make_downloader({})
        dest = tmp_path / "out.png"
        with pytest.raises(UnsafeUrlError):
            await downloader.download("https://evil.com/replicate.delivery", str(dest))
        assert session.requested == []
        assert not dest.exists()

    async def test_http_scheme_rejected(self, tmp_path):
        downloader, session = make_downloader({})
        with pytest.raises(UnsafeUrlError):
            await downloader.download("http://replicate.delivery/x", str(tmp_path / "x.png"))
        assert session.requested == []

    async def test_follows_safe_redirect(self, tmp_path):
        target = "https://cdn.replicate.delivery/final.png"
        downloader, session = make_downloader({
            CDN_URL: FakeResponse(status=302, headers={"Location": target}),
            target: FakeResponse(chunks=[b"img"]),
        })
        dest = tmp_path / "out.png"
        await downloader.download(CDN_URL, str(dest))
        assert dest.read_bytes() == b"img"
        assert [url for url, _ in session.requested] == [CDN_URL, target]

    async def test_relative_redirect_resolved(self, tmp_path):
        target = "https://replicate.delivery/other/final.png"
        downloader, _ = make_downloader({
            CDN_URL: FakeResponse(status=301, headers={"Location": "/other/final.png"}),
            target: FakeResponse(chunks=[b"img"]),
        })
        dest = tmp_path / "out.png"
        await downloader.download(CDN_URL, str(dest))
        assert dest.read_bytes() == b"img"

    async def test_unsafe_redirect_removes_file(self, tmp_path):
        downloader, session = make_downloader({
            CDN_URL: FakeResponse(status=302, headers={"Location": "https://evil.com/x.png"}),
        })
        dest = tmp_path / "out.png"
        with pytest.raises(UnsafeRedirectError):
            await downloader.download(CDN_URL, str(dest))
        assert not dest.exists()
        assert len(session.requested) == 1

    async def test_unsafe_second_hop_detected(self, tmp_path):
        hop = "https://cdn.replicate.delivery/hop"
        downloader, _ = make_downloader({
            CDN_URL: FakeResponse(status=302, headers={"Location": hop}),
            hop: FakeResponse(status=307, headers={"Location": "http://replicate.delivery/x"}),
        })
        dest = tmp_path / "out.png"
        with pytest.raises(UnsafeRedirectError):
            await downloader.download(CDN_URL, str(dest))
        assert not dest.exists()

    async def test_too_many_redirects(self, tmp_path):
        downloader, _ = make_downloader(
            {CDN_URL: FakeResponse(status=302, headers={"Location": CDN_URL})},
            max_redirects=2,
        )
        dest = tmp_path / "out.png"
        with pytest.raises(DownloadError, match="Too many redirects"):
            await downloader.download(CDN_URL, str(dest))
        assert not dest.exists()

    async def test_redirect_without_location(self, tmp_path):
        downloader, _ = make_downloader({CDN_URL: FakeResponse(status=302)})
        with pytest.raises(DownloadError):
            await downloader.download(CDN_URL, str(tmp_path / "out.png"))

    async def test_error_status_removes_file(self, tmp_path):
        downloader, _ = make_downloader({CDN_URL: FakeResponse(status=404)})
        dest = tmp_path / "out.png"
        with pytest.raises(DownloadError, match="404"):
            await downloader.download(CDN_URL, str(dest))
        assert not dest.exists()

    async def test_connection_error_removes_file(self, tmp_path):
        downloader, _ = make_downloader({
            CDN_URL: aiohttp.ClientConnectionError("connection reset"),
        })
        dest = tmp_path / "out.png"
        with pytest.raises(DownloadError) as exc_info:
            await downloader.download(CDN_URL, str(dest))
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientConnectionError)
        assert not dest.exists()

    async def test_error_mid_stream_removes_partial_file(self, tmp_path):
        downloader, _ = make_downloader({
            CDN_URL: FakeResponse(
                chunks=[b"partial"],
                fail_after=aiohttp.ClientPayloadError("truncated"),
            ),
        })
        dest = tmp_path / "out.png"
        with pytest.raises(DownloadError):
            await downloader.download(CDN_URL, str(dest))
        assert not dest.exists()

    async def test_close_closes_session(self):
        downloader, session = make_downloader({})
        await downloader.close()
        assert session.closed
