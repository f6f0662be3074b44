"""
Unit tests for AssetRepository.
Uses httpx.MockTransport in place of the provider's HTTP API.
"""
import hashlib
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from types import SimpleNamespace
import httpx
import pytest
from src.core.exceptions import ConfigurationError, RemoteTimeoutError, RemoteUploadError
from src.models.asset_reference import AssetReference
from src.repositories import asset_repository as asset_module
from src.repositories.asset_repository import AssetRepository, build_signature

API_BASE = "https://api.example.com/v1_1"
FIXED_TIMESTAMP = 1700000000


def make_repository(handler, **overrides) -> AssetRepository:
    options = {
        "cloud_name": "demo-cloud",
        "api_key": "key-123",
        "api_secret": "secret-xyz",
        "api_base_url": API_BASE,
        "delivery_base_url": "https://res.example.com",
        "timeout": 5,
        "http_client": httpx.Client(transport=httpx.MockTransport(handler)),
    }
    options.update(overrides)
    return AssetRepository(**options)


@pytest.fixture
def staged_video(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"fake-video-bytes")
    return str(path)


@pytest.fixture(autouse=True)
def fixed_time(monkeypatch):
    monkeypatch.setattr(asset_module, "time", SimpleNamespace(time=lambda: FIXED_TIMESTAMP, monotonic=time.monotonic))


class TestBuildSignature:

    def test_sorts_parameters_and_appends_secret(self):
        expected = hashlib.sha1(b"folder=yt/videos&public_id=video-1&timestamp=1700000000secret").hexdigest()

        signature = build_signature(
            {"timestamp": 1700000000, "public_id": "video-1", "folder": "yt/videos"},
            "secret"
        )

        assert signature == expected

    def test_drops_empty_values(self):
        assert build_signature({"public_id": "a", "folder": "", "eager": None}, "s") == \
            build_signature({"public_id": "a"}, "s")


class TestAssetRepositoryUpload:

    def test_upload_success_returns_asset_reference(self, staged_video):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = request.read()
            captured["timeout"] = request.extensions.get("timeout")
            return httpx.Response(200, json={
                "public_id": "yt/videos/video-1",
                "secure_url": "https://res.example.com/demo-cloud/video/upload/yt/videos/video-1.mp4",
                "bytes": 16
            })

        repo = make_repository(handler)
        asset = repo.upload(staged_video, "video", "yt/videos", "video-1")

        assert asset == AssetReference("video", "yt/videos/video-1", "https://res.example.com/demo-cloud/video/upload/yt/videos/video-1.mp4")
        assert asset.bytes == 16
        assert captured["url"] == f"{API_BASE}/demo-cloud/video/upload"

        body = captured["body"]
        expected_signature = hashlib.sha1(
            f"folder=yt/videos&public_id=video-1&timestamp={FIXED_TIMESTAMP}secret-xyz".encode()
        ).hexdigest()
        assert b'name="api_key"' in body and b"key-123" in body
        assert expected_signature.encode() in body
        assert b"fake-video-bytes" in body
        assert b"secret-xyz" not in body

    def test_upload_sets_per_phase_transport_timeout(self, staged_video):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["timeout"] = dict(request.extensions.get("timeout"))
            return httpx.Response(200, json={"public_id": "p", "secure_url": "https://x/p.mp4"})

        make_repository(handler, timeout=7).upload(staged_video, "video", "yt/videos", "p")

        assert captured["timeout"]["connect"] == 7
        assert captured["timeout"]["read"] == 7

    def test_upload_provider_error_message(self, staged_video):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": {"message": "Invalid Signature"}})

        with pytest.raises(RemoteUploadError) as exc_info:
            make_repository(handler).upload(staged_video, "video", "yt/videos", "video-1")

        assert exc_info.value.http_status == 401
        assert exc_info.value.provider_message == "Invalid Signature"

    def test_upload_synthesizes_message_without_json_body(self, staged_video):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="<html>oops</html>")

        with pytest.raises(RemoteUploadError) as exc_info:
            make_repository(handler).upload(staged_video, "image", "yt/thumbnails", "thumb-1")

        assert exc_info.value.http_status == 500
        assert exc_info.value.message == "Asset provider request failed with status 500."

    def test_upload_success_with_non_json_body_raises_remote_upload_error(self, staged_video):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>proxy</html>")

        with pytest.raises(RemoteUploadError) as exc_info:
            make_repository(handler).upload(staged_video, "video", "yt/videos", "video-1")

        assert exc_info.value.http_status == 200
        assert "unreadable upload response" in exc_info.value.message

    def test_upload_success_without_asset_fields_raises_remote_upload_error(self, staged_video):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"public_id": "yt/videos/video-1"})

        with pytest.raises(RemoteUploadError) as exc_info:
            make_repository(handler).upload(staged_video, "video", "yt/videos", "video-1")

        assert exc_info.value.http_status == 200

    def test_upload_timeout_raises_remote_timeout(self, staged_video):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(RemoteTimeoutError):
            make_repository(handler).upload(staged_video, "video", "yt/videos", "video-1")

    def test_upload_connection_error_raises_remote_upload_error(self, staged_video):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(RemoteUploadError) as exc_info:
            make_repository(handler).upload(staged_video, "video", "yt/videos", "video-1")

        assert exc_info.value.http_status is None

    def test_upload_requires_configuration(self, staged_video):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        repo = make_repository(handler, api_secret="")

        assert repo.is_configured is False
        with pytest.raises(ConfigurationError):
            repo.upload(staged_video, "video", "yt/videos", "video-1")


class TestAssetRepositoryDestroy:

    def test_destroy_posts_signed_request(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = request.read().decode()
            return httpx.Response(200, json={"result": "ok"})

        make_repository(handler).destroy("yt/videos/video-1", "video")

        expected_signature = hashlib.sha1(
            f"public_id=yt/videos/video-1&timestamp={FIXED_TIMESTAMP}secret-xyz".encode()
        ).hexdigest()
        assert captured["url"] == f"{API_BASE}/demo-cloud/video/destroy"
        assert f"signature={expected_signature}" in captured["body"]
        assert "api_key=key-123" in captured["body"]

    def test_destroy_already_deleted_asset_succeeds(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"result": "not found"})

        make_repository(handler).destroy("yt/videos/gone", "video")

    def test_destroy_without_public_id_makes_no_call(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        make_repository(handler).destroy(None, "image")

    def test_destroy_failure_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": {"message": "Internal error"}})

        with pytest.raises(RemoteUploadError) as exc_info:
            make_repository(handler).destroy("yt/videos/video-1", "video")

        assert "yt/videos/video-1" in exc_info.value.message


class TestFirstFrameThumbnail:

    def test_derive_first_frame_thumbnail_url(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        url = make_repository(handler).derive_first_frame_thumbnail_url("yt/videos/video-1")

        assert url == "https://res.example.com/demo-cloud/video/upload/so_0/yt/videos/video-1.jpg"


class SlowProviderHandler(BaseHTTPRequestHandler):
    """Accepts an upload, then stalls or trickles its JSON answer."""

    body = b'{"public_id": "yt/videos/video-1", "secure_url": "https://x/v.mp4"}'
    header_delay = 0.0
    chunk_size = 7
    chunk_delay = 0.4

    def do_POST(self):
        self.rfile.read(int(self.headers.get("Content-Length", 0)))
        time.sleep(self.header_delay)
        try:
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(self.body)))
            self.end_headers()
            for start in range(0, len(self.body), self.chunk_size):
                self.wfile.write(self.body[start:start + self.chunk_size])
                self.wfile.flush()
                time.sleep(self.chunk_delay)
        except (BrokenPipeError, ConnectionResetError):
            pass

    def log_message(self, format, *args):
        pass


class TestAssetRepositoryDeadline:
    """Calls against a real local server that answers too slowly."""

    @pytest.fixture
    def slow_server(self):
        servers = []

        def start(**behaviour):
            handler = type("Handler", (SlowProviderHandler,), behaviour)
            server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
            server.daemon_threads = True
            threading.Thread(target=server.serve_forever, daemon=True).start()
            servers.append(server)
            return f"http://127.0.0.1:{server.server_address[1]}"

        yield start

        for server in servers:
            server.shutdown()
            server.server_close()

    def _repository(self, base_url: str, timeout: float) -> AssetRepository:
        return AssetRepository(
            "demo-cloud",
            "key-123",
            "secret-xyz",
            api_base_url=base_url,
            delivery_base_url="https://res.example.com",
            timeout=timeout
        )

    def test_trickled_response_hits_total_deadline(self, slow_server, staged_video):
        repo = self._repository(slow_server(chunk_delay=0.4), timeout=1)

        started = time.monotonic()
        with pytest.raises(RemoteTimeoutError):
            repo.upload(staged_video, "video", "yt/videos", "video-1")
        elapsed = time.monotonic() - started

        assert elapsed < 1.5
        repo.close()

    def test_stalled_destroy_hits_total_deadline(self, slow_server):
        repo = self._repository(slow_server(header_delay=3, chunk_delay=0), timeout=0.5)

        started = time.monotonic()
        with pytest.raises(RemoteTimeoutError):
            repo.destroy("yt/videos/video-1", "video")

        assert time.monotonic() - started < 1.0
        repo.close()

    def test_prompt_response_within_deadline_succeeds(self, slow_server, staged_video):
        repo = self._repository(slow_server(chunk_size=1024, chunk_delay=0), timeout=2)

        asset = repo.upload(staged_video, "video", "yt/videos", "video-1")

        assert asset.public_id == "yt/videos/video-1"
        repo.close()
