"""
Asset Repository for the remote media storage provider.
Handles signed video/image uploads and deletions over the provider's HTTP API.
"""
import hashlib
import os
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from typing import Any, Dict, Optional
import httpx
from src.core import config
from src.core.exceptions import ConfigurationError, RemoteTimeoutError, RemoteUploadError
from src.core.logger import get_logger
from src.models.asset_reference import AssetReference

logger = get_logger(__name__)

MAX_CONCURRENT_CALLS = 16


def build_signature(params: Dict[str, Any], api_secret: str) -> str:
    """
    Sign request parameters.

    Empty values are dropped, keys are sorted, pairs are joined as
    ``key=value`` with ``&`` and the secret is appended before SHA-1 hashing.
    """
    param_string = "&".join(
        f"{key}={value}"
        for key, value in sorted(params.items())
        if value is not None and value != ""
    )
    return hashlib.sha1(f"{param_string}{api_secret}".encode("utf-8")).hexdigest()


class AssetRepository:
    """
    Repository for remote asset storage operations.

    Every provider call runs on a worker thread and the caller waits at most
    ``timeout`` seconds for it, whether the provider stalls or trickles its
    response. A worker abandoned at the deadline stops reading at the next
    response chunk.
    """

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        *,
        api_base_url: Optional[str] = None,
        delivery_base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.Client] = None
    ):
        settings = config.settings
        self.cloud_name = cloud_name if cloud_name is not None else settings.asset_cloud_name
        self.api_key = api_key if api_key is not None else settings.asset_api_key
        self.api_secret = api_secret if api_secret is not None else settings.asset_api_secret
        self.api_base_url = (api_base_url or settings.asset_api_base_url).rstrip("/")
        self.delivery_base_url = (delivery_base_url or settings.asset_delivery_base_url).rstrip("/")
        self.timeout = timeout or settings.asset_timeout_seconds
        self._client = http_client or httpx.Client(timeout=self.timeout)
        self._executor = ThreadPoolExecutor(max_workers=MAX_CONCURRENT_CALLS, thread_name_prefix="asset-provider")

    @property
    def is_configured(self) -> bool:
        return all([self.cloud_name, self.api_key, self.api_secret])

    def ensure_configured(self) -> None:
        """
        Raises:
            ConfigurationError: If cloud name, key or secret is missing
        """
        if not self.is_configured:
            raise ConfigurationError("Asset storage is not configured. Missing cloud name, key or secret.")

    def upload(self, local_path: str, resource_type: str, folder: str, public_id: str) -> AssetReference:
        """
        Upload a local file to the provider.

        Args:
            local_path: Path of the staged file
            resource_type: Provider resource type ("video" or "image")
            folder: Destination folder
            public_id: Desired remote identifier

        Returns:
            AssetReference for the stored binary

        Raises:
            RemoteUploadError: If the provider rejects the upload, is unreachable
                or answers with a body that does not describe the stored asset
            RemoteTimeoutError: If the call exceeds the configured timeout
        """
        self.ensure_configured()

        timestamp = int(time.time())
        signature = build_signature(
            {"folder": folder, "public_id": public_id, "timestamp": timestamp},
            self.api_secret
        )
        data = {
            "api_key": self.api_key,
            "timestamp": str(timestamp),
            "folder": folder,
            "public_id": public_id,
            "signature": signature,
        }

        try:
            response = self._call(self._endpoint(resource_type, "upload"), data, upload_path=local_path)
        except RemoteTimeoutError:
            logger.warning(f"Upload of {resource_type} {folder}/{public_id} timed out; the provider may still store it")
            raise

        if not response.is_success:
            raise RemoteUploadError(self._parse_error(response), http_status=response.status_code)

        asset = self._to_asset_reference(resource_type, response)
        logger.info(f"Uploaded {resource_type} asset: {asset.public_id}")
        return asset

    def destroy(self, public_id: Optional[str], resource_type: str) -> None:
        """
        Delete a remote asset. Deleting an asset that no longer exists succeeds.

        Raises:
            RemoteUploadError: If the provider rejects the deletion
            RemoteTimeoutError: If the call exceeds the configured timeout
        """
        if not public_id:
            return

        self.ensure_configured()

        timestamp = int(time.time())
        data = {
            "public_id": public_id,
            "api_key": self.api_key,
            "timestamp": str(timestamp),
            "signature": build_signature({"public_id": public_id, "timestamp": timestamp}, self.api_secret),
        }

        response = self._call(self._endpoint(resource_type, "destroy"), data)

        if not response.is_success:
            raise RemoteUploadError(
                f"Failed to delete asset {public_id}: {self._parse_error(response)}",
                http_status=response.status_code
            )

        result = self._json_or_none(response) or {}
        outcome = result.get("result", "ok") if isinstance(result, dict) else "ok"
        if outcome not in ("ok", "not found"):
            raise RemoteUploadError(f"Failed to delete asset {public_id}: {outcome}", http_status=response.status_code)

        logger.info(f"Destroyed {resource_type} asset: {public_id} ({outcome})")

    def derive_first_frame_thumbnail_url(self, video_public_id: str) -> str:
        """Build the delivery URL of a video's first frame as a JPEG. No network call."""
        return f"{self.delivery_base_url}/{self.cloud_name}/video/upload/so_0/{video_public_id}.jpg"

    def close(self) -> None:
        """Stop accepting calls and release pooled connections."""
        self._executor.shutdown(wait=False)
        self._client.close()

    def _endpoint(self, resource_type: str, action: str) -> str:
        return f"{self.api_base_url}/{self.cloud_name}/{resource_type}/{action}"

    def _call(self, url: str, data: Dict[str, str], upload_path: Optional[str] = None) -> httpx.Response:
        """
        Run one provider exchange under a total deadline of ``self.timeout``.

        Raises:
            RemoteTimeoutError: If the exchange does not finish before the deadline
            RemoteUploadError: If the transport fails
        """
        deadline = time.monotonic() + self.timeout
        future = self._executor.submit(self._exchange, url, data, upload_path, deadline)
        try:
            return future.result(timeout=self.timeout)
        except FuturesTimeoutError:
            future.cancel()
            raise RemoteTimeoutError(self._timeout_message()) from None

    def _exchange(self, url: str, data: Dict[str, str], upload_path: Optional[str], deadline: float) -> httpx.Response:
        try:
            if upload_path:
                with open(upload_path, "rb") as file:
                    return self._send(url, deadline, data=data, files={"file": (os.path.basename(upload_path), file)})
            return self._send(url, deadline, data=data)
        except httpx.TimeoutException as e:
            raise RemoteTimeoutError(self._timeout_message()) from e
        except httpx.HTTPError as e:
            raise RemoteUploadError(f"Asset provider request failed: {str(e)}") from e

    def _send(self, url: str, deadline: float, **kwargs) -> httpx.Response:
        request = self._client.build_request("POST", url, timeout=self.timeout, **kwargs)
        response = self._client.send(request, stream=True)
        try:
            body = bytearray()
            for chunk in response.iter_raw():
                if time.monotonic() > deadline:
                    raise RemoteTimeoutError(self._timeout_message())
                body.extend(chunk)
        finally:
            response.close()

        # Raw bytes keep the original encoding headers consistent
        return httpx.Response(response.status_code, headers=response.headers, content=bytes(body), request=request)

    def _timeout_message(self) -> str:
        return f"Asset provider did not respond within {self.timeout:g}s"

    def _to_asset_reference(self, resource_type: str, response: httpx.Response) -> AssetReference:
        """
        Raises:
            RemoteUploadError: If a success response lacks the stored asset's id or URL
        """
        body = self._json_or_none(response)
        if not isinstance(body, dict) or not body.get("public_id") or not body.get("secure_url"):
            raise RemoteUploadError(
                f"Asset provider returned an unreadable upload response (status {response.status_code}).",
                http_status=response.status_code
            )

        return AssetReference(
            resource_type=resource_type,
            public_id=body["public_id"],
            secure_url=body["secure_url"],
            bytes=body.get("bytes")
        )

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Optional[Any]:
        try:
            return response.json()
        except ValueError:
            return None

    def _parse_error(self, response: httpx.Response) -> str:
        """Extract the provider's error message, else synthesize one from the status."""
        body = self._json_or_none(response)
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return error["message"]
            if body.get("message"):
                return body["message"]
        return f"Asset provider request failed with status {response.status_code}."
