"""
Tests for settings resolution.
"""
import boto3
import pytest
from moto import mock_aws
from src.core import config
from src.core.parameter_store import get_parameter, resolve_secret


class TestSettings:
    """Test suite for Settings."""

    @pytest.fixture(autouse=True)
    def clear_parameter_cache(self):
        get_parameter.cache_clear()
        yield
        get_parameter.cache_clear()

    def test_secrets_fall_back_to_plain_values(self):
        settings = config.Settings(jwt_secret_key='local-secret', asset_api_secret_key='asset-secret')

        assert settings.jwt_secret == 'local-secret'
        assert settings.asset_api_secret == 'asset-secret'

    @mock_aws
    def test_secrets_resolved_from_parameter_store(self):
        ssm = boto3.client('ssm', region_name='us-east-1')
        ssm.put_parameter(Name='/video-upload-api/test/jwt-secret', Value='ssm-jwt', Type='SecureString')
        ssm.put_parameter(Name='/video-upload-api/test/asset-secret', Value='ssm-asset', Type='SecureString')

        settings = config.Settings(
            aws_region='us-east-1',
            jwt_secret_key='ignored',
            jwt_secret_parameter='/video-upload-api/test/jwt-secret',
            asset_api_secret_parameter='/video-upload-api/test/asset-secret'
        )

        assert settings.jwt_secret == 'ssm-jwt'
        assert settings.asset_api_secret == 'ssm-asset'

    def test_resolve_secret_without_parameter_returns_plain_value(self):
        assert resolve_secret('', 'plain-secret', 'us-east-1') == 'plain-secret'
        assert resolve_secret(None, 'plain-secret', 'us-east-1') == 'plain-secret'

    @mock_aws
    def test_resolve_secret_reads_parameter_store(self):
        ssm = boto3.client('ssm', region_name='us-east-1')
        ssm.put_parameter(Name='/video-upload-api/test/signing-key', Value='from-ssm', Type='SecureString')

        assert resolve_secret('/video-upload-api/test/signing-key', 'plain-secret', 'us-east-1') == 'from-ssm'

    def test_default_roles(self, monkeypatch):
        monkeypatch.delenv('ALLOWED_UPLOADER_ROLES', raising=False)
        monkeypatch.delenv('OPERATOR_ROLES', raising=False)
        settings = config.Settings()

        assert settings.allowed_uploader_roles == ['SUPER_ADMIN', 'MINI_ADMIN']
        assert settings.operator_roles == ['SUPER_ADMIN']

    def test_roles_from_environment(self, monkeypatch):
        monkeypatch.setenv('ALLOWED_UPLOADER_ROLES', 'EDITOR, PUBLISHER ,')
        monkeypatch.setenv('OPERATOR_ROLES', 'OPS')
        settings = config.Settings()

        assert settings.allowed_uploader_roles == ['EDITOR', 'PUBLISHER']
        assert settings.operator_roles == ['OPS']

    def test_numeric_settings_from_environment(self, monkeypatch):
        monkeypatch.setenv('UPLOAD_STATUS_TTL_SECONDS', '60')
        monkeypatch.setenv('MAX_VIDEO_SIZE_MB', '5')

        settings = config.Settings()

        assert settings.upload_status_ttl_seconds == 60
        assert settings.max_video_size_mb == 5
