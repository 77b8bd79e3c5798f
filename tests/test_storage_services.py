from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from app.services.storage import StorageService


def _configure(mock_settings):
    mock_settings.s3_endpoint_url = "http://localhost:9000"
    mock_settings.s3_access_key = "test-key"
    mock_settings.s3_secret_key = "test-secret"
    mock_settings.s3_region = "us-east-1"
    mock_settings.s3_bucket_name = "correspondence"
    mock_settings.s3_presigned_url_expiry = 3600


class TestStorageService:
    def test_generate_storage_key_format(self):
        key = StorageService.generate_storage_key("incoming-letters", "p-1", "scan.pdf")
        parts = key.split("/")
        assert parts[0] == "incoming-letters"
        assert parts[1] == "p-1"
        assert len(parts[2]) == 12
        assert parts[3] == "scan.pdf"

    def test_is_configured_false_by_default(self):
        assert StorageService.is_configured() is False

    def test_client_requires_configuration(self):
        with pytest.raises(RuntimeError):
            StorageService.generate_download_url("key/file.pdf")

    @patch("app.services.storage.boto3")
    @patch("app.services.storage.settings")
    def test_generate_upload_url(self, mock_settings, mock_boto3):
        _configure(mock_settings)
        mock_client = MagicMock()
        mock_client.generate_presigned_url.return_value = "https://example.com/upload"
        mock_boto3.client.return_value = mock_client

        url = StorageService.generate_upload_url("key/file.pdf", "application/pdf")
        assert url == "https://example.com/upload"
        args, kwargs = mock_client.generate_presigned_url.call_args
        assert args == ("put_object",)
        assert kwargs["Params"]["ContentType"] == "application/pdf"
        assert kwargs["ExpiresIn"] == 3600

    @patch("app.services.storage.boto3")
    @patch("app.services.storage.settings")
    def test_object_size_from_head(self, mock_settings, mock_boto3):
        _configure(mock_settings)
        mock_client = MagicMock()
        mock_client.head_object.return_value = {"ContentLength": 4096}
        mock_boto3.client.return_value = mock_client

        assert StorageService.object_size("key/file.pdf") == 4096
        assert StorageService.object_exists("key/file.pdf") is True

    @patch("app.services.storage.boto3")
    @patch("app.services.storage.settings")
    def test_missing_object(self, mock_settings, mock_boto3):
        _configure(mock_settings)
        mock_client = MagicMock()
        mock_client.head_object.side_effect = ClientError(
            {"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject"
        )
        mock_boto3.client.return_value = mock_client

        assert StorageService.object_exists("key/missing.pdf") is False
        assert StorageService.object_size("key/missing.pdf") is None

    def test_no_key_means_no_object(self):
        assert StorageService.object_exists(None) is False
