import pytest
from botocore.exceptions import ProfileNotFound

from autoscale_demo.aws.clients import AWSClientManager, get_cloudformation_client, get_lambda_client
from autoscale_demo.settings import MOCK_ENDPOINT_URL
from tests.consts import TEST_REGION


def test_clients_are_cached(aws_credentials):
    assert get_lambda_client() is get_lambda_client()
    assert get_lambda_client() is not get_cloudformation_client()


def test_reset_creates_new_clients(aws_credentials):
    client = get_lambda_client()

    AWSClientManager.reset()

    assert get_lambda_client() is not client


def test_mock_mode_uses_local_endpoint(monkeypatch):
    monkeypatch.setenv("DEPLOYMENT_MODE", "mock")

    client = get_lambda_client()

    assert client.meta.endpoint_url == MOCK_ENDPOINT_URL


def test_prod_mode_uses_regional_endpoint(aws_credentials):
    client = get_lambda_client()

    assert client.meta.region_name == TEST_REGION
    assert client.meta.endpoint_url != MOCK_ENDPOINT_URL


def test_unknown_profile_is_reported(aws_credentials, monkeypatch, tmp_path):
    monkeypatch.setenv("AWS_CONFIG_FILE", str(tmp_path / "config"))
    monkeypatch.setenv("AWS_SHARED_CREDENTIALS_FILE", str(tmp_path / "credentials"))
    monkeypatch.setenv("AWS_PROFILE", "does-not-exist")

    with pytest.raises(ProfileNotFound):
        get_lambda_client()
