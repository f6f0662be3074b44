"""
Secret resolution for the JWT signing key and the asset provider API secret.
A secret comes from SSM Parameter Store when a parameter name is configured,
else from its plain environment value.
"""
import boto3
from functools import lru_cache
from typing import Optional


@lru_cache(maxsize=10)
def get_parameter(parameter_name: str, region: str = "us-east-1") -> str:
    """Fetch and decrypt one SecureString, cached per name and region."""
    ssm = boto3.client('ssm', region_name=region)
    response = ssm.get_parameter(Name=parameter_name, WithDecryption=True)
    return response['Parameter']['Value']


def resolve_secret(parameter_name: Optional[str], plain_value: str, region: str) -> str:
    """
    Args:
        parameter_name: e.g. /video-upload-api/dev/asset-api-secret; empty to skip SSM
        plain_value: Value used when no parameter name is configured
        region: AWS region of the parameter
    """
    if parameter_name:
        return get_parameter(parameter_name, region)
    return plain_value
