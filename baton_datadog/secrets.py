"""Cloud-native secret resolution for Datadog API and application keys.

A key may be given literally or as a reference into AWS Secrets Manager or
GCP Secret Manager, so the connector can run in Lambda / Cloud Run without
plaintext keys in its environment.
"""

from __future__ import annotations

import json
import logging
import os

logger = logging.getLogger("connector.secrets")

# Prefixes that indicate a cloud secret reference
_AWS_PREFIX = "aws-secret://"
_GCP_PREFIX = "gcp-secret://"


def resolve_secret(value: str) -> str:
    """Resolve a secret reference to its plaintext value.

    Supported formats:
      - "aws-secret://secret-name"         -> AWS Secrets Manager
      - "aws-secret://secret-name#key"     -> AWS Secrets Manager (JSON key)
      - "gcp-secret://projects/P/secrets/S/versions/V" or "gcp-secret://S"
                                           -> GCP Secret Manager
      - anything else                      -> returned as-is
    """
    if value.startswith(_AWS_PREFIX):
        return _resolve_aws_secret(value[len(_AWS_PREFIX):])
    if value.startswith(_GCP_PREFIX):
        return _resolve_gcp_secret(value[len(_GCP_PREFIX):])
    return value


def _resolve_aws_secret(ref: str) -> str:
    import boto3

    secret_name, _, json_key = ref.partition("#")
    region = os.environ.get("AWS_REGION", "us-east-1")
    client = boto3.client("secretsmanager", region_name=region)

    logger.info("Resolving Datadog credential from AWS Secrets Manager")
    resp = client.get_secret_value(SecretId=secret_name)
    secret_string = resp["SecretString"]

    if json_key:
        data = json.loads(secret_string)
        return str(data[json_key])
    return secret_string


def _resolve_gcp_secret(ref: str) -> str:
    from google.cloud import secretmanager

    if ref.startswith("projects/"):
        name = ref
    else:
        project = os.environ.get("GCP_PROJECT_ID", "")
        if not project:
            raise ValueError(
                f"Cannot resolve gcp-secret://{ref} without a project. Set GCP_PROJECT_ID."
            )
        name = f"projects/{project}/secrets/{ref}/versions/latest"

    logger.info("Resolving Datadog credential from GCP Secret Manager")
    client = secretmanager.SecretManagerServiceClient()
    response = client.access_secret_version(request={"name": name})
    return response.payload.data.decode("UTF-8")
