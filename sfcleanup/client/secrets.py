"""
Helpers for loading Salesforce credentials from AWS Secrets Manager.

Assumes a secret structure like:

  SecretId: sfcleanup/<target-org>
  SecretString: {
    "salesforce": "{ \"SF_USERNAME\": \"...\", ... }"
  }

The "salesforce" value is itself a JSON string containing the SF fields.
A secret holding the SF fields at the top level is accepted too.
"""

from __future__ import annotations

import json
import os
from typing import Dict, Any

import boto3


# Default secret id + region can be overridden via env vars
DEFAULT_SECRET_ID = os.getenv("SF_SECRET_ID", "dev/sfcleanup")
SECRET_PREFIX = os.getenv("SF_SECRET_PREFIX", "sfcleanup/")
DEFAULT_REGION = os.getenv("AWS_REGION", "us-east-1")


def _get_secretsmanager_client(region_name: str | None = None):
    return boto3.client("secretsmanager", region_name=region_name or DEFAULT_REGION)


def secret_id_for_org(target_org: str | None = None) -> str:
    """
    Map a target org alias to its Secrets Manager id.

    No alias means the default secret. An alias that already looks like a
    secret path (contains "/") is used as-is.
    """
    if not target_org:
        return DEFAULT_SECRET_ID
    if "/" in target_org:
        return target_org
    return f"{SECRET_PREFIX}{target_org}"


def load_raw_secret(secret_id: str | None = None, region_name: str | None = None) -> Dict[str, Any]:
    """
    Fetch and parse the raw secret from AWS Secrets Manager.

    Returns the *outer* JSON dict, e.g.
      { "salesforce": "<json-string>" }
    """
    sid = secret_id or DEFAULT_SECRET_ID
    sm = _get_secretsmanager_client(region_name)

    resp = sm.get_secret_value(SecretId=sid)
    secret_string = resp.get("SecretString")
    if not secret_string:
        raise ValueError(f"Secret {sid!r} does not contain a SecretString")

    try:
        outer = json.loads(secret_string)
    except json.JSONDecodeError as e:
        raise ValueError(f"Secret {sid!r} SecretString is not valid JSON") from e

    if not isinstance(outer, dict):
        raise ValueError(f"Secret {sid!r} SecretString must decode to a JSON object")

    return outer


def load_salesforce_raw(secret_id: str | None = None, region_name: str | None = None) -> Dict[str, Any]:
    """
    Return the inner Salesforce credential dict from the secret.
    """
    outer = load_raw_secret(secret_id=secret_id, region_name=region_name)

    if "salesforce" not in outer:
        return outer

    sf_raw = outer["salesforce"]
    if isinstance(sf_raw, dict):
        return sf_raw
    if not isinstance(sf_raw, str):
        raise ValueError("The 'salesforce' value must be a JSON string or object")

    try:
        sf_dict = json.loads(sf_raw)
    except json.JSONDecodeError as e:
        raise ValueError("The 'salesforce' value is not valid JSON") from e
    if not isinstance(sf_dict, dict):
        raise ValueError("The 'salesforce' value must decode to a JSON object")
    return sf_dict


def get_salesforce_login_config(secret_id: str | None = None, region_name: str | None = None) -> Dict[str, Any]:
    """
    Normalize Salesforce credentials into a config dict.

    Keys: username, password, security_token, login_url, instance_url,
    session_id, api_version, auth_method and raw (the untouched secret).
    """
    sf = load_salesforce_raw(secret_id=secret_id, region_name=region_name)

    return {
        "username": sf.get("SF_USERNAME"),
        "password": sf.get("SF_PASSWORD"),
        "security_token": sf.get("SF_SECURITY_TOKEN"),
        "login_url": sf.get("SF_LOGIN_URL", "https://login.salesforce.com"),
        "instance_url": sf.get("SF_INSTANCE_URL"),
        "session_id": sf.get("SF_SESSION_ID"),
        "api_version": sf.get("SF_API_VERSION", "61.0"),
        "auth_method": sf.get("SF_AUTH_METHOD", "password"),
        "raw": sf,
    }
