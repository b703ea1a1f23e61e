"""
Session helpers for connecting to a target org using credentials from Secrets Manager.
"""

from __future__ import annotations

from typing import Optional, Dict, Any

from simple_salesforce import Salesforce
from .secrets import get_salesforce_login_config, secret_id_for_org

SUPPORTED_AUTH_METHODS = ("password", "session")


def get_salesforce_client(
    target_org: Optional[str] = None,
    secret_id: Optional[str] = None,
    region_name: Optional[str] = None,
) -> Salesforce:
    """
    Instantiate a simple_salesforce.Salesforce client for a target org.

    Supported auth methods:
      - 'password': username, password, security_token, login_url
      - 'session': instance_url, session_id (an already-authenticated session)

    Parameters
    ----------
    target_org : str, optional
        Org alias; mapped to a secret id via secret_id_for_org().
    secret_id : str, optional
        Explicit SecretId, takes precedence over target_org.
    region_name : str, optional
        AWS region for Secrets Manager (defaults to AWS_REGION or us-east-1).

    Returns
    -------
    Salesforce
        Authenticated Salesforce client.
    """
    sid = secret_id or secret_id_for_org(target_org)
    cfg: Dict[str, Any] = get_salesforce_login_config(secret_id=sid, region_name=region_name)

    api_version = cfg.get("api_version") or "61.0"
    auth_method = (cfg.get("auth_method") or "password").lower()

    if auth_method not in SUPPORTED_AUTH_METHODS:
        raise NotImplementedError(f"Auth method {auth_method!r} is not supported (password or session).")

    if auth_method == "session":
        instance_url = cfg.get("instance_url")
        session_id = cfg.get("session_id")
        if not instance_url or not session_id:
            raise ValueError("Missing required Salesforce credentials (instance_url/session_id).")
        return Salesforce(instance_url=instance_url, session_id=session_id, version=api_version)

    username = cfg.get("username")
    password = cfg.get("password")
    security_token = cfg.get("security_token")
    login_url = cfg.get("login_url") or "https://login.salesforce.com"

    if not username or not password or not security_token:
        raise ValueError("Missing required Salesforce credentials (username/password/security_token).")

    # simple_salesforce expects domain='login' or 'test', not full URL
    domain = "test" if "test.salesforce.com" in login_url else "login"

    return Salesforce(
        username=username,
        password=password,
        security_token=security_token,
        domain=domain,
        version=api_version,
    )
