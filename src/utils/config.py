"""
Configuration and secrets management for the BrightRoots directory app.

This module provides a centralized way to access application configuration
and secrets, with fallbacks for every value so the app runs in demo mode
without a secrets file.

Usage:
    from src.utils.config import get_api_config, get_sync_config

    backend_config = get_api_config('backend')
    base_url = backend_config.get('url')

    sync_config = get_sync_config()
    interval = sync_config['interval_seconds']
"""

import logging
from typing import Any, Dict

import streamlit as st

logger = logging.getLogger(__name__)


def get_secret(key_path: str, default: Any = None) -> Any:
    """
    Safely retrieve a secret from Streamlit's secrets management.

    Args:
        key_path: Dot-notation path to the secret (e.g., 'backend.url')
        default: Default value if secret is not found

    Returns:
        The secret value or default if not found

    Examples:
        >>> get_secret('backend.url', '')
        >>> get_secret('sync.interval_seconds', 3)
        >>> get_secret('app.demo_mode', False)
    """
    try:
        keys = key_path.split(".")
        value = st.secrets

        for key in keys:
            try:
                value = value[key]
            except Exception:
                return default

        return value
    except Exception as e:
        logger.warning(f"Failed to retrieve secret '{key_path}': {e}")
        return default


def get_api_config(api_name: str) -> Dict[str, Any]:
    """
    Get configuration for a specific API or service.

    Args:
        api_name: Name of the API/service (e.g., 'backend', 'geocoding')

    Returns:
        Dictionary containing the API configuration
    """
    if api_name == "backend":
        return {
            "url": get_secret("backend.url", ""),
            "anon_key": get_secret("backend.anon_key", ""),
            "request_timeout": get_secret("backend.request_timeout", 10),
        }
    elif api_name == "geocoding":
        return {
            "nominatim_user_agent": get_secret("geocoding.nominatim_user_agent", "brightroots_directory"),
            "request_timeout": get_secret("geocoding.request_timeout", 10),
            "rate_limit_delay": get_secret("geocoding.rate_limit_delay", 1.0),
            "max_retries": get_secret("geocoding.max_retries", 3),
        }
    else:
        return {}


def get_sync_config() -> Dict[str, Any]:
    """
    Get provider synchronization configuration.

    Returns:
        Dictionary containing channel keys, timer interval and the path of the
        file backing the persistent channel
    """
    return {
        "storage_key": get_secret("sync.storage_key", "adminProviders"),
        "shared_state_key": get_secret("sync.shared_state_key", "sync"),
        "interval_seconds": get_secret("sync.interval_seconds", 3),
        "persistent_path": get_secret("sync.persistent_path", "data/processed/provider_sync.json"),
    }


def get_location_config() -> Dict[str, Any]:
    """
    Get location resolution configuration.

    The discovery view and the location setup flow use different timeouts.

    Returns:
        Dictionary containing the default coordinate and request tuning
    """
    return {
        "default_latitude": get_secret("location.default_latitude", 28.4595),
        "default_longitude": get_secret("location.default_longitude", 77.0266),
        "discovery_timeout_ms": get_secret("location.discovery_timeout_ms", 10000),
        "discovery_max_age_ms": get_secret("location.discovery_max_age_ms", 300000),
        "setup_timeout_ms": get_secret("location.setup_timeout_ms", 15000),
        "high_accuracy": get_secret("location.high_accuracy", True),
    }


def get_app_config() -> Dict[str, Any]:
    """
    Get general application configuration.

    Returns:
        Dictionary containing app configuration
    """
    return {
        "environment": get_secret("app.environment", "production"),
        "demo_mode": get_secret("app.demo_mode", False),
        "log_level": get_secret("app.log_level", "INFO"),
    }


def is_api_enabled(api_name: str) -> bool:
    """
    Check if a specific API is enabled and properly configured.

    Args:
        api_name: Name of the API to check

    Returns:
        True if the API is enabled and has required configuration
    """
    if api_name == "backend":
        config = get_api_config("backend")
        return bool(config["url"]) and bool(config["anon_key"])
    else:
        return False


def validate_configuration() -> Dict[str, str]:
    """
    Validate the application configuration and return any warnings or errors.

    Returns:
        Dictionary with configuration validation results
    """
    issues = {}

    backend_config = get_api_config("backend")
    if backend_config["url"] and not str(backend_config["url"]).startswith(("https://", "http://")):
        issues["backend"] = "Backend URL format may be invalid"
    elif backend_config["url"] and not backend_config["anon_key"]:
        issues["backend"] = "Backend URL provided but anon key is missing"

    sync_config = get_sync_config()
    try:
        if float(sync_config["interval_seconds"]) <= 0:
            issues["sync"] = "Sync interval must be positive"
    except (TypeError, ValueError):
        issues["sync"] = f"Sync interval is not a number: {sync_config['interval_seconds']}"

    app_config = get_app_config()
    if app_config["environment"] not in ["development", "staging", "production"]:
        issues["app"] = f"Unknown environment: {app_config['environment']}"

    return issues
