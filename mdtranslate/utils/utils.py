# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import urllib.request


def get_httpx_proxy(https_proxy: str | None = None, system_proxy_enable: bool = False) -> str | None:
    """Explicit proxy first, then the system's https proxy when enabled."""
    if https_proxy:
        return https_proxy
    if system_proxy_enable:
        proxies = urllib.request.getproxies()
        return proxies.get("https") or proxies.get("http")
    return None
