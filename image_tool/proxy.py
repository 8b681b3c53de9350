"""Proxy settings resolved from explicit values or the environment.

Each optional value is resolved through an ordered list of strategies, for
example an explicit value, then an environment variable, then a fixed
default:

```python
http_proxy = resolve_first(
    explicit,
    lambda: os.environ.get("http_proxy"),
    lambda: os.environ.get("HTTP_PROXY"),
)
```
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
import os
from typing import TypeVar

__all__ = [
    "ProxySettings",
    "resolve_first",
]

T = TypeVar("T")


def resolve_first(*strategies: T | Callable[[], T | None] | None) -> T | None:
    """Return the first strategy that resolves to a value that is not None.

    Each strategy is either a value or a zero-argument callable that is only
    invoked if every earlier strategy resolved to None.
    """
    for strategy in strategies:
        value = strategy() if callable(strategy) else strategy
        if value is not None:
            return value  # type: ignore[return-value]
    return None


def _env(name: str, env: Mapping[str, str]) -> Callable[[], str | None]:
    return lambda: env.get(name) or None


@dataclass(frozen=True)
class ProxySettings:
    """Proxy configuration shared by the catalog client and the build."""

    http: str | None = None
    https: str | None = None
    no_proxy: str | None = None

    @classmethod
    def resolve(
        cls,
        http: str | None = None,
        https: str | None = None,
        no_proxy: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> "ProxySettings":
        """Resolve each proxy field from an explicit value or the environment."""
        if env is None:
            env = os.environ
        return cls(
            http=resolve_first(http, _env("http_proxy", env), _env("HTTP_PROXY", env)),
            https=resolve_first(
                https, _env("https_proxy", env), _env("HTTPS_PROXY", env)
            ),
            no_proxy=resolve_first(
                no_proxy, _env("no_proxy", env), _env("NO_PROXY", env)
            ),
        )

    @property
    def no_proxy_hosts(self) -> list[str]:
        """Return the individual hosts that bypass the proxy."""
        if not self.no_proxy:
            return []
        return [host.strip() for host in self.no_proxy.split(",") if host.strip()]

    def build_args(self) -> dict[str, str]:
        """Return the proxy build arguments, omitting any unset value."""
        args = {
            "http_proxy": self.http,
            "https_proxy": self.https,
            "no_proxy": self.no_proxy,
        }
        return {key: value for key, value in args.items() if value}
