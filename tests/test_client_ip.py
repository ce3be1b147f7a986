"""Client identity resolution tests."""

from gateway.client_ip import UNKNOWN_CLIENT, resolve_client_ip


def _scope(headers=None, client=("10.0.0.1", 5000)):
    return {
        "type": "http",
        "headers": [(k.encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }


class TestResolveClientIp:
    def test_trusted_proxy_uses_first_forwarded_address(self):
        scope = _scope({"x-forwarded-for": "203.0.113.7, 10.0.0.2"})
        assert resolve_client_ip(scope, trust_proxy=True) == "203.0.113.7"

    def test_untrusted_proxy_ignores_forwarded_header(self):
        """A spoofed X-Forwarded-For must not change identity when the proxy isn't trusted."""
        scope = _scope({"x-forwarded-for": "203.0.113.7"})
        assert resolve_client_ip(scope, trust_proxy=False) == "10.0.0.1"

    def test_falls_back_to_peer_without_header(self):
        assert resolve_client_ip(_scope(), trust_proxy=True) == "10.0.0.1"

    def test_blank_forwarded_header_falls_back(self):
        scope = _scope({"x-forwarded-for": " , 10.0.0.2"})
        assert resolve_client_ip(scope, trust_proxy=True) == "10.0.0.1"

    def test_unknown_without_peer(self):
        assert resolve_client_ip(_scope(client=None), trust_proxy=False) == UNKNOWN_CLIENT
