"""
Tests for outbound URL validation.
"""

import pytest

from rssbrief.url_validator import UnsafeURLError, is_ip_blocked, validate_url


class TestValidateUrl:

    @pytest.mark.parametrize("url", [
        "https://example.com/feed.xml",
        "http://news.example.org/rss?format=xml",
        "https://93.184.216.34/page",
    ])
    def test_public_urls_allowed(self, url):
        assert validate_url(url) == url

    @pytest.mark.parametrize("url", [
        "file:///etc/passwd",
        "ftp://example.com/feed",
        "http://localhost:8080/",
        "http://127.0.0.1/",
        "http://10.1.2.3/",
        "http://192.168.1.1/admin",
        "http://169.254.169.254/latest/meta-data",
        "http://metadata.google.internal/",
        "http://printer.local/",
        "http://[::1]/",
        "https:///no-host",
    ])
    def test_unsafe_urls_rejected(self, url):
        with pytest.raises(UnsafeURLError):
            validate_url(url)


class TestIsIpBlocked:

    def test_hostnames_are_not_ips(self):
        assert is_ip_blocked("example.com") is False

    def test_private_ranges(self):
        assert is_ip_blocked("172.16.0.5")
        assert not is_ip_blocked("8.8.8.8")
