# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Rate limiter buckets and client address resolution."""

import pytest
from fastapi import Request

from leflow_server import rate_limit
from leflow_server.config import settings
from leflow_server.errors import TooManyRequests


def _request(forwarded: str | None = None, peer: str = "10.0.0.1") -> Request:
    headers = [(b"x-forwarded-for", forwarded.encode())] if forwarded else []
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers, "client": (peer, 4321)})


def test_client_ip_takes_entry_appended_by_proxy():
    assert rate_limit.client_ip(_request("6.6.6.6, 1.2.3.4")) == "1.2.3.4"
    assert rate_limit.client_ip(_request("1.2.3.4")) == "1.2.3.4"
    assert rate_limit.client_ip(_request()) == "10.0.0.1"


def test_client_ip_counts_hops_from_the_right(monkeypatch):
    monkeypatch.setattr(settings, "trusted_proxy_hops", 2)
    assert rate_limit.client_ip(_request("6.6.6.6, 1.2.3.4, 172.16.0.5")) == "1.2.3.4"
    # Shorter chain than configured: the leftmost entry is the best available
    assert rate_limit.client_ip(_request("1.2.3.4")) == "1.2.3.4"


def test_client_ip_without_trusted_proxy(monkeypatch):
    monkeypatch.setattr(settings, "trusted_proxy_hops", 0)
    assert rate_limit.client_ip(_request("1.2.3.4")) == "10.0.0.1"


def test_hit_limits_within_window():
    assert rate_limit.hit("1.2.3.4", "login", 2, 60, now=1000.0) is None
    assert rate_limit.hit("1.2.3.4", "login", 2, 60, now=1010.0) is None
    assert rate_limit.hit("1.2.3.4", "login", 2, 60, now=1020.0) == pytest.approx(40.0)
    assert rate_limit.hit("1.2.3.4", "login", 2, 60, now=1061.0) is None


def test_idle_buckets_are_swept():
    for n in range(50):
        rate_limit.hit(f"10.0.{n}.1", "login", 5, 60, now=1000.0)
    rate_limit.hit("10.9.9.9", "contact", 3, 3600, now=1000.0)
    assert len(rate_limit._buckets) == 51

    # Next hit after the sweep interval drops everything outside its window
    rate_limit.hit("10.0.0.1", "login", 5, 60, now=1100.0)
    assert set(rate_limit._buckets) == {("10.0.0.1", "login"), ("10.9.9.9", "contact")}

    rate_limit.sweep(now=5000.0)
    assert rate_limit._buckets == {}


def test_contact_limit_message_names_minutes():
    for _ in range(3):
        rate_limit.check_contact_rate_limit("8.8.8.8", now=0.0)
    with pytest.raises(TooManyRequests) as exc:
        rate_limit.check_contact_rate_limit("8.8.8.8", now=60.0)
    assert "59 minuta" in exc.value.detail
    rate_limit.check_contact_rate_limit("127.0.0.1", now=60.0)
