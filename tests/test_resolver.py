"""Tests for fanrun.engine.resolver module."""

from __future__ import annotations

import socket
from unittest.mock import patch

from fanrun.engine.resolver import LocalHostResolver
from fanrun.engine.types import Target


def test_loopback_names_always_present():
    resolver = LocalHostResolver("box")
    for name in ("", ".", "localhost", "::1", "127.0.0.1", "box"):
        assert resolver.is_local(name)


def test_addresses_and_reverse_names():
    lookups = {"10.0.0.5": ["box.example.com", "box-alias"]}
    resolver = LocalHostResolver("box", ["10.0.0.5"], reverse_lookup=lambda a: lookups[a])

    assert resolver.is_local("10.0.0.5")
    assert resolver.is_local("box.example.com")
    assert resolver.is_local("box-alias")
    assert not resolver.is_local("otherbox")


def test_reverse_lookup_failure_is_swallowed():
    def lookup(address):
        if address == "10.0.0.6":
            raise socket.herror(1, "Unknown host")
        return ["good.example.com"]

    resolver = LocalHostResolver("box", ["10.0.0.5", "10.0.0.6"], reverse_lookup=lookup)

    assert resolver.is_local("good.example.com")
    # address itself is still local even though its PTR lookup failed
    assert resolver.is_local("10.0.0.6")


def test_membership_is_case_insensitive():
    resolver = LocalHostResolver("BuildBox")
    assert resolver.is_local("buildbox")
    assert resolver.is_local(Target("BUILDBOX"))
    assert Target("buildbox") in resolver


def test_discover_collects_names():
    infos = [
        (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("10.0.0.5", 0)),
        (socket.AF_INET, socket.SOCK_DGRAM, 17, "", ("10.0.0.5", 0)),
        (socket.AF_INET6, socket.SOCK_STREAM, 6, "", ("fe80::5", 0, 0, 0)),
    ]
    with patch("fanrun.engine.resolver.socket.gethostname", return_value="box"), \
            patch("fanrun.engine.resolver.socket.getfqdn", return_value="box.corp.example"), \
            patch("fanrun.engine.resolver.socket.getaddrinfo", return_value=infos), \
            patch("fanrun.engine.resolver.socket.gethostbyaddr",
                  return_value=("box.corp.example", ["box-ptr"], ["10.0.0.5"])):
        resolver = LocalHostResolver.discover()

    assert {"box", "box.corp.example", "box-ptr", "10.0.0.5", "fe80::5"} <= resolver.names


def test_discover_survives_lookup_failures():
    with patch("fanrun.engine.resolver.socket.gethostname", return_value="box"), \
            patch("fanrun.engine.resolver.socket.getfqdn", side_effect=OSError("no fqdn")), \
            patch("fanrun.engine.resolver.socket.getaddrinfo", side_effect=socket.gaierror(-2, "Name unknown")):
        resolver = LocalHostResolver.discover()

    assert resolver.is_local("box")
    assert resolver.is_local("localhost")
