import pytest

from conftest import SocketFactory, echo_reply, path_responder, unreachable
from netdiag import (
    Failed,
    IntermediateHop,
    InvalidOptions,
    ProbeOptions,
    Prober,
    Reached,
    ResolutionFailed,
    TimedOut,
    probe,
)
from netdiag._icmp import build_echo_request

DEST = "203.0.113.10"


def test_reply_from_destination_is_reached():
    factory = SocketFactory(lambda request, address, ttl: [echo_reply(request, address)])
    outcome = probe(DEST, ProbeOptions(timeout_ms=500, ttl=64), prober=Prober(factory))

    assert isinstance(outcome, Reached)
    assert outcome.address == DEST
    assert outcome.round_trip_ms >= 0
    sock = factory.sockets[0]
    assert sock.ttl == 64
    assert sock.sent[0][1] == (DEST, 0)
    assert len(sock.sent[0][0]) == 8 + 32
    assert sock.closed


def test_host_name_is_resolved_before_probing():
    factory = SocketFactory(lambda request, address, ttl: [echo_reply(request, address)])
    outcome = Prober(factory).probe("example.test", ProbeOptions())
    assert outcome == Reached(address=DEST, round_trip_ms=outcome.round_trip_ms)
    assert factory.sockets[0].sent[0][1] == (DEST, 0)


def test_expired_ttl_reports_intermediate_hop():
    factory = SocketFactory(path_responder(["10.0.0.1", "172.16.0.1"], DEST))
    prober = Prober(factory)

    first = prober.probe_address(DEST, ProbeOptions(ttl=1))
    second = prober.probe_address(DEST, ProbeOptions(ttl=2))
    third = prober.probe_address(DEST, ProbeOptions(ttl=3))

    assert isinstance(first, IntermediateHop) and first.address == "10.0.0.1"
    assert isinstance(second, IntermediateHop) and second.address == "172.16.0.1"
    assert isinstance(third, Reached) and third.address == DEST
    assert all(sock.closed for sock in factory.sockets)


def test_no_reply_times_out_and_releases_socket():
    factory = SocketFactory()
    outcome = Prober(factory).probe_address(DEST, ProbeOptions(timeout_ms=500))

    assert outcome == TimedOut()
    sock = factory.sockets[0]
    assert sock.closed
    assert 0 < sock.timeouts[0] <= 0.5


def test_unrelated_traffic_is_skipped():
    def respond(request, address, ttl):
        stranger = build_echo_request(1, 1, 0)
        return [
            b"\x45\x00",
            echo_reply(stranger, "198.51.100.99"),
            echo_reply(request, address),
        ]

    outcome = Prober(SocketFactory(respond)).probe_address(DEST, ProbeOptions())
    assert isinstance(outcome, Reached)
    assert outcome.address == DEST


def test_endless_unrelated_traffic_still_times_out():
    ticks = iter(range(1000))

    def clock():
        return next(ticks) * 0.125

    def respond(request, address, ttl):
        stranger = build_echo_request(1, 1, 0)
        return [echo_reply(stranger, "198.51.100.99")] * 500

    factory = SocketFactory(respond)
    outcome = Prober(factory, clock=clock).probe_address(DEST, ProbeOptions(timeout_ms=500))

    assert outcome == TimedOut()
    sock = factory.sockets[0]
    assert sock.timeouts == [0.375, 0.125]
    assert sock.inbox
    assert sock.closed


def test_destination_unreachable_is_failure():
    factory = SocketFactory(
        lambda request, address, ttl: [unreachable(request, "10.0.0.1", address, code=1)]
    )
    outcome = Prober(factory).probe_address(DEST, ProbeOptions())

    assert isinstance(outcome, Failed)
    assert "destination host unreachable" in outcome.reason
    assert "10.0.0.1" in outcome.reason
    assert factory.sockets[0].closed


def test_transport_error_is_reported_as_failure():
    factory = SocketFactory(send_error=OSError(101, "Network is unreachable"))
    outcome = Prober(factory).probe_address(DEST, ProbeOptions())

    assert isinstance(outcome, Failed)
    assert "Network is unreachable" in outcome.reason
    assert factory.sockets[0].closed


def test_missing_privileges_are_reported_as_failure():
    def refuse():
        raise PermissionError(1, "Operation not permitted")

    outcome = Prober(refuse).probe_address(DEST, ProbeOptions())
    assert isinstance(outcome, Failed)
    assert "elevated privileges" in outcome.reason


def test_negative_timeout_is_rejected_without_io():
    factory = SocketFactory()
    with pytest.raises(InvalidOptions):
        probe("198.51.100.7", ProbeOptions(timeout_ms=-5, ttl=1, payload_size=32), prober=Prober(factory))
    assert factory.sockets == []


@pytest.mark.parametrize(
    "kwargs",
    [
        {"timeout_ms": 0},
        {"ttl": 0},
        {"ttl": 256},
        {"ttl": True},
        {"payload_size": -1},
        {"payload_size": 70000},
        {"timeout_ms": 1.5},
    ],
)
def test_out_of_range_options_are_not_clamped(kwargs):
    with pytest.raises(InvalidOptions):
        ProbeOptions(**kwargs)


def test_payload_size_limit_is_the_largest_icmp_payload():
    assert ProbeOptions(payload_size=65507).payload_size == 65507
    with pytest.raises(InvalidOptions):
        ProbeOptions(payload_size=65508)


def test_options_must_be_probe_options():
    factory = SocketFactory()
    with pytest.raises(InvalidOptions):
        Prober(factory).probe(DEST, {"timeout_ms": 100, "ttl": 1, "payload_size": 0})
    assert factory.sockets == []


@pytest.mark.parametrize("destination", ["", "   "])
def test_blank_destination_is_rejected(destination):
    factory = SocketFactory()
    with pytest.raises(InvalidOptions):
        Prober(factory).probe(destination, ProbeOptions())
    assert factory.sockets == []


def test_unresolvable_destination_fails_before_probing():
    factory = SocketFactory()
    with pytest.raises(ResolutionFailed) as excinfo:
        Prober(factory).probe("no-such-host.invalid", ProbeOptions())
    assert excinfo.value.destination == "no-such-host.invalid"
    assert factory.sockets == []
