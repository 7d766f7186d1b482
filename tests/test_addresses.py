import pytest

from pktforge.addresses import EtherAddr, Ipv4Addr, Ipv6Addr


def test_ether_parse_bytes():
    addr = EtherAddr.parse("6f:5e:4d:3c:2b:1a")
    assert addr.to_bytes() == bytes([0x6F, 0x5E, 0x4D, 0x3C, 0x2B, 0x1A])


def test_ether_str_round_trip():
    text = "02:01:03:04:07:0b"
    assert str(EtherAddr.parse(text)) == text


def test_ether_single_digit_octets():
    assert EtherAddr.parse("1:2:3:4:5:6") == EtherAddr(bytes([1, 2, 3, 4, 5, 6]))


def test_ether_uppercase_equals_lowercase():
    assert EtherAddr.parse("FF:FF:FF:FF:FF:FF") == EtherAddr.parse("ff:ff:ff:ff:ff:ff")


@pytest.mark.parametrize("text", ["01:02:03", "zz:01:02:03:04:05", "", "01-02-03-04-05-06"])
def test_ether_parse_invalid(text):
    with pytest.raises(ValueError):
        EtherAddr.parse(text)


def test_ether_default_is_zero():
    assert EtherAddr().to_bytes() == bytes(6)


def test_ether_inequality():
    assert EtherAddr.parse("00:01:02:03:04:05") != EtherAddr.parse("00:01:02:03:04:06")


def test_ether_wrong_length_raises():
    with pytest.raises(ValueError):
        EtherAddr(bytes(5))


def test_ipv4_parse_bytes():
    assert Ipv4Addr.parse("10.1.2.3").to_bytes() == bytes([10, 1, 2, 3])


def test_ipv4_str_round_trip():
    for text in ["127.0.0.1", "128.128.128.128", "15.15.15.15"]:
        assert str(Ipv4Addr.parse(text)) == text


@pytest.mark.parametrize("text", ["10.1.2", "256.0.0.1", "abc", "1.2.3.4.5"])
def test_ipv4_parse_invalid(text):
    with pytest.raises(ValueError):
        Ipv4Addr.parse(text)


def test_ipv4_default_is_zero():
    assert Ipv4Addr().to_bytes() == bytes(4)


def test_ipv4_equality():
    assert Ipv4Addr.parse("11.3.2.1") == Ipv4Addr(bytes([11, 3, 2, 1]))
    assert Ipv4Addr.parse("11.3.2.1") != Ipv4Addr.parse("11.3.2.2")


def test_ipv6_parse_bytes():
    packed = Ipv6Addr.parse("dead:c0de::").to_bytes()
    assert packed[:4] == bytes([0xDE, 0xAD, 0xC0, 0xDE])
    assert packed[4:] == bytes(12)


def test_ipv6_str_round_trip():
    for text in ["2515:2599::3e", "9678:1258::fd", "ef34::"]:
        assert str(Ipv6Addr.parse(text)) == text


@pytest.mark.parametrize("text", ["not-an-address", "1:2:3", "fe80::1%eth0", "::g"])
def test_ipv6_parse_invalid(text):
    with pytest.raises(ValueError):
        Ipv6Addr.parse(text)


def test_ipv6_default_and_equality():
    assert Ipv6Addr() == Ipv6Addr.parse("::")
    assert Ipv6Addr.parse("cafe:babe::") != Ipv6Addr.parse("dead:c0de::")


def test_ipv6_wrong_length_raises():
    with pytest.raises(ValueError):
        Ipv6Addr(bytes(4))