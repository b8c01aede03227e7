import pytest

from services.network import AddressPolicy, is_private_network


@pytest.mark.parametrize("address", [
    "127.0.0.1",
    "::1",
    "::ffff:127.0.0.1",
    "0.0.0.0",
    "10.0.0.1",
    "192.168.1.1",
    "172.16.0.1",
    "172.31.255.255",
])
def test_private_addresses(address):
    assert is_private_network(address) is True


@pytest.mark.parametrize("address", [
    "8.8.8.8",
    "172.15.0.1",
    "172.32.0.1",
    "172.200.1.1",
    "11.0.0.1",
    "192.169.0.1",
])
def test_public_addresses(address):
    assert is_private_network(address) is False


@pytest.mark.parametrize("address", ["", "172.", "172.x.0.1", "not-an-ip", None])
def test_malformed_addresses_are_not_private(address):
    assert is_private_network(address) is False


def test_classification_is_repeatable():
    results = {is_private_network("172.20.1.1") for _ in range(5)}
    assert results == {True}


def test_allow_list_is_exact_match():
    policy = AddressPolicy.create(["203.0.113.7"])

    assert policy.is_explicitly_allowed("203.0.113.7")
    assert not policy.is_explicitly_allowed("203.0.113.70")
    assert not policy.is_explicitly_allowed("203.0.113.0/24")
    assert not policy.is_explicitly_allowed("")


def test_local_bypass_requires_flag():
    assert not AddressPolicy.create([]).should_bypass("10.1.2.3")
    assert AddressPolicy.create([], auto_validate_local_ip=True).should_bypass("10.1.2.3")
    assert not AddressPolicy.create([], auto_validate_local_ip=True).should_bypass("8.8.8.8")


def test_allow_listed_address_bypasses_without_flag():
    assert AddressPolicy.create(["8.8.8.8"]).should_bypass("8.8.8.8")
