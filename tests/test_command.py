import random

import pytest

from cryptsign.signing.command import build_sign_args, format_store_option
from cryptsign.signing.tsp import TSPSelector
from cryptsign.types import AttachMode, SignatureProfile, SigningRequest


def make_request(**overrides):
    base = dict(thumbprint="ab12cd", pin="1234", data=b"payload")
    base.update(overrides)
    return SigningRequest(**base)


class TestStoreOption:

    @pytest.mark.parametrize("store,expected", [
        ("uMy", "-uMy"),
        ("MY", "-uMy"),
        ("my", "-uMy"),
        ("CA", "-uCa"),
        ("mRoot", "-mRoot"),
        ("Root", "-uRoot"),
        ("", "-u"),
    ])
    def test_formatting(self, store, expected):
        assert format_store_option(store) == expected


class TestBuildSignArgs:

    def test_detached_basic(self):
        args = build_sign_args(make_request(), store="uMy", profile=SignatureProfile.BASIC)
        assert args == [
            "-sign", "-uMy",
            "-thumbprint", "ab12cd",
            "-pin", "1234",
            "-detached",
            "-der",
            "-cadesbes",
            "data.txt", "-fext", ".sgn",
        ]

    def test_attached_timestamped_without_chain_validation(self):
        args = build_sign_args(
            make_request(attach_mode=AttachMode.ATTACHED),
            store="MY",
            profile=SignatureProfile.TIMESTAMPED,
            tsp_url="http://tsp.example/tsp.srf",
            skip_chain_validation=True,
        )
        assert args == [
            "-sign", "-uMy",
            "-thumbprint", "ab12cd",
            "-pin", "1234",
            "-nochain", "-norev",
            "-attached",
            "-der",
            "-cadest", "-cadestsa", "http://tsp.example/tsp.srf",
            "data.txt", "-fext", ".sig",
        ]

    def test_timestamped_requires_server(self):
        with pytest.raises(ValueError):
            build_sign_args(make_request(), store="uMy", profile=SignatureProfile.TIMESTAMPED)

    def test_builder_is_pure(self):
        request = make_request()
        first = build_sign_args(request, "uMy", SignatureProfile.TIMESTAMPED, "http://a")
        second = build_sign_args(request, "uMy", SignatureProfile.TIMESTAMPED, "http://a")
        assert first == second


class TestTSPSelector:

    def test_empty_pool(self):
        assert TSPSelector().select([]) is None

    def test_single_entry_is_deterministic(self):
        selector = TSPSelector()
        assert {selector.select(["http://only"]) for _ in range(10)} == {"http://only"}

    def test_seeded_choice_is_reproducible(self):
        pool = ["http://a", "http://b", "http://c"]
        first, again = TSPSelector(random.Random(42)), TSPSelector(random.Random(42))
        assert [first.select(pool) for _ in range(5)] == [again.select(pool) for _ in range(5)]

    def test_selection_covers_pool(self):
        pool = ["http://a", "http://b", "http://c"]
        selector = TSPSelector(random.Random(1))
        seen = {selector.select(pool) for _ in range(200)}
        assert seen == set(pool)


def test_request_repr_hides_pin_and_payload():
    text = repr(make_request(pin="secret-pin", data=b"confidential"))
    assert "secret-pin" not in text
    assert "confidential" not in text
    assert "ab12cd" in text


@pytest.mark.parametrize("value,expected", [
    (0, SignatureProfile.BASIC),
    (1, SignatureProfile.TIMESTAMPED),
    ("basic", SignatureProfile.BASIC),
    ("CAdES-T", SignatureProfile.TIMESTAMPED),
    (SignatureProfile.BASIC, SignatureProfile.BASIC),
])
def test_profile_parse(value, expected):
    assert SignatureProfile.parse(value) is expected


def test_profile_parse_rejects_unknown():
    with pytest.raises(ValueError):
        SignatureProfile.parse(2)
    with pytest.raises(ValueError):
        SignatureProfile.parse("xades")


@pytest.mark.parametrize("store,expected", [
    ("My", "-uMy"),
    ("umy", "-uUmy"),
])
def test_store_names_without_a_prefix_get_the_user_prefix(store, expected):
    assert format_store_option(store) == expected
