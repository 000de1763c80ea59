"""
Property-based tests for the hashing module.

Uses Hypothesis for property-based testing to verify the recursive
namehash and the single-step childhash primitive.
"""

import hashlib

import pytest
from eth_hash.auto import keccak
from hypothesis import given, settings
from hypothesis import strategies as st

import chain_resolution
from chain_resolution.enums import LabelEncoding, NamingServiceName
from chain_resolution.hashing import (
    ZERO_HASH,
    ZERO_NODE,
    childhash,
    label_hash,
    namehash,
    sha256,
)


# Strategies for generating valid test data

@st.composite
def label_strategy(draw) -> str:
    """Generate a single non-empty domain label."""
    return draw(st.text(
        alphabet=st.sampled_from("abcdefghijklmnopqrstuvwxyz0123456789"),
        min_size=1,
        max_size=20,
    ))


@st.composite
def domain_strategy(draw) -> str:
    """Generate a dotted domain with one to four labels."""
    labels = draw(st.lists(label_strategy(), min_size=1, max_size=4))
    return ".".join(labels)


class TestKnownVectors:
    """Reference hashes published for the ENS registry."""

    def test_empty_domain_is_zero_node(self) -> None:
        assert namehash("") == ZERO_NODE
        assert ZERO_NODE == "0x" + "00" * 32

    def test_eth(self) -> None:
        assert namehash("eth") == (
            "0x93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae"
        )

    def test_foo_eth(self) -> None:
        assert namehash("foo.eth") == (
            "0xde9b09fd7c5f901e23a3f19fecc54828e9c848539801e86591bd9801b019f84f"
        )

    def test_sha256_single_label(self) -> None:
        expected = hashlib.sha256(
            ZERO_HASH + hashlib.sha256(b"zil").digest()
        ).hexdigest()
        assert namehash("zil", digest=sha256) == "0x" + expected


class TestNamehashDeterminismProperty:
    """
    **Feature: chain-resolution, Property 1: Namehash is deterministic**
    """

    @given(domain=domain_strategy())
    @settings(max_examples=100)
    def test_same_input_same_output(self, domain: str) -> None:
        """
        *For any* domain, namehash SHALL produce the same 32 byte hash on
        every call.
        """
        first = namehash(domain)
        second = namehash(domain)

        assert first == second
        assert first.startswith("0x")
        assert len(first) == 66

    @given(domain=domain_strategy())
    @settings(max_examples=100)
    def test_prefix_flag_only_changes_prefix(self, domain: str) -> None:
        assert namehash(domain, prefix=False) == namehash(domain)[2:]

    @given(domain=domain_strategy())
    @settings(max_examples=100)
    def test_digest_selects_namespace(self, domain: str) -> None:
        """
        *For any* domain, keccak and sha256 namehashes SHALL differ, so a
        node hash is only meaningful together with its naming service.
        """
        assert namehash(domain) != namehash(domain, digest=sha256)


class TestChildhashProperty:
    """
    **Feature: chain-resolution, Property 2: Childhash is one namehash step**
    """

    @given(label=label_strategy())
    @settings(max_examples=100)
    def test_top_level_label_from_zero_node(self, label: str) -> None:
        assert namehash(label) == childhash(ZERO_NODE, label)

    @given(parent=domain_strategy(), label=label_strategy())
    @settings(max_examples=100)
    def test_child_of_parent_equals_full_namehash(self, parent: str, label: str) -> None:
        """
        *For any* parent domain and label, childhash(namehash(parent), label)
        SHALL equal namehash(label + "." + parent).
        """
        assert childhash(namehash(parent), label) == namehash(f"{label}.{parent}")

    @given(parent=domain_strategy(), label=label_strategy())
    @settings(max_examples=100)
    def test_sha256_child_matches_sha256_namehash(self, parent: str, label: str) -> None:
        parent_node = namehash(parent, digest=sha256)
        assert childhash(parent_node, label, digest=sha256) == namehash(
            f"{label}.{parent}", digest=sha256
        )

    @given(parent=domain_strategy(), label=label_strategy())
    @settings(max_examples=100)
    def test_hash_encoding_accepts_prehashed_label(self, parent: str, label: str) -> None:
        """
        *For any* label, passing its keccak hash with HASH encoding SHALL
        give the same child as passing the plain label with TEXT encoding.
        """
        parent_node = namehash(parent)
        hashed = label_hash(label).hex()

        assert childhash(parent_node, hashed, encoding=LabelEncoding.HASH) == (
            childhash(parent_node, label, encoding=LabelEncoding.TEXT)
        )

    @given(parent=domain_strategy(), label=label_strategy())
    @settings(max_examples=100)
    def test_parent_prefix_is_optional(self, parent: str, label: str) -> None:
        parent_node = namehash(parent)
        assert childhash(parent_node[2:], label) == childhash(parent_node, label)

    def test_text_and_hash_encodings_differ(self) -> None:
        label = keccak(b"brad").hex()
        assert childhash(ZERO_NODE, label, encoding=LabelEncoding.TEXT) != (
            childhash(ZERO_NODE, label, encoding=LabelEncoding.HASH)
        )

    def test_rejects_short_parent(self) -> None:
        with pytest.raises(ValueError):
            childhash("0x1234", "brad")

    def test_rejects_short_hashed_label(self) -> None:
        with pytest.raises(ValueError):
            childhash(ZERO_NODE, "abcd", encoding=LabelEncoding.HASH)


class TestPackageExports:
    """The package level namehash export must not shadow the hashing module."""

    def test_exports_are_the_functions(self) -> None:
        assert chain_resolution.namehash is namehash
        assert chain_resolution.childhash is childhash

    def test_backends_hash_through_the_package(self) -> None:
        resolution = chain_resolution.Resolution()

        assert resolution.namehash("brad.crypto") == namehash("brad.crypto")
        assert resolution.namehash("brad.eth") == namehash("brad.eth")
        assert resolution.namehash("brad.zil") == namehash("brad.zil", digest=sha256)
        assert resolution.is_valid_hash("brad.crypto", namehash("brad.crypto"))

        parent = resolution.namehash("crypto")
        assert resolution.childhash(parent, "brad", NamingServiceName.CNS) == namehash("brad.crypto")

    def test_api_backend_hashes_through_the_package(self) -> None:
        resolution = chain_resolution.Resolution(blockchain=False)
        assert resolution.namehash("brad.zil") == namehash("brad.zil", digest=sha256)
