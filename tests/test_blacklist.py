"""Tests for the Do-Not-Serve guard."""

import pytest

from bookflow.errors import ClientBlockedError
from bookflow.repository.memory import InMemoryRepository
from bookflow.schemas.do_not_serve_schema import DoNotServeStatus
from bookflow.workflow.blacklist import BlacklistGuard, entry_matches, find_blocking_entry
from tests.conftest import make_client, make_dns_entry


class TestEntryMatches:
    def test_name_matches_case_and_whitespace_insensitive(self):
        entry = make_dns_entry(client_name="Jane Doe")
        assert entry_matches(entry, "  jane DOE ")

    def test_email_matches_case_insensitive(self):
        entry = make_dns_entry(client_email="Jane@Example.com")
        assert entry_matches(entry, "Other Name", client_email="jane@example.com ")

    def test_phone_matches_ignoring_whitespace(self):
        entry = make_dns_entry(client_phone="0412 345 678")
        assert entry_matches(entry, "Other Name", client_phone="0412345678")

    def test_phone_punctuation_is_significant(self):
        entry = make_dns_entry(client_phone="0412-345-678")
        assert not entry_matches(entry, "Other Name", client_phone="0412345678")

    def test_empty_fields_never_match(self):
        entry = make_dns_entry(client_name="Jane Doe", client_email="", client_phone="")
        assert not entry_matches(entry, "Someone", client_email="", client_phone="")

    def test_any_single_field_is_enough(self):
        entry = make_dns_entry(client_name="Jane Doe", client_email="x@y.com")
        assert entry_matches(entry, "Totally Different", client_email="X@Y.COM")


class TestFindBlockingEntry:
    def test_only_approved_entries_block(self):
        entries = [
            make_dns_entry(DoNotServeStatus.PENDING, client_name="Jane Doe"),
            make_dns_entry(DoNotServeStatus.REJECTED, client_name="Jane Doe"),
        ]
        assert find_blocking_entry(entries, "Jane Doe") is None

    def test_returns_approved_match(self):
        approved = make_dns_entry(DoNotServeStatus.APPROVED, client_name="Jane Doe")
        assert find_blocking_entry([approved], "jane doe") is approved


class TestBlacklistGuard:
    @pytest.mark.asyncio
    async def test_blocked_client_raises(self):
        repo = InMemoryRepository(do_not_serve=[
            make_dns_entry(client_phone="+61400123456"),
        ])
        guard = BlacklistGuard(repo)
        with pytest.raises(ClientBlockedError):
            await guard.check(make_client(phone="+61 400 123 456"))

    @pytest.mark.asyncio
    async def test_pending_entry_allows(self):
        repo = InMemoryRepository(do_not_serve=[
            make_dns_entry(DoNotServeStatus.PENDING, client_name="Alex Morgan"),
        ])
        assert not await BlacklistGuard(repo).is_blocked("Alex Morgan")

    @pytest.mark.asyncio
    async def test_clean_client_passes(self):
        guard = BlacklistGuard(InMemoryRepository())
        await guard.check(make_client())
