"""Tests for table sessions."""

import time
from unittest.mock import patch

import pytest
import pytest_asyncio

import api.session as session_module
from api.session import (
    InMemorySessionStore,
    SessionSigner,
    create_session,
    extract_session_id,
    get_session_signer,
    get_session_store,
)


class TestSessionSigner:
    """Tests for SessionSigner class."""

    def test_round_trip(self):
        signer = SessionSigner(secret_key="table-secret")
        token = signer.sign("table-1")

        assert token != "table-1"
        assert signer.unsign(token, max_age=3600) == "table-1"

    def test_garbage_token(self):
        signer = SessionSigner(secret_key="table-secret")
        assert signer.unsign("not-a-token", max_age=3600) is None

    def test_other_secret_rejected(self):
        token = SessionSigner(secret_key="one").sign("table-1")
        assert SessionSigner(secret_key="two").unsign(token, max_age=3600) is None

    def test_expired_token(self):
        """A token older than max_age no longer identifies a table."""
        signer = SessionSigner(secret_key="table-secret")
        token = signer.sign("table-1")
        later = time.time() + 7200

        with patch("time.time", return_value=later):
            assert signer.unsign(token, max_age=3600) is None

    def test_distinct_tables_distinct_tokens(self):
        signer = SessionSigner(secret_key="table-secret")
        assert signer.sign("table-1") != signer.sign("table-2")

    def test_signer_is_shared(self):
        session_module._session_signer = None
        assert get_session_signer() is get_session_signer()


class TestInMemorySessionStore:
    """Tests for InMemorySessionStore class."""

    @pytest_asyncio.fixture
    async def store(self):
        return InMemorySessionStore()

    @pytest.mark.asyncio
    async def test_set_and_get(self, store):
        await store.set("table-1", {"game": {"round_number": 3}}, ttl=3600)
        assert await store.get("table-1") == {"game": {"round_number": 3}}

    @pytest.mark.asyncio
    async def test_missing(self, store):
        assert await store.get("nowhere") is None

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.set("table-1", {"game": {}}, ttl=3600)
        await store.delete("table-1")
        await store.delete("table-1")

        assert await store.get("table-1") is None

    @pytest.mark.asyncio
    async def test_overwrite(self, store):
        await store.set("table-1", {"round": 1}, ttl=3600)
        await store.set("table-1", {"round": 2}, ttl=3600)
        assert await store.get("table-1") == {"round": 2}

    @pytest.mark.asyncio
    async def test_expiry(self, store):
        await store.set("table-1", {"round": 1}, ttl=1)
        assert await store.get("table-1") == {"round": 1}

        time.sleep(1.5)

        assert await store.get("table-1") is None

    @pytest.mark.asyncio
    async def test_cleanup_expired(self, store):
        await store.set("short-1", {}, ttl=1)
        await store.set("short-2", {}, ttl=1)
        await store.set("long", {}, ttl=3600)

        time.sleep(1.5)

        assert sorted(await store.cleanup_expired()) == ["short-1", "short-2"]
        assert await store.get("long") == {}
        assert await store.cleanup_expired() == []

    @pytest.mark.asyncio
    async def test_writes_extend_the_session(self, store):
        await store.set("table-1", {"round": 1}, ttl=-1)
        await store.set("table-1", {"round": 2}, ttl=3600)

        assert await store.cleanup_expired() == []
        assert await store.get("table-1") == {"round": 2}


class TestModuleFunctions:
    """Tests for module-level session functions."""

    @pytest.mark.asyncio
    async def test_create_session_is_stored_and_signed(self):
        session_module._session_store = None

        session_id = await create_session({"seed": 1})

        assert extract_session_id(session_id) is not None
        assert await get_session_store().get(session_id) == {"seed": 1}

    def test_extract_session_id(self):
        signer = SessionSigner(secret_key="table-secret")
        token = signer.sign("table-9")

        with patch("api.session.get_session_signer", return_value=signer):
            assert extract_session_id(token) == "table-9"

    def test_extract_session_id_invalid(self):
        assert extract_session_id("forged") is None
