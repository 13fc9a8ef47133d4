"""Tests for the component factory."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine

from samlsync.config import Config
from samlsync.factory import Factory
from samlsync.models.attributes import build_attribute_bag
from samlsync.models.result import Authenticated


@pytest.mark.asyncio
async def test_standalone(config: Config, engine: AsyncEngine) -> None:
    bag = build_attribute_bag({"uid": ["alice"], "role": ["it"]})
    async with Factory.standalone(config, engine, check_db=True) as factory:
        reconciler = factory.create_reconciliation_service()
        async with factory.session.begin():
            result = await reconciler.reconcile_attributes(bag)
    assert isinstance(result, Authenticated)
    assert result.created

    # The account was committed and a new factory sees it.
    async with Factory.standalone(config, engine) as factory:
        directory = factory.create_user_directory()
        async with factory.session.begin():
            account_id = await directory.find_by_name("Alice")
            assert account_id == result.account.id
            account = await directory.load(account_id)
    assert account.groups == {"admin"}


@pytest.mark.asyncio
async def test_create_aclose(config: Config, engine: AsyncEngine) -> None:
    factory = await Factory.create(config, engine)
    directory = factory.create_user_directory()
    async with factory.session.begin():
        assert await directory.find_by_name("Alice") is None
    await factory.aclose()
    assert not factory.session.in_transaction()
