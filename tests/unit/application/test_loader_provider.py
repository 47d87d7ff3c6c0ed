"""LoaderProvider / use_reset_loader 测试"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from action_loader.application.loader_binding import create_loader
from action_loader.application.loader_provider import (
    LoaderProvider,
    current_store,
    resolve_store,
    use_reset_loader,
)
from action_loader.domain.exceptions import LoaderContextError
from action_loader.domain.services.shared_state_store import SharedStateStore
from action_loader.domain.value_objects.response_envelope import response


class TestLoaderProvider:
    def test_no_store_outside_provider(self):
        assert current_store() is None

    def test_provider_sets_current_store(self):
        with LoaderProvider() as provider:
            assert current_store() is provider.store

        assert current_store() is None

    def test_provider_accepts_existing_store(self, store):
        with LoaderProvider(store) as provider:
            assert provider.store is store

    @pytest.mark.asyncio
    async def test_loaders_write_into_given_empty_store(self, store):
        """测试：传入的空 store 不会被替换，Provider 内的 Loader 写入同一个 store"""
        operation = AsyncMock(return_value=response.success({"id": 1}))

        async with LoaderProvider(store) as provider:
            await create_loader("profile", operation)().load()

        assert provider.store is store
        assert store.get("profile").data == {"id": 1}

    def test_nested_provider_shadows_outer(self):
        with LoaderProvider() as outer:
            with LoaderProvider() as inner:
                assert current_store() is inner.store
            assert current_store() is outer.store

    @pytest.mark.asyncio
    async def test_async_context_manager(self):
        async with LoaderProvider() as provider:
            assert current_store() is provider.store

            async def read_in_child_task():
                return current_store()

            assert await asyncio.create_task(read_in_child_task()) is provider.store

        assert current_store() is None

    def test_resolve_store_misuse(self):
        with pytest.raises(LoaderContextError) as exc_info:
            resolve_store(None, "use_loader")

        assert exc_info.value.caller == "use_loader"
        assert "LoaderProvider" in str(exc_info.value)


class TestUseResetLoader:
    def test_reset_and_reset_all(self):
        store = SharedStateStore()
        store.set_entry("a", response.success(1))
        store.set_entry("b", response.success(2))

        with LoaderProvider(store):
            resetter = use_reset_loader()

        resetter.reset("a")
        assert store.get("a") is None
        assert store.get("b").data == 2

        resetter.reset_all()
        assert len(store) == 0

    def test_explicit_store(self, store):
        store.set_entry("a", response.success(1))

        use_reset_loader(store).reset("a")

        assert store.get("a") is None

    def test_requires_store_or_provider(self):
        with pytest.raises(LoaderContextError):
            use_reset_loader()
