"""
Tests for the request-scoped tenant context and the tenant guard.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from shared.security.tenant_context import (
    clear_current_tenant,
    get_current_tenant,
    require_current_tenant,
    set_current_tenant,
    tenant_guarded,
    tenant_scope,
)
from shared.utils.exceptions import ForbiddenError, TenantContextMissingError


class _Recorder:
    """Guarded operations that record whether they ran."""

    def __init__(self):
        self.calls = []

    @tenant_guarded
    def lookup(self, tenant_id: int, key: str) -> str:
        self.calls.append((tenant_id, key))
        return f"{tenant_id}:{key}"

    @tenant_guarded
    def unscoped(self) -> int:
        self.calls.append(("unscoped",))
        return require_current_tenant()

    @tenant_guarded
    def outer(self, tenant_id: int) -> int | None:
        self.lookup(tenant_id, "inner")
        return get_current_tenant()

    @tenant_guarded
    def explode(self, tenant_id: int) -> None:
        raise RuntimeError("boom")


@pytest.fixture(autouse=True)
def _clean_context():
    clear_current_tenant()
    yield
    clear_current_tenant()


class TestTenantContext:
    """Set / get / clear."""

    def test_absent_by_default(self):
        assert get_current_tenant() is None

    def test_set_and_get(self):
        set_current_tenant(5)
        assert get_current_tenant() == 5

    def test_clear(self):
        set_current_tenant(5)
        clear_current_tenant()
        assert get_current_tenant() is None

    def test_none_is_rejected(self):
        with pytest.raises(ValueError):
            set_current_tenant(None)

    def test_require_without_tenant_is_403(self):
        with pytest.raises(TenantContextMissingError) as exc_info:
            require_current_tenant()
        assert exc_info.value.status_code == 403

    def test_scope_clears_on_exit(self):
        with tenant_scope(3) as tenant_id:
            assert tenant_id == 3
            assert get_current_tenant() == 3
        assert get_current_tenant() is None

    def test_scope_clears_on_error(self):
        with pytest.raises(RuntimeError):
            with tenant_scope(3):
                raise RuntimeError("boom")
        assert get_current_tenant() is None

    def test_threads_never_see_each_others_tenant(self):
        """Each thread sets its own tenant; none observes another's."""
        barrier = threading.Barrier(8)

        def worker(tenant_id: int) -> list[int | None]:
            seen = []
            set_current_tenant(tenant_id)
            barrier.wait()
            for _ in range(50):
                seen.append(get_current_tenant())
            clear_current_tenant()
            return seen

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(worker, range(1, 9)))

        for tenant_id, seen in zip(range(1, 9), results):
            assert set(seen) == {tenant_id}

    def test_new_thread_starts_without_tenant(self):
        set_current_tenant(9)
        seen = []
        thread = threading.Thread(target=lambda: seen.append(get_current_tenant()))
        thread.start()
        thread.join()
        assert seen == [None]


class TestTenantGuarded:
    """The guard around tenant-scoped operations."""

    def test_without_context_is_not_invoked(self):
        recorder = _Recorder()
        with pytest.raises(TenantContextMissingError):
            recorder.lookup(1, "a")
        assert recorder.calls == []

    def test_matching_tenant_runs(self):
        recorder = _Recorder()
        set_current_tenant(1)
        assert recorder.lookup(1, "a") == "1:a"
        assert recorder.calls == [(1, "a")]

    def test_keyword_tenant_is_checked(self):
        recorder = _Recorder()
        set_current_tenant(1)
        with pytest.raises(ForbiddenError) as exc_info:
            recorder.lookup(key="a", tenant_id=2)
        assert exc_info.value.status_code == 403
        assert recorder.calls == []

    def test_mismatched_tenant_is_forbidden(self):
        recorder = _Recorder()
        set_current_tenant(1)
        with pytest.raises(ForbiddenError):
            recorder.lookup(2, "a")
        assert recorder.calls == []

    def test_operation_without_tenant_argument_uses_context(self):
        recorder = _Recorder()
        set_current_tenant(4)
        assert recorder.unscoped() == 4

    def test_context_cleared_after_success(self):
        recorder = _Recorder()
        set_current_tenant(1)
        recorder.lookup(1, "a")
        assert get_current_tenant() is None

    def test_context_cleared_after_error(self):
        recorder = _Recorder()
        set_current_tenant(1)
        with pytest.raises(RuntimeError):
            recorder.explode(1)
        assert get_current_tenant() is None

    def test_nested_calls_keep_context_until_outer_returns(self):
        recorder = _Recorder()
        set_current_tenant(6)
        assert recorder.outer(6) == 6
        assert recorder.calls == [(6, "inner")]
        assert get_current_tenant() is None

    def test_second_call_needs_a_fresh_context(self):
        """A stale tenant cannot carry over to the next operation."""
        recorder = _Recorder()
        set_current_tenant(1)
        recorder.lookup(1, "a")
        with pytest.raises(TenantContextMissingError):
            recorder.lookup(1, "b")
