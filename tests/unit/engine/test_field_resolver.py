"""Tests for on-demand field resolution within a single BuildContext."""

import asyncio
import threading
from unittest.mock import Mock

import pytest

from fieldforge.context import BuildContext, ResolutionState
from fieldforge.definition import FactoryDefinition, parse_define_options
from fieldforge.exceptions import (
    CircularDependencyError,
    ConfigurationError,
    ResolverError,
)
from fieldforge.field_spec import lazy
from fieldforge.resolver import ResolverContext, assemble, resolve_field


def make_context(field_names, default_fields, seq=0, **kwargs) -> BuildContext:
    definition = FactoryDefinition.from_options(
        parse_define_options(
            name="Sample",
            field_names=field_names,
            default_fields=default_fields,
        )
    )
    return BuildContext(
        definition=definition,
        seq=seq,
        specs=dict(definition.default_specs),
        **kwargs,
    )


class TestLiteralResolution:
    @pytest.mark.asyncio
    async def test_literal_value(self) -> None:
        ctx = make_context(["title"], {"title": "Yuyushiki"})

        assert await resolve_field(ctx, "title") == "Yuyushiki"
        assert ctx.cache["title"].state is ResolutionState.RESOLVED

    @pytest.mark.asyncio
    async def test_none_literal(self) -> None:
        ctx = make_context(["author"], {"author": None})

        assert await resolve_field(ctx, "author") is None

    @pytest.mark.asyncio
    async def test_owned_literal_is_copied(self) -> None:
        books = [{"id": "Book-0"}]
        ctx = make_context(["books"], {"books": books})

        value = await resolve_field(ctx, "books")

        assert value == books
        assert value is not books
        assert value[0] is not books[0]

    @pytest.mark.asyncio
    async def test_nested_containers_are_copied(self) -> None:
        tags = {"genre": ["comedy"], "pair": ([1], "x"), "seen": {1, 2}}
        ctx = make_context(["tags"], {"tags": tags})

        value = await resolve_field(ctx, "tags")

        assert value == tags
        assert value["genre"] is not tags["genre"]
        assert value["pair"][0] is not tags["pair"][0]
        assert value["seen"] is not tags["seen"]

    @pytest.mark.asyncio
    async def test_unpicklable_default_is_shared(self) -> None:
        lock = threading.Lock()
        ctx = make_context(["lock", "locks"], {"lock": lock, "locks": [lock]})

        assert await resolve_field(ctx, "lock") is lock
        locks = await resolve_field(ctx, "locks")
        assert locks[0] is lock

    @pytest.mark.asyncio
    async def test_sentinel_keeps_identity(self) -> None:
        sentinel = object()
        ctx = make_context(["marker"], {"marker": sentinel})

        assert await resolve_field(ctx, "marker") is sentinel

    @pytest.mark.asyncio
    async def test_immutable_tuple_is_not_rebuilt(self) -> None:
        point = (1, "a")
        ctx = make_context(["point"], {"point": point})

        assert await resolve_field(ctx, "point") is point

    @pytest.mark.asyncio
    async def test_copy_can_be_disabled(self) -> None:
        books = [{"id": "Book-0"}]
        ctx = make_context(["books"], {"books": books}, copy_literals=False)

        assert await resolve_field(ctx, "books") is books


class TestLazyResolution:
    @pytest.mark.asyncio
    async def test_sync_resolver_receives_seq(self) -> None:
        ctx = make_context(["id"], {"id": lazy(lambda c: f"Book-{c.seq}")}, seq=4)

        assert await resolve_field(ctx, "id") == "Book-4"

    @pytest.mark.asyncio
    async def test_async_resolver(self) -> None:
        async def title(c: ResolverContext) -> str:
            await asyncio.sleep(0)
            return f"Vol. {c.seq}"

        ctx = make_context(["title"], {"title": lazy(title)}, seq=2)

        assert await resolve_field(ctx, "title") == "Vol. 2"

    @pytest.mark.asyncio
    async def test_resolver_returning_future(self) -> None:
        def title(c: ResolverContext):
            future = asyncio.get_running_loop().create_future()
            future.set_result("from future")
            return future

        ctx = make_context(["title"], {"title": lazy(title)})

        assert await resolve_field(ctx, "title") == "from future"

    @pytest.mark.asyncio
    async def test_resolver_context_identity(self) -> None:
        seen = []

        def capture(c: ResolverContext) -> str:
            seen.append(c)
            return "x"

        ctx = make_context(["title"], {"title": lazy(capture)}, seq=3)
        await resolve_field(ctx, "title")

        assert seen[0].field_name == "title"
        assert seen[0].seq == 3
        assert "title" in repr(seen[0])

    @pytest.mark.asyncio
    async def test_get_other_field(self) -> None:
        async def full_name(c: ResolverContext) -> str:
            return f"{await c.get('first')} {await c.get('last')}"

        ctx = make_context(
            ["first", "last", "full"],
            {"first": "Komata", "last": "Mikami", "full": lazy(full_name)},
        )

        assert await resolve_field(ctx, "full") == "Komata Mikami"

    @pytest.mark.asyncio
    async def test_get_returns_none_for_none_value(self) -> None:
        async def describe(c: ResolverContext) -> str:
            return repr(await c.get("author"))

        ctx = make_context(
            ["author", "summary"], {"author": None, "summary": lazy(describe)}
        )

        assert await resolve_field(ctx, "summary") == "None"


class TestMemoization:
    @pytest.mark.asyncio
    async def test_resolver_runs_once(self) -> None:
        first_name = Mock(return_value="Komata")

        async def upper(c: ResolverContext) -> str:
            return (await c.get("first")).upper()

        async def lower(c: ResolverContext) -> str:
            return (await c.get("first")).lower()

        ctx = make_context(
            ["first", "upper", "lower"],
            {"first": lazy(first_name), "upper": lazy(upper), "lower": lazy(lower)},
        )

        assert await assemble(ctx) == {
            "first": "Komata",
            "upper": "KOMATA",
            "lower": "komata",
        }
        first_name.assert_called_once()

    @pytest.mark.asyncio
    async def test_concurrent_gets_share_one_evaluation(self) -> None:
        calls = []

        async def slow(c: ResolverContext) -> int:
            calls.append(c.field_name)
            await asyncio.sleep(0.01)
            return 42

        async def left(c: ResolverContext) -> int:
            return await c.get("shared") + 1

        async def right(c: ResolverContext) -> int:
            return await c.get("shared") + 2

        async def both(c: ResolverContext) -> list:
            return list(await asyncio.gather(c.get("left"), c.get("right")))

        ctx = make_context(
            ["both"],
            {
                "both": lazy(both),
                "left": lazy(left),
                "right": lazy(right),
                "shared": lazy(slow),
            },
        )

        assert await assemble(ctx) == {"both": [43, 44]}
        assert calls == ["shared"]


class TestCycles:
    @pytest.mark.asyncio
    async def test_self_reference(self) -> None:
        async def me(c: ResolverContext):
            return await c.get("me")

        ctx = make_context(["me"], {"me": lazy(me)})

        with pytest.raises(CircularDependencyError) as exc_info:
            await resolve_field(ctx, "me")

        assert exc_info.value.field_name == "me"
        assert exc_info.value.chain == ["me", "me"]

    @pytest.mark.asyncio
    async def test_mutual_reference(self) -> None:
        async def a(c: ResolverContext):
            return await c.get("b")

        async def b(c: ResolverContext):
            return await c.get("a")

        ctx = make_context(["a", "b"], {"a": lazy(a), "b": lazy(b)})

        with pytest.raises(CircularDependencyError) as exc_info:
            await assemble(ctx)

        assert exc_info.value.field_name == "a"
        assert exc_info.value.chain == ["a", "b", "a"]
        assert ctx.cache["a"].state is ResolutionState.FAILED
        assert ctx.cache["b"].state is ResolutionState.FAILED

    @pytest.mark.asyncio
    async def test_cycle_across_concurrent_branches(self) -> None:
        async def b(c: ResolverContext):
            await asyncio.sleep(0)
            return await c.get("c")

        async def c_(c: ResolverContext):
            await asyncio.sleep(0)
            return await c.get("b")

        async def root(c: ResolverContext):
            return await asyncio.gather(c.get("b"), c.get("c"))

        ctx = make_context(["root"], {"root": lazy(root), "b": lazy(b), "c": lazy(c_)})

        with pytest.raises(CircularDependencyError):
            await asyncio.wait_for(assemble(ctx), timeout=5)

    @pytest.mark.asyncio
    async def test_cycle_is_not_wrapped(self) -> None:
        """The error surfacing through an unrelated resolver stays distinct."""

        async def outer(c: ResolverContext):
            return await c.get("loop")

        async def loop(c: ResolverContext):
            return await c.get("loop")

        ctx = make_context(["outer"], {"outer": lazy(outer), "loop": lazy(loop)})

        with pytest.raises(CircularDependencyError):
            await assemble(ctx)


class TestFailures:
    @pytest.mark.asyncio
    async def test_resolver_error_wraps_cause(self) -> None:
        def broken(c: ResolverContext):
            raise KeyError("missing")

        ctx = make_context(["id"], {"id": lazy(broken)}, seq=5)

        with pytest.raises(ResolverError) as exc_info:
            await resolve_field(ctx, "id")

        error = exc_info.value
        assert error.field_name == "id"
        assert error.factory_name == "Sample"
        assert error.seq == 5
        assert isinstance(error.cause, KeyError)
        assert error.__cause__ is error.cause
        assert ctx.cache["id"].state is ResolutionState.FAILED

    @pytest.mark.asyncio
    async def test_dependent_sees_innermost_error(self) -> None:
        async def broken(c: ResolverContext):
            raise RuntimeError("boom")

        async def dependent(c: ResolverContext):
            return await c.get("base")

        ctx = make_context(
            ["dependent"], {"dependent": lazy(dependent), "base": lazy(broken)}
        )

        with pytest.raises(ResolverError) as exc_info:
            await assemble(ctx)

        assert exc_info.value.field_name == "base"

    @pytest.mark.asyncio
    async def test_failed_field_is_not_retried(self) -> None:
        broken = Mock(side_effect=ValueError("nope"))
        ctx = make_context(["id"], {"id": lazy(broken)})

        with pytest.raises(ResolverError):
            await resolve_field(ctx, "id")
        with pytest.raises(ResolverError):
            await resolve_field(ctx, "id")

        broken.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_undeclared_field(self) -> None:
        async def nosy(c: ResolverContext):
            return await c.get("secret")

        ctx = make_context(["id"], {"id": lazy(nosy)})

        with pytest.raises(ConfigurationError) as exc_info:
            await resolve_field(ctx, "id")

        assert exc_info.value.field_name == "secret"


class TestAssemble:
    @pytest.mark.asyncio
    async def test_transient_fields_are_lazy_and_excluded(self) -> None:
        unused = Mock(return_value="never")

        async def total(c: ResolverContext) -> int:
            return await c.get("count") * 10

        ctx = make_context(
            ["total"],
            {"total": lazy(total), "count": 3, "unused": lazy(unused)},
        )

        assert await assemble(ctx) == {"total": 30}
        unused.assert_not_called()
        assert "count" in ctx.cache

    @pytest.mark.asyncio
    async def test_result_follows_declaration_order(self) -> None:
        order = []

        def record(name, value):
            def resolver(c: ResolverContext):
                order.append(name)
                return value

            return resolver

        async def first(c: ResolverContext):
            order.append("first")
            return await c.get("last")

        ctx = make_context(
            ["first", "middle", "last"],
            {
                "first": lazy(first),
                "middle": lazy(record("middle", 2)),
                "last": lazy(record("last", 3)),
            },
        )

        result = await assemble(ctx)

        assert list(result) == ["first", "middle", "last"]
        assert result == {"first": 3, "middle": 2, "last": 3}
        assert order == ["first", "last", "middle"]
